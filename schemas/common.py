from pydantic import BaseModel, ConfigDict


class OkResponse(BaseModel):
    message: str = "Ok"

class UnauthorizedResponse(BaseModel):
    message: str = "Unauthorized"


class BadRequestResponse(BaseModel):
    message: str


class ValidationErrorResponseDetail(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "message": "Validation error on request data.",
                "errors": [
                    {
                        "field": "price",
                        "message": "Input should be greater than 0",
                    },
                    {
                        "field": "email",
                        "message": "value is not a valid email address",
                    },
                ],
            }
        },
    )

    message: str
    errors: list[ValidationErrorResponseDetail]


class ForbiddenResponse(BaseModel):
    message: str = "You don't have permissions to perform this action"


class NotFoundResponse(BaseModel):
    message: str = "Not Found"


class ConflictResponse(BaseModel):
    message: str = "Conflict"


class PaymentRequiredResponse(BaseModel):
    message: str = "Payment declined. Please try again."


class InternalServerErrorResponse(BaseModel):
    detail: str
