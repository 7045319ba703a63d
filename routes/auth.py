from datetime import timedelta
import traceback
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from core.email import notify, send_email_verification, send_reset_password_email
from core.helper import as_utc, utc_now
from core.log import logger
from core.responses import (
    Created,
    Forbidden,
    InternalServerError,
    common_response,
    Ok,
    BadRequest,
    Unauthorized,
)
from core.security import (
    check_permissions,
    generate_hash_password,
    generate_token_from_user,
    get_current_user,
    invalidate_token,
    validated_password,
    oauth2_scheme,
)
from models import get_db_sync
from models.User import User
from schemas.common import (
    BadRequestResponse,
    ForbiddenResponse,
    InternalServerErrorResponse,
    UnauthorizedResponse,
)
from schemas.auth import (
    AuthorizationStatusEnum,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginSuccessResponse,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    UpdateProfileRequest,
    UserResponse,
    user_response_from_model,
)
from repository import user as userRepo
from repository import email_verification as emailVerificationRepo
from repository import reset_password as resetPasswordRepo
from settings import (
    EMAIL_VERIFICATION_EXPIRE_HOURS,
    FRONTEND_BASE_URL,
    RESET_PASSWORD_EXPIRE_HOURS,
)

router = APIRouter(prefix="/auth", tags=["Auth"])


async def _send_verification(db: Session, user: User):
    verification_code = emailVerificationRepo.generate_verification_code()
    expired_at = utc_now() + timedelta(hours=EMAIL_VERIFICATION_EXPIRE_HOURS)
    emailVerificationRepo.upsert_email_verification(
        db=db,
        user=user,
        verification_code=verification_code,
        expired_at=expired_at,
        is_commit=False,
    )
    db.commit()
    activation_link = f"{FRONTEND_BASE_URL}/verify-email?token={verification_code}"
    await notify(
        send_email_verification(
            recipient=user.email, name=user.name, activation_link=activation_link
        ),
        description=f"verification email to {user.email}",
    )


@router.post(
    "/register/",
    responses={
        "201": {"model": MessageResponse},
        "400": {"model": BadRequestResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
async def register(request: RegisterRequest, db: Session = Depends(get_db_sync)):
    existing_user = userRepo.get_user_by_email(db=db, email=request.email)
    if existing_user:
        return common_response(BadRequest(message="Email already registered"))

    try:
        user = userRepo.create_user(
            db=db,
            email=request.email,
            name=request.name,
            password=generate_hash_password(request.password),
            phone=request.phone,
            is_commit=False,
        )
        await _send_verification(db=db, user=user)
        logger.info(f"User registered: {user.email}")
        return common_response(
            Created(
                data={
                    "message": "Registration successful. Please check your email to verify your account.",
                    "user": user_response_from_model(user).model_dump(),
                }
            )
        )
    except Exception as e:
        db.rollback()
        traceback.print_exc()
        logger.error(f"Failed to register user: {e}")
        return common_response(InternalServerError(error=str(e)))


async def _login(db: Session, email: str, password: str):
    user = userRepo.get_user_by_email(db=db, email=email)
    if user is None:
        return None, common_response(BadRequest(message="Invalid Credentials"))

    is_valid = validated_password(user.password, password)
    if not is_valid:
        return None, common_response(BadRequest(message="Invalid Credentials"))

    if user.banned:
        return None, common_response(
            Forbidden(custom_response={"message": "Your account has been banned"})
        )

    if not user.is_admin and not user.is_email_verified:
        return None, common_response(
            Forbidden(
                custom_response={
                    "message": "Please verify your email before logging in"
                }
            )
        )

    token = await generate_token_from_user(db=db, user=user)
    return (user, token), None


@router.post("/token/")
async def swagger_form_token(
    form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db_sync)
):
    result, error = await _login(
        db=db, email=form_data.username, password=form_data.password
    )
    if error is not None:
        return error

    _, token = result
    return {"access_token": token, "token_type": "bearer"}


@router.post(
    "/login/",
    responses={
        "200": {"model": LoginSuccessResponse},
        "400": {"model": BadRequestResponse},
        "403": {"model": ForbiddenResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
async def login(request: LoginRequest, db: Session = Depends(get_db_sync)):
    result, error = await _login(db=db, email=request.email, password=request.password)
    if error is not None:
        return error

    user, token = result
    return common_response(
        Ok(
            data={
                "token": token,
                "user": user_response_from_model(user).model_dump(),
            }
        )
    )


@router.get(
    "/me/",
    responses={
        "200": {"model": MeResponse},
        "401": {"model": UnauthorizedResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
async def me(current_user: User | None = Depends(get_current_user)):
    if current_user is None:
        return common_response(Unauthorized(message="Invalid Credentials"))

    return common_response(Ok(data=user_response_from_model(current_user).model_dump()))


@router.post(
    "/logout/",
    responses={
        "200": {"model": MessageResponse},
        "401": {"model": UnauthorizedResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
async def logout(
    db: Session = Depends(get_db_sync),
    token: str = Depends(oauth2_scheme),
    current_user: User | None = Depends(get_current_user),
):
    if current_user is None:
        return common_response(Unauthorized(message="Invalid Credentials"))

    invalidate_token(db=db, token=token)
    return common_response(Ok(data={"message": "logout successfully"}))


@router.get(
    "/verify-email/",
    responses={
        "200": {"model": MessageResponse},
        "400": {"model": BadRequestResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
async def verify_email(token: str = None, db: Session = Depends(get_db_sync)):
    if not token:
        return common_response(BadRequest(message="Verification token is required"))

    email_verification = (
        emailVerificationRepo.get_email_verification_by_verification_code(
            db=db, verification_code=token
        )
    )
    if not email_verification:
        return common_response(BadRequest(message="Invalid verification token"))

    if as_utc(email_verification.expired_at) < utc_now():
        emailVerificationRepo.delete_email_verification(
            db=db, email_verification=email_verification
        )
        return common_response(
            BadRequest(message="Verification token expired, please request a new one")
        )

    user = email_verification.user
    userRepo.mark_email_verified(db=db, user=user, is_commit=False)
    emailVerificationRepo.delete_email_verification(
        db=db, email_verification=email_verification, is_commit=False
    )
    db.commit()
    logger.info(f"Email verified: {user.email}")
    return common_response(Ok(data={"message": "Email verified successfully"}))


@router.post(
    "/resend-verification/",
    responses={
        "200": {"model": MessageResponse},
        "400": {"model": BadRequestResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
async def resend_verification(
    request: ResendVerificationRequest, db: Session = Depends(get_db_sync)
):
    user = userRepo.get_user_by_email(db=db, email=request.email)
    if user is None:
        return common_response(BadRequest(message="Email is not registered"))

    if user.is_email_verified:
        return common_response(BadRequest(message="Email is already verified"))

    await _send_verification(db=db, user=user)
    return common_response(Ok(data={"message": "Verification email sent"}))


@router.post(
    "/forgot-password/",
    responses={
        "200": {"model": MessageResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
async def forgot_password(
    request: ForgotPasswordRequest, db: Session = Depends(get_db_sync)
):
    message = "If an account with that email exists, a password reset link has been sent."
    user = userRepo.get_user_by_email(db=db, email=request.email)
    if user is None:
        return common_response(Ok(data={"message": message}))

    token = resetPasswordRepo.generate_token()
    expired_at = utc_now() + timedelta(hours=RESET_PASSWORD_EXPIRE_HOURS)
    existing_reset_password = resetPasswordRepo.get_reset_password_by_user(
        db=db, user=user
    )
    if existing_reset_password:
        resetPasswordRepo.update_reset_password(
            db=db,
            reset_password=existing_reset_password,
            token=token,
            expired_at=expired_at,
            is_commit=False,
        )
    else:
        resetPasswordRepo.create_reset_password(
            db=db,
            user=user,
            token=token,
            expired_at=expired_at,
            is_commit=False,
        )
    db.commit()
    reset_link = f"{FRONTEND_BASE_URL}/reset-password?token={token}"
    await notify(
        send_reset_password_email(recipient=user.email, reset_link=reset_link),
        description=f"reset password email to {user.email}",
    )
    return common_response(Ok(data={"message": message}))


@router.post(
    "/reset-password/",
    responses={
        "200": {"model": MessageResponse},
        "400": {"model": BadRequestResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
async def reset_password(
    request: ResetPasswordRequest, db: Session = Depends(get_db_sync)
):
    reset_password = resetPasswordRepo.get_reset_password_by_token(
        db=db, token=request.token
    )
    if not reset_password:
        return common_response(BadRequest(message="Invalid or expired reset token"))

    if as_utc(reset_password.expired_at) < utc_now():
        resetPasswordRepo.delete_reset_password(db=db, reset_password=reset_password)
        return common_response(BadRequest(message="Invalid or expired reset token"))

    user: User = reset_password.user
    userRepo.update_password(
        db=db,
        user=user,
        password=generate_hash_password(request.new_password),
        is_commit=False,
    )
    resetPasswordRepo.delete_reset_password(
        db=db, reset_password=reset_password, is_commit=False
    )
    db.commit()
    return common_response(Ok(data={"message": "Password has been reset successfully"}))


@router.put(
    "/profile/",
    responses={
        "200": {"model": UserResponse},
        "400": {"model": BadRequestResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
async def update_profile(
    request: UpdateProfileRequest,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    auth_status = check_permissions(current_user, mutating=True)
    if auth_status == AuthorizationStatusEnum.UNAUTHORIZED:
        return common_response(Unauthorized(message="Unauthorized"))
    if auth_status == AuthorizationStatusEnum.BANNED:
        return common_response(
            Forbidden(custom_response={"message": "Your account has been banned"})
        )

    if request.email and request.email.lower() != current_user.email.lower():
        existing_user = userRepo.get_user_by_email(db=db, email=request.email)
        if existing_user:
            return common_response(BadRequest(message="Email already registered"))

    user = userRepo.update_user(
        db=db,
        user=current_user,
        name=request.name,
        email=request.email,
        phone=request.phone,
    )
    return common_response(Ok(data=user_response_from_model(user).model_dump()))


@router.put(
    "/change-password/",
    responses={
        "200": {"model": MessageResponse},
        "400": {"model": BadRequestResponse},
        "401": {"model": UnauthorizedResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
async def change_password(
    request: ChangePasswordRequest,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    if current_user is None:
        return common_response(Unauthorized(message="Unauthorized"))

    if not validated_password(current_user.password, request.current_password):
        return common_response(BadRequest(message="Current password is incorrect"))

    userRepo.update_password(
        db=db,
        user=current_user,
        password=generate_hash_password(request.new_password),
    )
    return common_response(Ok(data={"message": "Password changed successfully"}))
