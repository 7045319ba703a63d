from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from core.health_check import health_check
from core.helper import utc_now
from core.log import logger
from core.rate_limiter.memory import InMemoryRateLimiter
from core.rate_limiter.middleware import RateLimitMiddleware
from core.scheduler import init_scheduler, shutdown_scheduler
from routes.admin import router as admin_router
from routes.auth import router as auth_router
from routes.bid import router as bid_router
from routes.event import router as event_router
from routes.ticket import router as ticket_router

from settings import (
    AUCTION_SWEEP_ENABLED,
    RATE_LIMIT_ENABLED,
    RATE_LIMIT_EXCLUDED_PATHS,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW,
)

health_check()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if AUCTION_SWEEP_ENABLED:
        init_scheduler()
    yield
    shutdown_scheduler()


app = FastAPI(title="LayLow-India Ticket Resale BE", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    RateLimitMiddleware,
    backend=InMemoryRateLimiter,
    enabled=RATE_LIMIT_ENABLED,
    limit=RATE_LIMIT_MAX_REQUESTS,
    window=RATE_LIMIT_WINDOW,
    exclude_paths=RATE_LIMIT_EXCLUDED_PATHS,
)

app.include_router(auth_router)
app.include_router(event_router)
app.include_router(ticket_router)
app.include_router(bid_router)
app.include_router(admin_router)


def _validation_response(errors) -> JSONResponse:
    error_details = []
    for error in errors:
        loc = [str(part) for part in error["loc"] if part not in ("body", "query", "path")]
        field = ".".join(loc) if loc else "general"
        error_details.append({"field": field, "message": error["msg"]})

    return JSONResponse(
        status_code=422,
        content={
            "message": "Validation error on request data.",
            "errors": error_details,
        },
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
):
    return _validation_response(exc.errors())


@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    return _validation_response(exc.errors())


@app.get("/")
async def hello():
    logger.info("hello")
    return {"Hello": "from LayLow-India ticket resale BE"}


@app.get("/health")
def health():
    return {"status": "ok", "timestamp": utc_now().isoformat()}
