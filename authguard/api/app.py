import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel

from authguard.adapter.services.memory_counter_store import InMemoryCounterStore
from authguard.adapter.services.redis_counter_store import RedisCounterStore
from authguard.adapter.services.resend_email_service import ResendEmailService
from authguard.api.utils.client_identity import ClientIdentityResolver
from authguard.api.utils.origin import OriginValidator
from authguard.api.utils.rate_limit import RateLimiters
from authguard.api.utils.request_size import RequestSizeLimits
from authguard.app.services.rate_limiter import CounterStore, RateLimiter, RateLimiterConfig
from authguard.result import Error
from .error import ClientError, ServerError, StorageError

logger = logging.getLogger(__name__)

STORAGE_UNAVAILABLE = Error("STORAGE_ERROR", "Storage unavailable")


def error_body(code: str, message: str) -> dict:
    return {"success": False, "message": message, "error": {"code": code, "message": message}}


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error on {request.method} {request.url.path}: {error_dict}")
    content = error_body(exc.base_error.code, exc.base_error.message)
    content.update(exc.extra)
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def handle_server_error(request: Request, exc: ServerError):
    logger.error(f"Server error on {request.method} {request.url.path}: {exc.base_error.code}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(exc.base_error.code, "Internal server error"),
    )


async def handle_storage_error(request: Request, exc: SQLAlchemyError):
    logger.error(f"Storage failure on {request.method} {request.url.path}", exc_info=exc)
    return await handle_server_error(request, StorageError(STORAGE_UNAVAILABLE))


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("INTERNAL_ERROR", "Internal server error"),
    )


def build_counter_store(ApplicationConfig) -> CounterStore:
    if ApplicationConfig.CACHE_BACKEND == "memory":
        return InMemoryCounterStore()
    return RedisCounterStore.from_url(ApplicationConfig.REDIS_URL)


def build_rate_limiters(ApplicationConfig, store: CounterStore) -> RateLimiters:
    namespace = ApplicationConfig.RATE_LIMIT_NAMESPACE
    fail_open = bool(ApplicationConfig.RATE_LIMIT_FAIL_OPEN)

    def limiter(name: str, settings: dict) -> RateLimiter:
        config = RateLimiterConfig(
            key_prefix=f"{namespace}:{name}",
            max_requests=settings["max_requests"],
            window_ms=settings["window_ms"],
            fail_open=fail_open,
        )
        return RateLimiter(config, store)

    return RateLimiters(
        forgot_password=limiter("auth-forgot-password", ApplicationConfig.FORGOT_PASSWORD_RATE_LIMIT),
        reset_password=limiter("auth-reset-password", ApplicationConfig.RESET_PASSWORD_RATE_LIMIT),
        resend_verification=limiter(
            "auth-resend-verification", ApplicationConfig.RESEND_VERIFICATION_RATE_LIMIT
        ),
    )


def trusted_origins(ApplicationConfig) -> list:
    return [
        *ApplicationConfig.APP_ORIGINS,
        ApplicationConfig.APP_BASE_URL,
        *ApplicationConfig.CORS_ORIGINS,
    ]


def create_app(ApplicationConfig) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from authguard.depends import engine

        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        yield
        await app.state.counter_store.close()
        await engine.dispose()

    app = FastAPI(title="Nexus Auth Guard", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = build_counter_store(ApplicationConfig)
    app.state.counter_store = store
    app.state.rate_limiters = build_rate_limiters(ApplicationConfig, store)
    app.state.origin_validator = OriginValidator(trusted_origins(ApplicationConfig))
    app.state.identity_resolver = ClientIdentityResolver(
        ApplicationConfig.REAL_IP_HEADER, ApplicationConfig.FORWARDED_FOR_HEADER
    )
    app.state.request_size_limits = RequestSizeLimits.from_mapping(ApplicationConfig.MAX_REQUEST_SIZE)
    app.state.email_service = ResendEmailService(
        api_key=ApplicationConfig.RESEND_API_KEY,
        from_address=ApplicationConfig.RESEND_FROM,
        app_base_url=ApplicationConfig.APP_BASE_URL,
        api_url=ApplicationConfig.RESEND_API_URL,
    )

    from authguard.api.routes import account, auth, health_check

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, tags=["Authentication"])
    app.include_router(account.router, tags=["Account"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(SQLAlchemyError, handle_storage_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    return app
