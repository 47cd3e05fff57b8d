from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel

from .error import ClientError, ConfigurationError, ServerError
from src.adapter.services.logging_notification_service import LoggingNotificationService
from src.adapter.services.memory_token_store import InMemoryTokenStore
from src.adapter.services.redis_token_store import RedisTokenStore
from src.api.utils.jwt import TokenService, TokenSettings
from src.app.services.password_hasher import PasswordHasher
from src.app.services.token_store import ITokenStore
from src.app.use_cases.auth import AuthSettings
from src.domain.lockout import LockoutPolicy
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    if exc.base_error.details:
        error_dict["details"] = exc.base_error.details
    logger.warning(f"Client error: {exc.base_error.code} on {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code} ({exc.base_error.message})")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


def build_token_store(ApplicationConfig) -> ITokenStore:
    backend = str(ApplicationConfig.CACHE_BACKEND).lower()
    if backend == "redis":
        return RedisTokenStore(ApplicationConfig.REDIS_URL)
    if backend == "memory":
        logger.warning("Using in-memory token store; refresh token state is per process")
        return InMemoryTokenStore()
    raise ConfigurationError(f"Unknown CACHE_BACKEND: {ApplicationConfig.CACHE_BACKEND}")


def create_app(ApplicationConfig) -> FastAPI:
    # Fails fast on a missing JWT_SECRET or an unknown cache backend
    token_service = TokenService(TokenSettings.from_config(ApplicationConfig))
    token_store = build_token_store(ApplicationConfig)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if ApplicationConfig.DB_AUTO_CREATE:
            from src.depends import engine

            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        yield
        await app.state.token_store.close()

    app = FastAPI(title="Auth Service", version="0.1.0", lifespan=lifespan)

    app.state.token_service = token_service
    app.state.token_store = token_store
    app.state.password_hasher = PasswordHasher(rounds=ApplicationConfig.BCRYPT_ROUNDS)
    app.state.lockout_policy = LockoutPolicy(
        max_attempts=ApplicationConfig.MAX_FAILED_LOGIN_ATTEMPTS,
        lock_duration=timedelta(minutes=ApplicationConfig.ACCOUNT_LOCK_MINUTES),
    )
    app.state.notification_service = LoggingNotificationService()
    app.state.auth_settings = AuthSettings.from_config(ApplicationConfig)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from src.api.routes import auth, health_check

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, prefix=ApplicationConfig.API_PREFIX, tags=["Authentication"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
