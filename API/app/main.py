import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.health import router as health_router
from app.api.students import router as students_router
from app.core.errors import (
    ServiceError,
    http_exception_handler,
    request_id_middleware,
    security_headers_middleware,
    service_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.core.jwt_auth import TokenIssuer
from app.core.logging import configure_logging
from app.core.password import PasswordHasher
from app.core.settings import Settings, settings as default_settings, validate_runtime_config
from app.memory.store import build_student_store

configure_logging(default_settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await app.state.student_store.ensure_indexes()
    except ServiceError as exc:
        logger.error("Student store index setup failed; uniqueness relies on existing indexes: %s", exc.message)
    yield
    await app.state.student_store.close()


def create_app(config: Settings | None = None) -> FastAPI:
    config = config or default_settings
    validate_runtime_config(config)

    app = FastAPI(title="Student Records API", version="0.1.0", lifespan=lifespan)
    app.state.settings = config
    app.state.student_store = build_student_store(config)
    app.state.password_hasher = PasswordHasher(rounds=config.password_hash_rounds)
    app.state.token_issuer = TokenIssuer(
        config.jwt_secret,
        algorithm=config.jwt_algorithm,
        expire_minutes=config.jwt_expire_minutes,
    )

    app.include_router(health_router)
    app.include_router(students_router)
    if config.api_version_prefix:
        app.include_router(students_router, prefix=config.api_version_prefix, include_in_schema=False)

    # Last added runs outermost: request id, then security headers, then CORS (which answers preflights itself).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=default_settings.app_host, port=default_settings.app_port)
