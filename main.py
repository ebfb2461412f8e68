import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from api.router import router as api_router
from app.repositories.organization_repo import SQLAlchemyOrganizationRepository
from app.repositories.user_repo import SQLAlchemyUserRepository
from app.services.organization_service import OrganizationService
from app.services.user_service import UserService
from core.config import config
from core.db import Base, create_session_factory, engine as default_engine
from core.exceptions.base import CustomException
from core.logging import get_logger, setup_logging
from core.middleware import RequestDeadlineMiddleware

# Setup logging
setup_logging()
logger = get_logger(__name__)

VERSION = "1.0.0"

# Unparseable bodies and bad path ids are malformed requests (400), not validation errors
MALFORMED_ERROR_TYPES = {"json_invalid"}


def _error_body(error_code: str, message: str, data: Optional[dict] = None) -> dict:
    return {"error_code": error_code, "message": message, "data": data or {}}


def create_app(engine: Optional[AsyncEngine] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    engine = engine or default_engine
    session_factory = create_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan context manager."""
        logger.info(f"Starting {config.APP_NAME}...")
        if config.DATABASE_AUTO_CREATE:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables ensured")
        yield
        logger.info(f"Shutting down {config.APP_NAME}...")
        await engine.dispose()
        logger.info("Database connections closed")

    app = FastAPI(
        title="Customer API",
        description="REST API for managing users and organizations",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Services are built once; each repository call opens its own session
    organization_repo = SQLAlchemyOrganizationRepository(session_factory)
    user_repo = SQLAlchemyUserRepository(session_factory)
    app.state.organization_service = OrganizationService(organization_repo)
    app.state.user_service = UserService(user_repo, organization_repo)

    # Added first so it sits innermost, in the same task as the endpoint
    app.add_middleware(RequestDeadlineMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        """Log every request with its status and duration."""
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} - {response.status_code} - {elapsed_ms:.1f}ms"
        )
        return response

    @app.exception_handler(CustomException)
    async def custom_exception_handler(
        request: Request, exc: CustomException
    ) -> JSONResponse:
        if exc.code >= 500:
            logger.error(f"CustomException: {exc.error_code} - {exc.message}")
        else:
            logger.warning(f"CustomException: {exc.error_code} - {exc.message}")
        return JSONResponse(
            status_code=exc.code,
            content=_error_body(exc.error_code, exc.message, exc.data),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {
                "loc": [str(part) for part in error.get("loc", ())],
                "msg": error.get("msg", ""),
                "type": error.get("type", ""),
            }
            for error in exc.errors()
        ]
        malformed = any(
            error["type"] in MALFORMED_ERROR_TYPES
            or (error["loc"] and error["loc"][0] == "path")
            for error in errors
        )
        if malformed:
            status_code, error_code, message = 400, "BAD_REQUEST", "Malformed request"
        else:
            status_code, error_code, message = 422, "VALIDATION_ERROR", "Validation error"

        logger.warning(f"{error_code}: {request.method} {request.url.path} {errors}")
        return JSONResponse(
            status_code=status_code,
            content=_error_body(error_code, message, {"errors": errors}),
        )

    # General exception handler to ensure proper error responses
    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(f"Unhandled exception: {type(exc).__name__} - {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={
                "error_code": "INTERNAL_ERROR",
                "message": "An internal server error occurred",
                "data": {"detail": str(exc)} if config.DEBUG else {},
            },
        )

    @app.get("/health")
    async def health_check() -> dict:
        return {
            "status": "healthy",
            "version": VERSION,
            "app_name": config.APP_NAME,
        }

    # Include API routers
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=config.HOST, port=config.PORT)
