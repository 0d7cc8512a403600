"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from deployer import __version__
from deployer.api.middleware import RequestLoggingMiddleware
from deployer.api.v1.router import router as v1_router
from deployer.config import settings
from deployer.core.exceptions import CommitListingError, DeployerError, InvalidRequestError
from deployer.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    configure_logging()
    logger.info(
        "application.starting",
        version=__version__,
        environment=settings.app_env,
        scratch_root=str(settings.scratch_root),
    )

    yield

    # Shutdown
    logger.info("application.shutdown")


def _error_response(status_code: int, exc: DeployerError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": exc.kind.value.upper(),
                "message": exc.message,
                "details": exc.details,
            }
        },
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Commit Deployer API",
        description="Deploy the build output of a chosen commit to a filesystem path",
        version=__version__,
        docs_url="/docs" if settings.app_debug else None,
        redoc_url="/redoc" if settings.app_debug else None,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers
    @app.exception_handler(CommitListingError)
    async def commit_listing_error_handler(
        request: Request, exc: CommitListingError
    ) -> JSONResponse:
        """Upstream provider failures are reported as a bad gateway."""
        return _error_response(status.HTTP_502_BAD_GATEWAY, exc)

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_error_handler(
        request: Request, exc: InvalidRequestError
    ) -> JSONResponse:
        return _error_response(status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(DeployerError)
    async def deployer_error_handler(request: Request, exc: DeployerError) -> JSONResponse:
        """Handle application-specific errors."""
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected errors."""
        logger.error(
            "unhandled_exception",
            error=str(exc),
            path=request.url.path,
            exc_info=True,
        )

        if settings.is_development:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": {
                        "code": "INTERNAL_ERROR",
                        "message": str(exc),
                        "type": type(exc).__name__,
                    }
                },
            )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                }
            },
        )

    # Include routers
    app.include_router(v1_router)

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "deployer.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
