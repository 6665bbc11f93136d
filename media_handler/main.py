import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from media_handler.config import Authorizer, MediaHandlerConfig, Settings, get_settings
from media_handler.middleware.auth import bearer_token_authorizer
from media_handler.routers.media import create_media_router
from media_handler.services.s3_service import S3Service


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(format="%(message)s", level=level.upper())
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_app(
    settings: Optional[Settings] = None,
    s3_service: Optional[S3Service] = None,
    authorized: Optional[Authorizer] = None
) -> FastAPI:
    """
    Build the API.

    The S3 client is created once here and shared by every request. Tests
    pass their own service and authorization predicate.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    config = MediaHandlerConfig.from_settings(
        settings,
        authorized or bearer_token_authorizer(settings.jwt_secret_key)
    )
    s3_service = s3_service or S3Service.from_config(config)

    app = FastAPI(
        title="S3 Media Handler API",
        description="List, upload and delete CMS media assets stored in an S3 bucket",
        version="1.0.0"
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure this properly for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_media_router(config, s3_service))

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"message": "S3 Media Handler API is running"}

    @app.get("/health")
    async def health_check():
        """Detailed health check endpoint."""
        return {
            "status": "healthy",
            "service": "s3-media-handler",
            "version": "1.0.0",
            "bucket": config.bucket
        }

    structlog.get_logger().info(
        "Media handler ready",
        bucket=config.bucket,
        environment=settings.environment
    )
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("media_handler.main:create_app", factory=True, host="0.0.0.0", port=8000)
