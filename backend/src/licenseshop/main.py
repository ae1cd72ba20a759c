"""
FastAPI application entry point.

This is the main application that ties together all components:
- API routes for invoice rendering, issuing and email verification
- Startup validation of mail configuration
- CORS configuration for frontend access
- Error handling and logging
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from licenseshop import __version__
from licenseshop.api.routes import emails, health, invoices
from licenseshop.config import get_settings
from licenseshop.infrastructure.assets import LocalAssetStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup tasks:
    - Validate SMTP settings (fails fast on inconsistent config)
    - Report whether the logo asset is present
    """
    settings = get_settings()

    logger.info(f"Starting License Shop v{__version__}")
    logger.info(f"Debug mode: {settings.debug}")

    smtp = settings.smtp_config()
    if smtp is None:
        logger.warning("SMTP not configured - running in no-op delivery mode")
    else:
        logger.info(f"SMTP transport: {smtp.host}:{smtp.port} (secure={smtp.secure})")

    assets = LocalAssetStore(settings.asset_path)
    if not assets.exists(settings.logo_filename):
        logger.warning(
            f"Logo {settings.logo_filename} not found in {assets.base_path}; "
            "invoices will render without it"
        )

    yield  # Application runs here

    logger.info("Shutting down License Shop")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance ready to serve requests.
    """
    settings = get_settings()

    app = FastAPI(
        title="License Shop API",
        description=(
            "Software license reseller backend.\n\n"
            "Renders PDF invoices and delivers license keys to verified "
            "email addresses."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else ["https://nk2it.com.au"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health.router)
    app.include_router(invoices.router, prefix="/api/v1")
    app.include_router(emails.router, prefix="/api/v1")

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler for unhandled errors."""
        logger.exception(f"Unhandled error: {exc}")

        # Don't expose internal errors in production
        if settings.debug:
            detail = str(exc)
        else:
            detail = "An internal error occurred"

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": detail,
            },
        )

    return app


# Create the application instance
app = create_app()


# Development server entry point
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "licenseshop.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
