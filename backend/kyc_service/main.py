"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import router
from .services import OCRService, OcrDocumentExtractor
from .config import get_settings
from . import __version__

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown."""
    logger.info("Starting KYC Decision API...")
    settings = get_settings()
    logger.info(f"Extraction backend: {settings.extraction_backend}")

    # Only the OCR backend needs a warm engine
    if settings.extraction_backend.lower() == OcrDocumentExtractor.provider:
        if OCRService().initialize():
            logger.info("OCR engine initialized and ready")
        else:
            logger.warning("OCR engine failed to initialize - will retry on first request")

    logger.info(f"API ready - Version {__version__}")

    yield

    logger.info("Shutting down KYC Decision API...")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="""
## KYC Decision API

Identity verification for customer onboarding: compares the identity data a
customer enters against the data read from their identity document.

### Features
- **MRZ parsing**: Recover name, date of birth and document number from MRZ text
- **Extraction**: Read an uploaded document with the configured backend
- **Verification**: Weighted match score, reason codes and a decision
- **Manual review**: Escalate a failed automatic verification to a human
        """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api/v1")

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "KYC Decision API",
            "version": __version__,
            "docs": "/docs"
        }

    return app


# Create app instance
app = create_app()
