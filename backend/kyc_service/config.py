"""Application configuration."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "KYC Decision API"
    debug: bool = False

    # CORS - the customer and admin front-ends
    cors_origins: list[str] = ["*"]

    # Extraction backend: "mock", "mrz" or "easyocr"
    extraction_backend: str = "mock"
    default_locale: str = "en"

    # Upload limits for identity document images
    max_upload_size_mb: int = 10
    max_image_dimension: int = 1600  # Max dimension before OCR
    min_image_dimension: int = 100
    allowed_extensions: set = {"png", "jpg", "jpeg", "webp"}

    # OCR settings
    ocr_lang: str = "en"
    ocr_max_concurrent: int = 1  # CPU-bound, no benefit from concurrency

    # Score weights (out of a 100-point base)
    name_weight: int = 40
    dob_weight: int = 30
    document_weight: int = 30
    mrz_valid_bonus: int = 5

    # Name mismatch partial credit: floor(name_weight * factor * confidence)
    name_partial_factor: float = 0.3
    default_name_confidence: float = 0.5

    # Status thresholds
    fail_threshold: int = 60  # score < this -> fail
    verified_threshold: int = 85  # score >= this -> verified

    # Loan estimator
    default_interest_rate: float = 24.0  # annual %, when the client sends none

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
