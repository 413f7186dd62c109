"""Application configuration using Pydantic settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Converter settings loaded from environment variables.

    Every field can be overridden with a ``STATEMENT_`` prefixed variable,
    e.g. ``STATEMENT_MIN_READABILITY=0.7``.
    """

    model_config = SettingsConfigDict(
        env_prefix="STATEMENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Bank Statement Converter"
    version: str = "2.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Readability predicate
    min_text_chars: int = 50
    min_readability: float = 0.6
    relaxed_readability_floor: float = 0.3
    require_statement_terms: bool = True

    # Coordinate-based row reconstruction
    column_gap: float = 15.0

    # External tools
    external_tool_timeout_seconds: int = 60
    pdftotext_binary: str = "pdftotext"
    pdfinfo_binary: str = "pdfinfo"
    pdftoppm_binary: str = "pdftoppm"
    tesseract_binary: str = "tesseract"

    # OCR
    ocr_dpi: int = 300
    ocr_language: str = "eng"
    ocr_psm: int = 4

    # Parsing
    balance_delta_precedence: bool = True

    # API
    max_upload_mb: int = 32


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
