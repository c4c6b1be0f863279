from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "statements"
    db_username: str = "statements"
    db_password: str = "secret"
    db_pool_max_size: int = Field(default=10, ge=1)

    chunk_size: int = Field(default=3000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    min_chunk_size: int = Field(default=100, ge=0)
    background_threshold_chars: int = Field(default=4096, ge=0)

    default_max_retries: int = Field(default=3, ge=0)
    retry_backoff_base_seconds: float = Field(default=1.0, ge=0)
    retry_backoff_max_seconds: float = Field(default=30.0, ge=0)

    scheduler_interval_seconds: int = Field(default=300, gt=0)
    scheduler_run_on_start: bool = True
    stale_processing_seconds: float = Field(default=900.0, ge=0)

    pdf_engine: str = "pdfplumber"

    extraction_provider: str = "openai"
    extraction_api_key: str = ""
    extraction_model_name: str = "gpt-4o-mini"
    extraction_base_url: str | None = None
    extraction_timeout_seconds: int = Field(default=60, gt=0)
    extraction_temperature: float = Field(default=0.0, ge=0.0, le=2.0)

    @model_validator(mode="after")
    def _check_chunk_window(self) -> "Settings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        return self
