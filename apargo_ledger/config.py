"""Configuration management using Pydantic Settings"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./apargo_ledger.db"

    # Service
    service_name: str = "apargo-ledger"
    log_level: str = "INFO"

    # Ledger
    continuity_tolerance: float = 0.01
    maintenance_category_ids: List[str] = ["maintenance"]

    # Reporting webhook (disabled when unset)
    reporting_webhook_url: Optional[str] = None

    # HTTP Client
    http_timeout_seconds: float = 5.0
    webhook_max_retries: int = 5
    webhook_backoff_base: float = 1.0  # Exponential backoff base in seconds


settings = Settings()
