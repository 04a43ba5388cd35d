"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./kakeibo.db"

    # Service
    service_name: str = "kakeibo-engine"
    log_level: str = "INFO"

    # Engine windows
    upcoming_window_days: int = 31
    savings_horizon_months: int = 12  # Window cap for goals without an end month


settings = Settings()
