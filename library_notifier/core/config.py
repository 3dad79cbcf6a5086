# library_notifier/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from typing import List
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra='ignore')

    # Application Settings
    APP_NAME: str = "Library Notification Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 8000))

    # Database Settings (shared with the library API)
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./library.db")
    CREATE_TABLES_ON_STARTUP: bool = False

    # CORS Settings
    ALLOWED_ORIGINS: str = os.environ.get("ALLOWED_ORIGINS", "*")

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Mail Settings
    MAIL_MODE: str = "simulated"  # simulated | smtp
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_EMAIL: str = "noreply@library.com"
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT_SECONDS: float = 30.0

    # Scheduler Settings
    SCHEDULER_ENABLED: bool = True
    STARTUP_DELAY_SECONDS: float = 30.0
    POLL_INTERVAL_SECONDS: float = 300.0
    DISPATCH_BATCH_SIZE: int = 100
    MAX_RETRIES: int = 3
    OVERDUE_DEDUP_HOURS: int = 24
    DISPATCH_CLAIM_LEASE_SECONDS: float = 600.0

    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_HOST) and self.SMTP_HOST != "smtp.example.com"

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings: Settings = get_settings()
