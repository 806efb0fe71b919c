from pydantic_settings import BaseSettings, SettingsConfigDict
from decimal import Decimal
from typing import List
import os

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=os.getenv("ENV_FILE", ".env"), extra="ignore")

    APP_NAME: str = "marketplace-hub"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str = "please-change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    DATABASE_URL: str

    REDIS_URL: str = "redis://localhost:6379/0"

    # percentage, e.g. 10.00 means 10%
    DEFAULT_COMMISSION_PERCENTAGE: Decimal = Decimal("10.00")
    ESTIMATED_DELIVERY_DAYS: int = 7
    RECONCILE_SYNC_SECONDS: int = 3600

    CORS_ORIGINS: str = ""  # comma separated

    @property
    def cors_origins_list(self) -> List[str]:
        if not self.CORS_ORIGINS:
            return []
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
