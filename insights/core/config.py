from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
from urllib.parse import quote_plus
from pathlib import Path
from enum import Enum


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    # Environment Configuration
    ENVIRONMENT: Environment = Environment.DEVELOPMENT

    # Project Information
    PROJECT_NAME: str = "Sahha Insights"
    VERSION: str = "0.1.0"
    API_PREFIX: str = "/api"

    # Server settings
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # Database - SQLite under DATA_DIR unless Postgres settings are provided
    DATA_DIR: str = "data"
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_PORT: Optional[int] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    SQLALCHEMY_DATABASE_URI: Optional[str] = None

    # Sahha API credentials (absent = serve synthesized demo data)
    SAHHA_API_BASE_URL: str = "https://sandbox-api.sahha.ai"
    SAHHA_CLIENT_ID: Optional[str] = None
    SAHHA_CLIENT_SECRET: Optional[str] = None
    SAHHA_REQUEST_TIMEOUT: float = 10.0
    SAHHA_SCORE_PROFILE_LIMIT: int = 10  # Profiles to enrich with live scores per fetch

    # Webhook
    SAHHA_WEBHOOK_SECRET: Optional[str] = None
    ALLOW_SIGNATURE_BYPASS: bool = True  # Honoured in development only

    # Demo data
    DEMO_PROFILE_COUNT: int = 57

    # CORS
    CORS_ORIGINS: List[str] = []

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # --- Validators & Derived Settings ---
    @field_validator("SAHHA_API_BASE_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> str:
        if v is None or (isinstance(v, str) and v.strip() == ""):
            return "https://sandbox-api.sahha.ai"
        return v.rstrip("/")

    @model_validator(mode="after")
    def _finalize_and_validate(self) -> "Settings":
        # Derive SQLALCHEMY_DATABASE_URI if not provided
        if not self.SQLALCHEMY_DATABASE_URI:
            user = self.POSTGRES_USER
            server = self.POSTGRES_SERVER
            port = self.POSTGRES_PORT
            db = self.POSTGRES_DB
            if user and server and port and db:
                safe_user = quote_plus(user)
                if self.POSTGRES_PASSWORD:
                    safe_password = quote_plus(self.POSTGRES_PASSWORD)
                    self.SQLALCHEMY_DATABASE_URI = (
                        f"postgresql://{safe_user}:{safe_password}@{server}:{port}/{db}"
                    )
                else:
                    self.SQLALCHEMY_DATABASE_URI = (
                        f"postgresql://{safe_user}@{server}:{port}/{db}"
                    )
            else:
                data_dir = Path(self.DATA_DIR)
                self.SQLALCHEMY_DATABASE_URI = f"sqlite:///{data_dir / 'sahha_insights.db'}"

        if self.is_production and not self.SAHHA_WEBHOOK_SECRET:
            raise ValueError("SAHHA_WEBHOOK_SECRET must be set in production")

        return self

    # Environment-specific properties
    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

    @property
    def uses_sqlite(self) -> bool:
        return str(self.SQLALCHEMY_DATABASE_URI).startswith("sqlite")

    @property
    def has_sahha_credentials(self) -> bool:
        return bool(self.SAHHA_CLIENT_ID and self.SAHHA_CLIENT_SECRET)

    @property
    def allowed_cors_origins(self) -> List[str]:
        if self.CORS_ORIGINS:
            return self.CORS_ORIGINS
        if self.is_development:
            return [
                "http://localhost:3000",
                "http://127.0.0.1:3000",
            ]
        return []

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra='ignore')


settings = Settings()
