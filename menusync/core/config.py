import os
from typing import List
from dotenv import load_dotenv

# grab env vars from .env file
load_dotenv()


class Settings:
    # app settings
    APP_ENV: str = os.getenv("APP_ENV", "dev")
    APP_HOST: str = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT: int = int(os.getenv("APP_PORT", "8000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS stuff
    _origins_raw: str = os.getenv("ALLOWED_ORIGINS", "*")
    ALLOWED_ORIGINS: List[str] = [o.strip() for o in _origins_raw.split(",") if o.strip()] if _origins_raw else ["*"]

    # database config with separate creds
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
    DB_NAME: str = os.getenv("DB_NAME", "menusync")
    DB_USER: str = os.getenv("DB_USER", "menusync_user")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")
    DB_SSL_MODE: str = os.getenv("DB_SSL_MODE", "require")
    DB_CONNECTION_TIMEOUT: int = int(os.getenv("DB_CONNECTION_TIMEOUT", "30"))
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "5"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))

    @property
    def DATABASE_URL(self) -> str:
        """build DATABASE_URL from individual components or use explicit override"""
        # check if DATABASE_URL is explicitly set in env (for testing)
        explicit_url = os.getenv("DATABASE_URL")
        if explicit_url:
            return explicit_url

        # allow empty password if the DB doesn't need one
        return (
            f"postgresql+psycopg://{self.DB_USER}:{self.DB_PASSWORD}@"
            f"{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            f"?sslmode={self.DB_SSL_MODE}&connect_timeout={self.DB_CONNECTION_TIMEOUT}"
        )

    # POS catalog (item management) service, read-only for us
    CATALOG_SERVICE_URL: str = os.getenv("CATALOG_SERVICE_URL", "http://localhost:3001")
    CATALOG_TIMEOUT_SECONDS: int = int(os.getenv("CATALOG_TIMEOUT_SECONDS", "10"))
    CATALOG_PAGE_SIZE: int = int(os.getenv("CATALOG_PAGE_SIZE", "100"))

    # delivery platform adapter
    PLATFORM_PROVIDER: str = os.getenv("PLATFORM_PROVIDER", "mock")
    PLATFORM_SERVICE_URL: str = os.getenv("PLATFORM_SERVICE_URL", "http://localhost:3004")
    PLATFORM_TIMEOUT_SECONDS: int = int(os.getenv("PLATFORM_TIMEOUT_SECONDS", "60"))

    # menu engine tuning
    MODIFIER_FETCH_CONCURRENCY: int = int(os.getenv("MODIFIER_FETCH_CONCURRENCY", "8"))
    DEFAULT_LOCALE: str = os.getenv("DEFAULT_LOCALE", "en-us")
    EDIT_SESSION_TTL_MINUTES: int = int(os.getenv("EDIT_SESSION_TTL_MINUTES", "720"))


settings = Settings()
