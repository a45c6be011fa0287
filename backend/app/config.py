from pydantic_settings import BaseSettings
from typing import Optional
import os
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Empty DATABASE_URL selects the in-memory storage backend. Any SQLAlchemy
    # URL (postgresql+psycopg://..., sqlite:///...) selects the SQL backend.
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    # When True the SQL backend runs Alembic migrations on startup instead of
    # creating tables straight from the ORM metadata.
    RUN_MIGRATIONS: bool = False
    ALEMBIC_INI_PATH: str = os.path.join(os.path.dirname(os.path.dirname(__file__)), "alembic.ini")

    # Server-side sessions. The cookie only carries an opaque session id.
    SESSION_COOKIE_NAME: str = "marketplace.sid"
    SESSION_MAX_AGE_DAYS: int = 30

    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # Demo data: one admin account and the five bilingual top-level categories.
    SEED_DEMO_DATA: bool = True
    ADMIN_EMAIL: str = "admin@cimplico.com"
    ADMIN_PASSWORD: str = "admin123"

    DEFAULT_CURRENCY: str = "USD"
    # "mock" is the only bundled provider; real gateways plug in behind
    # app.services.payment_provider.PaymentProvider.
    PAYMENT_PROVIDER: str = "mock"

    class Config:
        env_file = None
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def cookie_secure(self) -> bool:
        return self.is_production

    @property
    def session_max_age_seconds(self) -> int:
        return self.SESSION_MAX_AGE_DAYS * 24 * 60 * 60

    @property
    def allowed_origins(self) -> list:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def storage_backend(self) -> str:
        return "sql" if self.DATABASE_URL else "memory"

    @property
    def masked_database_url(self) -> Optional[str]:
        if not self.DATABASE_URL:
            return None
        import re
        return re.sub(r"://([^:]+):([^@]+)@", r"://\1:****@", self.DATABASE_URL)


settings = Settings()
