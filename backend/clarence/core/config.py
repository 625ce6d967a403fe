"""
Pydantic Settings — centralized configuration loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Database ──────────────────────────────
    POSTGRES_USER: str = "clarence_user"
    POSTGRES_PASSWORD: str = "clarence_pass"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "clarence_db"

    @property
    def DATABASE_URL(self) -> str:
        """Async URL for app runtime (asyncpg)."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # ── Redis / Celery ────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"
    # "memory" keeps sessions/tokens in-process (local dev only)
    KV_BACKEND: str = "redis"

    # ── Auth / JWT ────────────────────────────
    JWT_SECRET_KEY: str = "change-this-in-production"
    JWT_REFRESH_SECRET_KEY: str = "change-this-refresh-secret-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    JWT_VERIFICATION_TOKEN_EXPIRE_MINUTES: int = 15
    BCRYPT_ROUNDS: int = 12

    # ── Verification / Rate limits ────────────
    VERIFICATION_CODE_TTL_SECONDS: int = 600
    PASSWORD_RESET_TTL_SECONDS: int = 900
    VERIFICATION_MAX_ATTEMPTS: int = 3
    SMS_RATE_LIMIT_PER_HOUR: int = 3
    MAX_FAILED_LOGINS: int = 5
    ACCOUNT_LOCK_SECONDS: int = 900

    # ── SMS (Twilio) ──────────────────────────
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""
    TWILIO_API_BASE_URL: str = "https://api.twilio.com/2010-04-01"

    # ── Carriers ──────────────────────────────
    CARRIER_QUOTE_TIMEOUT: float = 10.0
    CARRIER_BIND_TIMEOUT: float = 30.0
    CARRIER_HEALTH_TIMEOUT: float = 5.0
    CARRIER_MAX_CONCURRENCY: int = 20
    CARRIER_SKIP_DOWN: bool = False
    CARRIER_HEALTH_INTERVAL_SECONDS: int = 300
    CARRIER_API_BASE_URL: str = "http://localhost:3001/api/v1"
    CARRIER_API_KEY: str = ""

    # ── Quote processing ──────────────────────
    QUOTE_DISPATCH_MODE: str = "inline"  # inline | celery
    QUOTE_ESTIMATED_COMPLETION_SECONDS: int = 30

    # ── Application ───────────────────────────
    APP_ENV: str = "development"

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}


settings = Settings()
