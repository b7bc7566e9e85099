import os
import logging
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv() # Load .env file from project root if running locally

logger = logging.getLogger(__name__)

DEV_JWT_SECRET = "dev-only-insecure-jwt-secret-change-me"


def _default_database_url() -> str:
    user = os.getenv("POSTGRES_USER", "user")
    password = os.getenv("POSTGRES_PASSWORD", "password")
    host = os.getenv("POSTGRES_HOST", "postgres") # Docker service name
    port = os.getenv("POSTGRES_PORT", "5432")
    name = os.getenv("POSTGRES_DB", "inventory_db")
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"


def _as_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite+aiosqlite:///./inventory.db"
    db_echo: bool = False
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expires_days: int = 30
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        """Builds settings from environment variables (and .env, if present)."""
        app_env = os.getenv("APP_ENV", "development")
        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            if app_env.lower() == "production":
                raise RuntimeError("JWT_SECRET must be set when APP_ENV=production")
            logger.warning("JWT_SECRET not set, using the development secret")
            jwt_secret = DEV_JWT_SECRET

        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=os.getenv("DATABASE_URL") or _default_database_url(),
            db_echo=_as_bool(os.getenv("DB_ECHO")),
            jwt_secret=jwt_secret,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_expires_days=int(os.getenv("JWT_EXPIRES_DAYS", "30")),
            app_env=app_env,
            # For Uvicorn binding inside container
            app_host=os.getenv("APP_HOST", "0.0.0.0"),
            app_port=int(os.getenv("APP_PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )
