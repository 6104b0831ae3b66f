import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(RuntimeError):
    """Raised when the service cannot start with the given environment."""


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def normalize_database_url(url: str) -> str:
    """Rewrite plain postgres URLs (Render/Heroku style) to the asyncpg driver."""
    if url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return normalize_database_url(url)

    db_user = os.getenv("POSTGRES_USER", "postgres")
    db_password = os.getenv("POSTGRES_PASSWORD", "postgres")
    db_host = os.getenv("POSTGRES_HOST", "localhost")  # In Docker, this will be 'postgres'
    db_port = os.getenv("POSTGRES_PORT", "5432")
    db_name = os.getenv("POSTGRES_DB", "storefront")
    return f"postgresql+asyncpg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


@dataclass(frozen=True)
class Settings:
    database_url: str
    db_echo: bool = False
    db_retry_attempts: int = 3
    db_retry_backoff: float = 0.1

    # JWT_SECRET_KEY has no default on purpose; TokenService rejects an empty one.
    jwt_secret_key: str = ""
    jwt_expire_days: int = 7

    cors_allowed_origins: list[str] = field(default_factory=list)

    rate_limit_enabled: bool = True
    auth_rate_limit: str = "20/minute"

    log_level: str = "INFO"
    otel_enabled: bool = False
    otlp_endpoint: str = "http://localhost:4317"

    seed_catalog: bool = False


def load_settings() -> Settings:
    """Read the process environment (and a local .env, if any) into Settings."""
    try:
        return Settings(
            database_url=_database_url(),
            db_echo=_env_bool("DB_ECHO", False),
            db_retry_attempts=int(os.getenv("DB_RETRY_ATTEMPTS", "3")),
            db_retry_backoff=float(os.getenv("DB_RETRY_BACKOFF", "0.1")),
            jwt_secret_key=os.getenv("JWT_SECRET_KEY", ""),
            jwt_expire_days=int(os.getenv("JWT_EXPIRE_DAYS", "7")),
            cors_allowed_origins=_env_list(
                "CORS_ALLOWED_ORIGINS", "http://localhost:3000,https://localhost:3000"
            ),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
            auth_rate_limit=os.getenv("AUTH_RATE_LIMIT", "20/minute"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            otel_enabled=_env_bool("OTEL_ENABLED", False),
            otlp_endpoint=os.getenv("OTLP_ENDPOINT", "http://localhost:4317"),
            seed_catalog=_env_bool("SEED_CATALOG", False),
        )
    except ValueError as exc:
        raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc


settings = load_settings()
