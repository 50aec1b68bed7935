import os
from pathlib import Path


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or "=" not in stripped:
                continue
            key, value = stripped.split("=", 1)
            key = key.strip()
            if not key or key in os.environ:
                continue
            cleaned = value.strip().strip('"').strip("'")
            os.environ[key] = cleaned
    except OSError:
        return


def _load_env() -> None:
    current = Path(__file__).resolve()
    for candidate in (current.parents[2] / ".env", Path.cwd() / ".env"):
        _load_env_file(candidate)


_load_env()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _split_env_list(value: str) -> set[str]:
    if not value:
        return set()
    items = []
    for raw in value.split(","):
        cleaned = raw.strip()
        if cleaned:
            items.append(cleaned.lower())
    return set(items)


def _normalize_cors(origins: str) -> list[str]:
    items: list[str] = []
    for raw in origins.split(","):
        value = raw.strip()
        if value and value not in items:
            items.append(value)
    return items


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./gamebazaar.db")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "3600"))

SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-prod")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))
ADMIN_EMAILS = _split_env_list(os.getenv("ADMIN_EMAILS", ""))

_DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000,http://localhost:5173,"
    "http://127.0.0.1:3000,http://127.0.0.1:5173"
)
CORS_ORIGINS = _normalize_cors(os.getenv("CORS_ORIGINS", _DEFAULT_CORS_ORIGINS))

REDIS_URL = os.getenv("REDIS_URL", "")
CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", "120"))
RATE_LIMIT_DEFAULT_PER_MINUTE = int(os.getenv("RATE_LIMIT_DEFAULT_PER_MINUTE", "120"))
RATE_LIMIT_LOGIN_PER_MINUTE = int(os.getenv("RATE_LIMIT_LOGIN_PER_MINUTE", "8"))

DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "10"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))

NOTIFICATION_WEBHOOK_URL = os.getenv("NOTIFICATION_WEBHOOK_URL", "")
NOTIFICATION_TIMEOUT_SECONDS = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "5"))
SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", "support@gamebazaar.com").strip().lower()

STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")

SEED_SAMPLE_DATA = _env_flag("SEED_SAMPLE_DATA", "false")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
BACKEND_PORT = int(os.getenv("BACKEND_PORT", "5000"))
SEED_ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "").strip().lower()
SEED_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "")
