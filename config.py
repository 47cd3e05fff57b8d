import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


def _get(key, default=None):
    """Environment variables override env.yaml so secrets can stay out of files."""
    if key not in os.environ:
        return data.get(key, default)
    raw = os.environ[key]
    if isinstance(default, str):
        return raw
    # Non-string settings (ints, bools, lists) are parsed as YAML scalars
    return yaml.safe_load(raw)


class ApplicationConfig:
    DB_URI = _get("DB_URI", "sqlite+aiosqlite:///./auth.db")
    DB_AUTO_CREATE = bool(_get("DB_AUTO_CREATE", True))
    REDIS_URL = _get("REDIS_URL", "redis://localhost:6379/0")
    CACHE_BACKEND = _get("CACHE_BACKEND", "redis")
    API_PREFIX = _get("API_PREFIX", "")
    API_PORT = _get("API_PORT", 8000)
    API_HOST = _get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = _get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = _get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = _get("LOG_LEVEL", "INFO")
    FRONTEND_URL = _get("FRONTEND_URL", "http://localhost:5173")
    NOTIFY_TIMEOUT_SECONDS = float(_get("NOTIFY_TIMEOUT_SECONDS", 5))

    # Token signing. There is deliberately no default secret.
    JWT_SECRET = _get("JWT_SECRET", "")
    JWT_ALGORITHM = _get("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_TTL_MINUTES = int(_get("ACCESS_TOKEN_TTL_MINUTES", 15))
    REFRESH_TOKEN_TTL_DAYS = int(_get("REFRESH_TOKEN_TTL_DAYS", 7))

    # Account security
    BCRYPT_ROUNDS = int(_get("BCRYPT_ROUNDS", 12))
    MAX_FAILED_LOGIN_ATTEMPTS = int(_get("MAX_FAILED_LOGIN_ATTEMPTS", 5))
    ACCOUNT_LOCK_MINUTES = int(_get("ACCOUNT_LOCK_MINUTES", 15))
    RESET_TOKEN_TTL_MINUTES = int(_get("RESET_TOKEN_TTL_MINUTES", 60))
    VERIFICATION_TOKEN_TTL_HOURS = int(_get("VERIFICATION_TOKEN_TTL_HOURS", 24))
    RESET_REQUESTS_PER_HOUR = int(_get("RESET_REQUESTS_PER_HOUR", 3))
