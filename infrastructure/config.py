"""Configuration - environment variables, optionally loaded from a .env file"""
import logging.config
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")


class ConfigurationError(RuntimeError):
    """A required setting is missing or malformed"""


def get_env(var_name: str, default=None, required: bool = False):
    value = os.environ.get(var_name, default)
    if required and value in (None, ""):
        raise ConfigurationError(f"Missing required environment variable: {var_name}")
    return value


def get_int_env(var_name: str, default: int) -> int:
    value = get_env(var_name, str(default))
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{var_name} must be an integer, got {value!r}")


APP_ENV = get_env("APP_ENV", "development")
LOG_LEVEL = get_env("LOG_LEVEL", "INFO").upper()

# In production SECRET_KEY must come from the environment
SECRET_KEY = get_env("SECRET_KEY", "dev-secret-key-change-me", required=APP_ENV == "production")
ALGORITHM = get_env("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = get_int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 30)

CLIENT_URL = get_env("CLIENT_URL", "http://localhost:5173")
CORS_ORIGIN_REGEX = r"http://localhost:\d+"

HOST = get_env("HOST", "0.0.0.0")
PORT = get_int_env("PORT", 8000)

DEFAULT_PASSWORDS = {
    "admin": get_env("ADMIN_PASSWORD", "admin123"),
    "owner": get_env("OWNER_PASSWORD", "owner123"),
    "guest": get_env("GUEST_PASSWORD", "guest123"),
}


def configure_logging(level: str = None) -> None:
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
            },
        },
        "root": {
            "handlers": ["console"],
            "level": level or LOG_LEVEL,
        },
    })
