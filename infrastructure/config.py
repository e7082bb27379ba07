"""Runtime configuration, read from the environment"""
import os
from decimal import Decimal


def _env_or(key: str, default: str) -> str:
    v = os.getenv(key)
    return v if v is not None else default


APP_TITLE = _env_or("APP_TITLE", "Hotel Back Office API")
LOG_LEVEL = _env_or("LOG_LEVEL", "INFO").upper()
CURRENCY = _env_or("CURRENCY", "USD")
TAX_RATE = Decimal(_env_or("TAX_RATE", "0.10"))

# Token signing
SECRET_KEY = _env_or("SECRET_KEY", "change-me-in-production")
ALGORITHM = _env_or("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(_env_or("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Back-office operator account
ADMIN_USERNAME = _env_or("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = _env_or("ADMIN_PASSWORD", "admin123")
ADMIN_EMAIL = _env_or("ADMIN_EMAIL", "frontdesk@hotel.local")
