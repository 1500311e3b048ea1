import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()  # load values from .env

DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
)


def _cors_origins() -> List[str]:
    raw = os.getenv("CORS_ORIGINS", "").strip()
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]


@dataclass
class Config:
    """Settings read from the environment (and .env) at startup."""

    MONGODB_URI: str = field(default_factory=lambda: os.getenv("MONGODB_URI", "mongodb://localhost:27017"))
    DB_NAME: str = field(default_factory=lambda: os.getenv("DB_NAME", "lostFoundDB"))
    ACCESS_TOKEN_SECRET: str = field(default_factory=lambda: os.getenv("ACCESS_TOKEN_SECRET", "secret-key-goes-here"))
    TOKEN_TTL_HOURS: int = field(default_factory=lambda: int(os.getenv("TOKEN_TTL_HOURS", "6")))
    TOKEN_COOKIE_NAME: str = field(default_factory=lambda: os.getenv("TOKEN_COOKIE_NAME", "token"))
    CORS_ORIGINS: List[str] = field(default_factory=_cors_origins)
    ENVIRONMENT: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development").lower())
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    PORT: int = field(default_factory=lambda: int(os.getenv("PORT", "5000")))

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def to_flask_dict(self) -> dict:
        return {
            "MONGODB_URI": self.MONGODB_URI,
            "DB_NAME": self.DB_NAME,
            "ACCESS_TOKEN_SECRET": self.ACCESS_TOKEN_SECRET,
            "TOKEN_TTL_HOURS": self.TOKEN_TTL_HOURS,
            "TOKEN_COOKIE_NAME": self.TOKEN_COOKIE_NAME,
            "CORS_ORIGINS": self.CORS_ORIGINS,
            "ENVIRONMENT": self.ENVIRONMENT,
            "IS_PRODUCTION": self.is_production,
            "LOG_LEVEL": self.LOG_LEVEL,
            "PORT": self.PORT,
        }
