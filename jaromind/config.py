"""
Jaromind Backend Configuration
Store connection, token signing and HTTP settings
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

DEFAULT_CORS_ORIGINS = [
    "http://localhost:8003",
    "http://127.0.0.1:8003",
    "http://localhost:3000",
    "http://localhost:5500",
    "https://edu-tech-v1-mu.vercel.app",
    "https://jaromind.com",
]

# Development fallback only, production must set JWT_SECRET
DEV_JWT_SECRET = "your-jwt-secret-key-change-in-production"


class Settings:
    """
    Explicitly constructed application settings.
    Built once at startup and handed to whatever needs it (app factory,
    token service, database client); never read back from module globals.
    """

    def __init__(
        self,
        mongo_uri: str = "mongodb://localhost:27017",
        db_name: str = "jaromind",
        jwt_secret: str = DEV_JWT_SECRET,
        jwt_algorithm: str = "HS256",
        token_ttl_hours: int = 72,
        store_timeout_seconds: float = 10.0,
        cors_origins: Optional[List[str]] = None,
        log_level: str = "INFO",
        port: int = 8080,
    ):
        self.mongo_uri = mongo_uri
        self.db_name = db_name
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.token_ttl_hours = token_ttl_hours
        self.store_timeout_seconds = store_timeout_seconds
        self.cors_origins = cors_origins if cors_origins is not None else list(DEFAULT_CORS_ORIGINS)
        self.log_level = log_level
        self.port = port

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from the environment (and a local .env file if present)"""
        load_dotenv()

        origins = os.getenv("CORS_ORIGINS")
        return cls(
            mongo_uri=os.getenv("MONGO_URI", "mongodb://localhost:27017"),
            db_name=os.getenv("DB_NAME", "jaromind"),
            jwt_secret=os.getenv("JWT_SECRET") or DEV_JWT_SECRET,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            token_ttl_hours=int(os.getenv("TOKEN_TTL_HOURS", "72")),
            store_timeout_seconds=float(os.getenv("STORE_TIMEOUT_SECONDS", "10")),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] if origins else None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            port=int(os.getenv("PORT", "8080")),
        )

    @property
    def store_timeout_ms(self) -> int:
        return int(self.store_timeout_seconds * 1000)

    def validate(self) -> None:
        """
        Validate required values.
        Raises ValueError if a value is unusable.
        """
        if not self.mongo_uri:
            raise ValueError("MONGO_URI environment variable is not set")
        if not self.jwt_secret:
            raise ValueError("JWT_SECRET environment variable is not set")
        if self.store_timeout_seconds <= 0:
            raise ValueError("STORE_TIMEOUT_SECONDS must be positive")
