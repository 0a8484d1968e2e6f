"""Application configuration using environment variables."""
import os
from functools import lru_cache
from typing import List
from dotenv import load_dotenv

load_dotenv()

DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",  # Vite
    "http://127.0.0.1:5173",
]


def _int_env(name: str, default: int, minimum: int = 1) -> int:
    value = int(os.getenv(name, str(default)))
    if value < minimum:
        raise ValueError(f"{name} must be at least {minimum}, got {value}")
    return value


class Settings:
    """
    Settings for the encounter service, read from the environment.

    The generator core never reads these; the web layer passes the grid
    scale and series limit into it explicitly.
    """

    def __init__(self):
        # Server
        self.HOST: str = os.getenv("HOST", "127.0.0.1")
        self.PORT: int = _int_env("PORT", 8000)
        self.DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # CORS
        self.FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")
        self.EXTRA_CORS_ORIGINS: List[str] = [
            origin.strip() for origin in os.getenv("EXTRA_CORS_ORIGINS", "").split(",") if origin.strip()
        ]

        # Encounter generation
        self.FEET_PER_SQUARE: int = _int_env("FEET_PER_SQUARE", 5)
        self.MAX_SERIES_LENGTH: int = _int_env("MAX_SERIES_LENGTH", 10)

    @property
    def cors_origins(self) -> List[str]:
        """Frontend URL first, then dev servers and extras, without repeats."""
        origins = []
        for origin in [self.FRONTEND_URL] + DEV_ORIGINS + self.EXTRA_CORS_ORIGINS:
            if origin not in origins:
                origins.append(origin)
        return origins


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
