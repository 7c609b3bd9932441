"""
Service configuration
"""
import os
from dotenv import load_dotenv

load_dotenv()


class ScoringSettings:
    """Scoring service settings from environment variables"""

    # Use /app/data in Docker, current dir otherwise
    DATABASE_PATH: str = os.getenv("DATABASE_PATH", "live_scoring.db")

    # Extra CORS origins, comma-separated
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.DATABASE_PATH}"

    @property
    def extra_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = ScoringSettings()
