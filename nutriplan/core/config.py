import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

FRONTEND_URLS = {
    "dev": "http://localhost:8081",
    "prod": "https://nutriplan.app",
}


class Settings:
    """Runtime configuration, read from the environment (and .env when present)."""

    def __init__(self) -> None:
        self.supabase_url: Optional[str] = os.environ.get("SUPABASE_URL")
        self.supabase_key: Optional[str] = os.environ.get("SUPABASE_SERVICE_KEY")

        self.gemini_api_key: Optional[str] = os.environ.get("GEMINI_API_KEY")
        self.gemini_model: str = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
        self.ai_temperature: float = float(os.environ.get("AI_TEMPERATURE", "0.7"))

        self.environment: str = os.environ.get("ENVIRONMENT", "dev")
        self.frontend_url: str = os.environ.get("FRONTEND_URL") or FRONTEND_URLS.get(
            self.environment, FRONTEND_URLS["dev"]
        )
        self.log_level: str = os.environ.get("LOG_LEVEL", "INFO").upper()

        cors = os.environ.get("CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [origin.strip() for origin in cors.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
