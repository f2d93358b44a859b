from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from enum import Enum
import logging
from logging.handlers import RotatingFileHandler
import os

class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"

class OwnershipPolicy(str, Enum):
    """What to do when a turn targets a chat the caller does not own."""
    SILENT_FALLBACK = "silent_fallback"
    STRICT = "strict"

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful, calm, and intelligent AI assistant. You provide accurate and thoughtful responses.\n"
    "Your tone is polite, professional, and supportive.\n"
    "You prioritize user safety and well-being while being as helpful as possible."
)

def setup_logging(log_level: str = "INFO", to_file: bool = True):
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)
    level = getattr(logging, log_level.upper(), logging.INFO)

    handlers = []
    if to_file:
        log_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "..", "logs")
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, "app.log")

        file_handler = RotatingFileHandler(log_file, maxBytes=1000000, backupCount=5, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    handlers.append(console_handler)

    logging.basicConfig(
        level=level,
        handlers=handlers
    )

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./chatty.db"
    ENVIRONMENT: Environment = Environment.DEVELOPMENT

    SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_TIME: int = 15
    REFRESH_TOKEN_EXPIRATION_DAYS: int = 7
    REFRESH_TOKEN_ROTATION: bool = True
    REFRESH_TOKEN_SWEEP_ON_ISSUE: bool = True

    REDIS_URL: Optional[str] = None
    ENABLE_RATE_LIMITING: bool = True

    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True

    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-flash-latest"
    AI_MOCK_MODE: bool = False
    SYSTEM_PROMPT: str = DEFAULT_SYSTEM_PROMPT
    HISTORY_WINDOW: int = 20
    CHAT_OWNERSHIP_POLICY: OwnershipPolicy = OwnershipPolicy.SILENT_FALLBACK

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:5174",
        "http://localhost:5175",
    ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

settings = Settings()
