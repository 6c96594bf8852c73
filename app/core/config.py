import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class AISettings(BaseModel):
    openrouter_api_key: Optional[str] = Field(default=os.getenv("OPENROUTER_API_KEY"))
    model_name: str = Field(default=os.getenv("AI_MODEL_NAME", "anthropic/claude-3.7-sonnet"))
    fallback_model: str = Field(default=os.getenv("AI_FALLBACK_MODEL", "google/gemini-2.0-flash-001"))
    kill_switch: bool = Field(default=os.getenv("AI_KILL_SWITCH", "false").lower() == "true")
    max_tokens: int = int(os.getenv("AI_MAX_TOKENS", "4000"))
    temperature: float = float(os.getenv("AI_TEMPERATURE", "0.3"))
    timeout: int = int(os.getenv("AI_TIMEOUT", "60"))

class StorageSettings(BaseModel):
    root: str = os.getenv("STORAGE_ROOT", "./storage")
    max_upload_mb: int = int(os.getenv("MAX_UPLOAD_MB", "10"))

class Config(BaseModel):
    app_name: str = "Resume Review API"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database (users, sessions, key-value entries)
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./resume_review.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # Platform
    ai: AISettings = AISettings()
    storage: StorageSettings = StorageSettings()
    platform_init_timeout: float = float(os.getenv("PLATFORM_INIT_TIMEOUT", "10"))

    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    if "dev-only" in settings.secret_key:
        raise RuntimeError(
            "FATAL: SECRET_KEY must be set for non-development environments. "
            "Set it as an environment variable."
        )
else:
    if "dev-only" in settings.secret_key:
        _logger.warning("⚠ Using insecure default SECRET_KEY, only acceptable in development.")
