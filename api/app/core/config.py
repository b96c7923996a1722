from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def getenv(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name, default)
    return v


@dataclass
class Settings:
    # Service
    service_name: str = getenv("SERVICE_NAME", "ai-edit-service") or "ai-edit-service"
    service_env: str = getenv("SERVICE_ENV", "dev") or "dev"
    log_level: str = getenv("LOG_LEVEL", "INFO") or "INFO"
    port: int = int(getenv("PORT", "3000") or "3000")

    # Shared-secret auth; disabled when unset
    service_secret: str | None = getenv("SERVICE_SECRET")

    # Gemini
    gemini_model: str = getenv("GEMINI_MODEL", "gemini-2.5-flash") or "gemini-2.5-flash"
    gemini_api_base: str = getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta") or "https://generativelanguage.googleapis.com/v1beta"
    gemini_timeout: int = int(getenv("GEMINI_TIMEOUT", "60") or "60")

    # Recent-activity buffer
    audit_capacity: int = int(getenv("AUDIT_CAPACITY", "50") or "50")

    # HTTP
    max_request_size: int = int(getenv("MAX_REQUEST_SIZE", "10485760") or "10485760")  # 10MB
    cors_allow_origins: str | None = getenv("CORS_ALLOW_ORIGINS")


settings = Settings()
