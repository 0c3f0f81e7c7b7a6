"""
Configuration management for the KJV Sentinel API.
Handles environment variables and application settings.
"""

import os
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration settings loaded from environment variables."""

    # Report store configuration ("memory" or "database")
    report_store_backend: str = os.getenv("REPORT_STORE_BACKEND", "memory")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./sentinel.db")

    # Anthropic API configuration
    anthropic_api_key: str = os.getenv("ANTHROPIC_API_KEY", "")
    claude_model: str = "claude-sonnet-4-20250514"
    claude_max_tokens: int = 8000
    max_content_length: int = 30000

    # Text-to-speech server used for podcast synthesis
    tts_api_url: str = os.getenv("TTS_API_URL", "http://localhost:8880")
    tts_speaker: str = os.getenv("TTS_SPEAKER", "Host1")
    tts_language: str = "English"
    audio_storage_path: str = os.getenv("AUDIO_STORAGE_PATH", "/app/storage/podcasts")
    audio_base_url: str = os.getenv("AUDIO_BASE_URL", "http://localhost:8000/media/podcasts")

    # Export targets
    mail_api_url: str = os.getenv("MAIL_API_URL", "")
    mail_api_key: str = os.getenv("MAIL_API_KEY", "")
    mail_sender: str = os.getenv("MAIL_SENDER", "sentinel@localhost")
    drive_upload_url: str = "https://www.googleapis.com/upload/drive/v3/files"
    drive_access_token: str = os.getenv("GOOGLE_DRIVE_ACCESS_TOKEN", "")
    drive_folder_id: str = os.getenv("GOOGLE_DRIVE_FOLDER_ID", "")

    # Deadline applied to every external collaborator call
    collaborator_timeout_seconds: float = 120.0

    # Logging configuration
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS configuration
    cors_origins_str: str = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from environment variable."""
        return [origin.strip() for origin in self.cors_origins_str.split(",")]

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
