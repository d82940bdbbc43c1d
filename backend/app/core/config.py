# app/core/config.py
"""
Application configuration using Pydantic Settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import json
from pydantic import field_validator


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """

    # Application
    APP_NAME: str = "Rehab Case Manager"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str
    DB_RETRY_MAX_ATTEMPTS: int = 3
    DB_RETRY_BASE_DELAY_SECONDS: float = 1.0

    # Session (signed JWT carried in an httpOnly cookie)
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "rehab_session"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 24 * 7  # 7 days

    # AWS Configuration
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "ap-southeast-2"
    BEDROCK_MODEL_ID: str = "anthropic.claude-3-5-sonnet-20240620-v1:0"
    BEDROCK_MAX_RETRIES: int = 3
    SUMMARY_TEMPERATURE: float = 0.3
    REPORT_TEMPERATURE: float = 0.4
    SUMMARY_MAX_TOKENS: int = 4096
    REPORT_MAX_TOKENS: int = 8192

    @field_validator("BEDROCK_MODEL_ID", mode="before")
    @classmethod
    def strip_bedrock_model_id(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v

    # Audio storage (optional; audio is not kept when no bucket is set)
    AUDIO_S3_BUCKET_NAME: str = ""
    AUDIO_S3_PREFIX: str = "interaction-audio"
    MAX_AUDIO_UPLOAD_BYTES: int = 25 * 1024 * 1024  # Whisper upload limit

    # Speech-to-text
    OPENAI_API_KEY: str = ""
    TRANSCRIPTION_MODEL: str = "whisper-1"
    TRANSCRIPTION_LANGUAGE: str = "en"

    # Report drafting
    REPORT_LOOKBACK_DAYS: int = 42
    REPORT_MAX_INTERACTIONS: int = 20

    # CORS
    CORS_ORIGINS: str = '["http://localhost:3000"]'

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from string to list"""
        try:
            return json.loads(self.CORS_ORIGINS)
        except json.JSONDecodeError:
            return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


# Create settings instance
settings = Settings()
