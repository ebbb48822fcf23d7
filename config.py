"""
Configuration settings for the quiz import pipeline.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Markers
    # ========================================
    quiz_locale: Literal["en", "vi", "all"] = Field(
        default="all",
        description="Marker locale: English, Vietnamese, or both",
    )
    quiz_blank_min_underscores: int = Field(
        default=3,
        ge=2,
        description="Shortest underscore run that counts as a blank",
    )

    # ========================================
    # Pipeline
    # ========================================
    quiz_answer_key_min_entries: int = Field(
        default=3,
        ge=1,
        description="Entries a heading-less trailing answer table needs",
    )
    quiz_matching_min_pairs: int = Field(
        default=2,
        ge=1,
        description="Fewest pairs a matching question may keep",
    )
    quiz_stage_budget_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Wall-clock budget for one import, checked between stages",
    )

    # ========================================
    # Input / Images
    # ========================================
    quiz_max_upload_bytes: int = Field(
        default=8 * 1024 * 1024,
        description="Largest accepted document",
    )
    quiz_fetch_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for fetching remote documents",
    )
    quiz_image_key_prefix: str = Field(
        default="quiz-images",
        description="Prefix of suggested object storage keys for images",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
