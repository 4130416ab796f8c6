"""
Configuration settings for the fluency practice engine.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are prefixed with FLUENCY_ (e.g. FLUENCY_STORAGE_BACKEND=sql).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FLUENCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    storage_backend: Literal["memory", "json", "sql"] = Field(
        default="json",
        description="Which storage adapter the CLI uses for item records",
    )
    storage_dir: str = Field(
        default="~/.fluency",
        description="Directory holding one JSON document per namespace",
    )
    storage_namespace: str = Field(
        default="default",
        description="Namespace isolating one quiz mode's item records",
    )
    database_url: str = Field(
        default="sqlite:///fluency.db",
        description="SQLAlchemy connection string for the sql backend",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Calibration
    # ========================================
    calibration_margin: float = Field(
        default=1.0,
        ge=1.0,
        description="Multiplier on the measured motor baseline used as min_time",
    )
    calibration_warmup: int = Field(
        default=2,
        ge=0,
        description="Leading reaction-time samples discarded before taking the median",
    )
    motor_baseline_ms: float | None = Field(
        default=None,
        description="Previously measured motor baseline, reapplied at startup",
    )

    # ========================================
    # Adaptive Model Overrides
    # ========================================
    # None means "use the engine default".
    min_time: float | None = Field(default=None, description="Fastest credible response (ms)")
    max_response_time: float | None = Field(default=None, description="Latency clamp ceiling (ms)")
    automaticity_target: float | None = Field(
        default=None,
        description="Latency (ms) at which the speed score is 0.5",
    )
    automaticity_threshold: float | None = Field(
        default=None,
        description="Automaticity at or above which an item counts as fluent",
    )
    expansion_threshold: float | None = Field(
        default=None,
        description="Consolidation ratio required before a new group is suggested",
    )
    recall_threshold: float | None = Field(
        default=None,
        description="Recall probability below which an item is due",
    )
    initial_stability: float | None = Field(default=None, description="Stability of a new item (hours)")
    max_stability: float | None = Field(default=None, description="Stability ceiling (hours)")
    unseen_boost: float | None = Field(default=None, description="Selection weight of unseen items")

    def get_adaptive_config(self) -> dict[str, Any]:
        """Get adaptive model overrides as a dictionary (unset values omitted)."""
        overrides = {
            "min_time": self.min_time,
            "max_response_time": self.max_response_time,
            "automaticity_target": self.automaticity_target,
            "automaticity_threshold": self.automaticity_threshold,
            "expansion_threshold": self.expansion_threshold,
            "recall_threshold": self.recall_threshold,
            "initial_stability": self.initial_stability,
            "max_stability": self.max_stability,
            "unseen_boost": self.unseen_boost,
        }
        return {key: value for key, value in overrides.items() if value is not None}

    def get_storage_config(self) -> dict[str, Any]:
        """Get storage adapter configuration as a dictionary."""
        return {
            "backend": self.storage_backend,
            "directory": self.storage_dir,
            "namespace": self.storage_namespace,
            "database_url": self.database_url,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
