"""Configuration management for the AutonomateQA step runner."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from autonomate.core.types import ModelCapability


ModelList = Annotated[List[str], NoDecode]


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # AI Provider Configuration
    ai_provider: str = Field(
        default="openai", description="Decision backend (openai or gemini)"
    )
    ai_retry_count: int = Field(
        default=3, ge=0, description="Retries per model on HTTP 429"
    )
    ai_initial_backoff_seconds: float = Field(
        default=2.0, ge=0.0, description="First backoff delay after a 429"
    )
    action_models: ModelList = Field(
        default_factory=list, description="Ordered models for action decisions"
    )
    verify_models: ModelList = Field(
        default_factory=list, description="Ordered models for verification"
    )
    step_synthesis_models: ModelList = Field(
        default_factory=list, description="Ordered models for step synthesis"
    )

    # OpenAI Configuration
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_api_endpoint: Optional[str] = Field(
        default=None, description="Base URL of an OpenAI-compatible endpoint"
    )
    openai_azure_base_url: Optional[str] = Field(
        default=None, description="Azure OpenAI resource URL (enables Azure mode)"
    )
    openai_api_version: str = Field(
        default="2024-06-01", description="Azure OpenAI API version"
    )
    openai_max_tokens: int = Field(
        default=250, ge=1, description="Maximum completion tokens per decision"
    )
    openai_request_timeout_seconds: float = Field(
        default=60.0, gt=0, description="Request timeout for model calls"
    )

    # Gemini Configuration
    gemini_api_key: str = Field(default="", description="Google AI Studio API key")
    vertex_project_id: Optional[str] = Field(
        default=None, description="Vertex AI project (used without an API key)"
    )
    vertex_location: Optional[str] = Field(
        default=None, description="Vertex AI location"
    )

    # Browser Configuration
    browser_channel: Optional[str] = Field(
        default=None, description="Chromium channel to launch (e.g. chrome)"
    )
    ignore_https_errors: bool = Field(
        default=True, description="Accept self-signed certificates"
    )
    navigation_timeout_ms: int = Field(
        default=60000, ge=1000, description="Initial navigation timeout (ms)"
    )
    interaction_timeout_ms: int = Field(
        default=10000, ge=100, description="Click/fill timeout (ms)"
    )
    scroll_timeout_ms: int = Field(
        default=5000, ge=0, description="Scroll-into-view timeout (ms)"
    )
    video_width: int = Field(default=1280, ge=320, description="Video width")
    video_height: int = Field(default=720, ge=240, description="Video height")
    slow_mo_ms: int = Field(
        default=1000, ge=0, description="Slow motion delay in headed mode (ms)"
    )
    post_action_delay_ms: int = Field(
        default=1500, ge=0, description="Delay after every action (ms)"
    )
    wait_for_load_state_after_click_ms: int = Field(
        default=5000, ge=0, description="Settle wait after click/navigate; 0 disables"
    )

    # Snapshot Configuration
    max_snapshot_length: int = Field(
        default=8000, ge=0, description="Snapshot budget for action steps; 0 disables"
    )
    max_snapshot_length_verify: int = Field(
        default=6000, ge=0, description="Snapshot budget for verification; 0 uses the general budget"
    )
    snapshot_hint_reserve: int = Field(
        default=800, ge=0, description="Characters reserved for DOM hints"
    )
    redaction_timeout_seconds: float = Field(
        default=2.0, gt=0, description="Upper bound for PII redaction of one snapshot"
    )

    # Verification Configuration
    verify_max_attempts: int = Field(
        default=2, ge=1, description="Verification attempts per step"
    )
    verify_retry_delay_seconds: float = Field(
        default=2.0, ge=0.0, description="Delay between verification attempts"
    )

    # Test Data Configuration
    test_secrets: Dict[str, str] = Field(
        default_factory=dict, description="Process-wide secrets (JSON object)"
    )
    test_secrets_file: Path = Field(
        default=Path("test_secrets.json"), description="Fallback secrets file"
    )
    test_data_csv_path: Optional[Path] = Field(
        default=None, description="Process-wide CSV merged into static secrets"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format (json or text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")

    # Storage Configuration
    data_dir: Path = Field(default=Path("data"), description="Data storage directory")
    screenshots_dir: Path = Field(
        default=Path("data/screenshots"), description="Screenshots directory"
    )
    videos_dir: Path = Field(default=Path("data/videos"), description="Videos directory")
    runs_dir: Path = Field(default=Path("data/runs"), description="Run records directory")

    @field_validator("action_models", "verify_models", "step_synthesis_models", mode="before")
    @classmethod
    def split_model_list(cls, value: Any) -> List[str]:
        """Accept comma-separated strings, JSON arrays or sequences."""
        if value is None:
            return []
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("["):
                return [str(item).strip() for item in json.loads(text) if str(item).strip()]
            return [item.strip() for item in text.split(",") if item.strip()]
        return [str(item).strip() for item in value if str(item).strip()]

    @field_validator("ai_provider")
    @classmethod
    def validate_ai_provider(cls, v: str) -> str:
        """Validate AI provider name."""
        normalized = v.strip().lower()
        if normalized not in ("openai", "gemini"):
            raise ValueError(f"Invalid AI provider: {v}")
        return normalized

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ["json", "text"]:
            raise ValueError(f"Invalid log format: {v}")
        return v

    @model_validator(mode="after")
    def validate_snapshot_budget(self) -> "Settings":
        """The hint reserve must leave room for snapshot content."""
        if self.max_snapshot_length and self.snapshot_hint_reserve >= self.max_snapshot_length:
            raise ValueError(
                "snapshot_hint_reserve must be smaller than max_snapshot_length"
            )
        return self

    def get_model_list(self, capability: ModelCapability) -> List[str]:
        """Return the ordered model list configured for a capability."""
        return {
            ModelCapability.ACTION: self.action_models,
            ModelCapability.VERIFY: self.verify_models,
            ModelCapability.STEP_SYNTHESIS: self.step_synthesis_models,
        }[capability]

    def create_directories(self) -> None:
        """Create required directories if they don't exist."""
        for dir_path in [
            self.data_dir,
            self.screenshots_dir,
            self.videos_dir,
            self.runs_dir,
        ]:
            dir_path.mkdir(parents=True, exist_ok=True)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file)

    settings = Settings()
    settings.create_directories()
    return settings
