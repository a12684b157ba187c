"""Configuration management for the Stepwright test runner."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MODEL_CONFIG_FILENAME = "model-config.json"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="STEPWRIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Browser Configuration
    browser_headless: bool = Field(
        default=True, description="Run browser in headless mode"
    )
    browser_timeout: int = Field(
        default=30000, ge=1000, description="Default browser timeout (ms)"
    )
    browser_viewport_width: int = Field(
        default=1280, ge=320, description="Browser viewport width"
    )
    browser_viewport_height: int = Field(
        default=768, ge=240, description="Browser viewport height"
    )
    navigation_wait_until: str = Field(
        default="load",
        description="Load state awaited by page navigation",
    )

    # Execution Configuration
    step_wait_timeout_ms: int = Field(
        default=10000, ge=0, description="Default timeout for waitFor steps (ms)"
    )
    action_poll_interval_ms: int = Field(
        default=1000,
        ge=100,
        description="Delay between visual checks while waiting for a condition (ms)",
    )
    vl_model_marker: str = Field(
        default="qwen",
        description="Family name / model-name substring of visually grounded models",
    )

    # LLM Configuration
    llm_request_timeout_seconds: float = Field(
        default=60.0, gt=0, description="Request timeout for model calls in seconds"
    )
    llm_temperature: float = Field(
        default=0.0, ge=0.0, le=2.0, description="Temperature for model calls"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="text",
        description="Log format (json or text)",
    )
    log_file: Optional[str] = Field(
        default=None, description="Log file path"
    )
    sanitize_logs: bool = Field(
        default=True, description="Redact credentials from log output"
    )

    # Storage Configuration
    data_dir: Path = Field(
        default=Path("data"), description="Data storage directory"
    )
    test_cases_dir: Path = Field(
        default=Path("data/test-cases"), description="Test case documents directory"
    )
    config_dir: Path = Field(
        default=Path("config"), description="Persisted model configuration directory"
    )
    reports_dir: Path = Field(
        default=Path("reports"), description="Reports output directory"
    )

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ["json", "text"]:
            raise ValueError(f"Invalid log format: {v}")
        return v

    @field_validator("navigation_wait_until")
    def validate_wait_until(cls, v: str) -> str:
        allowed = {"load", "domcontentloaded", "networkidle", "commit"}
        if v not in allowed:
            raise ValueError(
                f"Invalid navigation wait state: {v}. Allowed values: {sorted(allowed)}"
            )
        return v

    @property
    def model_config_path(self) -> Path:
        """Location of the persisted model configuration document."""
        return self.config_dir / MODEL_CONFIG_FILENAME

    def create_directories(self) -> None:
        """Create required directories if they don't exist."""
        for dir_path in [
            self.data_dir,
            self.test_cases_dir,
            self.config_dir,
            self.reports_dir,
        ]:
            dir_path.mkdir(parents=True, exist_ok=True)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    # Load .env file if it exists
    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file)

    return Settings()
