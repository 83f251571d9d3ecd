"""Configuration loader for the Folio manuscript pipeline."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "Folio"
    version: str = "1.0.0"


class PipelineConfig(BaseModel):
    """Manuscript processing defaults."""

    sample_percent: int = Field(default=10, ge=0, le=100)


class FetchConfig(BaseModel):
    """Manuscript download settings."""

    timeout_seconds: float = 60.0
    max_bytes: int = 100 * 1024 * 1024


class FormattingConfig(BaseModel):
    """Text-to-HTML formatting service configuration."""

    provider: str = "anthropic"
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 8192
    temperature: float = 0.0
    max_retries: int = 5
    base_delay_seconds: float = 5.0
    max_delay_seconds: float = 60.0
    min_output_ratio: float = 0.1


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    sqlite_path: str = "./db/folio.db"


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    formatting: FormattingConfig = Field(default_factory=FormattingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    # API keys loaded from environment
    anthropic_api_key: str | None = None


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    # Override API keys from environment
    config.anthropic_api_key = os.getenv("ANTHROPIC_API_KEY")

    return config
