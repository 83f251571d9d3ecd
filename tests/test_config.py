"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from folio.config import AppConfig, load_config


class TestAppConfigDefaults:
    """Test that AppConfig provides sensible defaults."""

    def test_default_config_creates_successfully(self) -> None:
        config = AppConfig()
        assert config.app.name == "Folio"

    def test_default_pipeline_config(self) -> None:
        config = AppConfig()
        assert config.pipeline.sample_percent == 10

    def test_default_formatting_config(self) -> None:
        config = AppConfig()
        assert config.formatting.provider == "anthropic"
        assert config.formatting.max_retries == 5
        assert config.formatting.base_delay_seconds == 5.0
        assert config.formatting.max_delay_seconds == 60.0
        assert config.formatting.min_output_ratio == 0.1

    def test_default_fetch_config(self) -> None:
        config = AppConfig()
        assert config.fetch.timeout_seconds == 60.0
        assert config.fetch.max_bytes == 100 * 1024 * 1024

    def test_default_api_key_is_none(self) -> None:
        config = AppConfig()
        assert config.anthropic_api_key is None

    def test_sample_percent_out_of_range_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AppConfig(pipeline={"sample_percent": 150})


class TestLoadConfig:
    """Test loading config from YAML files."""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        yaml_data = {
            "app": {"name": "Test App", "version": "0.1.0"},
            "pipeline": {"sample_percent": 25},
        }
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump(yaml_data))

        config = load_config(config_file)
        assert config.app.name == "Test App"
        assert config.app.version == "0.1.0"
        assert config.pipeline.sample_percent == 25
        # Other fields keep defaults
        assert config.formatting.max_retries == 5

    def test_load_missing_yaml_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "nonexistent.yaml")
        assert config.app.name == "Folio"

    def test_env_var_sets_api_key(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("{}")

        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key-123")

        config = load_config(config_file)
        assert config.anthropic_api_key == "test-key-123"

    def test_load_project_config_yaml(self) -> None:
        """Test loading the actual project config.yaml."""
        config = load_config(Path(__file__).parent.parent / "config.yaml")
        assert config.app.name == "Folio"
        assert config.storage.sqlite_path == "./db/folio.db"
