"""Tests for configuration management system"""

import json
import pytest
from pathlib import Path
from types import SimpleNamespace

from qoa2wav.utils.config import ConfigManager, QOA2WavConfig, ConversionConfig, OutputConfig


class TestConversionConfig:
    """Test conversion configuration data class."""

    def test_default_values(self):
        config = ConversionConfig()
        assert config.source_extension == ".qoa"
        assert config.target_extension == ".wav"
        assert config.skip_existing is False
        assert config.verify_output is False


class TestOutputConfig:
    """Test output configuration data class."""

    def test_default_values(self):
        config = OutputConfig()
        assert config.output_dir is None
        assert config.logs_dir is None


class TestQOA2WavConfig:
    """Test the complete configuration."""

    def test_post_init_creates_sections(self):
        config = QOA2WavConfig()
        assert isinstance(config.conversion, ConversionConfig)
        assert isinstance(config.output, OutputConfig)


class TestConfigManager:
    """Test configuration loading, validation and saving."""

    def setup_method(self):
        self.manager = ConfigManager()

    def test_load_explicit_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            self.manager.load_config(tmp_path / "missing.json")

    def test_load_defaults_when_nothing_found(self, monkeypatch, tmp_path):
        monkeypatch.setattr(ConfigManager, 'DEFAULT_CONFIG_PATHS', [tmp_path / "none.json"])
        config = self.manager.load_config()
        assert config == QOA2WavConfig()

    def test_load_from_default_location(self, monkeypatch, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"conversion": {"skip_existing": True}}))
        monkeypatch.setattr(ConfigManager, 'DEFAULT_CONFIG_PATHS', [tmp_path / "none.json", config_file])

        config = self.manager.load_config()
        assert config.conversion.skip_existing is True

    def test_partial_sections_keep_defaults(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"output": {"logs_dir": "logs"}}))

        config = self.manager.load_config(config_file)

        assert config.output.logs_dir == "logs"
        assert config.output.output_dir is None
        assert config.conversion == ConversionConfig()

    def test_invalid_json(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text("{not json")

        with pytest.raises(ValueError, match="Invalid JSON"):
            self.manager.load_config(config_file)

    def test_non_object_json(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text("[1, 2]")

        with pytest.raises(ValueError, match="JSON object"):
            self.manager.load_config(config_file)

    @pytest.mark.parametrize("extension", ["wav", ".", 42, "./wav"])
    def test_invalid_extension(self, tmp_path, extension):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"conversion": {"target_extension": extension}}))

        with pytest.raises(ValueError, match="target_extension"):
            self.manager.load_config(config_file)

    def test_invalid_bool(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"conversion": {"verify_output": "yes"}}))

        with pytest.raises(ValueError, match="verify_output"):
            self.manager.load_config(config_file)

    @pytest.mark.parametrize("section", ["conversion", "output"])
    @pytest.mark.parametrize("value", [None, [], "text", 3])
    def test_non_object_section(self, tmp_path, section, value):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({section: value}))

        with pytest.raises(ValueError, match=f"section '{section}'"):
            self.manager.load_config(config_file)

    def test_invalid_logs_dir_type(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"output": {"logs_dir": 5}}))

        with pytest.raises(ValueError, match="logs_dir"):
            self.manager.load_config(config_file)

    def test_save_into_uncreatable_directory(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")

        with pytest.raises(RuntimeError, match="Error saving configuration"):
            self.manager.save_config(QOA2WavConfig(), blocker / "sub" / "config.json")

    def test_save_and_reload(self, tmp_path):
        config = QOA2WavConfig()
        config.conversion.target_extension = ".wave"
        config.output.output_dir = "converted"
        config_file = tmp_path / "nested" / "config.json"

        self.manager.save_config(config, config_file)

        assert self.manager.load_config(config_file) == config

    def test_create_default_config(self, tmp_path):
        config_file = tmp_path / "default.json"
        self.manager.create_default_config(config_file)

        data = json.loads(config_file.read_text())
        assert set(data) == {"conversion", "output"}

    def test_merge_cli_args_takes_precedence(self):
        config = QOA2WavConfig()
        args = SimpleNamespace(skip_existing=True, verify=True, logs_dir="cli_logs")

        merged = self.manager.merge_cli_args(config, args)

        assert merged.conversion.skip_existing is True
        assert merged.conversion.verify_output is True
        assert merged.output.logs_dir == "cli_logs"
        # Original is left untouched
        assert config.conversion.skip_existing is False
        assert config.output.logs_dir is None

    def test_merge_cli_args_without_flags_keeps_file_values(self):
        config = QOA2WavConfig()
        config.conversion.verify_output = True
        args = SimpleNamespace(skip_existing=False, verify=False, logs_dir=None)

        merged = self.manager.merge_cli_args(config, args)

        assert merged.conversion.verify_output is True
        assert merged.output.logs_dir is None
