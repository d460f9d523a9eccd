"""Configuration management for qoa2wav"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, asdict

logger = logging.getLogger(__name__)


@dataclass
class ConversionConfig:
    """Conversion-related configuration."""
    source_extension: str = ".qoa"
    target_extension: str = ".wav"
    skip_existing: bool = False
    verify_output: bool = False


@dataclass
class OutputConfig:
    """Output directory configuration."""
    output_dir: Optional[str] = None
    logs_dir: Optional[str] = None


@dataclass
class QOA2WavConfig:
    """Complete qoa2wav configuration."""
    conversion: ConversionConfig = None
    output: OutputConfig = None

    def __post_init__(self):
        if self.conversion is None:
            self.conversion = ConversionConfig()
        if self.output is None:
            self.output = OutputConfig()


class ConfigManager:
    """Manage configuration loading, validation, and saving."""

    DEFAULT_CONFIG_PATHS = [
        Path("config.json"),
        Path.home() / ".qoa2wav" / "config.json",
        Path("/etc/qoa2wav/config.json")
    ]

    def __init__(self):
        """Initialize configuration manager."""
        self.config = QOA2WavConfig()

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> QOA2WavConfig:
        """Load configuration from file with fallback to defaults."""
        if config_path:
            config_file = Path(config_path)
            if not config_file.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_file}")
            return self._load_from_file(config_file)

        for path in self.DEFAULT_CONFIG_PATHS:
            if path.exists():
                logger.debug(f"Loading configuration from: {path}")
                return self._load_from_file(path)

        logger.debug("No configuration file found, using defaults")
        return QOA2WavConfig()

    def _load_from_file(self, config_path: Path) -> QOA2WavConfig:
        """Load configuration from specific file."""
        try:
            with open(config_path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")
        except OSError as e:
            raise RuntimeError(f"Error loading configuration from {config_path}: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {config_path} must contain a JSON object")

        config = self._dict_to_config(data)
        logger.debug(f"Configuration loaded successfully from {config_path}")
        return config

    def _dict_to_config(self, data: Dict[str, Any]) -> QOA2WavConfig:
        """Convert dictionary to configuration objects with validation."""
        config = QOA2WavConfig()

        if 'conversion' in data:
            conversion_data = self._validate_section(data['conversion'], 'conversion')
            config.conversion = ConversionConfig(
                source_extension=self._validate_extension(
                    conversion_data.get('source_extension', '.qoa'), 'source_extension'),
                target_extension=self._validate_extension(
                    conversion_data.get('target_extension', '.wav'), 'target_extension'),
                skip_existing=self._validate_bool(
                    conversion_data.get('skip_existing', False), 'skip_existing'),
                verify_output=self._validate_bool(
                    conversion_data.get('verify_output', False), 'verify_output')
            )

        if 'output' in data:
            output_data = self._validate_section(data['output'], 'output')
            config.output = OutputConfig(
                output_dir=self._validate_optional_path(output_data.get('output_dir'), 'output_dir'),
                logs_dir=self._validate_optional_path(output_data.get('logs_dir'), 'logs_dir')
            )

        return config

    def _validate_section(self, value: Any, name: str) -> Dict[str, Any]:
        if not isinstance(value, dict):
            raise ValueError(f"Configuration section '{name}' must be a JSON object, got {type(value).__name__}")
        return value

    def _validate_optional_path(self, value: Any, name: str) -> Optional[str]:
        if value is not None and not isinstance(value, str):
            raise ValueError(f"Configuration parameter '{name}' must be a path string or null, got {value!r}")
        return value

    def _validate_extension(self, value: Any, name: str) -> str:
        """Validate a file extension such as '.wav'."""
        if not isinstance(value, str):
            raise ValueError(f"Configuration parameter '{name}' must be a string, got {type(value).__name__}")

        if len(value) < 2 or not value.startswith('.') or '/' in value or '\\' in value:
            raise ValueError(f"Configuration parameter '{name}' must look like '.ext', got {value!r}")

        return value

    def _validate_bool(self, value: Any, name: str) -> bool:
        if not isinstance(value, bool):
            raise ValueError(f"Configuration parameter '{name}' must be true or false, got {value!r}")
        return value

    def save_config(self, config: QOA2WavConfig, config_path: Union[str, Path]):
        """Save configuration to file."""
        config_file = Path(config_path)
        config_dict = asdict(config)

        try:
            config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(config_file, 'w') as f:
                json.dump(config_dict, f, indent=2, sort_keys=True)
            logger.info(f"💾 Configuration saved to: {config_file}")

        except OSError as e:
            raise RuntimeError(f"Error saving configuration to {config_file}: {e}")

    def create_default_config(self, config_path: Union[str, Path]):
        """Create a default configuration file."""
        self.save_config(QOA2WavConfig(), config_path)
        logger.info(f"📝 Default configuration created: {config_path}")

    def merge_cli_args(self, config: QOA2WavConfig, args: Any) -> QOA2WavConfig:
        """Merge CLI arguments with configuration file settings (CLI takes precedence)."""
        # Copy so the loaded config is left untouched
        merged_config = QOA2WavConfig(
            conversion=ConversionConfig(**asdict(config.conversion)),
            output=OutputConfig(**asdict(config.output))
        )

        if getattr(args, 'skip_existing', False):
            merged_config.conversion.skip_existing = True
        if getattr(args, 'verify', False):
            merged_config.conversion.verify_output = True
        if getattr(args, 'logs_dir', None) is not None:
            merged_config.output.logs_dir = args.logs_dir

        return merged_config
