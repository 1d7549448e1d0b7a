"""
Configuration loading for ape-commands.

Loads and merges configuration from YAML files and environment variables,
then validates the result against the pydantic models.
"""

import os
from pathlib import Path
from typing import Optional, Dict, Any, Tuple, Union
import yaml
from pydantic import ValidationError
from dotenv import load_dotenv

from .models import ApeCommandsConfig
from ..utils.error_handling import ConfigurationError
from ..utils.logging import get_logger


ENV_PREFIX = "APE_"


class ConfigLoader:
    """
    Configuration loader that supports multiple sources and validation.

    Loading priority (highest to lowest):
    1. Environment variables (APE_<SECTION>_<FIELD>)
    2. CLI-specified config file
    3. Environment-specific config (configs/<APE_ENV>.yaml)
    4. Default configuration file (configs/default.yaml)
    5. Built-in defaults (from the pydantic models)
    """

    def __init__(self, search_dir: Optional[Union[str, Path]] = None):
        self.search_dir = Path(search_dir) if search_dir else Path(".")
        self.logger = get_logger(__name__)
        self._config: Optional[ApeCommandsConfig] = None
        self._config_path: Optional[Path] = None

        env_file = self.search_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> ApeCommandsConfig:
        """
        Load configuration from every source and validate it.

        Args:
            config_path: Optional path to a specific config file

        Returns:
            Validated ApeCommandsConfig instance

        Raises:
            ConfigurationError: If loading or validation fails
        """
        config_data: Dict[str, Any] = {}

        default_config_path = self._find_config("default")
        if default_config_path:
            config_data = self._deep_merge(config_data, self._load_yaml_file(default_config_path))

        env_name = os.getenv("APE_ENV")
        if env_name:
            env_config_path = self._find_config(env_name)
            if env_config_path and env_config_path != default_config_path:
                config_data = self._deep_merge(config_data, self._load_yaml_file(env_config_path))

        if config_path:
            cli_config_path = Path(config_path)
            if not cli_config_path.exists():
                raise ConfigurationError(
                    f"Specified config file not found: {config_path}",
                    details={"path": str(config_path)}
                )
            config_data = self._deep_merge(config_data, self._load_yaml_file(cli_config_path))
            self._config_path = cli_config_path

        config_data = self._apply_env_overrides(config_data)

        try:
            self._config = ApeCommandsConfig(**config_data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {self._format_validation_error(e)}",
                details={"error_count": e.error_count()}
            ) from e

        self.logger.debug(f"Configuration loaded (file: {self._config_path or 'defaults'})")
        return self._config

    def get_config(self) -> ApeCommandsConfig:
        """Return the current configuration, loading it on first use."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def reload_config(self, config_path: Optional[Union[str, Path]] = None) -> ApeCommandsConfig:
        """Drop the cached configuration and load it again."""
        self._config = None
        return self.load_config(config_path)

    def _find_config(self, name: str) -> Optional[Path]:
        for candidate in (f"configs/{name}.yaml", f"configs/{name}.yml", f"{name}.yaml", f"{name}.yml"):
            path = self.search_dir / candidate
            if path.exists():
                return path
        return None

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """
        Load and parse a YAML configuration file.

        Raises:
            ConfigurationError: If the file cannot be read or parsed
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {file_path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {file_path}: {e}") from e

        if data is None:
            return {}

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {file_path} must contain a YAML mapping")

        return data

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply ``APE_<SECTION>_<FIELD>`` overrides.

        The first segment after the prefix names the section and the rest is
        the field, so ``APE_NLP_ACCEPT_THRESHOLD=0.9`` sets
        ``nlp.accept_threshold``. ``APE_ENV`` is reserved.
        """
        result = config_data.copy()
        sections = set(ApeCommandsConfig.model_fields)

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX) or env_key == "APE_ENV":
                continue

            section, _, field_name = env_key[len(ENV_PREFIX):].lower().partition('_')
            if section not in sections or not field_name:
                continue

            section_data = dict(result.get(section) or {})
            section_data[field_name] = self._convert_env_value(env_value)
            result[section] = section_data

        return result

    def _convert_env_value(self, value: str) -> Any:
        """Convert an environment string to bool, int, float, list or str."""
        lowered = value.lower()
        if lowered in ('true', 'yes', 'on'):
            return True
        if lowered in ('false', 'no', 'off'):
            return False

        try:
            if '.' not in value:
                return int(value)
            return float(value)
        except ValueError:
            pass

        if ',' in value:
            return [item.strip() for item in value.split(',') if item.strip()]

        return value

    def _format_validation_error(self, error: ValidationError) -> str:
        messages = []
        for err in error.errors():
            location = " -> ".join(str(loc) for loc in err['loc'])
            messages.append(f"  {location}: {err['msg']} (got: {err.get('input', 'N/A')})")

        return "Validation errors:\n" + "\n".join(messages)


_config_loader = ConfigLoader()


def load_config(config_path: Optional[Union[str, Path]] = None) -> ApeCommandsConfig:
    """Load configuration from every source.

    Raises:
        ConfigurationError: If configuration loading fails
    """
    return _config_loader.load_config(config_path)


def get_config() -> ApeCommandsConfig:
    """Get the current configuration, loading it if necessary."""
    return _config_loader.get_config()


def reload_config(config_path: Optional[Union[str, Path]] = None) -> ApeCommandsConfig:
    """Reload configuration from every source."""
    return _config_loader.reload_config(config_path)


def validate_config_file(config_path: Union[str, Path]) -> Tuple[bool, Optional[str]]:
    """
    Validate a configuration file without replacing the global configuration.

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        ConfigLoader().load_config(config_path)
        return True, None
    except ConfigurationError as e:
        return False, str(e)
