"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import yaml

DEFAULT_CONFIG: Dict[str, Any] = {
    'input': {
        'path': 'medium-export.zip',
    },
    'output': {
        'directory': './medium-to-hugo',
        'content_type': 'post',
        'images_directory': 'img',
        'ignore_empty': False,
        'download_images': True,
        'progress_bars': True,
    },
    'medium': {
        'base_url': 'https://medium.com',
        'username': '',
    },
    'network': {
        'timeout': 30,
        'allow_insecure': False,
        'user_agent': 'medium-hugo-migrator/1.0',
    },
    'logging': {
        'level': 'WARNING',
        'file': None,
    },
}


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Keys missing from the file take their value from DEFAULT_CONFIG.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        # An empty file means "all defaults"
        if config_data is None:
            config_data = {}

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        config_data = cls._substitute_env_vars_recursive(config_data)

        return cls._merge_defaults(config_data)

    @classmethod
    def load_or_default(cls, config_path: Optional[str]) -> Dict[str, Any]:
        """Load config_path if given and present, otherwise return the defaults."""
        if config_path and os.path.exists(config_path):
            return cls.load(config_path)
        return copy.deepcopy(DEFAULT_CONFIG)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        cls._validate_required_field(config, 'input.path')
        cls._validate_required_field(config, 'output.directory')

        output_dir = get_nested(config, 'output.directory')
        if os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ValueError(f"output.directory '{output_dir}' is not a directory")

        for field in ('output.content_type', 'output.images_directory'):
            cls._validate_required_field(config, field)
            value = get_nested(config, field)
            if '/' in value or '\\' in value or value in ('.', '..'):
                raise ValueError(f"{field} must be a single directory name: {value}")

        for field in ('output.ignore_empty', 'output.download_images', 'output.progress_bars',
                      'network.allow_insecure'):
            if not isinstance(get_nested(config, field, False), bool):
                raise ValueError(f"{field} must be a boolean")

        base_url = get_nested(config, 'medium.base_url', DEFAULT_CONFIG['medium']['base_url'])
        cls._validate_url(base_url, 'medium.base_url')

        username = get_nested(config, 'medium.username', '')
        if username and not isinstance(username, str):
            raise ValueError("medium.username must be a string")

        timeout = get_nested(config, 'network.timeout', 30)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("network.timeout must be a positive number")

        level = get_nested(config, 'logging.level', 'WARNING')
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if not isinstance(level, str) or level.upper() not in allowed_levels:
            raise ValueError(f"logging.level must be one of: {sorted(allowed_levels)}")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        # Ensure nested dictionaries exist
        for section in ('input', 'output', 'network', 'logging'):
            if section not in merged:
                merged[section] = {}

        if getattr(args, 'file', None):
            merged['input']['path'] = args.file

        if getattr(args, 'output', None):
            merged['output']['directory'] = args.output

        if getattr(args, 'ignore_empty', False):
            merged['output']['ignore_empty'] = True

        if getattr(args, 'no_images', False):
            merged['output']['download_images'] = False

        if getattr(args, 'timeout', None):
            merged['network']['timeout'] = args.timeout

        if getattr(args, 'insecure', False):
            merged['network']['allow_insecure'] = True

        verbose = getattr(args, 'verbose', 0)
        if verbose:
            merged['logging']['level'] = 'DEBUG' if verbose >= 2 else 'INFO'

        return merged

    @classmethod
    def _merge_defaults(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay a loaded config on a copy of DEFAULT_CONFIG, section by section."""
        merged = copy.deepcopy(DEFAULT_CONFIG)
        for section, values in config.items():
            if isinstance(values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(values)
            else:
                merged[section] = values
        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            var_name = match.group(1)
            env_value = os.getenv(var_name)
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config_section: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config_section, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        # Check for unsubstituted environment variables
        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        """Validate URL format."""
        if not isinstance(url, str):
            raise ValueError(f"{field_name} must be a string")
        parsed = urlparse(url)
        if not parsed.scheme or parsed.scheme not in ['http', 'https']:
            raise ValueError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ValueError(f"{field_name} missing hostname: {url}")


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "output.directory")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'get_nested']
