"""
REST Client Configuration Loader

Loads exchange client settings from YAML with environment variable
substitution. A ``.env`` file is loaded first (without overriding variables
already set in the process).

Supported placeholder syntax:
    ${VAR_NAME}          value of VAR_NAME, empty string when unset
    ${VAR_NAME:default}  value of VAR_NAME or ``default``

Example config.yaml:
    exchanges:
      binance:
        base_url: https://api.binance.com
        credentials:
          api_key: ${BINANCE_API_KEY}
          secret_key: ${BINANCE_SECRET_KEY}
        rate_limits:
          requestWeight: {capacity: 6000, refill_period: 60}
        retries:
          requestWeight: {max_attempts: 3, initial_delay: 0.05, multiplier: 4}
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import msgspec
import yaml
from dotenv import load_dotenv

from cex_rest.exceptions import ConfigurationError
from cex_rest.logging import get_logger
from .structs import ExchangeConfig

_ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')

logger = get_logger('rest.config')


def substitute_env_vars(content: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:default}`` placeholders."""

    def replace_var(match):
        var_expr = match.group(1)
        if ':' in var_expr:
            var_name, default_value = var_expr.split(':', 1)
            env_value = os.getenv(var_name.strip())
            return default_value if env_value is None else env_value

        var_name = var_expr.strip()
        env_value = os.getenv(var_name)
        if env_value is None:
            logger.warning("Environment variable not set - using empty value", variable=var_name)
            return ""
        return env_value

    return _ENV_VAR_PATTERN.sub(replace_var, content)


def parse_exchange_config(name: str, data: Dict[str, Any]) -> ExchangeConfig:
    """Convert one raw mapping into a validated ExchangeConfig."""
    try:
        config = msgspec.convert({"name": name, **data}, type=ExchangeConfig)
        config.validate()
    except (msgspec.ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration for exchange '{name}': {e}", name) from e
    return config


def load_exchange_configs(path: Union[str, Path],
                          env_file: Optional[Union[str, Path]] = None) -> Dict[str, ExchangeConfig]:
    """
    Load every entry of the ``exchanges`` section.

    Args:
        path: YAML configuration file
        env_file: Optional .env file; the default dotenv search is used when omitted

    Raises:
        ConfigurationError: file missing, malformed YAML or invalid settings
    """
    if env_file is not None:
        load_dotenv(dotenv_path=env_file, override=False)
    else:
        load_dotenv(override=False)

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        raw = yaml.safe_load(substitute_env_vars(config_path.read_text(encoding='utf-8'))) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed YAML in {config_path}: {e}") from e

    exchanges = raw.get('exchanges')
    if not isinstance(exchanges, dict) or not exchanges:
        raise ConfigurationError(f"No 'exchanges' section in {config_path}", 'exchanges')

    configs = {name: parse_exchange_config(name, data or {}) for name, data in exchanges.items()}
    logger.info("Exchange configuration loaded", path=str(config_path), exchanges=list(configs))
    return configs


def load_exchange_config(path: Union[str, Path], name: str,
                         env_file: Optional[Union[str, Path]] = None) -> ExchangeConfig:
    configs = load_exchange_configs(path, env_file)
    if name not in configs:
        raise ConfigurationError(f"Exchange '{name}' not configured in {path}", name)
    return configs[name]
