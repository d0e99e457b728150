"""Configuration loader for vault-toolkit."""
import os
import logging
from pathlib import Path
from typing import Dict, Any, Tuple

import yaml

from ...errors import VaultConfigurationError
from .configuration import VaultConfiguration

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV_VAR = "VAULT_TOOLKIT_CONFIG"

REQUIRED_KEYS = ("ansible_vault_path", "vault_password_file_path")


class ConfigError(VaultConfigurationError):
    """Config file missing, unreadable or structurally invalid."""

    def __init__(self, message: str):
        super().__init__([message])


def default_config_path() -> Path:
    return Path.home() / ".config" / "vault-toolkit" / "config.yml"


def resolve_config_path() -> Tuple[Path, str]:
    """
    Work out which config file would be used, without requiring it to exist.

    Returns:
        (path, source) where source is "environment" or "default"
    """
    env_path = os.getenv(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path), "environment"
    return default_config_path(), "default"


def _get_config_path() -> str:
    """
    Get config file path.

    Priority order:
    1. VAULT_TOOLKIT_CONFIG environment variable
    2. Default location: ~/.config/vault-toolkit/config.yml

    Returns:
        Absolute path to config file

    Raises:
        FileNotFoundError: If config file doesn't exist in any location
    """
    env_path = os.getenv(CONFIG_PATH_ENV_VAR)
    if env_path:
        config_path = Path(env_path)
        if config_path.exists():
            logger.info(f"Using config from {CONFIG_PATH_ENV_VAR}: {config_path}")
            return str(config_path)
        logger.warning(f"Config path from {CONFIG_PATH_ENV_VAR} doesn't exist: {config_path}")

    default_config = default_config_path()
    if default_config.exists():
        logger.info(f"Using default config location: {default_config}")
        return str(default_config)

    raise FileNotFoundError(
        "Configuration file not found. Please set up your config file using one of these methods:\n\n"
        "1. Use the default location:\n"
        f"   mkdir -p {default_config.parent}\n"
        f"   cp /path/to/your/config.yml {default_config}\n\n"
        "2. Point to an existing config file:\n"
        f"   export {CONFIG_PATH_ENV_VAR}=/path/to/your/config.yml\n"
    )


def load_config() -> Dict[str, Any]:
    """
    Load and structurally validate the YAML config file.

    Returns:
        Dict with an 'ansible_vault' section holding ansible_vault_path,
        vault_password_file_path and optionally temp_directory

    Raises:
        FileNotFoundError: If no config file can be found
        ConfigError: If the file is empty, invalid YAML or misses required keys
    """
    config_path = _get_config_path()

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if not config:
        raise ConfigError(f"Config file at {config_path} is empty")

    if not isinstance(config, dict) or not isinstance(config.get('ansible_vault'), dict):
        raise ConfigError(
            f"Missing 'ansible_vault' section in config at {config_path}\n"
            f"Required format:\n"
            f"ansible_vault:\n"
            f"  ansible_vault_path: /usr/bin/ansible-vault\n"
            f"  vault_password_file_path: /path/to/password-file\n"
            f"  temp_directory: /optional/temp/dir"
        )

    missing = [key for key in REQUIRED_KEYS if key not in config['ansible_vault']]
    if missing:
        raise ConfigError(
            f"Missing {', '.join(f'ansible_vault.{key}' for key in missing)} in config at {config_path}"
        )

    logger.info(f"Configuration loaded successfully from {config_path}")
    return config


def load_vault_configuration() -> VaultConfiguration:
    """
    Load the config file and build a validated VaultConfiguration.

    Raises:
        ConfigError: See load_config
        VaultConfigurationError: If the configured paths are blank or missing
    """
    section = load_config()['ansible_vault']
    configuration = VaultConfiguration(
        ansible_vault_path=section['ansible_vault_path'],
        vault_password_file_path=section['vault_password_file_path'],
        temp_directory=section.get('temp_directory'),
    )
    logger.debug(f"Using ansible-vault: {configuration.ansible_vault_path}")
    return configuration.validate()
