"""
ConfigLoader module for loading and validating TOML engine configuration files
"""

import os
import tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from .exceptions import ConfigurationError, EnvironmentError
from .oauth_signer import OAuthCredentials


DEFAULT_USER_AGENT = "Python mediawiki API"
DEFAULT_MAXLAG_SECONDS = 5
DEFAULT_MAX_RETRY_ATTEMPTS = 5


@dataclass
class EngineConfig:
    """Per-engine settings consumed by the request executor"""
    api_url: str = ""
    user_agent: str = DEFAULT_USER_AGENT
    max_retry_attempts: int = DEFAULT_MAX_RETRY_ATTEMPTS
    maxlag_seconds: Optional[int] = DEFAULT_MAXLAG_SECONDS
    edit_delay_ms: Optional[int] = None
    request_timeout: Optional[float] = None
    authentication: Dict[str, Any] = field(default_factory=dict)
    cache: Dict[str, Any] = field(default_factory=dict)


class ConfigLoader:
    """Loads and validates TOML configuration files"""

    # Required configuration sections and their mandatory keys
    REQUIRED_SECTIONS = {
        'api': ['url'],
    }

    SUPPORTED_AUTH_TYPES = ('none', 'session', 'oauth')

    OAUTH_ENV_KEYS = (
        'consumer_key_env',
        'consumer_secret_env',
        'token_key_env',
        'token_secret_env',
    )

    @staticmethod
    def load_toml_config(config_path: Path) -> EngineConfig:
        """
        Load engine configuration from TOML file

        Args:
            config_path: Path to the TOML configuration file

        Returns:
            EngineConfig object with all configuration data

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If required configuration is missing or TOML is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'rb') as f:
                config_data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {config_path}: {e}")

        return ConfigLoader.build_config(config_data)

    @staticmethod
    def build_config(config_data: Dict[str, Any]) -> EngineConfig:
        """
        Build an EngineConfig from already-parsed configuration data

        Args:
            config_data: Parsed TOML configuration data

        Returns:
            EngineConfig with defaults applied for every optional value

        Raises:
            ConfigurationError: If required keys are missing or values are invalid
        """
        ConfigLoader._validate_required_sections(config_data)

        api = config_data['api']
        retries = config_data.get('retries', {})
        rate_limits = config_data.get('rate_limits', {})
        authentication = config_data.get('authentication', {'type': 'none'})

        auth_type = authentication.get('type', 'none')
        if auth_type not in ConfigLoader.SUPPORTED_AUTH_TYPES:
            raise ConfigurationError(f"Unsupported authentication type: {auth_type}")

        max_attempts = retries.get('max_attempts', DEFAULT_MAX_RETRY_ATTEMPTS)
        if not isinstance(max_attempts, int) or max_attempts < 0:
            raise ConfigurationError(
                f"retries.max_attempts must be a non-negative integer, got {max_attempts!r}"
            )

        # 0 disables both the maxlag parameter and the edit delay
        maxlag = rate_limits.get('maxlag_seconds', DEFAULT_MAXLAG_SECONDS)
        edit_delay = rate_limits.get('edit_delay_ms')

        return EngineConfig(
            api_url=api['url'],
            user_agent=api.get('user_agent', DEFAULT_USER_AGENT),
            max_retry_attempts=max_attempts,
            maxlag_seconds=maxlag or None,
            edit_delay_ms=edit_delay or None,
            request_timeout=api.get('timeout'),
            authentication=authentication,
            cache=config_data.get('cache', {}),
        )

    @staticmethod
    def _validate_required_sections(config_data: Dict[str, Any]) -> None:
        """
        Validate that all required configuration sections and keys are present

        Args:
            config_data: Parsed TOML configuration data

        Raises:
            ConfigurationError: If any required section or key is missing
        """
        missing_items: List[str] = []

        for section_name, required_keys in ConfigLoader.REQUIRED_SECTIONS.items():
            if section_name not in config_data:
                missing_items.append(f"Section [{section_name}]")
            else:
                section_data = config_data[section_name]
                for key in required_keys:
                    if key not in section_data:
                        missing_items.append(f"Key '{key}' in section [{section_name}]")

        if missing_items:
            raise ConfigurationError(
                f"Missing required configuration items: {', '.join(missing_items)}"
            )

    @staticmethod
    def validate_environment_variables(config: EngineConfig) -> bool:
        """
        Validate that all environment variables referenced by the config are set

        Args:
            config: EngineConfig object to validate

        Returns:
            True if all environment variables are present

        Raises:
            EnvironmentError: If any required environment variables are missing
        """
        missing_vars = []

        for key, value in config.authentication.items():
            if key.endswith('_env') and isinstance(value, str):
                if not os.getenv(value):
                    missing_vars.append(value)

        if missing_vars:
            raise EnvironmentError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )

        return True

    @staticmethod
    def get_environment_value(env_var_name: str) -> str:
        """
        Get environment variable value with proper error handling

        Raises:
            EnvironmentError: If environment variable is not set
        """
        value = os.getenv(env_var_name)
        if value is None:
            raise EnvironmentError(f"Environment variable '{env_var_name}' is not set")
        return value

    @staticmethod
    def load_oauth_credentials(config: EngineConfig) -> Optional[OAuthCredentials]:
        """
        Resolve OAuth credentials from the environment variables named in the config

        Args:
            config: EngineConfig whose [authentication] section may reference env vars

        Returns:
            OAuthCredentials for type "oauth", None for any other type

        Raises:
            ConfigurationError: If an oauth *_env key is missing from the config
            EnvironmentError: If a referenced environment variable is not set
        """
        auth = config.authentication
        if auth.get('type', 'none') != 'oauth':
            return None

        missing = [key for key in ConfigLoader.OAUTH_ENV_KEYS if key not in auth]
        if missing:
            raise ConfigurationError(
                f"Missing OAuth keys in section [authentication]: {', '.join(missing)}"
            )

        ConfigLoader.validate_environment_variables(config)

        get = ConfigLoader.get_environment_value
        return OAuthCredentials(
            consumer_key=get(auth['consumer_key_env']),
            consumer_secret=get(auth['consumer_secret_env']),
            token_key=get(auth['token_key_env']),
            token_secret=get(auth['token_secret_env']),
            agent=config.user_agent,
        )
