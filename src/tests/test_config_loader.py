"""
Test suite for ConfigLoader component
Following TDD approach with AAA pattern and descriptive naming
"""

import pytest
import tempfile
import os
from pathlib import Path
from unittest.mock import patch
from mediawiki_adapter.config_loader import ConfigLoader, EngineConfig
from mediawiki_adapter.exceptions import ConfigurationError, EnvironmentError
from mediawiki_adapter.oauth_signer import OAuthCredentials


def write_toml(content):
    with tempfile.NamedTemporaryFile(mode='w', suffix='.toml', delete=False) as f:
        f.write(content)
        return Path(f.name)


class TestConfigLoader:
    """Test suite for ConfigLoader TOML configuration loading functionality"""

    def test_load_toml_config_with_valid_file_returns_engine_config(self):
        """
        Test that loading a valid TOML file returns properly populated EngineConfig
        """
        # Arrange
        config_path = write_toml("""
        [api]
        url = "https://www.wikidata.org/w/api.php"
        user_agent = "TestBot/1.0"
        timeout = 30

        [retries]
        max_attempts = 3

        [rate_limits]
        maxlag_seconds = 10
        edit_delay_ms = 500

        [authentication]
        type = "oauth"
        consumer_key_env = "MW_CONSUMER_KEY"
        consumer_secret_env = "MW_CONSUMER_SECRET"
        token_key_env = "MW_TOKEN_KEY"
        token_secret_env = "MW_TOKEN_SECRET"

        [cache]
        enabled = true
        expiration = 600
        """)

        try:
            # Act
            result = ConfigLoader.load_toml_config(config_path)

            # Assert
            assert isinstance(result, EngineConfig)
            assert result.api_url == "https://www.wikidata.org/w/api.php"
            assert result.user_agent == "TestBot/1.0"
            assert result.request_timeout == 30
            assert result.max_retry_attempts == 3
            assert result.maxlag_seconds == 10
            assert result.edit_delay_ms == 500
            assert result.authentication['type'] == "oauth"
            assert result.cache['enabled'] is True
        finally:
            os.unlink(config_path)

    def test_load_toml_config_with_only_url_applies_defaults(self):
        """
        Test that every optional setting falls back to its default
        """
        # Arrange
        config_path = write_toml("""
        [api]
        url = "https://test.wiki/w/api.php"
        """)

        try:
            # Act
            result = ConfigLoader.load_toml_config(config_path)

            # Assert
            assert result.user_agent == "Python mediawiki API"
            assert result.max_retry_attempts == 5
            assert result.maxlag_seconds == 5
            assert result.edit_delay_ms is None
            assert result.authentication == {'type': 'none'}
        finally:
            os.unlink(config_path)

    def test_load_toml_config_with_zero_maxlag_disables_it(self):
        # Arrange
        config_path = write_toml("""
        [api]
        url = "https://test.wiki/w/api.php"

        [rate_limits]
        maxlag_seconds = 0
        edit_delay_ms = 0
        """)

        try:
            # Act
            result = ConfigLoader.load_toml_config(config_path)

            # Assert
            assert result.maxlag_seconds is None
            assert result.edit_delay_ms is None
        finally:
            os.unlink(config_path)

    def test_load_toml_config_with_missing_url_raises_configuration_error(self):
        # Arrange
        config_path = write_toml("""
        [api]
        user_agent = "TestBot"
        """)

        try:
            # Act & Assert
            with pytest.raises(ConfigurationError) as exc_info:
                ConfigLoader.load_toml_config(config_path)

            assert "Key 'url' in section [api]" in str(exc_info.value)
        finally:
            os.unlink(config_path)

    def test_load_toml_config_with_invalid_syntax_raises_configuration_error(self):
        # Arrange
        config_path = write_toml("""
        [api
        url = "https://test.wiki/w/api.php"
        """)

        try:
            # Act & Assert
            with pytest.raises(ConfigurationError) as exc_info:
                ConfigLoader.load_toml_config(config_path)

            assert "Invalid TOML syntax" in str(exc_info.value)
        finally:
            os.unlink(config_path)

    def test_load_toml_config_with_nonexistent_file_raises_file_not_found(self):
        # Act & Assert
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load_toml_config(Path("/nonexistent/engine.toml"))

    def test_build_config_with_unsupported_auth_type_raises_configuration_error(self):
        # Arrange
        config_data = {
            'api': {'url': 'https://test.wiki/w/api.php'},
            'authentication': {'type': 'kerberos'},
        }

        # Act & Assert
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader.build_config(config_data)

        assert "Unsupported authentication type" in str(exc_info.value)

    def test_build_config_with_negative_attempts_raises_configuration_error(self):
        # Arrange
        config_data = {
            'api': {'url': 'https://test.wiki/w/api.php'},
            'retries': {'max_attempts': -1},
        }

        # Act & Assert
        with pytest.raises(ConfigurationError):
            ConfigLoader.build_config(config_data)

    @patch.dict(os.environ, {'MW_CK': 'ck', 'MW_CS': 'cs', 'MW_TK': 'tk', 'MW_TS': 'ts'})
    def test_load_oauth_credentials_reads_environment_variables(self):
        """
        Test that OAuth secrets are resolved from the named environment variables
        """
        # Arrange
        config = ConfigLoader.build_config({
            'api': {'url': 'https://test.wiki/w/api.php', 'user_agent': 'TestBot'},
            'authentication': {
                'type': 'oauth',
                'consumer_key_env': 'MW_CK',
                'consumer_secret_env': 'MW_CS',
                'token_key_env': 'MW_TK',
                'token_secret_env': 'MW_TS',
            },
        })

        # Act
        credentials = ConfigLoader.load_oauth_credentials(config)

        # Assert
        assert credentials == OAuthCredentials('ck', 'cs', 'tk', 'ts', 'TestBot')
        assert ConfigLoader.validate_environment_variables(config) is True

    @patch.dict(os.environ, {}, clear=True)
    def test_load_oauth_credentials_with_unset_variables_reports_all_of_them(self):
        # Arrange
        config = ConfigLoader.build_config({
            'api': {'url': 'https://test.wiki/w/api.php'},
            'authentication': {
                'type': 'oauth',
                'consumer_key_env': 'MW_CK',
                'consumer_secret_env': 'MW_CS',
                'token_key_env': 'MW_TK',
                'token_secret_env': 'MW_TS',
            },
        })

        # Act & Assert
        with pytest.raises(EnvironmentError) as exc_info:
            ConfigLoader.load_oauth_credentials(config)

        assert "MW_CK" in str(exc_info.value)
        assert "MW_TS" in str(exc_info.value)

    def test_load_oauth_credentials_with_missing_env_key_raises_configuration_error(self):
        # Arrange
        config = ConfigLoader.build_config({
            'api': {'url': 'https://test.wiki/w/api.php'},
            'authentication': {'type': 'oauth', 'consumer_key_env': 'MW_CK'},
        })

        # Act & Assert
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader.load_oauth_credentials(config)

        assert "token_secret_env" in str(exc_info.value)

    def test_load_oauth_credentials_for_session_auth_returns_none(self):
        # Arrange
        config = ConfigLoader.build_config({
            'api': {'url': 'https://test.wiki/w/api.php'},
            'authentication': {'type': 'session'},
        })

        # Act & Assert
        assert ConfigLoader.load_oauth_credentials(config) is None

    @patch.dict(os.environ, {}, clear=True)
    def test_validate_environment_variables_with_missing_vars_raises_error(self):
        # Arrange
        config = EngineConfig(authentication={'type': 'oauth', 'token_secret_env': 'MISSING_VAR'})

        # Act & Assert
        with pytest.raises(EnvironmentError) as exc_info:
            ConfigLoader.validate_environment_variables(config)

        assert "MISSING_VAR" in str(exc_info.value)
