"""
Tests for the environment table and settings.
"""
import os
from unittest.mock import patch

import pytest

from constata_client.config import get_settings, reload_settings
from constata_client.environments import (
    DEVELOPMENT,
    ENVIRONMENTS,
    PRODUCTION,
    STAGING,
    get_environment,
)
from constata_client.errors import UnknownEnvironment
from constata_client.networks import MAINNET, REGTEST, TESTNET


class TestEnvironments:
    """Test the fixed deployment table."""

    def test_known_names(self):
        assert set(ENVIRONMENTS) == {"development", "staging", "production"}
        assert get_environment("staging") is STAGING

    def test_production(self):
        assert PRODUCTION.graphql_url == "https://api.constata.eu/graphql"
        assert PRODUCTION.signing_network is MAINNET
        assert PRODUCTION.callback_network is MAINNET
        assert PRODUCTION.callback_address == "bc1qw3ca5pgepg6hqqle2eq8qakejl5wdafs7up0jd"

    def test_staging_signs_on_mainnet_verifies_on_testnet(self):
        assert STAGING.signing_network is MAINNET
        assert STAGING.callback_network is TESTNET
        assert STAGING.callback_address.startswith(TESTNET.bech32_hrp + "1")

    def test_development(self):
        assert DEVELOPMENT.graphql_url == "http://127.0.0.1:8000/graphql"
        assert DEVELOPMENT.signing_network is REGTEST
        assert DEVELOPMENT.callback_address.startswith("bcrt1")

    def test_unknown_name(self):
        with pytest.raises(UnknownEnvironment) as exc_info:
            get_environment("Production")
        assert isinstance(exc_info.value, ValueError)
        assert "production" in str(exc_info.value)

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            ENVIRONMENTS["evil"] = PRODUCTION

    def test_entries_are_immutable(self):
        with pytest.raises(AttributeError):
            PRODUCTION.callback_address = "bc1qevil"


class TestSettings:
    """Test settings loading from the environment."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = reload_settings()

        assert settings.environment == "production"
        assert settings.environment_config is PRODUCTION
        assert settings.encrypted_key is None
        assert settings.password is None
        assert settings.timeout == 60.0
        assert settings.log_level == "INFO"

    def test_from_environment_variables(self):
        env = {
            "CONSTATA_ENVIRONMENT": "staging",
            "CONSTATA_ENCRYPTED_KEY": "abcd",
            "CONSTATA_PASSWORD": "secret",
            "CONSTATA_TIMEOUT": "5",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = reload_settings()

        assert settings.environment_config is STAGING
        assert settings.encrypted_key == "abcd"
        assert settings.password == "secret"
        assert settings.timeout == 5.0

    def test_unknown_environment_name(self):
        with patch.dict(os.environ, {"CONSTATA_ENVIRONMENT": "moon"}, clear=True):
            settings = reload_settings()
        with pytest.raises(UnknownEnvironment):
            settings.environment_config

    def test_singleton(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = reload_settings()
            assert get_settings() is settings
