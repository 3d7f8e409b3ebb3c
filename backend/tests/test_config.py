import pytest

from civicalert.config import DEFAULT_SECRET_KEY, Settings


def _settings(**overrides) -> Settings:
    values = {
        "debug": False,
        "access_token_secret": "access-secret",
        "refresh_token_secret": "refresh-secret",
        "identity_project_id": "civicalert-test",
        "identity_api_key": "api-key",
    }
    values.update(overrides)
    return Settings(**values)


class TestValidateSecurity:
    """Tests for startup configuration checks."""

    def test_valid_configuration(self):
        _settings().validate_security()

    def test_default_secret_rejected(self):
        with pytest.raises(RuntimeError):
            _settings(access_token_secret=DEFAULT_SECRET_KEY).validate_security()

    def test_default_secret_allowed_in_debug(self):
        _settings(
            debug=True,
            access_token_secret=DEFAULT_SECRET_KEY,
            refresh_token_secret=DEFAULT_SECRET_KEY,
        ).validate_security()

    def test_shared_secret_rejected(self):
        with pytest.raises(RuntimeError):
            _settings(refresh_token_secret="access-secret").validate_security()

    def test_partial_identity_provider_rejected(self):
        with pytest.raises(RuntimeError):
            _settings(identity_api_key=None).validate_security()


class TestSettings:
    def test_auth_mode(self):
        assert _settings().get_auth_mode() == "identity-provider"
        assert (
            _settings(
                debug=True,
                access_token_secret=DEFAULT_SECRET_KEY,
                identity_project_id=None,
                identity_api_key=None,
            ).get_auth_mode()
            == "unconfigured"
        )
        assert (
            _settings(identity_project_id=None, identity_api_key=None).get_auth_mode()
            == "unconfigured"
        )

    def test_cookie_secure_only_in_production(self):
        assert _settings(environment="production").cookie_secure is True
        assert _settings(environment="development").cookie_secure is False

    def test_identity_issuer(self):
        assert _settings().identity_issuer == "https://securetoken.google.com/civicalert-test"
        assert _settings(identity_project_id=None).identity_issuer is None
