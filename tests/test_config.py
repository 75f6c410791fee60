"""Tests for the configuration singleton."""
from sahha_probe.common.config import (
    get_application_credentials,
    get_client_credentials,
    get_config,
    reset_config,
)


class TestConfig:
    """Test config loading, overrides and validation."""

    def test_credentials_from_environment(self, sahha_env):
        assert get_client_credentials() == ("client-id", "client-secret")
        assert get_application_credentials() == ("app-id", "app-secret")

    def test_default_urls(self, sahha_env):
        config = get_config()
        assert config.get_api_base_url("production") == "https://api.sahha.ai"
        assert config.get_api_base_url("sandbox") == "https://sandbox-api.sahha.ai"

    def test_env_overrides_urls(self, sahha_env, monkeypatch):
        monkeypatch.setenv("SAHHA_SANDBOX_URL", "https://example.test/")
        reset_config()
        assert get_config().get_api_base_url("sandbox") == "https://example.test"

    def test_yaml_overrides_defaults(self, sahha_env, tmp_path):
        (tmp_path / "config.yaml").write_text(
            "sample:\n  start_date: '2025-01-01'\napi:\n  sahha:\n    timeout_seconds: 5\n"
        )
        reset_config()
        config = get_config()
        assert config.get_sample_date_range() == ("2025-01-01", "2025-07-11")
        assert config.get_request_timeout() == 5.0
        # untouched defaults survive the merge
        assert config.get_api_base_url("production") == "https://api.sahha.ai"

    def test_singleton(self, sahha_env):
        assert get_config() is get_config()

    def test_validate(self, sahha_env, monkeypatch):
        assert get_config().validate() == []

        monkeypatch.delenv("SAHHA_APPLICATION_SECRET")
        reset_config()
        errors = get_config().validate()
        assert len(errors) == 1
        assert "application" in errors[0]

    def test_repr_masks_secrets(self, sahha_env):
        text = repr(get_config())
        assert "client-secret" not in text
        assert "app-secret" not in text
        assert "***MASKED***" in text
        # masking must not touch the live values
        assert get_client_credentials()[1] == "client-secret"


class TestMalformedConfigFile:
    """Test that a bad config.yaml falls back to defaults instead of raising."""

    def test_non_mapping_yaml_uses_defaults(self, sahha_env, tmp_path):
        (tmp_path / "config.yaml").write_text("- a\n- b\n")
        reset_config()
        config = get_config()
        assert config.get_api_base_url("production") == "https://api.sahha.ai"
        assert get_client_credentials() == ("client-id", "client-secret")

    def test_invalid_utf8_uses_defaults(self, sahha_env, tmp_path):
        (tmp_path / "config.yaml").write_bytes(b"sample:\n  start_date: '\xff\xfe'\n")
        reset_config()
        assert get_config().get_sample_date_range() == ("2025-07-05", "2025-07-11")

    def test_invalid_yaml_uses_defaults(self, sahha_env, tmp_path):
        (tmp_path / "config.yaml").write_text("api: [unclosed\n")
        reset_config()
        assert get_config().get_request_timeout() == 30.0
