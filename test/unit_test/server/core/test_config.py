"""Unit tests for server configuration settings model.

Tests verify that the Settings model binds environment variables, including the
``__``-delimited nested groups documented in the .env.example file.
"""

from pathlib import Path

import pytest

from boardmgmt.server.core.config import CORSConfig, GraphConfig, JwtConfig, Settings, ZoomConfig


@pytest.fixture
def env_example_path() -> Path:
    """Get path to .env.example file."""
    return Path(__file__).resolve().parent.parent.parent.parent.parent / ".env.example"


@pytest.fixture
def env_example_vars(env_example_path: Path) -> dict[str, str]:
    """Parse .env.example file and return environment variables."""
    env_vars = {}
    with open(env_example_path) as f:
        for line in f:
            line = line.strip()
            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, value = line.split("=", 1)
                env_vars[key.strip()] = value.strip()
    return env_vars


class TestSettingsBinding:
    """Test Settings model environment variable binding."""

    def test_server_host_and_port(self, env_example_vars: dict[str, str], monkeypatch):
        monkeypatch.setenv("BOARDMGMT_SERVER_HOST", env_example_vars["BOARDMGMT_SERVER_HOST"])
        monkeypatch.setenv("BOARDMGMT_SERVER_PORT", "9001")

        settings = Settings()
        assert settings.server_host == env_example_vars["BOARDMGMT_SERVER_HOST"]
        assert settings.server_port == 9001

    def test_log_level_binding(self, monkeypatch):
        monkeypatch.setenv("BOARDMGMT_LOG_LEVEL", "debug")
        assert Settings().log_level.upper() == "DEBUG"

    def test_database_url_binding(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db:5432/board")
        assert Settings().database_url == "postgresql+asyncpg://u:p@db:5432/board"

    def test_nested_jwt_binding(self, monkeypatch):
        monkeypatch.setenv("JWT__SECRET", "s" * 40)
        monkeypatch.setenv("JWT__EXPIRES_MINUTES", "15")

        settings = Settings()
        assert settings.jwt.secret == "s" * 40
        assert settings.jwt.expires_minutes == 15

    def test_nested_email_binding(self, monkeypatch):
        monkeypatch.setenv("EMAIL__PROVIDER", "smtp")
        monkeypatch.setenv("EMAIL__NOTIFY_ON_MESSAGE", "true")
        monkeypatch.setenv("SMTP__HOST", "mail.board.local")

        settings = Settings()
        assert settings.email.provider == "smtp"
        assert settings.email.notify_on_message is True
        assert settings.smtp.host == "mail.board.local"

    def test_example_file_documents_every_top_level_alias(self, env_example_vars: dict[str, str]):
        aliases = {field.alias for field in Settings.model_fields.values() if field.alias}
        assert aliases <= set(env_example_vars)


class TestConfigModels:
    def test_jwt_defaults(self):
        config = JwtConfig()
        assert config.issuer == "boardmgmt"
        assert config.expires_minutes == 480
        assert config.password_hash_rounds == 12

    def test_jwt_rejects_out_of_range_cost(self):
        with pytest.raises(ValueError):
            JwtConfig(password_hash_rounds=3)

    def test_graph_is_configured_needs_all_credentials(self):
        assert GraphConfig().is_configured is False
        assert GraphConfig(tenant_id="t", client_id="c", client_secret="s").is_configured is False
        assert GraphConfig(tenant_id="t", client_id="c", client_secret="s", mailbox_address="b@x").is_configured

    def test_zoom_is_configured(self):
        assert ZoomConfig().is_configured is False
        assert ZoomConfig(account_id="a", client_id="c", client_secret="s").is_configured is True

    def test_cors_defaults_allow_all(self):
        config = CORSConfig()
        assert config.origins == ["*"]
        assert config.allow_credentials is True
