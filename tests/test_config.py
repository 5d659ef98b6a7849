"""Tests for AppConfig and .env loading."""

import pytest

from wren.config import AppConfig, load_env_file
from wren.errors import ConfigurationError


class TestDefaults:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.port == 8000
        assert config.env == "development"
        assert config.token_ttl == 86400
        assert config.rate_limit_requests == 100
        assert config.rate_limit_window == 60
        assert config.cors_origins == ("*",)
        assert not config.redirect_to_https

    def test_production_redirects(self) -> None:
        assert AppConfig(env="Production").redirect_to_https

    def test_force_https(self) -> None:
        assert AppConfig(force_https=True).redirect_to_https

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            AppConfig().port = 1  # type: ignore[misc]


class TestLoadEnvFile:
    def test_parses_values(self, tmp_path) -> None:
        env = tmp_path / ".env"
        env.write_text(
            "# comment\n"
            "\n"
            "JWT_SECRET=abc\n"
            'DATABASE_URL="sqlite:///app.db"\n'
            "export APP_ENV='production'\n"
            "NOT_A_PAIR\n"
            "EMPTY=\n"
        )
        assert load_env_file(env) == {
            "JWT_SECRET": "abc",
            "DATABASE_URL": "sqlite:///app.db",
            "APP_ENV": "production",
            "EMPTY": "",
        }

    def test_later_wins(self, tmp_path) -> None:
        env = tmp_path / ".env"
        env.write_text("A=1\nA=2\n")
        assert load_env_file(env) == {"A": "2"}

    def test_inline_comments(self, tmp_path) -> None:
        env = tmp_path / ".env"
        env.write_text(
            "JWT_SECRET=abc # prod\n"
            'PASSWORD="a # b"\n'
            "APP_ENV='production'  # deployed\n"
            "CORS_ORIGIN=https://a.io#frag\n"
        )
        assert load_env_file(env) == {
            "JWT_SECRET": "abc",
            "PASSWORD": "a # b",
            "APP_ENV": "production",
            "CORS_ORIGIN": "https://a.io#frag",
        }


class TestFromEnv:
    def test_from_file(self, tmp_path) -> None:
        env = tmp_path / ".env"
        env.write_text("APP_PORT=9000\nJWT_SECRET=s\nRATE_LIMIT_ENABLED=false\n")
        config = AppConfig.from_env(env_file=env, environ={})
        assert config.port == 9000
        assert config.secret_key == "s"
        assert config.rate_limit_enabled is False

    def test_environment_wins(self, tmp_path) -> None:
        env = tmp_path / ".env"
        env.write_text("JWT_SECRET=from-file\n")
        config = AppConfig.from_env(env_file=env, environ={"JWT_SECRET": "from-env"})
        assert config.secret_key == "from-env"

    def test_missing_file_is_fine(self, tmp_path) -> None:
        config = AppConfig.from_env(env_file=tmp_path / "nope.env", environ={"APP_DEBUG": "1"})
        assert config.debug is True

    def test_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("JWT_TTL", "120")
        assert AppConfig.from_env(env_file=None).token_ttl == 120

    def test_cors_list(self) -> None:
        config = AppConfig.from_env(
            env_file=None, environ={"CORS_ORIGIN": "https://a.io, https://b.io,"}
        )
        assert config.cors_origins == ("https://a.io", "https://b.io")

    def test_empty_optional_is_none(self) -> None:
        config = AppConfig.from_env(env_file=None, environ={"DATABASE_URL": ""})
        assert config.database_url is None

    def test_log_level_lowercased(self) -> None:
        assert AppConfig.from_env(env_file=None, environ={"LOG_LEVEL": "DEBUG"}).log_level == "debug"

    @pytest.mark.parametrize(
        ("var", "value"),
        [("APP_PORT", "eighty"), ("APP_DEBUG", "maybe"), ("JWT_TTL", "1.5")],
    )
    def test_bad_value(self, var: str, value: str) -> None:
        with pytest.raises(ConfigurationError, match=var):
            AppConfig.from_env(env_file=None, environ={var: value})
