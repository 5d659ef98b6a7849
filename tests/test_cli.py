"""Tests for the ``wren`` command line."""

import sys
import types
from unittest.mock import MagicMock, patch

import pytest

from wren.app import App
from wren.cli import main
from wren.cli._resolve import resolve_app
from wren.cli._token import parse_claims
from wren.config import AppConfig
from wren.security.tokens import TokenCodec


@pytest.fixture
def fake_app(monkeypatch: pytest.MonkeyPatch) -> App:
    """Register a fake module holding a wren App."""
    app = App(AppConfig(host="127.0.0.1", port=8000))

    @app.get("/users/:id")
    def show_user(ctx):
        return None

    @app.route("/users", methods=["POST"], name="create")
    def create_user(ctx):
        return None

    mod = types.ModuleType("_cli_test_app")
    mod.app = app  # type: ignore[attr-defined]
    mod.make_app = lambda: app  # type: ignore[attr-defined]
    mod.not_an_app = 42  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "_cli_test_app", mod)
    return app


@pytest.fixture
def no_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Run from an empty directory with no JWT settings in the environment."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("JWT_SECRET", raising=False)
    monkeypatch.delenv("JWT_TTL", raising=False)


class TestResolve:
    def test_module_and_attribute(self, fake_app: App) -> None:
        assert resolve_app("_cli_test_app:app") is fake_app

    def test_default_attribute(self, fake_app: App) -> None:
        assert resolve_app("_cli_test_app") is fake_app

    def test_factory(self, fake_app: App) -> None:
        assert resolve_app("_cli_test_app:make_app") is fake_app

    def test_not_an_app(self, fake_app: App) -> None:
        with pytest.raises(TypeError, match="not a wren.App"):
            resolve_app("_cli_test_app:not_an_app")


class TestRoutes:
    def test_lists_routes(self, fake_app: App, capsys) -> None:
        main(["routes", "_cli_test_app:app"])
        out = capsys.readouterr().out
        lines = out.splitlines()
        assert lines[0].split() == ["METHOD", "PATH", "HANDLER"]
        assert "GET" in lines[2] and "/users/:id" in lines[2] and "show_user" in lines[2]
        assert "create_user (create)" in lines[3]

    def test_empty(self, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        mod = types.ModuleType("_cli_empty_app")
        mod.app = App()  # type: ignore[attr-defined]
        monkeypatch.setitem(sys.modules, "_cli_empty_app", mod)
        main(["routes", "_cli_empty_app:app"])
        assert capsys.readouterr().out.strip() == "No routes registered."

    def test_bad_import(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "_no_such_module_anywhere:app"])
        assert exc_info.value.code == 1
        assert capsys.readouterr().err.startswith("Error:")


class TestRun:
    @patch("wren.server.dev.run_server")
    def test_defaults_from_config(self, mock_server: MagicMock, fake_app: App) -> None:
        main(["run", "_cli_test_app:app"])
        args, kwargs = mock_server.call_args
        assert args == (fake_app, "127.0.0.1", 8000)
        assert kwargs["reload"] is False

    @patch("wren.server.dev.run_server")
    def test_overrides(self, mock_server: MagicMock, fake_app: App) -> None:
        main(["run", "_cli_test_app:app", "--host", "0.0.0.0", "--port", "3000", "--reload"])
        args, kwargs = mock_server.call_args
        assert args[1:] == ("0.0.0.0", 3000)
        assert kwargs["reload"] is True
        assert kwargs["app_path"] == "_cli_test_app:app"


class TestToken:
    def test_issues_verifiable_token(self, no_env, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        monkeypatch.setenv("JWT_SECRET", "cli-secret")
        main(["token", "--sub", "u1", "--claim", "role=admin", "--ttl", "60"])
        token = capsys.readouterr().out.strip()

        claims = TokenCodec("cli-secret").verify(token)
        assert claims is not None
        assert claims["sub"] == "u1"
        assert claims["role"] == "admin"
        assert claims["exp"] - claims["iat"] == 60

    def test_secret_from_env_file(self, no_env, tmp_path, capsys) -> None:
        (tmp_path / ".env").write_text('JWT_SECRET="file-secret"\nJWT_TTL=120\n')
        main(["token", "--sub", "u2"])
        claims = TokenCodec("file-secret").verify(capsys.readouterr().out.strip())
        assert claims["exp"] - claims["iat"] == 120

    def test_missing_secret(self, no_env, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["token", "--sub", "u1"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_bad_claim(self, no_env, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        monkeypatch.setenv("JWT_SECRET", "s")
        with pytest.raises(SystemExit):
            main(["token", "--sub", "u1", "--claim", "novalue"])
        assert "KEY=VALUE" in capsys.readouterr().err

    def test_parse_claims(self) -> None:
        assert parse_claims(["a=1", "b=x=y"]) == {"a": "1", "b": "x=y"}
        with pytest.raises(ValueError):
            parse_claims(["=v"])


class TestNoCommand:
    def test_prints_help(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "usage: wren" in capsys.readouterr().out
