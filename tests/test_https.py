"""Tests for the HTTPS redirect middleware."""

from wren.app import App
from wren.config import AppConfig
from wren.testing import TestClient


def _make_app(**overrides) -> App:
    app = App(AppConfig(rate_limit_enabled=False, **overrides))

    @app.get("/users")
    def users(ctx):
        return []

    return app


class TestHTTPSRedirect:
    async def test_forced_redirect_keeps_path_and_query(self) -> None:
        app = _make_app(force_https=True)
        async with TestClient(app) as client:
            response = await client.get("/users", query={"page": "2"})

        assert response.status == 301
        assert response.header("location") == "https://testserver/users?page=2"

    async def test_production_redirects(self) -> None:
        app = _make_app(env="production")
        async with TestClient(app) as client:
            response = await client.get("/users", headers={"host": "api.example.com"})

        assert response.status == 301
        assert response.header("location") == "https://api.example.com/users"

    async def test_https_scheme_passes(self) -> None:
        app = _make_app(force_https=True)
        async with TestClient(app, scheme="https") as client:
            response = await client.get("/users")

        assert response.status == 200

    async def test_forwarded_proto_passes(self) -> None:
        app = _make_app(force_https=True)
        async with TestClient(app) as client:
            response = await client.get("/users", headers={"x-forwarded-proto": "https"})

        assert response.status == 200

    async def test_development_does_not_redirect(self) -> None:
        app = _make_app()
        async with TestClient(app) as client:
            response = await client.get("/users")

        assert response.status == 200
