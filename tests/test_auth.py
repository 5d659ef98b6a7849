"""Tests for bearer-token authentication."""

import pytest

from wren.errors import Unauthorized
from wren.http.headers import Headers
from wren.security.auth import authenticate, bearer_token
from wren.security.tokens import TokenCodec


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec("auth-secret")


class TestBearerToken:
    def test_extracts_token(self) -> None:
        assert bearer_token({"authorization": "Bearer abc.def.ghi"}) == "abc.def.ghi"

    def test_scheme_case_insensitive(self) -> None:
        assert bearer_token({"authorization": "bearer tok"}) == "tok"

    def test_headers_object(self) -> None:
        headers = Headers.from_dict({"Authorization": "Bearer tok"})
        assert bearer_token(headers) == "tok"

    def test_missing(self) -> None:
        assert bearer_token({}) is None

    @pytest.mark.parametrize("value", ["Basic dXNlcjpwdw==", "Bearer", "Bearer   ", "tok"])
    def test_malformed(self, value: str) -> None:
        assert bearer_token({"authorization": value}) is None


class TestAuthenticate:
    def test_valid(self, codec: TokenCodec) -> None:
        token = codec.issue({"sub": "42"})
        claims = authenticate({"authorization": f"Bearer {token}"}, codec)
        assert claims["sub"] == "42"

    def test_missing_header(self, codec: TokenCodec) -> None:
        with pytest.raises(Unauthorized) as exc_info:
            authenticate({}, codec)
        assert exc_info.value.status == 401
        assert exc_info.value.detail == "Unauthorized"

    def test_malformed_header(self, codec: TokenCodec) -> None:
        with pytest.raises(Unauthorized) as exc_info:
            authenticate({"authorization": "Token xyz"}, codec)
        assert exc_info.value.detail == "Unauthorized"

    def test_invalid_token(self, codec: TokenCodec) -> None:
        with pytest.raises(Unauthorized) as exc_info:
            authenticate({"authorization": "Bearer not.a.token"}, codec)
        assert exc_info.value.detail == "Invalid or expired token"

    def test_expired_token(self) -> None:
        now = [1000.0]
        codec = TokenCodec("k", clock=lambda: now[0])
        token = codec.issue({"sub": "1"}, ttl=10)
        now[0] = 1011.0
        with pytest.raises(Unauthorized, match="Invalid or expired token"):
            authenticate({"authorization": f"Bearer {token}"}, codec)
