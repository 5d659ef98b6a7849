"""Tests for wren.security.tokens: HS256 signed tokens."""

import jwt
import pytest

from wren.errors import ConfigurationError
from wren.security.tokens import TokenCodec

SECRET = "test-secret-0123456789abcdef0123456789"
OTHER_SECRET = "other-secret-0123456789abcdef0123456789abcdef0123456789abcdef"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def codec(clock: FakeClock) -> TokenCodec:
    return TokenCodec(SECRET, clock=clock)


class TestIssue:
    def test_three_segments(self, codec: TokenCodec) -> None:
        assert codec.issue({"sub": "u1"}).count(".") == 2

    def test_header(self, codec: TokenCodec) -> None:
        assert jwt.get_unverified_header(codec.issue({})) == {"typ": "JWT", "alg": "HS256"}

    def test_iat_and_exp(self, codec: TokenCodec) -> None:
        token = codec.issue({"sub": "u1"}, ttl=3600)
        claims = jwt.decode(token, options={"verify_signature": False})
        assert claims == {"sub": "u1", "iat": 1_700_000_000, "exp": 1_700_003_600}

    def test_default_ttl_one_day(self, codec: TokenCodec) -> None:
        claims = codec.verify(codec.issue({"sub": "u1"}))
        assert claims["exp"] - claims["iat"] == 86400

    def test_readable_by_other_jwt_consumers(self, codec: TokenCodec) -> None:
        token = codec.issue({"sub": "u1"}, ttl=3600)
        claims = jwt.decode(token, SECRET, algorithms=["HS256"], options={"verify_exp": False})
        assert claims["sub"] == "u1"

    def test_empty_secret(self) -> None:
        with pytest.raises(ConfigurationError):
            TokenCodec("")


class TestVerify:
    def test_roundtrip_claims(self, codec: TokenCodec) -> None:
        claims = codec.verify(codec.issue({"sub": "u1", "role": "admin"}, ttl=60))
        assert claims is not None
        assert claims["sub"] == "u1"
        assert claims["role"] == "admin"

    def test_valid_until_exp(self, codec: TokenCodec, clock: FakeClock) -> None:
        token = codec.issue({"sub": "u1"}, ttl=3600)
        clock.now += 3600
        assert codec.verify(token) is not None

    def test_expired(self, codec: TokenCodec, clock: FakeClock) -> None:
        token = codec.issue({"sub": "u1"}, ttl=3600)
        clock.now += 3601
        assert codec.verify(token) is None

    def test_issued_in_the_future_by_clock_still_verifies(
        self, codec: TokenCodec, clock: FakeClock
    ) -> None:
        clock.now = 4_000_000_000.0
        token = codec.issue({"sub": "u1"}, ttl=60)
        assert codec.verify(token) is not None

    def test_tampered_signature(self, codec: TokenCodec) -> None:
        token = codec.issue({"sub": "u1"})
        head, payload, sig = token.split(".")
        flipped = ("A" if sig[0] != "A" else "B") + sig[1:]
        assert codec.verify(f"{head}.{payload}.{flipped}") is None

    def test_tampered_payload(self, codec: TokenCodec) -> None:
        head, _, sig = codec.issue({"sub": "u1"}).split(".")
        forged = jwt.encode({"sub": "admin", "exp": 9_999_999_999}, OTHER_SECRET, algorithm="HS256")
        assert codec.verify(f"{head}.{forged.split('.')[1]}.{sig}") is None

    def test_other_secret(self, codec: TokenCodec, clock: FakeClock) -> None:
        other = TokenCodec(OTHER_SECRET, clock=clock)
        assert other.verify(codec.issue({"sub": "u1"})) is None

    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d"])
    def test_wrong_segment_count(self, codec: TokenCodec, token: str) -> None:
        assert codec.verify(token) is None

    def test_other_hmac_algorithm(self, clock: FakeClock) -> None:
        codec = TokenCodec(OTHER_SECRET, clock=clock)
        token = jwt.encode({"exp": 9_999_999_999}, OTHER_SECRET, algorithm="HS512")
        assert codec.verify(token) is None

    def test_unsigned_token(self, codec: TokenCodec) -> None:
        token = jwt.encode({"sub": "admin", "exp": 9_999_999_999}, None, algorithm="none")
        assert codec.verify(token) is None

    def test_missing_exp(self, codec: TokenCodec) -> None:
        token = jwt.encode({"sub": "u1"}, SECRET, algorithm="HS256")
        assert codec.verify(token) is None

    def test_non_numeric_exp(self, codec: TokenCodec) -> None:
        token = jwt.encode({"sub": "u1", "exp": "tomorrow"}, SECRET, algorithm="HS256")
        assert codec.verify(token) is None
