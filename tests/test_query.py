"""Tests for wren.http.query: immutable QueryParams."""

from wren.http.query import QueryParams


class TestQueryParams:
    def test_first_value(self) -> None:
        q = QueryParams(b"tag=a&tag=b&page=2")
        assert q["tag"] == "a"
        assert q.get_list("tag") == ["a", "b"]

    def test_blank_values_kept(self) -> None:
        assert QueryParams(b"q=")["q"] == ""

    def test_get_default(self) -> None:
        assert QueryParams(b"").get("missing", "x") == "x"

    def test_get_int(self) -> None:
        q = QueryParams(b"page=3&per=abc")
        assert q.get_int("page") == 3
        assert q.get_int("per", 10) == 10
        assert q.get_int("missing", 1) == 1

    def test_percent_decoding(self) -> None:
        assert QueryParams(b"email=a%40x.io&name=A+B")["email"] == "a@x.io"
        assert QueryParams(b"name=A+B")["name"] == "A B"

    def test_to_dict(self) -> None:
        assert QueryParams(b"a=1&a=2&b=3").to_dict() == {"a": "1", "b": "3"}
