"""Tests for wren.routing.pattern: ``:name`` template compilation."""

import pytest

from wren.errors import ConfigurationError
from wren.routing.pattern import compile_path


class TestCompilePath:
    def test_static(self) -> None:
        matcher = compile_path("/users")
        assert matcher.names == ()
        assert matcher.is_static
        assert matcher.match("/users") == {}

    def test_single_param(self) -> None:
        matcher = compile_path("/users/:id")
        assert matcher.names == ("id",)
        assert matcher.match("/users/42") == {"id": "42"}

    def test_multiple_params_in_order(self) -> None:
        matcher = compile_path("/posts/:post_id/comments/:comment_id")
        assert matcher.names == ("post_id", "comment_id")
        assert matcher.match("/posts/7/comments/99") == {"post_id": "7", "comment_id": "99"}

    def test_param_does_not_cross_slash(self) -> None:
        matcher = compile_path("/users/:id")
        assert matcher.match("/users/42/edit") is None

    def test_param_requires_a_character(self) -> None:
        assert compile_path("/users/:id").match("/users/") is None

    def test_whole_path_must_match(self) -> None:
        matcher = compile_path("/users")
        assert matcher.match("/users/extra") is None
        assert matcher.match("/api/users") is None

    def test_literal_dot_is_escaped(self) -> None:
        matcher = compile_path("/files/report.json")
        assert matcher.match("/files/report.json") == {}
        assert matcher.match("/files/reportXjson") is None

    def test_param_with_literal_suffix(self) -> None:
        matcher = compile_path("/files/:name.json")
        assert matcher.match("/files/report.json") == {"name": "report"}

    def test_colon_without_identifier_is_literal(self) -> None:
        matcher = compile_path("/time/12:30")
        assert matcher.names == ()
        assert matcher.match("/time/12:30") == {}

    def test_duplicate_placeholder_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Duplicate placeholder ':id'"):
            compile_path("/users/:id/friends/:id")

    def test_regex_is_anchored_named_groups(self) -> None:
        matcher = compile_path("/users/:id")
        assert matcher.regex.pattern == r"/users/(?P<id>[^/]+)"
