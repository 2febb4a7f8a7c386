"""Tests for junction.routing.pattern — path pattern compilation."""

import pytest

from junction.errors import ConfigurationError, UnresolvableUrl
from junction.routing.pattern import (
    Literal,
    Param,
    compile_pattern,
    join_paths,
    normalize_path,
    parse_pattern,
)


class TestParsePattern:
    def test_static(self) -> None:
        assert parse_pattern("/users/") == (Literal("users"),)

    def test_colon_param(self) -> None:
        parts = parse_pattern("users/:id")
        assert parts == (Literal("users/"), Param("id", r"[^/]+"))

    def test_brace_param_with_converter(self) -> None:
        parts = parse_pattern("users/{id:int}")
        assert parts[1] == Param("id", r"\d+")

    def test_optional_param(self) -> None:
        parts = parse_pattern("posts/{page?}")
        assert parts[1] == Param("page", r"[^/]+", optional=True)

    def test_raw_named_group(self) -> None:
        parts = parse_pattern(r"users/(?P<id>\d+)")
        assert parts[1] == Param("id", r"\d+")

    def test_rejects_angle_bracket_params(self) -> None:
        with pytest.raises(ConfigurationError, match="<param>"):
            parse_pattern("/share/<slug>")

    def test_rejects_duplicate_names(self) -> None:
        with pytest.raises(ConfigurationError, match="Duplicate parameter"):
            parse_pattern("a/{id}/b/:id")

    def test_rejects_unknown_converter(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown converter"):
            parse_pattern("a/{id:uuid4}")

    def test_rejects_unclosed_brace(self) -> None:
        with pytest.raises(ConfigurationError, match="Unclosed"):
            parse_pattern("a/{id")

    def test_colon_needs_a_name(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_pattern("a/:")


class TestMatch:
    def test_colon_param_match(self) -> None:
        assert compile_pattern("/users/:id").match("/users/42") == {"id": "42"}

    def test_slashes_are_insignificant(self) -> None:
        assert compile_pattern("users/:id/").match("users/42/") == {"id": "42"}

    def test_int_converter(self) -> None:
        pattern = compile_pattern("users/{id:int}")
        assert pattern.match("users/7") == {"id": "7"}
        assert pattern.match("users/abc") is None

    def test_segment_does_not_cross_slash(self) -> None:
        assert compile_pattern("users/:id").match("users/1/posts") is None

    def test_path_converter_crosses_slash(self) -> None:
        assert compile_pattern("files/{p:path}").match("files/a/b.txt") == {"p": "a/b.txt"}

    def test_optional_param_absent(self) -> None:
        pattern = compile_pattern("posts/{page?}")
        assert pattern.match("posts") == {}
        assert pattern.match("posts/3") == {"page": "3"}

    def test_literal_text_is_escaped(self) -> None:
        pattern = compile_pattern("feed.xml")
        assert pattern.match("feed.xml") == {}
        assert pattern.match("feedaxml") is None

    def test_raw_group_match(self) -> None:
        pattern = compile_pattern(r"orders/(?P<id>\d+)")
        assert pattern.match("orders/12") == {"id": "12"}
        assert pattern.match("orders/x") is None

    def test_param_names(self) -> None:
        pattern = compile_pattern("a/{x}/b/{y?}")
        assert pattern.param_names == ("x", "y")


class TestBuild:
    def test_substitutes_params(self) -> None:
        assert compile_pattern("users/{id:int}/posts/:slug").build({"id": 4, "slug": "hi"}) == "users/4/posts/hi"

    def test_missing_param_raises(self) -> None:
        with pytest.raises(UnresolvableUrl, match="requires parameter 'id'"):
            compile_pattern("users/{id}").build({}, route_name="users.show")

    def test_optional_param_dropped_with_slash(self) -> None:
        assert compile_pattern("posts/{page?}").build({}) == "posts"

    def test_values_are_quoted(self) -> None:
        assert compile_pattern("tags/{name}").build({"name": "a b/c"}) == "tags/a%20b%2Fc"

    def test_path_values_keep_slashes(self) -> None:
        assert compile_pattern("files/{p:path}").build({"p": "a/b"}) == "files/a/b"


class TestPathHelpers:
    def test_normalize(self) -> None:
        assert normalize_path("/users/") == "users"

    def test_join(self) -> None:
        assert join_paths("api/", "/v1", "", "admin") == "api/v1/admin"

    def test_join_nothing(self) -> None:
        assert join_paths("", "/") == ""
