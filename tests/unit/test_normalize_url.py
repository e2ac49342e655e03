"""
Tests for URL normalization.
"""

from __future__ import annotations

import pytest

from redirector.components.redirects import ParsedURL, normalize_url


class TestNormalizeUrl:
    def test_bare_path(self) -> None:
        assert normalize_url("/p/shoes/") == ParsedURL(host="", path="/p/shoes/", query="")

    def test_path_with_query(self) -> None:
        parsed = normalize_url("/p/shoes?a=1&b=2")
        assert parsed.host == ""
        assert parsed.path == "/p/shoes"
        assert parsed.query == "?a=1&b=2"
        assert parsed.path_with_query == "/p/shoes?a=1&b=2"

    def test_absolute_url_reports_host(self) -> None:
        parsed = normalize_url("https://www.example.com/p/shoes?x=1")
        assert parsed == ParsedURL(host="www.example.com", path="/p/shoes", query="?x=1")

    def test_schemeless_url_reports_host(self) -> None:
        parsed = normalize_url("//cdn.example.com/a/b")
        assert parsed.host == "cdn.example.com"
        assert parsed.path == "/a/b"

    def test_port_is_part_of_host(self) -> None:
        assert normalize_url("http://localhost:9926/x").host == "localhost:9926"

    def test_relative_path_gets_leading_slash(self) -> None:
        assert normalize_url("xxx").path == "/xxx"

    def test_dot_segments_are_resolved(self) -> None:
        assert normalize_url("/a/b/../c").path == "/a/c"

    def test_empty_path_becomes_root(self) -> None:
        assert normalize_url("https://www.example.com").path == "/"

    def test_fragment_is_dropped(self) -> None:
        parsed = normalize_url("/p/shoes?x=1#top")
        assert parsed.path_with_query == "/p/shoes?x=1"

    @pytest.mark.parametrize("url", ["/p/shoes", "/p/shoes/?a=1", "/"])
    def test_idempotent_on_normalized_input(self, url: str) -> None:
        once = normalize_url(url).path_with_query
        assert normalize_url(once).path_with_query == once
