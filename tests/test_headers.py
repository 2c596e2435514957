"""Tests for wali.http.headers."""

from wali.http.headers import Headers


class TestHeaders:
    def test_case_insensitive_lookup(self) -> None:
        headers = Headers([("Content-Type", "text/html")])
        assert headers["content-type"] == "text/html"
        assert headers["CONTENT-TYPE"] == "text/html"
        assert "Content-Type" in headers

    def test_first_value_wins(self) -> None:
        headers = Headers([("Accept", "a"), ("accept", "b")])
        assert headers["accept"] == "a"
        assert headers.get_list("ACCEPT") == ["a", "b"]
        assert len(headers) == 1

    def test_get_default(self) -> None:
        assert Headers().get("x-missing", "fallback") == "fallback"

    def test_from_asgi(self) -> None:
        headers = Headers.from_asgi([(b"x-token", b"abc"), (b"host", b"example.com")])
        assert list(headers) == ["x-token", "host"]
        assert headers["X-Token"] == "abc"

    def test_from_mapping(self) -> None:
        headers = Headers.from_mapping({"X-One": "1"})
        assert dict(headers) == {"x-one": "1"}

    def test_non_string_key_not_contained(self) -> None:
        assert 1 not in Headers([("a", "b")])
