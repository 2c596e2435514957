"""Tests for wali.http.query."""

from wali.http.query import QueryParams


class TestQueryParams:
    def test_first_value(self) -> None:
        params = QueryParams("tag=a&tag=b&page=2")
        assert params["tag"] == "a"
        assert params.get_list("tag") == ["a", "b"]
        assert params.raw == "tag=a&tag=b&page=2"

    def test_bytes_input(self) -> None:
        assert QueryParams(b"q=hello+world")["q"] == "hello world"

    def test_blank_values_kept(self) -> None:
        params = QueryParams("flag=&x=1")
        assert params["flag"] == ""
        assert "flag" in params

    def test_get_int(self) -> None:
        params = QueryParams("page=3&bad=x")
        assert params.get_int("page") == 3
        assert params.get_int("bad", 1) == 1
        assert params.get_int("missing") is None

    def test_get_bool(self) -> None:
        params = QueryParams("a=true&b=0&c=ON")
        assert params.get_bool("a") is True
        assert params.get_bool("b") is False
        assert params.get_bool("c") is True
        assert params.get_bool("d", default=False) is False

    def test_to_dict(self) -> None:
        assert QueryParams("a=1&a=2&b=3").to_dict() == {"a": "1", "b": "3"}

    def test_empty(self) -> None:
        params = QueryParams()
        assert len(params) == 0
        assert params.get("x") is None
