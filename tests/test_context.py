"""Tests for wali.context: request-scoped ContextVars and g."""

import pytest

from wali.config import AppConfig
from wali.context import bind, config_var, g, get_config, get_db, get_request, get_response
from wali.http.request import Request
from wali.http.response import Response


class TestGetters:
    def test_outside_request(self) -> None:
        with pytest.raises(LookupError):
            get_request()
        with pytest.raises(LookupError):
            get_response()

    def test_get_db_unbound(self) -> None:
        with pytest.raises(LookupError, match="pass db= to App"):
            get_db()

    def test_get_config_defaults(self) -> None:
        assert get_config() == AppConfig()

    def test_get_config_bound(self) -> None:
        config = AppConfig(debug=True)
        token = config_var.set(config)
        try:
            assert get_config() is config
        finally:
            config_var.reset(token)


class TestBind:
    def test_binds_and_restores(self) -> None:
        request = Request.build("GET", "/")
        response = Response()
        with bind(request, response):
            assert get_request() is request
            assert get_response() is response
        with pytest.raises(LookupError):
            get_request()

    def test_nested_bind_restores_outer(self) -> None:
        outer = Request.build("GET", "/outer")
        inner = Request.build("GET", "/inner")
        with bind(outer, Response()):
            with bind(inner, Response()):
                assert get_request() is inner
            assert get_request() is outer


class TestRequestGlobals:
    def test_set_and_get(self) -> None:
        with bind(Request.build("GET", "/"), Response()):
            g.user = "ada"
            assert g.user == "ada"
            assert "user" in g
            assert g.get("missing", 1) == 1

    def test_missing_attribute(self) -> None:
        with bind(Request.build("GET", "/"), Response()):
            with pytest.raises(AttributeError, match="'g' has no attribute 'nope'"):
                _ = g.nope

    def test_delete(self) -> None:
        with bind(Request.build("GET", "/"), Response()):
            g.flag = True
            del g.flag
            assert "flag" not in g
            with pytest.raises(AttributeError):
                del g.flag

    def test_fresh_per_bind(self) -> None:
        with bind(Request.build("GET", "/"), Response()):
            g.value = 1
        with bind(Request.build("GET", "/"), Response()):
            assert "value" not in g

    def test_repr(self) -> None:
        with bind(Request.build("GET", "/"), Response()):
            g.x = 1
            assert repr(g) == "<g {'x': 1}>"
