"""Tests for CORSMiddleware."""

from wali.http.request import Request
from wali.http.response import BufferedOutput, Response, SentResponse
from wali.middleware import CORSConfig, CORSMiddleware
from wali.routing.router import Router


def _router(config: CORSConfig) -> Router:
    router = Router()
    router.before(CORSMiddleware.configure(config))
    router.any("/api/items", lambda: {"items": []})
    return router


def _send(router: Router, method: str, headers: dict[str, str] | None = None) -> SentResponse:
    output = BufferedOutput()
    router.dispatch(Request.build(method, "/api/items", headers=headers), Response(output=output))
    assert output.sent is not None
    return output.sent


class TestSimpleRequests:
    def test_allowed_origin(self) -> None:
        router = _router(CORSConfig(allow_origins=("https://app.example",)))
        sent = _send(router, "GET", {"Origin": "https://app.example"})
        assert sent.status == 200
        assert sent.header("Access-Control-Allow-Origin") == "https://app.example"
        assert sent.header("Vary") == "Origin"
        assert sent.text == '{"items":[]}'

    def test_disallowed_origin(self) -> None:
        router = _router(CORSConfig(allow_origins=("https://app.example",)))
        sent = _send(router, "GET", {"Origin": "https://evil.example"})
        assert sent.status == 200
        assert sent.header("Access-Control-Allow-Origin") is None

    def test_no_origin(self) -> None:
        sent = _send(_router(CORSConfig(allow_origins=("*",))), "GET")
        assert sent.header("Access-Control-Allow-Origin") is None

    def test_wildcard(self) -> None:
        router = _router(CORSConfig(allow_origins=("*",)))
        sent = _send(router, "GET", {"Origin": "https://x.example"})
        assert sent.header("Access-Control-Allow-Origin") == "*"
        assert sent.header("Vary") is None

    def test_wildcard_with_credentials_echoes_origin(self) -> None:
        config = CORSConfig(allow_origins=("*",), allow_credentials=True)
        sent = _send(_router(config), "GET", {"Origin": "https://x.example"})
        assert sent.header("Access-Control-Allow-Origin") == "https://x.example"
        assert sent.header("Access-Control-Allow-Credentials") == "true"

    def test_expose_headers(self) -> None:
        config = CORSConfig(allow_origins=("*",), expose_headers=("X-Total", "X-Page"))
        sent = _send(_router(config), "GET", {"Origin": "https://x.example"})
        assert sent.header("Access-Control-Expose-Headers") == "X-Total, X-Page"

    def test_default_config_allows_nothing(self) -> None:
        router = Router()
        router.before(CORSMiddleware)
        router.get("/api/items", lambda: "ok")
        sent = _send(router, "GET", {"Origin": "https://x.example"})
        assert sent.header("Access-Control-Allow-Origin") is None


class TestPreflight:
    def test_preflight_short_circuits(self) -> None:
        config = CORSConfig(
            allow_origins=("https://app.example",),
            allow_methods=("GET", "POST"),
            allow_headers=("Content-Type",),
            max_age=60,
        )
        sent = _send(
            _router(config),
            "OPTIONS",
            {"Origin": "https://app.example", "Access-Control-Request-Method": "POST"},
        )
        assert sent.status == 204
        assert sent.body == b""
        assert sent.header("Access-Control-Allow-Methods") == "GET, POST"
        assert sent.header("Access-Control-Allow-Headers") == "Content-Type"
        assert sent.header("Access-Control-Max-Age") == "60"

    def test_options_without_request_method(self) -> None:
        config = CORSConfig(allow_origins=("*",))
        sent = _send(_router(config), "OPTIONS", {"Origin": "https://x.example"})
        assert sent.status == 204
        assert sent.header("Access-Control-Allow-Methods") is None

    def test_options_from_disallowed_origin_reaches_handler(self) -> None:
        config = CORSConfig(allow_origins=("https://app.example",))
        sent = _send(_router(config), "OPTIONS", {"Origin": "https://evil.example"})
        assert sent.status == 200
        assert sent.text == '{"items":[]}'
