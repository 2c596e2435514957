"""Tests for wali.controller: response helpers on the base controller."""

import sys
from pathlib import Path

import pytest

from wali.config import AppConfig
from wali.context import config_var
from wali.controller import Controller
from wali.errors import ConfigurationError
from wali.http.request import Request
from wali.http.response import BufferedOutput, Response
from wali.routing.router import Router
from wali.templating import environment

TEMPLATES_DIR = Path(__file__).parent / "templates"


class NoteController(Controller):
    def index(self) -> Response:
        return self.success([{"id": 1}], "Listed")

    def empty(self) -> Response:
        return self.success()

    def show(self, note_id: str) -> Response:
        if note_id != "1":
            return self.error("Note not found", 404)
        return self.json({"id": int(note_id)})

    def echo(self) -> Response:
        return self.json({"q": self.request.query.get("q")})

    def leave(self) -> Response:
        return self.redirect("/notes", 303)

    def page(self) -> Response:
        return self.render("greeting.html", name="<ada>")


def _call(method: str, path: str, action: str) -> tuple[int, str, dict[str, str]]:
    router = Router()
    router.add(method, path, (NoteController, action))
    output = BufferedOutput()
    router.dispatch(Request.build(method, path.replace("{id}", "1")), Response(output=output))
    sent = output.sent
    assert sent is not None
    return sent.status, sent.text, dict(sent.headers)


class TestJsonHelpers:
    def test_success_envelope(self) -> None:
        status, body, headers = _call("GET", "/notes", "index")
        assert status == 200
        assert body == '{"status":"success","message":"Listed","data":[{"id":1}]}'
        assert headers["Content-Type"] == "application/json"

    def test_success_defaults(self) -> None:
        _, body, _ = _call("GET", "/notes", "empty")
        assert body == '{"status":"success","message":"OK","data":[]}'

    def test_json(self) -> None:
        _, body, _ = _call("GET", "/notes/{id}", "show")
        assert body == '{"id":1}'

    def test_error_envelope(self) -> None:
        router = Router()
        router.get("/notes/{id}", (NoteController, "show"))
        output = BufferedOutput()
        router.dispatch(Request.build("GET", "/notes/2"), Response(output=output))
        assert output.sent is not None
        assert output.sent.status == 404
        assert output.sent.text == '{"status":"error","message":"Note not found"}'

    def test_request_property(self) -> None:
        router = Router()
        router.get("/echo", (NoteController, "echo"))
        output = BufferedOutput()
        router.dispatch(Request.build("GET", "/echo?q=hi"), Response(output=output))
        assert output.sent is not None
        assert output.sent.text == '{"q":"hi"}'

    def test_redirect(self) -> None:
        status, body, headers = _call("POST", "/leave", "leave")
        assert status == 303
        assert body == ""
        assert headers["Location"] == "/notes"


class TestRender:
    def test_missing_engine(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(environment, "_envs", {})
        monkeypatch.setitem(sys.modules, "kida", None)
        with pytest.raises(ConfigurationError, match=r"pip install wali\[templates\]"):
            environment.create_environment(AppConfig(template_dir=TEMPLATES_DIR))

    def test_render_template(self) -> None:
        pytest.importorskip("kida")
        token = config_var.set(AppConfig(template_dir=TEMPLATES_DIR))
        try:
            status, body, headers = _call("GET", "/page", "page")
        finally:
            config_var.reset(token)
        assert status == 200
        assert "Hello, &lt;ada&gt;!" in body
        assert headers["Content-Type"].startswith("text/html")

    def test_environment_cached(self) -> None:
        pytest.importorskip("kida")
        config = AppConfig(template_dir=TEMPLATES_DIR)
        assert environment.get_environment(config) is environment.get_environment(config)
