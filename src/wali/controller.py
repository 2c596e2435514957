"""Controller base class.

Controllers group related actions. The router builds a fresh instance for
every dispatch and calls the action with the captured path params::

    class UserController(Controller):
        def show(self, user_id):
            user = User().find(user_id)
            if user is None:
                return self.error("User not found", 404)
            return self.success(user)

    router.get("/users/{id}", (UserController, "show"))
"""

from typing import Any

from wali.context import get_config, get_request, get_response
from wali.http.request import Request
from wali.http.response import Response
from wali.templating.environment import render_template


class Controller:
    """Base controller with JSON, redirect and template helpers.

    Every helper writes to the current response and returns it, so an
    action can simply ``return self.json(...)``.
    """

    @property
    def request(self) -> Request:
        return get_request()

    @property
    def response(self) -> Response:
        return get_response()

    def json(self, data: Any, status: int = 200) -> Response:
        return self.response.json(data, status)

    def success(self, data: Any = None, message: str = "OK", status: int = 200) -> Response:
        """Standard success envelope: ``{"status", "message", "data"}``."""
        return self.json(
            {
                "status": "success",
                "message": message,
                "data": data if data is not None else [],
            },
            status,
        )

    def error(self, message: str = "Error", status: int = 400) -> Response:
        """Standard error envelope: ``{"status", "message"}``."""
        return self.json({"status": "error", "message": message}, status)

    def redirect(self, url: str, status: int = 302) -> Response:
        self.response.redirect(url, status)
        return self.response

    def render(self, template: str, **context: Any) -> Response:
        """Render a kida template from ``AppConfig.template_dir`` as HTML."""
        return self.response.html(render_template(get_config(), template, context))
