"""API: a JSON REST API over SQLite.

CRUD for an "items" resource. Demonstrates controllers with the
success/error envelopes, a Model with a record dataclass, route params,
request input from JSON or forms, a token-checking before-hook, and
CORSMiddleware for cross-origin consumers.

Run with any ASGI server:
    cd examples/api && <asgi-server> app:app
"""

from dataclasses import dataclass

from wali import App, AppConfig, Controller, Router, get_request, get_response
from wali.data import Model, get_db
from wali.middleware import BaseMiddleware, CORSConfig, CORSMiddleware

SCHEMA = """
CREATE TABLE IF NOT EXISTS items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    done INTEGER NOT NULL DEFAULT 0
);
"""

API_TOKEN = "secret-token"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Item:
    id: int
    title: str
    done: bool


class Items(Model):
    table = "items"
    record = Item


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


class RequireToken(BaseMiddleware):
    """Reject writes without ``Authorization: Bearer <token>``."""

    def before(self, params: tuple[str, ...]) -> bool:  # noqa: ARG002
        if get_request().header("authorization") != f"Bearer {API_TOKEN}":
            get_response().set_status(401).json({"status": "error", "message": "Unauthorized"})
            return False
        return True


# ---------------------------------------------------------------------------
# Controllers
# ---------------------------------------------------------------------------


class ItemController(Controller):
    def index(self):
        query = self.request.query
        limit = min(max(query.get_int("limit", 50) or 50, 1), 100)
        offset = max(query.get_int("offset", 0) or 0, 0)
        items = Items().query().order_by("id").limit(limit).offset(offset).get()
        return self.success(items, "Items listed")

    def show(self, item_id):
        item = Items().find(item_id)
        if item is None:
            return self.error("Item not found", 404)
        return self.success(item)

    def store(self):
        title = self.request.input("title")
        if not title:
            return self.error("title is required", 422)
        item_id = Items().insert({"title": title, "done": False})
        return self.success(Items().find(item_id), "Item created", 201)

    def update(self, item_id):
        changes = self.request.only(["title", "done"])
        if not Items().update(item_id, changes) and Items().find(item_id) is None:
            return self.error("Item not found", 404)
        return self.success(Items().find(item_id), "Item updated")

    def destroy(self, item_id):
        if not Items().delete(item_id):
            return self.error("Item not found", 404)
        return self.success(message="Item deleted")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

router = Router()
router.middleware.register("auth", RequireToken)
router.controllers.register("items", ItemController)

router.before(
    CORSMiddleware.configure(
        CORSConfig(
            allow_origins=("*",),
            allow_methods=("GET", "POST", "PUT", "DELETE", "OPTIONS"),
            allow_headers=("Content-Type", "Authorization"),
        )
    )
)

router.get("/api/items", "items@index")
router.get("/api/items/{id}", "items@show")
router.post("/api/items", "items@store", before=["auth"])
router.put("/api/items/{id}", "items@update", before=["auth"])
router.delete("/api/items/{id}", "items@destroy", before=["auth"])
router.options("/api/items", lambda: None)
router.options("/api/items/{id}", lambda _id: None)


@router.route("/health")
def health():
    return {"ok": True, "items": Items().query().count()}


app = App(router, AppConfig.from_env(), db="sqlite:///:memory:")


@app.on_startup
def create_schema() -> None:
    get_db().execute_script(SCHEMA)

