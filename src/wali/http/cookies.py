"""Cookie parsing and Set-Cookie serialization.

The read side (``parse_cookies``) feeds ``Request.cookies``; the write side
(``SetCookie``) is attached through ``Response.set_cookie()``.
"""

from dataclasses import dataclass

from wali.errors import ConfigurationError

_SAMESITE = ("lax", "strict", "none")


def parse_cookies(header: str | None) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Surrounding double quotes are stripped from values. Returns an empty
    dict for empty or missing headers.
    """
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        name, sep, value = pair.strip().partition("=")
        if not sep or not name:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        cookies.setdefault(name.strip(), value)
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A ``Set-Cookie`` directive attached to a Response."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str | None = "lax"

    def __post_init__(self) -> None:
        if self.samesite is not None and self.samesite.lower() not in _SAMESITE:
            msg = f"SameSite must be one of {_SAMESITE}, got {self.samesite!r}"
            raise ConfigurationError(msg)

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value."""
        parts = [f"{self.name}={self.value}"]
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.secure or (self.samesite or "").lower() == "none":
            parts.append("Secure")
        if self.httponly:
            parts.append("HttpOnly")
        if self.samesite:
            parts.append(f"SameSite={self.samesite.capitalize()}")
        return "; ".join(parts)
