"""Route templates compiled into single-path matchers.

A template such as ``/users/{id}/posts/{slug}`` compiles to an anchored
regex where each placeholder captures exactly one path segment. Captures
are returned positionally, in template order, as raw strings.
"""

import re
from dataclasses import dataclass

from wali.errors import ConfigurationError

# {name}: any non-empty name without braces or slashes
_PLACEHOLDER_RE = re.compile(r"\{([^{}/]+)\}")

# One or more non-slash characters
_SEGMENT = r"([^/]+)"


def normalize_path(path: str) -> str:
    """Normalize a template or request path.

    Leading and trailing slashes are collapsed so the result always starts
    with exactly one ``/`` and never ends with one. The root stays ``/``.

    Examples::

        normalize_path("users/")    -> "/users"
        normalize_path("//a/b//")   -> "/a/b"
        normalize_path("")          -> "/"
    """
    stripped = path.strip("/")
    if not stripped:
        return "/"
    return f"/{stripped}"


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Outcome of testing one path against one template."""

    matched: bool
    params: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return self.matched


NO_MATCH = MatchResult(matched=False)


@dataclass(frozen=True, slots=True)
class Pattern:
    """A compiled route template.

    Usage::

        pattern = compile_template("/users/{id}")
        pattern.match("/users/42")    # MatchResult(matched=True, params=("42",))
        pattern.match("/users/42/x")  # MatchResult(matched=False, params=())
    """

    template: str
    regex: re.Pattern[str]
    names: tuple[str, ...]

    def match(self, path: str) -> MatchResult:
        """Test *path* (normalized first) against the template."""
        m = self.regex.match(normalize_path(path))
        if m is None:
            return NO_MATCH
        return MatchResult(matched=True, params=m.groups())


def compile_template(template: str) -> Pattern:
    """Compile a ``{name}`` template into a :class:`Pattern`.

    Raises ``ConfigurationError`` for braces that do not form a valid
    placeholder (``/users/{``, ``/users/{}``, ``/users/{a/b}``).
    Names are only labels, so ``{user-id}`` and ``{1}`` are accepted.
    """
    normalized = normalize_path(template)
    names: list[str] = []
    parts: list[str] = []
    pos = 0

    for m in _PLACEHOLDER_RE.finditer(normalized):
        literal = normalized[pos : m.start()]
        _check_literal(literal, template)
        parts.append(re.escape(literal))
        parts.append(_SEGMENT)
        names.append(m.group(1))
        pos = m.end()

    tail = normalized[pos:]
    _check_literal(tail, template)
    parts.append(re.escape(tail))

    return Pattern(
        template=normalized,
        regex=re.compile("^" + "".join(parts) + "$"),
        names=tuple(names),
    )


def _check_literal(literal: str, template: str) -> None:
    if "{" in literal or "}" in literal:
        msg = (
            f"Invalid route template {template!r}: placeholders must look like "
            "{name} with a non-empty name and no slash."
        )
        raise ConfigurationError(msg)
