"""Dispatch outcomes.

``Router.dispatch`` returns exactly one of these per request. The response
has already been sent by the time the caller sees the outcome; the value
only reports which path the dispatch took.
"""

from dataclasses import dataclass

from wali.http.response import Response


@dataclass(frozen=True, slots=True)
class Handled:
    """A route ran to completion (or raised an ``HTTPError`` it rendered)."""

    response: Response


@dataclass(frozen=True, slots=True)
class NotFound:
    """No route accepts the path under any method."""


@dataclass(frozen=True, slots=True)
class MethodNotAllowed:
    """The path matches, but only under *allowed*."""

    allowed: frozenset[str]


@dataclass(frozen=True, slots=True)
class ShortCircuited:
    """A before-hook returned ``False``; the handler never ran."""


@dataclass(frozen=True, slots=True)
class InternalError:
    """The dispatch failed; a 500 was written."""

    cause: BaseException


type DispatchOutcome = Handled | NotFound | MethodNotAllowed | ShortCircuited | InternalError
