"""Row-to-dataclass mapping with type coercion.

``Model`` classes that declare a ``record`` dataclass get their rows back
as instances of it instead of dicts. Uses dataclass field introspection,
no metaclass magic.

SQLite is loosely typed: a column declared INTEGER can hold ``"45"``, and
booleans come back as ``0``/``1``. Fields annotated as ``int``, ``float``,
``bool`` or ``str`` (optionally ``| None``) are coerced to match.
"""

import dataclasses
import functools
import types
from collections.abc import Callable, Iterable, Mapping
from typing import Any, get_args, get_origin, get_type_hints

_FALSY_STRINGS = frozenset({"", "0", "false", "no", "off"})


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSY_STRINGS
    return bool(value)


# Scalar types we know how to coerce from driver values.
_COERCIBLE: dict[type, Callable[[Any], Any]] = {
    int: lambda v: int(v) if v != "" else 0,
    float: lambda v: float(v) if v != "" else 0.0,
    bool: _to_bool,
    str: str,
}


@functools.cache
def _coercion_map(cls: type) -> dict[str, type | None]:
    """``{field_name: target_type}``; ``None`` where no coercion applies."""
    if not dataclasses.is_dataclass(cls):
        msg = f"{cls.__name__} is not a dataclass; Model.record must be a dataclass"
        raise TypeError(msg)

    hints = get_type_hints(cls)
    result: dict[str, type | None] = {}
    for f in dataclasses.fields(cls):
        annotation = hints.get(f.name, f.type)
        # Unwrap Optional (X | None) and coerce to the non-None branch
        if get_origin(annotation) is types.UnionType:
            args = [a for a in get_args(annotation) if a is not type(None)]
            annotation = args[0] if len(args) == 1 else None
        result[f.name] = annotation if annotation in _COERCIBLE else None
    return result


def _coerce(value: Any, target: type | None) -> Any:
    if target is None or value is None:
        return value
    # bool is an int subclass; check the exact type for int targets
    if type(value) is target:
        return value
    return _COERCIBLE[target](value)


def map_row[T](cls: type[T], row: Mapping[str, Any]) -> T:
    """Map one row to a dataclass instance.

    Columns without a matching field are ignored, so ``SELECT *`` is fine
    even if the dataclass has fewer fields. Raises ``TypeError`` if a
    required field is missing from the row.
    """
    coercion = _coercion_map(cls)
    return cls(**{k: _coerce(v, coercion[k]) for k, v in row.items() if k in coercion})


def map_rows[T](cls: type[T], rows: Iterable[Mapping[str, Any]]) -> list[T]:
    """Map rows to dataclass instances."""
    return [map_row(cls, row) for row in rows]
