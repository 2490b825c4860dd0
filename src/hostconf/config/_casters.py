"""Coercion of raw configuration strings into typed values.

Every caster here reports failure by returning ``UNDEFINED`` rather than
raising, so the binder can keep the default for that one property.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping
from datetime import timedelta
from functools import lru_cache
from typing import Any, Callable, get_args, get_origin

from pydantic import TypeAdapter, ValidationError

from ._descriptor import unwrap_annotation, value_kind
from ._source import normalize_key
from ._types import UNDEFINED, Secret

# ---------------------------------------------------------------------------
# Bool caster
# ---------------------------------------------------------------------------

_TRUTHY = frozenset({"1", "true", "yes", "on", "t", "y"})
_FALSY = frozenset({"0", "false", "no", "off", "f", "n", ""})


def _cast_bool(value: Any) -> bool:
    """Cast a value to ``bool``, handling common string representations.

    Raises ``ValueError`` for unrecognised strings.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lower = value.strip().lower()
        if lower in _TRUTHY:
            return True
        if lower in _FALSY:
            return False
        raise ValueError(f"Cannot cast {value!r} to bool")
    raise ValueError(f"Cannot cast {type(value).__name__} to bool")


# ---------------------------------------------------------------------------
# Csv
# ---------------------------------------------------------------------------


class Csv:
    """Split a string into a list, with optional per-element casting.

    >>> Csv()("a, b, c")
    ['a', 'b', 'c']
    >>> Csv(cast=int)("1,2,3")
    [1, 2, 3]
    """

    def __init__(
        self,
        cast: Callable[[str], Any] = str,
        delimiter: str = ",",
        strip: bool = True,
    ) -> None:
        self.cast = cast
        self.delimiter = delimiter
        self.strip = strip

    def __call__(self, value: str) -> list[Any]:
        parts = value.split(self.delimiter)
        if self.strip:
            parts = [p.strip() for p in parts]
        return [self.cast(p) for p in parts if p]


# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------

# [-][d.]hh:mm[:ss[.fffffff]] or a bare day count.
_DURATION_RE = re.compile(
    r"""
    ^\s*(?P<sign>-)?
    (?:
        (?P<only_days>\d+)
      |
        (?:(?P<days>\d+)\.)?
        (?P<hours>\d{1,2}):(?P<minutes>\d{1,2})
        (?::(?P<seconds>\d{1,2})(?:\.(?P<fraction>\d{1,7}))?)?
    )\s*$
    """,
    re.VERBOSE,
)


def parse_duration(text: str) -> timedelta:
    """Parse ``d.hh:mm:ss.fffffff`` style text; trailing fields are optional.

    >>> parse_duration("01:30:00")
    datetime.timedelta(seconds=5400)
    >>> parse_duration("2")
    datetime.timedelta(days=2)

    Raises ``ValueError`` on malformed text or out-of-range fields.
    """
    match = _DURATION_RE.match(text)
    if match is None:
        raise ValueError(f"Cannot parse {text!r} as a duration")

    parts = match.groupdict()
    if parts["only_days"] is not None:
        result = timedelta(days=int(parts["only_days"]))
    else:
        hours = int(parts["hours"])
        minutes = int(parts["minutes"])
        seconds = int(parts["seconds"] or 0)
        if hours > 23 or minutes > 59 or seconds > 59:
            raise ValueError(f"Duration field out of range in {text!r}")
        fraction = parts["fraction"] or "0"
        result = timedelta(
            days=int(parts["days"] or 0),
            hours=hours,
            minutes=minutes,
            seconds=seconds,
            # Seven fractional digits are 100ns ticks; timedelta keeps microseconds.
            microseconds=int(fraction.ljust(7, "0")) // 10,
        )
    return -result if parts["sign"] else result


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


def _member_lookup(enum_type: type[enum.Enum]) -> dict[str, enum.Enum]:
    return {normalize_key(name): member for name, member in enum_type.__members__.items()}


def cast_enum(raw: str, enum_type: type[enum.Enum]) -> Any:
    """Match *raw* against member names, ignoring case, ``_`` and ``-``."""
    return _member_lookup(enum_type).get(normalize_key(raw.strip()), UNDEFINED)


def cast_flags(
    raw: str | None,
    flag_type: type[enum.Flag],
    flag_values: Mapping[str, str] | None = None,
) -> Any:
    """Combine flag members from a comma list or from per-flag boolean keys.

    When *raw* is given the list form is used and *flag_values* is ignored.
    Names match members ignoring case, ``_`` and ``-``. Unknown tokens are
    skipped. Returns ``UNDEFINED`` when nothing matched.
    """
    members = _member_lookup(flag_type)
    matched: list[enum.Flag] = []

    if raw is not None:
        for token in Csv()(raw):
            member = members.get(normalize_key(token))
            if member is not None:
                matched.append(member)  # type: ignore[arg-type]
    else:
        for key, value in (flag_values or {}).items():
            member = members.get(normalize_key(key.strip()))
            if member is None:
                continue
            try:
                enabled = _cast_bool(value)
            except ValueError:
                continue
            if enabled:
                matched.append(member)  # type: ignore[arg-type]

    if not matched:
        return UNDEFINED
    result = flag_type(0)
    for member in matched:
        result |= member
    return result


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


@lru_cache(maxsize=None)
def _adapter(annotation: Any) -> TypeAdapter:
    return TypeAdapter(annotation)


_INT_RE = re.compile(r"^[+-]?\d+$")


def cast_scalar(raw: str, annotation: Any) -> Any:
    """Coerce *raw* to a single non-collection value of type *annotation*."""
    annotation = unwrap_annotation(annotation)
    kind = value_kind(annotation)

    if annotation is Any or annotation is str:
        return raw
    if annotation is bool:
        try:
            return _cast_bool(raw)
        except ValueError:
            return UNDEFINED
    if kind == "duration":
        try:
            return parse_duration(raw)
        except ValueError:
            return UNDEFINED
    if kind == "flags":
        return cast_flags(raw, annotation)
    if kind == "enum":
        return cast_enum(raw, annotation)
    if kind == "secret":
        args = get_args(annotation)
        inner = cast_scalar(raw, args[0] if args else Any)
        return UNDEFINED if inner is UNDEFINED else Secret(inner)
    if kind != "scalar":
        return UNDEFINED
    if annotation is int and not _INT_RE.match(raw.strip()):
        # Lax validation would accept "1.0".
        return UNDEFINED

    try:
        return _adapter(annotation).validate_python(raw.strip())
    except ValidationError:
        return UNDEFINED


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


def _element_types(annotation: Any, count: int) -> list[Any] | None:
    """One target type per element, or ``None`` when the count cannot fit.

    ``tuple[int, str]`` is positional; ``tuple[int, ...]`` and ``list[int]``
    repeat their single argument.
    """
    args = get_args(annotation)
    if (get_origin(annotation) or annotation) is tuple and args and Ellipsis not in args:
        return list(args) if len(args) == count else None
    element_type = args[0] if args else Any
    return [element_type] * count


def _build_collection(annotation: Any, items: list[Any]) -> Any:
    origin = get_origin(annotation) or annotation
    if origin in (tuple, set, frozenset):
        return origin(items)
    return items


def _index_order(key: str) -> tuple[int, int | str]:
    return (0, int(key)) if key.isdigit() else (1, key.lower())


def cast_collection(
    raw: str | None,
    children: Mapping[str, str],
    annotation: Any,
) -> Any:
    """Build a list/tuple/set from indexed child keys or a comma list.

    Indexed children (``Items:0``, ``Items:1``) win over a comma list.
    Any element failing coercion fails the whole collection, as does a
    fixed-length tuple given the wrong number of elements.
    """
    if children:
        raw_items = [children[key] for key in sorted(children, key=_index_order)]
    elif raw is not None:
        raw_items = Csv()(raw)
    else:
        return UNDEFINED

    element_types = _element_types(annotation, len(raw_items))
    if element_types is None:
        return UNDEFINED

    items = []
    for item, element_type in zip(raw_items, element_types):
        value = cast_scalar(item, element_type)
        if value is UNDEFINED:
            return UNDEFINED
        items.append(value)
    return _build_collection(annotation, items)


def cast_mapping(children: Mapping[str, str], annotation: Any) -> Any:
    """Build a ``dict`` from child keys; keys stay as written in the source."""
    if not children:
        return UNDEFINED
    args = get_args(annotation)
    value_type = args[1] if len(args) == 2 else Any
    result = {}
    for key, raw in children.items():
        value = cast_scalar(raw, value_type)
        if value is UNDEFINED:
            return UNDEFINED
        result[key] = value
    return result
