"""Binding of a config section onto a typed instance.

Resolution per writable property:
1. Find the child key whose name matches the property (case-insensitive,
   ``_`` and ``-`` ignored).
2. Nested objects recurse into that child section, starting from the
   default instance's current value.
3. Everything else is coerced from the raw string(s).
4. A value that fails to coerce leaves the default untouched.

Only an unconstructible type aborts the whole operation.
"""

from __future__ import annotations

import copy
import inspect
from datetime import timedelta
from decimal import Decimal
from functools import partial
from typing import Any, Callable, TypeVar, get_origin

from ._casters import cast_collection, cast_flags, cast_mapping, cast_scalar
from ._descriptor import (
    ParameterInfo,
    PropertyInfo,
    constructor_parameters,
    describe,
    instance_properties,
    is_optional,
    unwrap_annotation,
    value_kind,
)
from ._source import ConfigSection, normalize_key
from ._types import UNDEFINED, ConstructionError

T = TypeVar("T")

_LANGUAGE_DEFAULTS: dict[type, Any] = {
    str: "",
    bytes: b"",
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    Decimal: Decimal(0),
    timedelta: timedelta(0),
}


# ---------------------------------------------------------------------------
# Default construction
# ---------------------------------------------------------------------------


def _parameter_default(parameter: ParameterInfo, owner: type) -> Any:
    annotation = parameter.annotation
    if annotation is inspect.Parameter.empty:
        raise ConstructionError(owner, f"parameter '{parameter.name}' has no annotation")
    if is_optional(annotation):
        return None

    inner = unwrap_annotation(annotation)
    if inner in _LANGUAGE_DEFAULTS:
        return _LANGUAGE_DEFAULTS[inner]

    kind = value_kind(inner)
    if kind == "flags":
        return inner(0)
    if kind == "enum":
        members = list(inner)
        if members:
            return members[0]
    elif kind == "collection":
        origin = get_origin(inner) or inner
        return origin() if origin in (tuple, set, frozenset) else []
    elif kind == "mapping":
        return {}
    elif kind == "object":
        return default_instance(inner)

    raise ConstructionError(
        owner, f"no default for parameter '{parameter.name}' of type {inner!r}"
    )


def default_instance(cls: type[T]) -> T:
    """Construct *cls* with language defaults for every required parameter.

    Parameters that declare a default keep it. Required parameters get the
    zero value of their annotated type, ``None`` when optional, or a
    recursively default-constructed instance for nested classes.

    Raises ``ConstructionError`` when that is impossible.
    """
    if not isinstance(cls, type):
        raise ConstructionError(cls, "not a class")  # type: ignore[arg-type]
    if inspect.isabstract(cls):
        raise ConstructionError(cls, "abstract class")

    args: list[Any] = []
    kwargs: dict[str, Any] = {}
    for parameter in constructor_parameters(cls):
        if parameter.has_default:
            continue
        value = _parameter_default(parameter, cls)
        if parameter.kind is inspect.Parameter.POSITIONAL_ONLY:
            args.append(value)
        else:
            kwargs[parameter.name] = value

    try:
        return cls(*args, **kwargs)
    except Exception as exc:
        raise ConstructionError(cls, f"constructor raised {type(exc).__name__}: {exc}") from exc


# ---------------------------------------------------------------------------
# Binding
# ---------------------------------------------------------------------------


def _bind_property(prop: PropertyInfo, section: ConfigSection, instance: Any) -> Any:
    raw = section.value

    if prop.kind == "object":
        if not section.children():
            return UNDEFINED
        current = getattr(instance, prop.name, None)
        if current is None:
            factory: Callable[[], Any] = partial(default_instance, prop.annotation)
        else:
            # Class-level defaults may be shared; never mutate them in place.
            factory = partial(copy.copy, current)
        return bind(section, default_factory=factory)

    if prop.kind == "flags":
        return cast_flags(raw, prop.annotation, section.child_values())
    if prop.kind == "collection":
        return cast_collection(raw, section.child_values(), prop.annotation)
    if prop.kind == "mapping":
        return cast_mapping(section.child_values(), prop.annotation)

    if raw is None:
        return UNDEFINED
    return cast_scalar(raw, prop.annotation)


def bind(
    section: ConfigSection,
    default_factory: Callable[[], T] | None = None,
    cls: type[T] | None = None,
) -> T:
    """Populate the default instance from *section*.

    The default comes from *default_factory* when given, otherwise from
    ``default_instance(cls)``. Properties without a matching key keep the
    default's value.
    """
    if default_factory is not None:
        instance = default_factory()
    elif cls is not None:
        instance = default_instance(cls)
    else:
        raise TypeError("bind() requires a default_factory or a target class")

    if not section.exists():
        return instance

    keys = {normalize_key(key): key for key, _ in section.source.get_children(section.path)}
    descriptor = describe(type(instance))

    updates: dict[str, Any] = {}
    for prop in descriptor.properties + instance_properties(instance, descriptor):
        key = keys.get(normalize_key(prop.name))
        if key is None:
            continue
        value = _bind_property(prop, section.section(key), instance)
        if value is not UNDEFINED:
            updates[prop.name] = value

    return descriptor.apply(instance, updates)
