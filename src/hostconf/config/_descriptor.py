"""Per-type reflection used by the binder.

A ``TypeDescriptor`` lists the writable properties of a class and how to
apply updates to an instance of it. Descriptors are computed once per class.
"""

from __future__ import annotations

import dataclasses
import enum
import inspect
import types
from collections.abc import Mapping, Sequence
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from functools import lru_cache
from pathlib import PurePath
from typing import (
    Annotated,
    Any,
    ClassVar,
    Literal,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)
from uuid import UUID

from pydantic import BaseModel

from ._types import ConstructionError, Secret

ValueKind = Literal[
    "scalar", "enum", "flags", "duration", "secret", "collection", "mapping", "object"
]
UpdateStrategy = Literal["setattr", "replace", "model_copy"]

SCALAR_TYPES: tuple[type, ...] = (
    str,
    bytes,
    bool,
    int,
    float,
    complex,
    Decimal,
    datetime,
    date,
    time,
    PurePath,
    UUID,
)
COLLECTION_ORIGINS: tuple[type, ...] = (list, tuple, set, frozenset, Sequence)
_UNION_TYPES: tuple[Any, ...] = (Union, types.UnionType)


# ---------------------------------------------------------------------------
# Annotation helpers
# ---------------------------------------------------------------------------


def unwrap_annotation(annotation: Any) -> Any:
    """Strip ``Annotated[...]`` and ``Optional[...]`` down to the inner type.

    Unions of several non-``None`` members are returned unchanged.
    """
    origin = get_origin(annotation)
    if origin is Annotated:
        return unwrap_annotation(get_args(annotation)[0])
    if origin in _UNION_TYPES:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return unwrap_annotation(members[0])
    return annotation


def is_optional(annotation: Any) -> bool:
    if get_origin(annotation) is Annotated:
        return is_optional(get_args(annotation)[0])
    return get_origin(annotation) in _UNION_TYPES and type(None) in get_args(annotation)


def is_bindable(annotation: Any) -> bool:
    """Whether *annotation* is a class the binder recurses into."""
    if annotation is Any or not isinstance(annotation, type) or get_origin(annotation) is not None:
        return False
    if issubclass(annotation, (enum.Enum, timedelta, Secret) + SCALAR_TYPES + COLLECTION_ORIGINS):
        return False
    if issubclass(annotation, (dict, Mapping, Sequence)):
        return False
    return annotation.__module__ not in ("builtins", "typing")


def value_kind(annotation: Any) -> ValueKind:
    """Classify an (unwrapped) annotation into the kind of value it holds."""
    origin = get_origin(annotation)
    if annotation is Secret or origin is Secret:
        return "secret"
    if annotation in COLLECTION_ORIGINS or origin in COLLECTION_ORIGINS:
        return "collection"
    if annotation in (dict, Mapping) or origin in (dict, Mapping):
        return "mapping"
    if isinstance(annotation, type):
        if issubclass(annotation, enum.Flag):
            return "flags"
        if issubclass(annotation, enum.Enum):
            return "enum"
        if issubclass(annotation, timedelta):
            return "duration"
        if is_bindable(annotation):
            return "object"
    return "scalar"


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class PropertyInfo:
    name: str
    annotation: Any
    kind: ValueKind


@dataclasses.dataclass(frozen=True)
class ParameterInfo:
    name: str
    annotation: Any
    kind: inspect._ParameterKind
    has_default: bool


@dataclasses.dataclass(frozen=True)
class TypeDescriptor:
    """Writable properties of a class and the strategy used to update them."""

    cls: type
    properties: tuple[PropertyInfo, ...]
    update: UpdateStrategy = "setattr"

    def apply(self, instance: Any, updates: dict[str, Any]) -> Any:
        """Return *instance* with *updates* applied.

        Mutable objects are updated in place; frozen dataclasses and frozen
        pydantic models are replaced by an updated copy.
        """
        if not updates:
            return instance
        if self.update == "replace":
            return dataclasses.replace(instance, **updates)
        if self.update == "model_copy":
            return instance.model_copy(update=updates)
        for name, value in updates.items():
            setattr(instance, name, value)
        return instance


def _property(name: str, annotation: Any) -> PropertyInfo:
    inner = unwrap_annotation(annotation)
    return PropertyInfo(name=name, annotation=inner, kind=value_kind(inner))


def _resolve_hints(target: Any, owner: type) -> dict[str, Any]:
    try:
        return get_type_hints(target, include_extras=True)
    except NameError as exc:
        raise ConstructionError(owner, f"unresolvable annotation ({exc})") from exc


def _describe_dataclass(cls: type) -> TypeDescriptor:
    hints = _resolve_hints(cls, cls)
    frozen = cls.__dataclass_params__.frozen  # type: ignore[attr-defined]
    properties = tuple(
        _property(field.name, hints.get(field.name, Any))
        for field in dataclasses.fields(cls)
        if not field.name.startswith("_") and (field.init or not frozen)
    )
    return TypeDescriptor(cls, properties, "replace" if frozen else "setattr")


def _describe_model(cls: type[BaseModel]) -> TypeDescriptor:
    properties = tuple(
        _property(name, field.annotation)
        for name, field in cls.model_fields.items()
        if not field.frozen
    )
    frozen = bool(cls.model_config.get("frozen", False))
    return TypeDescriptor(cls, properties, "model_copy" if frozen else "setattr")


def _describe_plain(cls: type) -> TypeDescriptor:
    annotated: dict[str, Any] = {
        name: hint
        for name, hint in _resolve_hints(cls, cls).items()
        if not name.startswith("_") and get_origin(hint) is not ClassVar
    }

    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if not isinstance(attr, property) or name.startswith("_"):
                continue
            if attr.fset is None:
                # Read-only: only the constructor may set it.
                annotated.pop(name, None)
            else:
                hints = _resolve_hints(attr.fget, cls) if attr.fget else {}
                annotated[name] = hints.get("return", annotated.get(name, Any))

    properties = tuple(_property(name, hint) for name, hint in annotated.items())
    return TypeDescriptor(cls, properties)


def instance_properties(instance: Any, descriptor: TypeDescriptor) -> tuple[PropertyInfo, ...]:
    """Public attributes a plain object set in ``__init__`` without annotating.

    Each is typed from its current value. Values of a type the binder cannot
    coerce, ``None`` included, are left out.
    """
    cls = type(instance)
    if dataclasses.is_dataclass(cls) or issubclass(cls, BaseModel):
        return ()
    known = {prop.name for prop in descriptor.properties}
    found = []
    for name, value in getattr(instance, "__dict__", {}).items():
        if name.startswith("_") or name in known or value is None:
            continue
        if isinstance(inspect.getattr_static(cls, name, None), property):
            continue
        prop = _property(name, type(value))
        if prop.kind == "scalar" and not issubclass(type(value), SCALAR_TYPES):
            continue
        found.append(prop)
    return tuple(found)


@lru_cache(maxsize=None)
def describe(cls: type) -> TypeDescriptor:
    """Return the cached ``TypeDescriptor`` for *cls*."""
    if dataclasses.is_dataclass(cls):
        return _describe_dataclass(cls)
    if issubclass(cls, BaseModel):
        return _describe_model(cls)
    return _describe_plain(cls)


@lru_cache(maxsize=None)
def constructor_parameters(cls: type) -> tuple[ParameterInfo, ...]:
    """Return the parameters of ``cls.__init__``, with annotations resolved.

    ``*args`` and ``**kwargs`` are omitted; they never need a value.
    """
    try:
        signature = inspect.signature(cls, eval_str=True)
    except NameError as exc:
        raise ConstructionError(cls, f"unresolvable annotation ({exc})") from exc
    except (TypeError, ValueError) as exc:
        raise ConstructionError(cls, f"no inspectable constructor ({exc})") from exc

    return tuple(
        ParameterInfo(
            name=parameter.name,
            annotation=parameter.annotation,
            kind=parameter.kind,
            has_default=parameter.default is not inspect.Parameter.empty,
        )
        for parameter in signature.parameters.values()
        if parameter.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    )
