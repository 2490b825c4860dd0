"""Shared types of the extraction engine: the coercion outcome marker, the
error hierarchy and the ``Secret`` value wrapper.
"""

from __future__ import annotations

import enum
from typing import Any, Generic, TypeVar, get_args

from pydantic import GetCoreSchemaHandler
from pydantic_core import CoreSchema, core_schema

T = TypeVar("T")


class _Undefined(enum.Enum):
    """Outcome of a lookup or coercion that produced no value.

    ``None`` can be a configured value, so casters return ``UNDEFINED`` instead
    and the binder keeps the default for that property.
    """

    UNDEFINED = "UNDEFINED"

    def __repr__(self) -> str:
        return self.value

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined.UNDEFINED


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConstructionError(ConfigError):
    """The target type cannot be instantiated; extraction is aborted."""

    def __init__(self, target: type, reason: str) -> None:
        self.target = target
        self.reason = reason
        name = getattr(target, "__qualname__", repr(target))
        super().__init__(f"Cannot construct '{name}': {reason}")


class Secret(Generic[T]):
    """A bound value kept out of ``repr``, ``str`` and pydantic dumps.

    ``Secret[int]`` properties are coerced as ``int`` and wrapped; read the
    value back through ``secret_value``.
    """

    __slots__ = ("secret_value",)

    def __init__(self, value: T) -> None:
        self.secret_value = value

    def __repr__(self) -> str:
        return f"{type(self).__name__}('***')"

    def __str__(self) -> str:
        return "***"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Secret):
            return NotImplemented
        return bool(self.secret_value == other.secret_value)

    def __hash__(self) -> int:
        return hash(self.secret_value)

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: GetCoreSchemaHandler) -> CoreSchema:
        args = get_args(source_type)
        inner = handler.generate_schema(args[0] if args else Any)
        return core_schema.union_schema(
            [
                core_schema.is_instance_schema(cls),
                core_schema.no_info_after_validator_function(cls, inner),
            ],
            serialization=core_schema.plain_serializer_function_ser_schema(lambda _: "***", info_arg=False),
        )
