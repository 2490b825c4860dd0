"""Tests for _descriptor.py — property discovery and value kinds."""

import dataclasses
import enum
from datetime import timedelta
from typing import Annotated, ClassVar, Optional

import pytest
from pydantic import BaseModel, ConfigDict, Field

from hostconf.config._descriptor import (
    constructor_parameters,
    describe,
    instance_properties,
    is_bindable,
    is_optional,
    unwrap_annotation,
    value_kind,
)
from hostconf.config._types import Secret


class Color(enum.Enum):
    RED = 1


class Perm(enum.Flag):
    READ = enum.auto()


class Inner:
    size: int = 1


class Plain:
    count: int = 0
    label: str = "x"
    inner: Inner = Inner()
    registry: ClassVar[dict] = {}
    _hidden: int = 3

    def __init__(self, value: str):
        self._value = value
        self._limit = 5

    @property
    def value(self) -> str:
        return self._value

    @property
    def limit(self) -> int:
        return self._limit

    @limit.setter
    def limit(self, new: int) -> None:
        self._limit = new


@dataclasses.dataclass
class Data:
    name: str = "d"
    timeout: timedelta = timedelta(minutes=1)
    _internal: int = 0


@dataclasses.dataclass(frozen=True)
class FrozenData:
    name: str = "f"
    derived: int = dataclasses.field(default=0, init=False)


class Model(BaseModel):
    host: str = "localhost"
    port: int = 80
    locked: str = Field(default="x", frozen=True)


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "localhost"


class TestUnwrap:
    def test_optional(self):
        assert unwrap_annotation(Optional[int]) is int
        assert is_optional(Optional[int])
        assert is_optional(int | None)

    def test_annotated(self):
        assert unwrap_annotation(Annotated[int, "meta"]) is int
        assert is_optional(Annotated[Optional[int], "meta"])

    def test_multi_union_kept(self):
        assert unwrap_annotation(int | str) == int | str
        assert not is_optional(int | str)


class TestValueKind:
    @pytest.mark.parametrize(
        "annotation, kind",
        [
            (int, "scalar"),
            (str, "scalar"),
            (bool, "scalar"),
            (Color, "enum"),
            (Perm, "flags"),
            (timedelta, "duration"),
            (Secret[str], "secret"),
            (list[int], "collection"),
            (tuple[str, ...], "collection"),
            (set, "collection"),
            (dict[str, int], "mapping"),
            (Inner, "object"),
            (Data, "object"),
            (Model, "object"),
            (int | str, "scalar"),
        ],
    )
    def test_kinds(self, annotation, kind):
        assert value_kind(annotation) == kind

    def test_builtins_are_not_bindable(self):
        assert not is_bindable(int)
        assert not is_bindable(dict)
        assert not is_bindable(object)
        assert is_bindable(Inner)


class TestDescribePlain:
    def test_annotated_attributes_and_setter_properties(self):
        names = [prop.name for prop in describe(Plain).properties]
        assert names == ["count", "label", "inner", "limit"]

    def test_read_only_property_excluded(self):
        assert "value" not in [prop.name for prop in describe(Plain).properties]

    def test_kinds(self):
        kinds = {prop.name: prop.kind for prop in describe(Plain).properties}
        assert kinds == {"count": "scalar", "label": "scalar", "inner": "object", "limit": "scalar"}

    def test_cached(self):
        assert describe(Plain) is describe(Plain)


class TestInstanceProperties:
    def test_attributes_typed_from_values(self):
        instance = Plain("v")
        instance.timeout = timedelta(minutes=7)
        instance.count = 4
        instance.handler = len
        props = {prop.name: prop for prop in instance_properties(instance, describe(Plain))}

        assert list(props) == ["timeout"]
        assert props["timeout"].annotation is timedelta
        assert props["timeout"].kind == "duration"

    def test_shadowed_read_only_property_skipped(self):
        instance = Plain("v")
        instance.__dict__["value"] = "shadow"
        assert instance_properties(instance, describe(Plain)) == ()

    def test_dataclasses_and_models_have_none(self):
        instance = Data()
        instance.extra = 1
        assert instance_properties(instance, describe(Data)) == ()


class TestDescribeDataclass:
    def test_fields(self):
        descriptor = describe(Data)
        assert [prop.name for prop in descriptor.properties] == ["name", "timeout"]
        assert descriptor.update == "setattr"

    def test_frozen_uses_replace(self):
        descriptor = describe(FrozenData)
        assert [prop.name for prop in descriptor.properties] == ["name"]
        updated = descriptor.apply(FrozenData(), {"name": "g"})
        assert updated == FrozenData(name="g")


class TestDescribeModel:
    def test_fields_skip_frozen_fields(self):
        descriptor = describe(Model)
        assert [prop.name for prop in descriptor.properties] == ["host", "port"]
        assert descriptor.update == "setattr"

    def test_frozen_model_copies(self):
        original = FrozenModel()
        updated = describe(FrozenModel).apply(original, {"host": "example.org"})
        assert updated.host == "example.org"
        assert original.host == "localhost"


class TestApply:
    def test_setattr_mutates_in_place(self):
        instance = Data()
        result = describe(Data).apply(instance, {"name": "changed"})
        assert result is instance
        assert instance.name == "changed"

    def test_no_updates_returns_same_instance(self):
        instance = FrozenData()
        assert describe(FrozenData).apply(instance, {}) is instance


class TestConstructorParameters:
    def test_plain(self):
        params = constructor_parameters(Plain)
        assert [(p.name, p.annotation, p.has_default) for p in params] == [("value", str, False)]

    def test_varargs_omitted(self):
        class Loose:
            def __init__(self, a: int, *args, b: str = "", **kwargs):
                pass

        assert [p.name for p in constructor_parameters(Loose)] == ["a", "b"]

    def test_no_init(self):
        class Empty:
            pass

        assert constructor_parameters(Empty) == ()

    def test_pydantic_model(self):
        params = constructor_parameters(Model)
        assert {p.name for p in params} >= {"host", "port"}
        assert all(p.has_default for p in params)
