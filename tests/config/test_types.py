"""Tests for _types.py — the UNDEFINED marker, ConstructionError and Secret."""

import copy

import pytest
from pydantic import BaseModel

from hostconf.config._types import UNDEFINED, ConfigError, ConstructionError, Secret


class TestUndefinedMarker:
    def test_is_falsy_and_not_none(self):
        assert not UNDEFINED
        assert UNDEFINED is not None

    def test_survives_copy(self):
        assert copy.deepcopy(UNDEFINED) is UNDEFINED

    def test_repr(self):
        assert repr(UNDEFINED) == "UNDEFINED"


class TestConstructionError:
    def test_carries_target_and_reason(self):
        class Widget:
            pass

        err = ConstructionError(Widget, "abstract class")
        assert isinstance(err, ConfigError)
        assert err.target is Widget
        assert err.reason == "abstract class"
        assert str(err).startswith("Cannot construct '")
        assert "Widget" in str(err)
        assert str(err).endswith(": abstract class")

    def test_caught_as_config_error(self):
        with pytest.raises(ConfigError, match="Cannot construct 'int': nope"):
            raise ConstructionError(int, "nope")


class TestSecret:
    @pytest.mark.parametrize("render", [repr, str, "{}".format])
    def test_value_never_rendered(self, render):
        assert "hunter2" not in render(Secret("hunter2"))

    def test_equality_by_wrapped_value(self):
        assert Secret(1) == Secret(1)
        assert Secret(1) != Secret(2)
        assert Secret("a") != "a"
        assert len({Secret("a"), Secret("a")}) == 1


class _Credentials(BaseModel):
    token: Secret[str] = Secret("")
    port: Secret[int] = Secret(0)


class TestSecretModelField:
    def test_raw_input_is_validated_and_wrapped(self):
        creds = _Credentials(token="abc", port="8080")
        assert creds.token == Secret("abc")
        assert creds.port.secret_value == 8080

    def test_existing_secret_is_kept(self):
        token = Secret("abc")
        assert _Credentials(token=token).token is token

    def test_dump_is_redacted(self):
        assert _Credentials(token="abc").model_dump() == {"token": "***", "port": "***"}
