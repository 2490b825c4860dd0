"""Public extraction API.

``extract_config(source, Client, path="App:Client")`` builds a default
``Client`` and overrides every property that has a matching key under
``App:Client``. Keys that are missing, or whose value cannot be coerced,
leave the default in place.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar, overload

from ._binder import bind
from ._source import ConfigSection, ConfigSource, config_path

T = TypeVar("T")

SECTION_SUFFIX = "Configuration"


# ---------------------------------------------------------------------------
# Section resolution
# ---------------------------------------------------------------------------


def resolve_section(
    source: ConfigSource,
    name: str,
    root: str | None = None,
    suffix: str = SECTION_SUFFIX,
) -> ConfigSection:
    """Return the section for *name*, falling back to ``name + suffix``.

    ``Client`` is tried first, then ``ClientConfiguration``. When neither
    exists the unsuffixed (empty) section is returned, so extraction from it
    yields the defaults.
    """
    plain = ConfigSection(source, config_path(root, name))
    if plain.exists() or not suffix:
        return plain
    suffixed = ConfigSection(source, config_path(root, f"{name}{suffix}"))
    if suffixed.exists():
        return suffixed
    return plain


def has_section(source: ConfigSource, name: str, root: str | None = None) -> bool:
    return source.has_section(config_path(root, name))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_config(source: ConfigSource, cls: type[T], path: str | None = None) -> T:
    """Build a default *cls* and bind the section at *path* (root if ``None``).

    Raises ``ConstructionError`` if *cls* cannot be default-constructed.
    """
    return bind(ConfigSection(source, path or ""), cls=cls)


def extract_from_factory(
    source: ConfigSource,
    path: str | None,
    default_factory: Callable[[], T],
    transform: Callable[[T], Any] | None = None,
) -> T:
    """Bind the section at *path* onto the instance from *default_factory*.

    Use this when the default needs constructor arguments the binder cannot
    supply. *transform*, when given, receives the populated instance before
    it is returned; its return value is ignored.
    """
    instance = bind(ConfigSection(source, path or ""), default_factory=default_factory)
    if transform is not None:
        transform(instance)
    return instance


@overload
def extract_section(
    source: ConfigSource,
    target: type[T],
    name: str,
    root: str | None = ...,
    suffix: str = ...,
) -> T:
    ...


@overload
def extract_section(
    source: ConfigSource,
    target: Callable[[], T],
    name: str,
    root: str | None = ...,
    suffix: str = ...,
) -> T:
    ...


def extract_section(
    source: ConfigSource,
    target: Any,
    name: str,
    root: str | None = None,
    suffix: str = SECTION_SUFFIX,
) -> Any:
    """Resolve *name* with suffix fallback, then bind onto *target*.

    *target* is either a class to default-construct or a zero-argument
    factory returning the default instance.
    """
    section = resolve_section(source, name, root=root, suffix=suffix)
    if isinstance(target, type):
        return bind(section, cls=target)
    return bind(section, default_factory=target)
