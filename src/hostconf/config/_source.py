"""Config source protocol, in-memory implementations, and section views.

Configuration is a tree of string values addressed by ``:``-delimited paths
(``"Client:HttpTimeout"``). All lookups are case-insensitive.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Protocol, runtime_checkable

KEY_DELIMITER = ":"


def config_path(*segments: str | None) -> str:
    """Join non-empty path segments with the key delimiter.

    >>> config_path("App", None, "Client")
    'App:Client'
    """
    return KEY_DELIMITER.join(segment for segment in segments if segment)


def normalize_key(key: str) -> str:
    """Fold a key for name matching: ``http_timeout`` matches ``HttpTimeout``."""
    return key.replace("_", "").replace("-", "").lower()


@runtime_checkable
class ConfigSource(Protocol):
    """Abstraction over a hierarchical configuration tree.

    Implementations must treat paths case-insensitively and must never be
    mutated by readers.
    """

    def get_value(self, path: str) -> str | None:
        ...

    def get_children(self, path: str) -> list[tuple[str, str]]:
        ...

    def has_section(self, path: str) -> bool:
        ...


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _flatten(data: Any, prefix: str = "") -> Iterator[tuple[str, str]]:
    """Yield ``(path, value)`` pairs; lists become ``0``, ``1``, ... keys."""
    if isinstance(data, Mapping):
        for key, value in data.items():
            yield from _flatten(value, config_path(prefix, str(key)))
    elif isinstance(data, (list, tuple)):
        for index, value in enumerate(data):
            yield from _flatten(value, config_path(prefix, str(index)))
    elif prefix:
        yield prefix, _stringify(data)


# ---------------------------------------------------------------------------
# In-memory source
# ---------------------------------------------------------------------------


class MemoryConfigSource:
    """Dict-backed config source.

    Accepts flat ``"A:B": value`` mappings, nested mappings, or a mix of both::

        >>> source = MemoryConfigSource({"Client": {"Token": "abc"}, "Client:Shards": 2})
        >>> source.get_value("client:token")
        'abc'
        >>> source.get_value("Client:Shards")
        '2'
    """

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, str] = {}
        # Folded path -> path as first written, so children keep their casing.
        self._paths: dict[str, str] = {}
        for path, value in _flatten(data or {}):
            folded = path.lower()
            self._paths.setdefault(folded, path)
            self._values[folded] = value

    # -- Alternate constructors ---------------------------------------------

    @classmethod
    def from_json(cls, text: str) -> MemoryConfigSource:
        data = json.loads(text)
        if not isinstance(data, Mapping):
            raise ValueError("JSON configuration must be an object at the top level")
        return cls(data)

    @classmethod
    def from_json_file(cls, path: str | os.PathLike[str]) -> MemoryConfigSource:
        return cls.from_json(Path(path).read_text(encoding="utf-8"))

    @classmethod
    def from_env(
        cls,
        prefix: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> MemoryConfigSource:
        """Read environment variables; ``__`` in a name separates path segments.

        With ``prefix="APP_"``, ``APP_Client__Token`` becomes ``Client:Token``.
        Variables without the prefix are ignored.
        """
        env = os.environ if environ is None else environ
        data: dict[str, str] = {}
        for name, value in env.items():
            if prefix:
                if not name.upper().startswith(prefix.upper()):
                    continue
                name = name[len(prefix):]
            path = name.replace("__", KEY_DELIMITER)
            if path:
                data[path] = value
        return cls(data)

    # -- Protocol methods ---------------------------------------------------

    def get_value(self, path: str) -> str | None:
        return self._values.get(path.lower())

    def get_children(self, path: str) -> list[tuple[str, str]]:
        prefix = path.lower() + KEY_DELIMITER if path else ""
        seen: dict[str, tuple[str, str]] = {}
        for folded, original in self._paths.items():
            if not folded.startswith(prefix):
                continue
            key = original[len(prefix):].split(KEY_DELIMITER, 1)[0]
            if key.lower() not in seen:
                seen[key.lower()] = (key, config_path(path, key))
        return list(seen.values())

    def has_section(self, path: str) -> bool:
        folded = path.lower()
        if not folded:
            return bool(self._values)
        prefix = folded + KEY_DELIMITER
        return any(key == folded or key.startswith(prefix) for key in self._values)

    # -- Introspection ------------------------------------------------------

    def keys(self) -> list[str]:
        """Return every leaf path, in insertion order, with original casing."""
        return list(self._paths.values())


class LayeredConfigSource:
    """Stack of sources where later sources override earlier ones key by key."""

    def __init__(self, *sources: ConfigSource) -> None:
        self._sources = sources

    def get_value(self, path: str) -> str | None:
        for source in reversed(self._sources):
            value = source.get_value(path)
            if value is not None:
                return value
        return None

    def get_children(self, path: str) -> list[tuple[str, str]]:
        seen: dict[str, tuple[str, str]] = {}
        for source in self._sources:
            for key, subpath in source.get_children(path):
                seen.setdefault(key.lower(), (key, subpath))
        return list(seen.values())

    def has_section(self, path: str) -> bool:
        return any(source.has_section(path) for source in self._sources)


# ---------------------------------------------------------------------------
# Section view
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConfigSection:
    """Read-only view of a source scoped to a path prefix.

    An empty ``path`` addresses the root of the source.
    """

    source: ConfigSource
    path: str = ""

    @property
    def key(self) -> str:
        return self.path.rsplit(KEY_DELIMITER, 1)[-1]

    @property
    def value(self) -> str | None:
        if not self.path:
            return None
        return self.source.get_value(self.path)

    def get(self, key: str) -> str | None:
        return self.source.get_value(config_path(self.path, key))

    def section(self, key: str) -> ConfigSection:
        return ConfigSection(self.source, config_path(self.path, key))

    def children(self) -> list[ConfigSection]:
        return [ConfigSection(self.source, subpath) for _, subpath in self.source.get_children(self.path)]

    def child_values(self) -> dict[str, str]:
        """Return ``{key: value}`` for immediate children that carry a value."""
        values: dict[str, str] = {}
        for key, subpath in self.source.get_children(self.path):
            value = self.source.get_value(subpath)
            if value is not None:
                values[key] = value
        return values

    def exists(self) -> bool:
        return self.source.has_section(self.path)

    def find_key(self, name: str) -> str | None:
        """Return the child key matching *name*, ignoring case, ``_`` and ``-``."""
        wanted = normalize_key(name)
        for key, _ in self.source.get_children(self.path):
            if normalize_key(key) == wanted:
                return key
        return None

    def extract(self, default_factory: Callable[[], Any]) -> Any:
        """Bind this section onto the instance produced by *default_factory*."""
        from ._binder import bind

        return bind(self, default_factory=default_factory)
