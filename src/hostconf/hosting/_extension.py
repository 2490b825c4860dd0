from __future__ import annotations

import inspect
from typing import Any, ClassVar, Dict, Protocol, Type, runtime_checkable


@runtime_checkable
class Client(Protocol):
    """What the hosted service needs from the primary client object."""

    def add_extension(self, extension: "BaseExtension") -> None:
        ...

    async def connect(self) -> None:
        ...


class BaseExtension:
    """Base class for extensions wired onto a client by ``HostedService``.

    Concrete subclasses register themselves on definition. Set ``config_type``
    to the class bound from the extension's config section; its constructor
    then receives the populated instance.

    Example:
        class CommandsConfiguration:
            prefix: str = "!"

        class CommandsExtension(BaseExtension):
            config_type = CommandsConfiguration

            def __init__(self, config: CommandsConfiguration):
                self.config = config
    """

    config_type: ClassVar[type | None] = None

    client: Any = None

    def __init_subclass__(cls, register: bool = True, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if register and not inspect.isabstract(cls):
            _registry.register(cls)

    def setup(self, client: Client) -> None:
        """Called by the client when the extension is added."""
        self.client = client


class _ExtensionRegistry:
    """Registry of extension classes keyed by ``module.qualname``."""

    def __init__(self):
        self._extensions: Dict[str, Type[BaseExtension]] = {}

    @staticmethod
    def _key(extension: Type[BaseExtension]) -> str:
        return f"{extension.__module__}.{extension.__qualname__}"

    def register(self, extension: Type[BaseExtension]) -> None:
        key = self._key(extension)
        existing = self._extensions.get(key)
        if existing is not None and existing is not extension:
            raise ValueError(
                f"Extension '{key}' is already registered. Cannot register a second class "
                f"with the same qualified name."
            )
        self._extensions[key] = extension

    def unregister(self, extension: Type[BaseExtension]) -> None:
        self._extensions.pop(self._key(extension), None)

    def all(self) -> list[Type[BaseExtension]]:
        return list(self._extensions.values())


_registry = _ExtensionRegistry()


def registered_extensions() -> list[Type[BaseExtension]]:
    """Return every concrete ``BaseExtension`` subclass defined so far."""
    return _registry.all()


def unregister_extension(extension: Type[BaseExtension]) -> None:
    _registry.unregister(extension)
