"""Hosted service that builds a client and its extensions from configuration."""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any, Callable

from ..config import ConfigSource, default_instance, extract_section
from ..config._descriptor import constructor_parameters
from ._discovery import ExtensionInfo, find_implemented_extensions
from ._extension import BaseExtension, Client

CLIENT_SECTION = "Client"

logger = logging.getLogger(__name__)


class HostedService:
    """Configure a client plus its extensions, then run until stopped.

    The client config is read from ``<root>:Client`` (or
    ``<root>:ClientConfiguration``); without either section the client gets a
    default configuration. Extension configs are built by *provider*
    (``default_instance`` unless given) and then bound from their section.

    Subclasses may override ``pre_connect`` and ``post_connect``.
    """

    def __init__(
        self,
        source: ConfigSource,
        client_type: Callable[[Any], Client],
        client_config_type: type,
        *,
        root: str | None = None,
        client_section: str = CLIENT_SECTION,
        provider: Callable[[type], Any] | None = None,
    ) -> None:
        self.client: Client | None = None
        self.extensions: dict[str, BaseExtension] = {}
        self._provider = provider or default_instance
        self._stopping = asyncio.Event()
        self._initialize(source, client_type, client_config_type, root, client_section)

    def _initialize(
        self,
        source: ConfigSource,
        client_type: Callable[[Any], Client],
        client_config_type: type,
        root: str | None,
        client_section: str,
    ) -> None:
        found = find_implemented_extensions(source, root=root)
        logger.debug("Found the following extensions: %s", ", ".join(found) or "<none>")

        client_config = extract_section(source, client_config_type, client_section, root=root)
        self.client = client_type(client_config)

        for name, info in found.items():
            try:
                self.extensions[name] = self._create_extension(info)
            except Exception as exc:
                logger.error("Unable to register '%s': %s", name, exc)

        for extension in self.extensions.values():
            self.client.add_extension(extension)

    def _create_extension(self, info: ExtensionInfo) -> BaseExtension:
        config = None
        if info.config_type is not None:
            config = info.section.extract(partial(self._provider, info.config_type))

        # Extensions taking a single argument receive their config.
        if len(constructor_parameters(info.implementation_type)) == 1:
            return info.implementation_type(config)
        return info.implementation_type()

    async def run(self) -> None:
        """Connect the client, then wait until ``stop()`` is called."""
        if self.client is None:
            raise RuntimeError("Client cannot be None")

        await self.pre_connect()
        await self.client.connect()
        await self.post_connect()

        await self._stopping.wait()

    def stop(self) -> None:
        self._stopping.set()

    async def pre_connect(self) -> None:
        """Runs just before the client connects."""

    async def post_connect(self) -> None:
        """Runs right after the client connects."""
