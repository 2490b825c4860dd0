"""Hosted-service wrapper: discovers extensions and wires them onto a client."""

from ._discovery import ExtensionInfo, find_implemented_extensions
from ._extension import BaseExtension, Client, registered_extensions, unregister_extension
from ._service import HostedService

__all__ = [
    "BaseExtension",
    "Client",
    "ExtensionInfo",
    "HostedService",
    "find_implemented_extensions",
    "registered_extensions",
    "unregister_extension",
]
