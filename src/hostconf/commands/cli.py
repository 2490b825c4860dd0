"""Command line inspection of configuration sources."""

from __future__ import annotations

import enum
import importlib
import json
import logging
from datetime import timedelta
from typing import Any

import click

from ..config import (
    SECTION_SUFFIX,
    ConfigError,
    LayeredConfigSource,
    MemoryConfigSource,
    extract_config,
    extract_section,
)
from ..config._descriptor import describe, instance_properties, is_bindable
from ..config._source import ConfigSource
from ..logging import configure_logging

logger = logging.getLogger(__name__)


def _read_json(path: str) -> MemoryConfigSource:
    try:
        return MemoryConfigSource.from_json_file(path)
    except ValueError as e:
        raise click.ClickException(f"Invalid JSON in {path}: {e}")


def load_source(path: str, env_prefix: str | None = None) -> ConfigSource:
    """Load a JSON file, optionally overlaid with prefixed environment variables."""
    file_source = _read_json(path)
    if env_prefix is None:
        return file_source
    return LayeredConfigSource(file_source, MemoryConfigSource.from_env(env_prefix))


def import_target(target: str) -> type:
    """Resolve ``package.module:ClassName`` to the class."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter(f"expected 'module:Class', got {target!r}", param_hint="TARGET")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import {module_name!r}: {e}", param_hint="TARGET")
    cls = getattr(module, attr, None)
    if not isinstance(cls, type):
        raise click.BadParameter(f"{target!r} is not a class", param_hint="TARGET")
    return cls


def to_plain(value: Any) -> Any:
    """Convert a bound instance into JSON-friendly data."""
    if isinstance(value, enum.Flag):
        return [m.name for m in type(value) if m.value and (value & m) == m]
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, timedelta):
        return str(value)
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_plain(v) for v in value]
    if is_bindable(type(value)):
        descriptor = describe(type(value))
        return {
            prop.name: to_plain(getattr(value, prop.name, None))
            for prop in descriptor.properties + instance_properties(value, descriptor)
        }
    return value


@click.group("hostconf")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("--log-json", is_flag=True, help="Emit logs as JSON lines.")
def cli(verbose: bool, log_json: bool) -> None:
    """Inspect how configuration binds onto typed objects."""
    configure_logging(verbose=verbose, log_json=log_json)


@cli.command("show")
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.argument("target")
@click.option("--section", default=None, help="Section name, resolved with suffix fallback.")
@click.option("--root", default=None, help="Path prefix holding the section.")
@click.option("--suffix", default=SECTION_SUFFIX, show_default=True, help="Fallback section suffix.")
@click.option("--env-prefix", default=None, help="Overlay environment variables with this prefix.")
def show_cli(
    source: str,
    target: str,
    section: str | None,
    root: str | None,
    suffix: str,
    env_prefix: str | None,
) -> None:
    """Bind SOURCE (a JSON file) onto TARGET and print the result.

    Examples:\n
        hostconf show appsettings.json myapp.config:ClientConfiguration --section Client\n
        hostconf show appsettings.json myapp.config:Limits --root App:Limits\n
    """
    config_source = load_source(source, env_prefix)
    cls = import_target(target)
    logger.debug("Binding %s from %s", cls.__qualname__, source)

    try:
        if section:
            instance = extract_section(config_source, cls, section, root=root, suffix=suffix)
        else:
            instance = extract_config(config_source, cls, path=root)
    except ConfigError as e:
        raise click.ClickException(str(e))

    click.echo(json.dumps(to_plain(instance), indent=2, default=str))


@cli.command("keys")
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.option("--path", default=None, help="Only list keys under this path.")
def keys_cli(source: str, path: str | None) -> None:
    """List every leaf key of SOURCE as KEY=VALUE."""
    config_source = _read_json(source)
    prefix = f"{path.lower()}:" if path else ""
    for key in config_source.keys():
        if key.lower().startswith(prefix):
            click.echo(f"{key}={config_source.get_value(key)}")
