"""Tests for hosting/_service.py — client wiring and the run lifecycle."""

import asyncio
from datetime import timedelta

import pytest

from hostconf.config import MemoryConfigSource
from hostconf.hosting import BaseExtension, HostedService


class FakeClientConfiguration:
    token: str = ""
    http_timeout: timedelta = timedelta(seconds=100)


class FakeClient:
    def __init__(self, config: FakeClientConfiguration):
        self.config = config
        self.extensions: list[BaseExtension] = []
        self.connected = False
        self.events: list[str] = []

    def add_extension(self, extension: BaseExtension) -> None:
        self.extensions.append(extension)
        extension.setup(self)

    async def connect(self) -> None:
        self.connected = True
        self.events.append("connect")


class GreeterConfiguration:
    greeting: str = "hi"
    repeat: int = 1


class GreeterExtension(BaseExtension):
    config_type = GreeterConfiguration

    def __init__(self, config: GreeterConfiguration):
        self.config = config


class PingExtension(BaseExtension):
    def __init__(self):
        self.started = True


class FaultyExtension(BaseExtension):
    def __init__(self):
        raise ValueError("cannot start")


def _service(data: dict, **kwargs) -> HostedService:
    return HostedService(
        MemoryConfigSource(data),
        FakeClient,
        FakeClientConfiguration,
        root="Host",
        **kwargs,
    )


class TestClientConfiguration:
    def test_client_section(self):
        service = _service({"Host:Client:Token": "abc", "Host:Client:HttpTimeout": "00:00:20"})
        assert service.client.config.token == "abc"
        assert service.client.config.http_timeout == timedelta(seconds=20)

    def test_suffixed_client_section(self):
        service = _service({"Host:ClientConfiguration:Token": "abc"})
        assert service.client.config.token == "abc"

    def test_missing_client_section_uses_defaults(self):
        service = _service({})
        assert isinstance(service.client, FakeClient)
        assert service.client.config.token == ""

    def test_custom_client_section_name(self):
        service = _service({"Host:Bot:Token": "abc"}, client_section="Bot")
        assert service.client.config.token == "abc"


class TestExtensions:
    def test_configured_extension_receives_bound_config(self):
        service = _service({"Host:Greeter:Greeting": "hello", "Host:Greeter:Repeat": "3"})

        extension = service.extensions["GreeterExtension"]
        assert isinstance(extension, GreeterExtension)
        assert extension.config.greeting == "hello"
        assert extension.config.repeat == 3

    def test_extension_without_config_is_created_bare(self):
        service = _service({"Host:Ping:Enabled": "true"})
        assert service.extensions["PingExtension"].started is True

    def test_extensions_are_added_to_client(self):
        service = _service({"Host:Greeter:Greeting": "hello", "Host:Ping:Enabled": "true"})
        assert set(service.client.extensions) == set(service.extensions.values())
        assert all(ext.client is service.client for ext in service.client.extensions)

    def test_unconfigured_extensions_are_skipped(self):
        service = _service({"Host:Client:Token": "abc"})
        assert service.extensions == {}

    def test_failing_extension_is_logged_and_skipped(self, caplog):
        with caplog.at_level("ERROR", logger="hostconf"):
            service = _service({"Host:Faulty:On": "true", "Host:Ping:On": "true"})

        assert "FaultyExtension" not in service.extensions
        assert "PingExtension" in service.extensions
        assert "Unable to register 'FaultyExtension'" in caplog.text
        assert "cannot start" in caplog.text

    def test_provider_builds_default_config(self):
        def provider(config_type):
            config = config_type()
            config.greeting = "from provider"
            return config

        service = _service({"Host:Greeter:Repeat": "2"}, provider=provider)
        config = service.extensions["GreeterExtension"].config
        assert config.greeting == "from provider"
        assert config.repeat == 2


class RecordingService(HostedService):
    async def pre_connect(self) -> None:
        self.client.events.append("pre")

    async def post_connect(self) -> None:
        self.client.events.append("post")


class TestRun:
    def test_lifecycle_order_and_stop(self):
        service = RecordingService(MemoryConfigSource({}), FakeClient, FakeClientConfiguration)

        async def scenario():
            task = asyncio.create_task(service.run())
            while not service.client.connected:
                await asyncio.sleep(0)
            assert not task.done()
            service.stop()
            await asyncio.wait_for(task, timeout=1)

        asyncio.run(scenario())
        assert service.client.events == ["pre", "connect", "post"]

    def test_run_without_client_raises(self):
        service = _service({})
        service.client = None
        with pytest.raises(RuntimeError, match="Client cannot be None"):
            asyncio.run(service.run())
