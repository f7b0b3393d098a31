"""Unit tests for AggregateConnector."""

import asyncio
import io
import logging
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from aggregate_connector.config import (
    ConnectorSettings,
    LoggingConfig,
    SourceEntry,
    configure_logging,
)
from aggregate_connector.connector import AggregateConnector
from aggregate_connector.domain.shared.error import ConfigurationError, MethodNotSupportedError
from aggregate_connector.domain.source.model.state import ConnectionState


class FakeFeeds:
    def __init__(self, documents=None, error: Exception | None = None):
        self._documents = documents or []
        self._error = error
        self.call_count = 0

    async def overview(self, options):
        self.call_count += 1
        if self._error:
            raise self._error
        return list(self._documents)


class FakeSource:
    def __init__(self, documents=None, error: Exception | None = None):
        self.feeds = FakeFeeds(documents, error)


@pytest.fixture
def source_a() -> FakeSource:
    return FakeSource([{"id": 1}])


@pytest.fixture
def source_b() -> FakeSource:
    return FakeSource([{"id": 2}, {"id": 3}])


@pytest.fixture
def connector(source_a: FakeSource, source_b: FakeSource) -> AggregateConnector:
    return AggregateConnector(
        {
            "name": "test",
            "sources": {
                "a": {"service": source_a},
                "b": {"service": source_b},
            },
        }
    )


class TestConstruction:
    def test_accepts_raw_mapping(self, connector: AggregateConnector):
        assert isinstance(connector.settings, ConnectorSettings)
        assert connector.settings.name == "test"

    def test_accepts_settings_instance(self, source_a: FakeSource):
        settings = ConnectorSettings(sources={"a": SourceEntry(service=source_a)})
        connector = AggregateConnector(settings)
        assert connector.settings is settings

    def test_rejects_empty_sources(self):
        with pytest.raises(ValidationError):
            AggregateConnector({"sources": {}})

    def test_keeps_data_source(self, source_a: FakeSource):
        data_source = MagicMock()
        connector = AggregateConnector(
            {"sources": {"a": {"service": source_a}}}, data_source=data_source
        )
        assert connector.data_source is data_source


class TestDebugLogging:
    """The debug flag makes connect and read diagnostics visible."""

    @pytest.mark.asyncio
    async def test_debug_emits_connect_and_read_messages(
        self, source_a: FakeSource, caplog: pytest.LogCaptureFixture
    ):
        connector = AggregateConnector(
            {"name": "verbose", "debug": True, "sources": {"a": {"service": source_a}}}
        )

        await connector.connect()
        await connector.all("Item")

        assert "> connect" in caplog.text
        assert 'configuring source "a"' in caplog.text
        assert 'service instance for "a" was provided' in caplog.text
        assert "Reading overview from source a" in caplog.text
        assert all(
            r.name == "aggregate_connector.connector.verbose"
            for r in caplog.records
            if r.levelno == logging.DEBUG
        )

    @pytest.mark.asyncio
    async def test_without_debug_no_debug_messages(
        self, source_a: FakeSource, caplog: pytest.LogCaptureFixture
    ):
        connector = AggregateConnector(
            {"name": "quiet", "sources": {"a": {"service": source_a}}}
        )

        await connector.connect()
        await connector.all("Item")

        assert "> connect" not in caplog.text
        assert "configuring source" not in caplog.text

    @pytest.mark.asyncio
    async def test_debug_output_passes_configured_handler(self, source_a: FakeSource):
        root_logger = logging.getLogger()
        saved_handlers = root_logger.handlers[:]
        saved_level = root_logger.level
        stream = io.StringIO()
        try:
            configure_logging(LoggingConfig(level="INFO"))
            for handler in root_logger.handlers:
                handler.setStream(stream)

            connector = AggregateConnector(
                {"name": "streamed", "debug": True, "sources": {"a": {"service": source_a}}}
            )
            await connector.connect()
            await connector.all("Item")
        finally:
            for handler in root_logger.handlers[:]:
                root_logger.removeHandler(handler)
            for handler in saved_handlers:
                root_logger.addHandler(handler)
            root_logger.setLevel(saved_level)

        output = stream.getvalue()
        assert "> connect" in output
        assert 'configuring source "a"' in output
        assert "Connected 1 source(s): a" in output


class TestLifecycle:
    def test_starts_disconnected_with_empty_registry(self, connector: AggregateConnector):
        assert connector.state is ConnectionState.DISCONNECTED
        assert len(connector.sources) == 0

    @pytest.mark.asyncio
    async def test_connect_builds_registry(self, connector, source_a, source_b):
        await connector.connect()

        assert connector.state is ConnectionState.CONNECTED
        assert connector.sources["a"] is source_a
        assert connector.sources["b"] is source_b

    @pytest.mark.asyncio
    async def test_connect_twice_keeps_registry(self, connector):
        await connector.connect()
        registry = connector.sources

        await connector.connect()

        assert connector.sources is registry

    @pytest.mark.asyncio
    async def test_concurrent_connects_build_sources_once(self):
        built = []

        def counting_factory():
            source = FakeSource([{"id": len(built)}])
            built.append(source)
            return source

        connector = AggregateConnector({"sources": {"a": {"module": counting_factory}}})

        await asyncio.gather(connector.connect(), connector.connect())

        assert len(built) == 1
        assert connector.sources["a"] is built[0]
        assert connector.state is ConnectionState.CONNECTED

    @pytest.mark.asyncio
    async def test_concurrent_connect_waits_for_slow_hook(self):
        release = asyncio.Event()
        hook_calls = []

        async def slow_hook(service, params):
            hook_calls.append(service)
            await release.wait()

        connector = AggregateConnector(
            {"sources": {"a": {"module": FakeSource, "onInstantiated": slow_hook}}}
        )

        first = asyncio.create_task(connector.connect())
        second = asyncio.create_task(connector.connect())
        await asyncio.sleep(0)
        assert connector.state is ConnectionState.CONNECTING
        assert not second.done()

        release.set()
        await asyncio.gather(first, second)

        assert len(hook_calls) == 1
        assert connector.state is ConnectionState.CONNECTED

    @pytest.mark.asyncio
    async def test_connect_failure_propagates_and_stays_disconnected(self):
        boom = RuntimeError("cannot build")

        def failing_factory():
            raise boom

        connector = AggregateConnector({"sources": {"a": {"module": failing_factory}}})

        with pytest.raises(RuntimeError) as exc_info:
            await connector.connect()

        assert exc_info.value is boom
        assert connector.state is ConnectionState.DISCONNECTED
        assert len(connector.sources) == 0

    @pytest.mark.asyncio
    async def test_connect_resolves_named_factory(self):
        connector = AggregateConnector(
            {"sources": {"a": {"module": "fake", "params": [[{"id": 9}]]}}},
            factories={"fake": FakeSource},
        )

        await connector.connect()

        assert await connector.all("Item") == [{"id": 9}]

    @pytest.mark.asyncio
    async def test_unknown_factory_fails_connect(self):
        connector = AggregateConnector({"sources": {"a": {"module": "nope"}}})

        with pytest.raises(ConfigurationError):
            await connector.connect()

    @pytest.mark.asyncio
    async def test_disconnect_and_ping_without_connect(self, connector):
        await connector.ping()
        await connector.disconnect()
        assert connector.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_disconnect_after_connect(self, connector):
        await connector.connect()
        await connector.disconnect()
        assert connector.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_all_after_disconnect_reads_last_registry(
        self, connector, source_a, source_b
    ):
        await connector.connect()
        await connector.disconnect()

        result = await connector.all("Item")

        assert result == [{"id": 1}, {"id": 2}, {"id": 3}]
        assert connector.state is ConnectionState.DISCONNECTED
        assert source_a.feeds.call_count == 1
        assert source_b.feeds.call_count == 1


class TestAll:
    @pytest.mark.asyncio
    async def test_concatenates_source_results(self, connector, source_a, source_b):
        await connector.connect()

        result = await connector.all("Item", {"where": {}}, {})

        assert result == [{"id": 1}, {"id": 2}, {"id": 3}]
        assert source_a.feeds.call_count == 1
        assert source_b.feeds.call_count == 1

    @pytest.mark.asyncio
    async def test_disabled_source_not_registered(self, source_a):
        connector = AggregateConnector(
            {"sources": {"a": {"service": source_a}, "off": None, "empty": {}}}
        )

        await connector.connect()
        result = await connector.all("Item")

        assert result == [{"id": 1}]
        assert connector.sources.names() == ["a"]

    @pytest.mark.asyncio
    async def test_prebuilt_service_skips_factory(self, source_a):
        factory = MagicMock()
        connector = AggregateConnector(
            {"sources": {"a": {"service": source_a, "module": factory}}}
        )

        await connector.connect()

        factory.assert_not_called()
        assert connector.sources["a"] is source_a

    @pytest.mark.asyncio
    async def test_source_failure_propagates(self, source_a):
        boom = ConnectionError("backend down")
        connector = AggregateConnector(
            {"sources": {"a": {"service": source_a}, "b": {"service": FakeSource(error=boom)}}}
        )
        await connector.connect()

        with pytest.raises(ConnectionError) as exc_info:
            await connector.all("Item")

        assert exc_info.value is boom

    @pytest.mark.asyncio
    async def test_before_connect_returns_empty(self, connector, source_a):
        assert await connector.all("Item") == []
        assert source_a.feeds.call_count == 0


class TestUnsupportedOperations:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("operation", "args", "method"),
        [
            ("create", ("Item", {"id": 1}), "create"),
            ("update_or_create", ("Item", {"id": 1}), "updateOrCreate"),
            ("find_or_create", ("Item", {"id": 1}), "findOrCreate"),
            ("count", ("Item", {}), "count"),
            ("destroy_all", ("Item", {}), "destroyAll"),
            ("save", ("Item", {"id": 1}), "save"),
            ("update", ("Item", {}, {"name": "x"}), "update"),
            ("update_attributes", ("Item", 1, {"name": "x"}), "updateAttributes"),
        ],
    )
    async def test_raises_method_not_supported(
        self, connector, source_a, operation, args, method
    ):
        await connector.connect()

        with pytest.raises(MethodNotSupportedError) as exc_info:
            await getattr(connector, operation)(*args, {})

        assert exc_info.value.method == method
        assert exc_info.value.code == "METHOD_NOT_SUPPORTED"
        assert source_a.feeds.call_count == 0

    @pytest.mark.asyncio
    async def test_destroy_succeeds(self, connector, source_a):
        assert await connector.destroy("Item", 1, {}) is None
        assert source_a.feeds.call_count == 0


class TestMetadata:
    def test_get_types(self, connector):
        assert connector.get_types() == ["aggregated"]

    def test_define_is_noop(self, connector):
        assert connector.define({"model": "Item", "properties": {}}) is None
        assert len(connector.sources) == 0
