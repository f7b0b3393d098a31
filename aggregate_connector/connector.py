"""AggregateConnector - delegates host model operations to named sources."""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import logfire

from aggregate_connector.config import ConnectorSettings
from aggregate_connector.domain.shared.error import MethodNotSupportedError
from aggregate_connector.domain.source.model.registry import SourceRegistry
from aggregate_connector.domain.source.model.state import ConnectionState
from aggregate_connector.domain.source.service.aggregate import AggregateService
from aggregate_connector.infrastructure.source.builder import build_registry
from aggregate_connector.sdk.source.source import CallOptions, Document, SourceFactory

logger = logging.getLogger(__name__)


class AggregateConnector:
    """Connector answering reads from every configured source at once.

    Only ``all`` reaches the sources. Writes and counts are refused with
    ``MethodNotSupportedError``; ``destroy`` succeeds without doing anything.
    """

    name = "aggregate"

    def __init__(
        self,
        settings: ConnectorSettings | Mapping[str, Any],
        data_source: Any = None,
        factories: dict[str, SourceFactory] | None = None,
    ) -> None:
        if not isinstance(settings, ConnectorSettings):
            settings = ConnectorSettings.model_validate(settings)

        self.settings = settings
        self.data_source = data_source
        self.build_near_filter = False
        self._factories = factories or {}
        self._sources = SourceRegistry()
        self._state = ConnectionState.DISCONNECTED
        self._connect_lock = asyncio.Lock()

        self._logger = logger.getChild(settings.name)
        if settings.debug:
            self._logger.setLevel(logging.DEBUG)

        self._logger.debug("Settings: name=%s, sources=%s", settings.name, list(settings.sources))

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def sources(self) -> SourceRegistry:
        """Sources resolved by the last successful connect."""
        return self._sources

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """Resolve the configured sources into the active registry.

        Raises:
            Whatever a source factory or ``on_instantiated`` hook raised, or
            ConfigurationError / SourceConfigError for bad entries. The
            connector stays disconnected in that case.

        Concurrent callers share one build: the first builds, the rest wait
        for it and return once connected.
        """
        self._logger.debug("> connect")
        async with self._connect_lock:
            if self._state is ConnectionState.CONNECTED:
                return

            self._state = ConnectionState.CONNECTING
            try:
                with logfire.span("ConnectAggregate", connector=self.settings.name):
                    registry = await build_registry(
                        self.settings.sources, self._factories, log=self._logger
                    )
            except Exception:
                self._state = ConnectionState.DISCONNECTED
                raise

            self._sources = registry
            self._state = ConnectionState.CONNECTED
        self._logger.info("Connected %d source(s): %s", len(registry), ", ".join(registry))

    async def disconnect(self) -> None:
        """Mark the connector disconnected. Sources manage their own connections."""
        self._logger.debug("> disconnect")
        if self._state is ConnectionState.CONNECTED:
            self._state = ConnectionState.DISCONNECTING
        self._state = ConnectionState.DISCONNECTED

    async def ping(self) -> None:
        self._logger.debug("> ping")

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def get_types(self) -> list[str]:
        return ["aggregated"]

    def define(self, definition: Any) -> None:
        """Called once per model registered against this connector."""
        # TODO: map model properties onto per-source document fields
        self._logger.debug("> define; definition %r", definition)

    # -------------------------------------------------------------------------
    # Model operations
    # -------------------------------------------------------------------------

    async def all(
        self,
        model: str,
        filter: Mapping[str, Any] | None = None,
        options: CallOptions | None = None,
    ) -> list[Document]:
        """Read documents for ``model`` from every source and concatenate them.

        The filter is not applied; sources decide what their overview holds.

        Raises:
            The exception of the first source whose read fails.
        """
        self._logger.debug("> all; model %s, filter %r, options %r", model, filter, options)
        service = AggregateService(sources=self._sources, log=self._logger)
        return await service.read_all(options)

    async def create(self, model: str, data: Any, options: CallOptions | None = None) -> Any:
        self._logger.debug("> create; model %s, data %r, options %r", model, data, options)
        raise MethodNotSupportedError("create")

    async def update_or_create(
        self, model: str, data: Any, options: CallOptions | None = None
    ) -> Any:
        self._logger.debug("> updateOrCreate; model %s, data %r, options %r", model, data, options)
        raise MethodNotSupportedError("updateOrCreate")

    async def find_or_create(
        self, model: str, data: Any, options: CallOptions | None = None
    ) -> Any:
        self._logger.debug("> findOrCreate; model %s, data %r, options %r", model, data, options)
        raise MethodNotSupportedError("findOrCreate")

    async def count(
        self,
        model: str,
        where: Mapping[str, Any] | None = None,
        options: CallOptions | None = None,
    ) -> int:
        self._logger.debug("> count; model %s, where %r, options %r", model, where, options)
        raise MethodNotSupportedError("count")

    async def destroy_all(
        self,
        model: str,
        where: Mapping[str, Any] | None = None,
        options: CallOptions | None = None,
    ) -> Any:
        self._logger.debug("> destroyAll; model %s, where %r, options %r", model, where, options)
        raise MethodNotSupportedError("destroyAll")

    async def save(self, model: str, data: Any, options: CallOptions | None = None) -> Any:
        self._logger.debug("> save; model %s, data %r, options %r", model, data, options)
        raise MethodNotSupportedError("save")

    async def update(
        self,
        model: str,
        where: Mapping[str, Any] | None,
        data: Any,
        options: CallOptions | None = None,
    ) -> Any:
        self._logger.debug(
            "> update; model %s, where %r, data %r, options %r", model, where, data, options
        )
        raise MethodNotSupportedError("update")

    async def destroy(self, model: str, id: Any, options: CallOptions | None = None) -> None:
        self._logger.debug("> destroy; model %s, id %s, options %r", model, id, options)

    async def update_attributes(
        self, model: str, id: Any, data: Any, options: CallOptions | None = None
    ) -> Any:
        self._logger.debug(
            "> updateAttributes; model %s, id %s, data %r, options %r", model, id, data, options
        )
        raise MethodNotSupportedError("updateAttributes")
