"""Dependency injection wiring for the connector."""

from typing import NewType

from dishka import AsyncContainer, Provider, Scope, from_context, make_async_container, provide

from aggregate_connector.config import ConnectorSettings
from aggregate_connector.connector import AggregateConnector
from aggregate_connector.infrastructure.source.discovery import discover_source_factories
from aggregate_connector.sdk.source.source import SourceFactory

SourceFactories = NewType("SourceFactories", dict[str, SourceFactory])


class ConnectorProvider(Provider):
    """Provides the source factory table and the connector."""

    settings = from_context(provides=ConnectorSettings, scope=Scope.APP)

    @provide(scope=Scope.APP)
    def get_factories(self) -> SourceFactories:
        """Factories registered under the aggregate_connector.sources entry point group."""
        return SourceFactories(discover_source_factories())

    @provide(scope=Scope.APP)
    def get_connector(
        self,
        settings: ConnectorSettings,
        factories: SourceFactories,
    ) -> AggregateConnector:
        """Build the connector. Sources are resolved later, on connect."""
        return AggregateConnector(settings, factories=factories)


def create_container(
    settings: ConnectorSettings | None = None,
    *providers: Provider,
) -> AsyncContainer:
    """Create the application container.

    Args:
        settings: Connector settings; read from env / AGGREGATE_CONFIG_FILE if omitted.
        providers: Extra providers, e.g. to override the factory table in tests.
    """
    # Pydantic Settings populates from env vars at runtime
    if settings is None:
        settings = ConnectorSettings()  # type: ignore[call-arg]

    return make_async_container(
        ConnectorProvider(),
        *providers,
        context={ConnectorSettings: settings},
    )
