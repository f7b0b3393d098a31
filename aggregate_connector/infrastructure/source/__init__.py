from aggregate_connector.infrastructure.source.builder import build_registry
from aggregate_connector.infrastructure.source.discovery import (
    SourceConfigError,
    discover_source_factories,
)

__all__ = ["SourceConfigError", "build_registry", "discover_source_factories"]
