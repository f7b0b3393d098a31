"""Source SDK - Protocols and types for backend sources."""

from aggregate_connector.sdk.source.source import (
    CallOptions,
    Document,
    Feeds,
    InstantiatedHook,
    Source,
    SourceFactory,
)

__all__ = [
    "CallOptions",
    "Document",
    "Feeds",
    "InstantiatedHook",
    "Source",
    "SourceFactory",
]
