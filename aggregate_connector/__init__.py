"""Aggregate connector - fans model reads out over named backend sources."""

from aggregate_connector.config import ConnectorSettings, SourceEntry
from aggregate_connector.connector import AggregateConnector
from aggregate_connector.domain.shared.error import MethodNotSupportedError

__all__ = [
    "AggregateConnector",
    "ConnectorSettings",
    "MethodNotSupportedError",
    "SourceEntry",
]

__version__ = "0.1.0"
