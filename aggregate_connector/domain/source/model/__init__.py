from aggregate_connector.domain.source.model.registry import SourceRegistry
from aggregate_connector.domain.source.model.state import ConnectionState

__all__ = ["ConnectionState", "SourceRegistry"]
