from aggregate_connector.domain.source.service.aggregate import AggregateService

__all__ = ["AggregateService"]
