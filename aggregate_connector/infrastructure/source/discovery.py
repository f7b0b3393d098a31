"""Source factory discovery via entry points."""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import Any

from pydantic import BaseModel, ValidationError

from aggregate_connector.domain.shared.error import ConfigurationError, InfrastructureError
from aggregate_connector.sdk.source.source import SourceFactory

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "aggregate_connector.sources"


def discover_source_factories() -> dict[str, SourceFactory]:
    """Discover available source factories via entry points.

    Scans for entry points in the 'aggregate_connector.sources' group. Each
    entry point should point to a callable returning an object that
    implements the Source protocol.

    Returns:
        Dict mapping factory names to the loaded callables.

    Example pyproject.toml entry:
        [project.entry-points."aggregate_connector.sources"]
        http-json = "aggregate_connector.infrastructure.source.http:HttpFeedSource"
    """
    factories: dict[str, SourceFactory] = {}
    eps = entry_points(group=ENTRY_POINT_GROUP)

    for ep in eps:
        try:
            factory = ep.load()
            _validate_source_factory(factory, ep.name)
            factories[ep.name] = factory
            logger.debug("Discovered source factory: %s -> %s", ep.name, _qualname(factory))
        except Exception as e:
            logger.warning("Failed to load source factory '%s': %s", ep.name, e)

    return factories


def _validate_source_factory(factory: Any, name: str) -> None:
    """Validate that an entry point resolved to something usable as a factory.

    Raises:
        TypeError: If the object is not callable or has a bad config_class.
    """
    if not callable(factory):
        raise TypeError(f"Source factory {name} must be callable, got {type(factory).__name__}")
    config_class = getattr(factory, "config_class", None)
    if config_class is not None and not (
        isinstance(config_class, type) and issubclass(config_class, BaseModel)
    ):
        raise TypeError(f"Source factory {name} config_class must be a Pydantic BaseModel")


def _qualname(factory: Any) -> str:
    return getattr(factory, "__qualname__", type(factory).__name__)


def resolve_factory(
    module: str | SourceFactory,
    available: dict[str, SourceFactory],
) -> SourceFactory:
    """Turn an entry's ``module`` reference into a callable factory.

    Args:
        module: A callable, or the name of a factory in ``available``.
        available: Factories known at build time.

    Raises:
        ConfigurationError: If a factory name is not known.
    """
    if callable(module):
        return module

    factory = available.get(module)
    if factory is None:
        names = ", ".join(sorted(available.keys())) or "(none)"
        raise ConfigurationError(f"Unknown source module '{module}'. Available: {names}")
    return factory


def validate_source_params(factory: SourceFactory, params: Any) -> Any:
    """Validate mapping params against the factory's config_class, if it has one.

    Returns:
        The validated config instance, or ``params`` unchanged.

    Raises:
        SourceConfigError: If params don't match the config schema.
    """
    config_class = getattr(factory, "config_class", None)
    if config_class is None or not isinstance(params, dict):
        return params

    try:
        return config_class.model_validate(params)
    except ValidationError as e:
        raise SourceConfigError(factory_name=_qualname(factory), validation_error=e) from e


class SourceConfigError(InfrastructureError):
    """Raised when source params fail config validation."""

    def __init__(
        self,
        factory_name: str,
        validation_error: ValidationError,
    ) -> None:
        self.factory_name = factory_name
        self.validation_error = validation_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format a human-readable error message."""
        lines = [f"Invalid params for source factory '{self.factory_name}':"]
        for err in self.validation_error.errors():
            loc = ".".join(str(x) for x in err.get("loc", []))
            msg = err.get("msg", "Unknown error")
            lines.append(f"  - {loc}: {msg}")
        return "\n".join(lines)
