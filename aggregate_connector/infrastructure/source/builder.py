"""Builds the source registry from configured entries."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping

from aggregate_connector.config import SourceEntry
from aggregate_connector.domain.source.model.registry import SourceRegistry
from aggregate_connector.infrastructure.source.discovery import (
    resolve_factory,
    validate_source_params,
)
from aggregate_connector.sdk.source.source import Source, SourceFactory

logger = logging.getLogger(__name__)


async def build_registry(
    entries: Mapping[str, SourceEntry | None],
    factories: dict[str, SourceFactory] | None = None,
    log: logging.Logger | None = None,
) -> SourceRegistry:
    """Resolve every configured entry into a live source.

    Entries are resolved concurrently. Falsy entries are left out of the
    registry. The first entry that fails (unknown factory, invalid params,
    factory or hook raising) fails the whole build with that exception.

    Args:
        entries: Source name -> entry, in configuration order.
        factories: Factories that string ``module`` references resolve against.
        log: Logger for per-source diagnostics; defaults to this module's logger.

    Returns:
        Registry preserving the configuration order of the resolved entries.
    """
    available = factories or {}
    log = log or logger
    names = list(entries.keys())

    services = await asyncio.gather(
        *(_resolve_entry(name, entries[name], available, log) for name in names)
    )

    return SourceRegistry(
        {name: service for name, service in zip(names, services) if service is not None}
    )


async def _resolve_entry(
    name: str,
    entry: SourceEntry | None,
    available: dict[str, SourceFactory],
    log: logging.Logger,
) -> Source | None:
    log.debug('configuring source "%s"', name)

    if not entry:
        log.debug('source "%s" is disabled', name)
        return None

    if entry.service is not None:
        log.debug('service instance for "%s" was provided', name)
        return entry.service

    log.debug('service instance for "%s" must be instantiated', name)
    factory = resolve_factory(entry.module, available)
    service = _instantiate(factory, entry.params)

    if entry.on_instantiated is not None:
        replacement = entry.on_instantiated(service, entry.params)
        if inspect.isawaitable(replacement):
            replacement = await replacement
        if replacement is not None:
            service = replacement

    return service


def _instantiate(factory: SourceFactory, params: object) -> Source:
    if params is None:
        return factory()
    if isinstance(params, (list, tuple)):
        # A leading mapping is the config for factories declaring config_class
        args = list(params)
        if args:
            args[0] = validate_source_params(factory, args[0])
        return factory(*args)
    return factory(validate_source_params(factory, params))
