"""AggregateService - fans a read out over every registered source."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

import logfire

from aggregate_connector.domain.source.model.registry import SourceRegistry
from aggregate_connector.sdk.source.source import CallOptions, Document, Source

logger = logging.getLogger(__name__)


@dataclass
class AggregateService:
    """Reads the overview feed of every source and concatenates the results.

    Reads run concurrently. The first failing source fails the whole read
    with its own exception; reads still in flight are left to finish and
    their results are dropped.
    """

    sources: SourceRegistry
    log: logging.Logger = field(default=logger)

    async def read_all(self, options: CallOptions | None = None) -> list[Document]:
        """Concatenate the overview documents of all sources.

        Args:
            options: Call options passed unchanged to each source.

        Returns:
            Documents grouped by source in registry order, each group in the
            order its source returned them. Empty when no source is registered.
        """
        if not self.sources:
            return []

        call_options: CallOptions = options if options is not None else {}
        names = self.sources.names()

        with logfire.span("AggregateRead", sources=names):
            results = await asyncio.gather(
                *(self._read_one(name, self.sources[name], call_options) for name in names)
            )

        documents: list[Document] = []
        for batch in results:
            documents.extend(batch)
        return documents

    async def _read_one(
        self, name: str, source: Source, options: Mapping
    ) -> list[Document]:
        self.log.debug("Reading overview from source %s", name)
        documents = list(await source.feeds.overview(options))
        self.log.debug("Source %s returned %d documents", name, len(documents))
        return documents
