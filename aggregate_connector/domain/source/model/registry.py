"""Source registry - read-only container for connected sources."""

from collections.abc import Iterator, Mapping

from aggregate_connector.sdk.source.source import Source


class SourceRegistry(Mapping[str, Source]):
    """Registry of live sources, keyed by configured name.

    Built once per connect and never mutated afterwards. Iteration follows
    the order of the configuration the registry was built from.
    """

    def __init__(self, sources: Mapping[str, Source] | None = None) -> None:
        self._sources: dict[str, Source] = dict(sources or {})

    def __getitem__(self, name: str) -> Source:
        return self._sources[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sources)

    def __len__(self) -> int:
        return len(self._sources)

    def __repr__(self) -> str:
        return f"SourceRegistry({self.names()!r})"

    def names(self) -> list[str]:
        """List all registered source names."""
        return list(self._sources.keys())
