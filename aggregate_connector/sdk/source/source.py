"""Source protocol for backend services consulted by the connector."""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol

Document = dict[str, Any]
CallOptions = Mapping[str, Any]


class Feeds(Protocol):
    """Read capabilities a source exposes to the connector."""

    async def overview(self, options: CallOptions) -> list[Document]:
        """Return the documents this source contributes to an aggregate read.

        Args:
            options: Call options forwarded unchanged from the host.

        Returns:
            Documents in the order the source produces them.
        """
        ...


class Source(Protocol):
    """Protocol for backend source services.

    A source manages its own connectivity; the connector only ever calls
    ``feeds.overview``.
    """

    feeds: Feeds


# Factory called with the entry's params to build a source.
SourceFactory = Callable[..., Source]

# Post-construction hook: (service, params) -> replacement or None.
# May be a plain function or a coroutine function.
InstantiatedHook = Callable[[Source, Any], "Source | None | Awaitable[Source | None]"]
