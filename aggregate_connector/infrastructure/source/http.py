"""HTTP JSON source - serves a remote JSON endpoint as an overview feed."""

from typing import Any

import httpx
from pydantic import BaseModel

from aggregate_connector.sdk.source.source import CallOptions, Document


class HttpFeedConfig(BaseModel):
    """Configuration for the http-json source."""

    url: str
    headers: dict[str, str] = {}
    params: dict[str, Any] = {}  # Query parameters sent with every request
    record_path: str | None = None  # Dotted path to the document list, e.g. "data.items"
    timeout: float = 30.0


class HttpFeeds:
    """Overview feed backed by a single GET request."""

    def __init__(
        self,
        config: HttpFeedConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    async def overview(self, options: CallOptions) -> list[Document]:
        """Fetch the configured URL and return its documents.

        ``options["params"]``, if present, is merged over the configured
        query parameters.

        Raises:
            httpx.HTTPStatusError: If the endpoint answers with an error status.
            ValueError: If ``record_path`` does not lead to a list or object.
        """
        params = {**self._config.params, **dict(options.get("params") or {})}

        async with httpx.AsyncClient(
            timeout=self._config.timeout,
            transport=self._transport,
        ) as client:
            response = await client.get(
                self._config.url,
                params=params,
                headers=self._config.headers,
            )
            response.raise_for_status()
            payload = response.json()

        if self._config.record_path:
            payload = _get_by_dotted_path(payload, self._config.record_path)
        return _to_documents(payload, self._config.record_path)


class HttpFeedSource:
    """Source reading its overview from a JSON HTTP endpoint."""

    name = "http-json"
    config_class = HttpFeedConfig

    def __init__(
        self,
        config: HttpFeedConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.feeds = HttpFeeds(config, transport=transport)


def _get_by_dotted_path(payload: Any, path: str) -> Any:
    """Traverse a JSON-like object using a dotted path like "a.b.c".

    Returns None if any segment is missing.
    """
    cur = payload
    for part in path.split("."):
        if isinstance(cur, dict) and part in cur:
            cur = cur[part]
        else:
            return None
    return cur


def _to_documents(payload: Any, record_path: str | None) -> list[Document]:
    if isinstance(payload, list):
        return [item if isinstance(item, dict) else {"value": item} for item in payload]
    if isinstance(payload, dict):
        return [payload]
    if record_path:
        raise ValueError(f"record_path '{record_path}' did not return a list or object")
    return [{"value": payload}]
