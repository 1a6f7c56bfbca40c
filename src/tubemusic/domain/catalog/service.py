"""
Catalog service operations.

Handles track search and stream URL resolution against the catalog HTTP API.
"""

import asyncio
from typing import Any, NamedTuple, Optional, Protocol

import requests
from loguru import logger

from tubemusic.domain.playlist.models import Track
from tubemusic.exceptions import CatalogUnavailable

DEFAULT_TIMEOUT = 10.0


class StreamSource(NamedTuple):
    """A playable stream for a track."""

    url: str


class CatalogService(Protocol):
    """Search and stream resolution capability."""

    async def search(self, query: str, limit: int) -> list[Track]: ...

    async def resolve_stream_url(self, track_id: str) -> StreamSource: ...


def parse_search_results(payload: Any) -> list[Track]:
    """Parse a search response body into tracks.

    Raises:
        CatalogUnavailable: If the body is not a list of tracks
    """
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise CatalogUnavailable(
            f"Search returned {type(payload).__name__}, expected a list"
        )
    try:
        return [Track.from_dict(item) for item in payload]
    except ValueError as e:
        raise CatalogUnavailable(f"Search returned a malformed track: {e}") from e


def parse_stream_source(payload: Any, track_id: str) -> StreamSource:
    """Parse a play response body into a stream source.

    Raises:
        CatalogUnavailable: If the body carries no URL
    """
    url = payload.get("url") if isinstance(payload, dict) else None
    if not isinstance(url, str) or not url:
        raise CatalogUnavailable(f"No stream URL returned for track {track_id}")
    return StreamSource(url=url)


class HttpCatalogService:
    """Catalog client over ``/api/search`` and ``/api/play``.

    Requests are blocking; each call runs in a worker thread so the event
    loop is only suspended at the call site.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            logger.warning(f"Catalog request failed: GET {path} -> HTTP {status}")
            raise CatalogUnavailable(f"Catalog returned HTTP {status} for {path}") from e
        except requests.exceptions.JSONDecodeError as e:
            logger.warning(f"Catalog returned non-JSON body for GET {path}")
            raise CatalogUnavailable(f"Catalog returned invalid JSON for {path}") from e
        except requests.RequestException as e:
            logger.warning(f"Catalog request failed: GET {path}: {e}")
            raise CatalogUnavailable(f"Catalog unreachable: {e}") from e

    def search_sync(self, query: str, limit: int) -> list[Track]:
        payload = self._get_json("/api/search", {"query": query, "limit": limit})
        tracks = parse_search_results(payload)
        logger.debug(f"Search '{query}' returned {len(tracks)} tracks")
        return tracks

    def resolve_stream_url_sync(self, track_id: str) -> StreamSource:
        payload = self._get_json("/api/play", {"id": track_id})
        source = parse_stream_source(payload, track_id)
        logger.debug(f"Resolved stream URL for track {track_id}")
        return source

    async def search(self, query: str, limit: int) -> list[Track]:
        """Search the catalog.

        Raises:
            CatalogUnavailable: Network, HTTP or payload failure
        """
        return await asyncio.to_thread(self.search_sync, query, limit)

    async def resolve_stream_url(self, track_id: str) -> StreamSource:
        """Resolve a track id to a playable stream URL.

        Raises:
            CatalogUnavailable: Network, HTTP or payload failure (incl. unknown id)
        """
        return await asyncio.to_thread(self.resolve_stream_url_sync, track_id)

    def close(self) -> None:
        self.session.close()
