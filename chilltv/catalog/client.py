"""
Catalog source client.

Fetches the list of stored movies from the Chillflix indexer API.
"""

import logging
from typing import Any, List, Optional
from urllib.parse import urljoin

import httpx

from chilltv.catalog.models import DEFAULT_DURATION, CatalogItem

logger = logging.getLogger(__name__)


class CatalogFetchError(Exception):
    """Raised when the catalog cannot be retrieved or is malformed."""


class CatalogClient:
    """Client for the stored-movies indexer API.

    The channel is only ever built from a complete, successfully fetched
    catalog: any transport or decoding problem raises CatalogFetchError
    instead of returning a partial list.
    """

    def __init__(
        self,
        base_url: str,
        endpoint: str = "/api/movies",
        timeout: float = 30.0,
        default_duration: int = DEFAULT_DURATION,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the catalog client.

        Args:
            base_url: Indexer base URL
            endpoint: Path of the movie listing endpoint
            timeout: Request timeout in seconds
            default_duration: Duration used for items without one
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url
        self.endpoint = endpoint
        self.timeout = timeout
        self.default_duration = default_duration
        self._transport = transport

    @property
    def url(self) -> str:
        """Full URL of the listing endpoint."""
        return urljoin(self.base_url.rstrip("/") + "/", self.endpoint.lstrip("/"))

    async def _get_json(self) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            ) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            logger.error(f"Catalog request timed out: {self.url}")
            raise CatalogFetchError(f"Timeout fetching catalog from {self.url}") from e
        except httpx.HTTPStatusError as e:
            detail = _error_detail(e.response)
            logger.error(f"Catalog API error {e.response.status_code}: {detail}")
            raise CatalogFetchError(detail) from e
        except httpx.HTTPError as e:
            logger.error(f"Catalog request failed: {e}")
            raise CatalogFetchError(str(e) or "Unknown Error") from e
        except ValueError as e:
            logger.error(f"Catalog response is not valid JSON: {e}")
            raise CatalogFetchError("Catalog response is not valid JSON") from e

    async def fetch_items(self) -> List[CatalogItem]:
        """
        Fetch every stored movie, in the order the API returns them.

        Returns:
            List of CatalogItem.

        Raises:
            CatalogFetchError: On any transport, status or decoding failure.
        """
        data = await self._get_json()

        if not isinstance(data, list):
            raise CatalogFetchError(
                f"Expected a list of movies, got {type(data).__name__}"
            )

        items = []
        for record in data:
            if not isinstance(record, dict):
                raise CatalogFetchError("Malformed movie record in catalog")
            try:
                items.append(CatalogItem.from_api(record, self.default_duration))
            except (TypeError, ValueError) as e:
                logger.error(f"Malformed movie record {record.get('title')!r}: {e}")
                raise CatalogFetchError(f"Malformed movie record in catalog: {e}") from e

        logger.info(f"Fetched {len(items)} catalog items")
        return items

    async def get_by_tmdb_id(self, tmdb_id: int) -> Optional[CatalogItem]:
        """Get a stored movie by its TMDB id, or None if it is not stored."""
        for item in await self.fetch_items():
            if item.tmdb_id == tmdb_id:
                return item
        return None

    async def search_by_title(self, title: str) -> List[CatalogItem]:
        """Case-insensitive substring search over stored movie titles."""
        return search_items(await self.fetch_items(), title)


def search_items(items: List[CatalogItem], title: str) -> List[CatalogItem]:
    """Filter items whose title contains ``title`` (case-insensitive)."""
    needle = title.lower()
    return [item for item in items if needle in item.title.lower()]


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"API Error ({response.status_code})"
    if isinstance(body, dict):
        return body.get("detail") or body.get("message") or "API Error"
    return "API Error"
