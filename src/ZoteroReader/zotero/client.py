"""Zotero Web API v3 client.

Every call resolves the account credentials at call time, retries HTTP 429
through a :class:`RetryPolicy`, passes HTTP 304 through to the caller and
turns any other non-2xx answer into :class:`UpstreamError`.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

import requests

from ZoteroReader.core.errors import NotConfigured, ReaderError, UpstreamError, snippet
from ZoteroReader.core.models import ItemPage
from ZoteroReader.utils.log import log
from ZoteroReader.utils.retry import RetryPolicy

ZOTERO_API_BASE = "https://api.zotero.org"
API_VERSION = "3"
DEFAULT_TIMEOUT = 30.0
NOT_MODIFIED = 304
NOT_FOUND = 404

HEADERS = {
    "User-Agent": "zotero-reader/0.1",
    "Accept": "application/json",
}

CredentialsProvider = Callable[[], tuple[str, str]]


class ZoteroApiClient:
    """Low-level HTTP client for the Zotero Web API."""

    def __init__(
        self,
        credentials: CredentialsProvider,
        *,
        base_url: str = ZOTERO_API_BASE,
        api_version: str = API_VERSION,
        timeout: float = DEFAULT_TIMEOUT,
        retry: RetryPolicy | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            credentials: Returns ``(user_id, api_key)`` with the key decrypted.
            base_url: API root.
            api_version: Value sent in the ``Zotero-API-Version`` header.
            timeout: Request timeout in seconds.
            retry: Policy applied to HTTP 429 answers.
            session: Reusable HTTP session.
        """
        self._credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self._retry = retry or RetryPolicy()
        self._session = session or requests.Session()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def __enter__(self) -> ZoteroApiClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def list_collections(self, parent_key: str | None = None) -> list[dict[str, Any]]:
        """List top-level collections, or the sub-collections of ``parent_key``."""
        path = f"/collections/{parent_key}/collections" if parent_key else "/collections/top"
        return self._get_json(path, params={"limit": "100"})

    def list_items(
        self,
        *,
        collection_key: str | None = None,
        q: str | None = None,
        sort: str = "dateModified",
        direction: str = "desc",
        limit: int = 25,
        start: int = 0,
    ) -> ItemPage:
        """List top-level items of the library or of one collection.

        Args:
            collection_key: Restrict to one collection.
            q: Free-text quick search.
            sort: Sort field.
            direction: ``asc`` or ``desc``.
            limit: Page size.
            start: Page offset.

        Returns:
            Items plus the ``Total-Results`` count.
        """
        path = f"/collections/{collection_key}/items/top" if collection_key else "/items/top"
        params = {
            "limit": str(limit),
            "start": str(start),
            "sort": sort,
            "direction": direction,
        }
        if q:
            params["q"] = q

        response = self._get(path, params=params)
        try:
            total = int(response.headers.get("Total-Results") or 0)
        except ValueError:
            total = 0
        items = response.json()
        return ItemPage(items=items if isinstance(items, list) else [], total_results=total)

    def get_item(self, item_key: str, since_version: int | None = None) -> dict[str, Any] | None:
        """Fetch one item.

        Args:
            item_key: Zotero item key.
            since_version: Library version already held by the caller; sent
                as ``If-Modified-Since-Version``.

        Returns:
            Item mapping, or None when the server answered 304 (unchanged).
        """
        headers = {"If-Modified-Since-Version": str(since_version)} if since_version is not None else None
        response = self._get(f"/items/{item_key}", headers=headers)
        if response.status_code == NOT_MODIFIED:
            response.close()
            return None
        return response.json()

    def get_item_children(self, item_key: str) -> list[dict[str, Any]]:
        """Fetch child items (attachments, notes) of an item."""
        return self._get_json(f"/items/{item_key}/children")

    def download_attachment(self, attachment_key: str) -> requests.Response:
        """Open a streamed download of an attachment's file.

        The caller owns the returned response and must close it.
        """
        return self._get(f"/items/{attachment_key}/file", stream=True)

    def get_fulltext(self, item_key: str) -> dict[str, Any] | None:
        """Fetch the indexed full text of an item.

        Returns:
            Mapping with ``content``/``indexedPages``/``totalPages``, or None
            when the item has no full-text index.
        """
        try:
            response = self._get(f"/items/{item_key}/fulltext")
        except UpstreamError as e:
            if e.upstream_status == NOT_FOUND:
                log.debug("No full-text index for item %s", item_key)
                return None
            raise
        return response.json()

    def test_connection(self, user_id: str, api_key: str) -> dict[str, Any]:
        """Check credentials with one unretried request.

        Returns:
            ``{"success": True}`` or ``{"success": False, "error": str}``.
        """
        probe = ZoteroApiClient(
            lambda: (user_id, api_key),
            base_url=self.base_url,
            api_version=self.api_version,
            timeout=self.timeout,
            retry=RetryPolicy(max_attempts=1),
            session=self._session,
        )
        try:
            probe._get("/collections", params={"limit": "1"}).close()
        except ReaderError as e:
            return {"success": False, "error": e.message}
        return {"success": True}

    def _get_json(self, path: str, *, params: Mapping[str, str] | None = None) -> Any:
        return self._get(path, params=params).json()

    def _get(
        self,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> requests.Response:
        """Issue GET against the account's library.

        Raises:
            NotConfigured: If the user id or API key is missing.
            RateLimited: If every attempt was rate limited.
            UpstreamError: On network failure or non-2xx/304 status.
        """
        user_id, api_key = self._credentials()
        if not user_id or not api_key:
            raise NotConfigured("Zotero is not configured: user id and API key are required")

        url = f"{self.base_url}/users/{user_id}{path}"
        request_headers = {
            **HEADERS,
            "Zotero-API-Key": api_key,
            "Zotero-API-Version": self.api_version,
            **(headers or {}),
        }

        def send() -> requests.Response:
            log.debug("Zotero GET %s params=%s", path, params)
            try:
                return self._session.get(
                    url,
                    params=params,
                    headers=request_headers,
                    timeout=self.timeout,
                    stream=stream,
                )
            except requests.RequestException as e:
                raise UpstreamError(f"Zotero request failed: {type(e).__name__}") from e

        response = self._retry.execute(send, label=f"Zotero GET {path}")
        status = response.status_code
        if status == NOT_MODIFIED or 200 <= status < 300:
            return response

        body = snippet(response.text)
        response.close()
        raise UpstreamError(f"Zotero API error {status}: {body}", upstream_status=status, body=body)
