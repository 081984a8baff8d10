"""Minimal async client for the Notion REST API."""

import os
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from src.shared.errors import NotionAPIError

NOTION_API_BASE_URL = os.environ.get("NOTION_API_BASE_URL", "https://api.notion.com")
NOTION_TIMEOUT_SECONDS = float(os.environ.get("NOTION_TIMEOUT_SECONDS", "30"))
NOTION_VERSION = "2022-06-28"
PAGE_SIZE = 100


class NotionClient:
    """Bearer-authenticated Notion API client."""

    def __init__(self, api_key: str, base_url: str = NOTION_API_BASE_URL, timeout: float = NOTION_TIMEOUT_SECONDS):
        self._base_url = base_url
        self._timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        }
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "NotionClient":
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=self._timeout,
        )
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, context: str, **kwargs) -> Dict[str, Any]:
        if self._client is None:
            raise RuntimeError("NotionClient must be used as an async context manager")
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise NotionAPIError(f"{context}: {e}", cause=e) from e

        if resp.status_code >= 400:
            raise NotionAPIError(
                f"{context}: Notion API error: {_error_message(resp)}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise NotionAPIError(f"{context}: invalid JSON from Notion", status_code=resp.status_code, cause=e) from e

    async def query_database(self, database_id: str, start_cursor: Optional[str] = None) -> Dict[str, Any]:
        """Fetch one page of results from a database query."""
        body: Dict[str, Any] = {"page_size": PAGE_SIZE}
        if start_cursor:
            body["start_cursor"] = start_cursor
        return await self._request(
            "POST",
            f"/v1/databases/{database_id}/query",
            f"query_database({database_id})",
            json=body,
        )

    async def iter_database_pages(self, database_id: str) -> AsyncIterator[List[Dict[str, Any]]]:
        """Yield each batch of results until Notion reports no more pages."""
        cursor = None
        while True:
            data = await self.query_database(database_id, cursor)
            yield data.get("results") or []
            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break

    async def get_page(self, page_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/v1/pages/{page_id}", f"get_page({page_id})")


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    if isinstance(payload, dict) and payload.get("message"):
        return payload["message"]
    return f"HTTP {resp.status_code}"
