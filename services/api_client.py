# services/api_client.py — async wrapper over the Book Store HTTP API
import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Something went wrong"


class APIError(Exception):
    """Any failed call, normalized to a message and an HTTP status.

    ``status`` is None when the request never got a response.
    """

    def __init__(self, message: str, status: Optional[int] = None, details: Optional[List[Dict]] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "status": self.status}


def _clean_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {k: v for k, v in (params or {}).items() if v is not None and v != ""}


class BookAPIClient:
    def __init__(
        self,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            timeout=timeout,
            headers=headers,
        )

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            r = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise APIError(str(e) or DEFAULT_MESSAGE) from e

        try:
            body = r.json()
        except ValueError:
            body = None

        if r.is_success and isinstance(body, dict):
            return body

        if isinstance(body, dict):
            message = body.get("message") or body.get("error") or DEFAULT_MESSAGE
            details = body.get("details")
        else:
            message = r.reason_phrase or DEFAULT_MESSAGE
            details = None
        raise APIError(message, status=r.status_code, details=details)

    async def get_books(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self._request("GET", "/api/books", params=_clean_params(params))

    async def get_book(self, book_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/api/books/{book_id}")

    async def create_book(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/api/books", json=data)

    async def update_book(self, book_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/books/{book_id}", json=data)

    async def delete_book(self, book_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/books/{book_id}")

    async def get_stats(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/books/stats")

    async def health(self) -> Dict[str, Any]:
        return await self._request("GET", "/health")

    async def aclose(self):
        await self._client.aclose()
