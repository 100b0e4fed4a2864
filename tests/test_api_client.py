"""Tests for the HTTP client wrapper, using a mock transport."""

import httpx
import pytest

from services.api_client import APIError, BookAPIClient


def make_client(handler) -> BookAPIClient:
    return BookAPIClient("http://books.test/", transport=httpx.MockTransport(handler))


class TestSuccess:
    async def test_returns_envelope(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/books/stats"
            return httpx.Response(200, json={"success": True, "data": {"overview": {}}})

        client = make_client(handler)
        body = await client.get_stats()
        assert body == {"success": True, "data": {"overview": {}}}
        await client.aclose()

    async def test_blank_params_are_dropped(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(dict(request.url.params))
            return httpx.Response(200, json={"success": True, "data": [], "pagination": {}})

        client = make_client(handler)
        await client.get_books({"genre": "Mystery", "search": "", "page": 2, "limit": None})
        assert seen == {"genre": "Mystery", "page": "2"}
        await client.aclose()

    async def test_write_methods_send_json(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append((request.method, request.url.path, request.content))
            return httpx.Response(200, json={"success": True, "data": {}})

        client = make_client(handler)
        await client.create_book({"title": "x"})
        await client.update_book("abc", {"price": 2})
        await client.delete_book("abc")
        assert [(m, p) for m, p, _ in calls] == [
            ("POST", "/api/books"),
            ("PUT", "/api/books/abc"),
            ("DELETE", "/api/books/abc"),
        ]
        assert b'"title"' in calls[0][2]
        await client.aclose()

    async def test_content_type_only_on_bodies(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.headers.get("content-type")))
            return httpx.Response(200, json={"success": True, "data": {}})

        client = make_client(handler)
        await client.get_book("abc")
        await client.create_book({"title": "x"})
        await client.delete_book("abc")
        assert seen == [("GET", None), ("POST", "application/json"), ("DELETE", None)]
        await client.aclose()

    async def test_extra_headers_sent(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, json={"success": True, "data": {}})

        client = BookAPIClient("http://books.test", transport=httpx.MockTransport(handler), headers={"X-Trace": "1"})
        await client.health()
        assert seen["x-trace"] == "1"
        await client.aclose()


class TestErrors:
    async def test_server_message_used(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                404,
                json={"success": False, "error": "Book not found", "message": "No book found with the provided ID"},
            )

        client = make_client(handler)
        with pytest.raises(APIError) as exc_info:
            await client.get_book("f" * 32)
        assert exc_info.value.message == "No book found with the provided ID"
        assert exc_info.value.status == 404
        assert exc_info.value.to_dict() == {"message": "No book found with the provided ID", "status": 404}
        await client.aclose()

    async def test_details_kept(self) -> None:
        details = [{"field": "price", "message": "Price is required"}]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400, json={"success": False, "error": "Validation Error", "message": "Price is required", "details": details}
            )

        client = make_client(handler)
        with pytest.raises(APIError) as exc_info:
            await client.create_book({})
        assert exc_info.value.details == details
        await client.aclose()

    async def test_falls_back_to_error_category(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={"error": "Too many requests"})

        client = make_client(handler)
        with pytest.raises(APIError) as exc_info:
            await client.get_books()
        assert exc_info.value.message == "Too many requests"
        assert exc_info.value.status == 429
        await client.aclose()

    async def test_non_json_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>bad gateway</html>")

        client = make_client(handler)
        with pytest.raises(APIError) as exc_info:
            await client.health()
        assert exc_info.value.message == "Bad Gateway"
        assert exc_info.value.status == 502
        await client.aclose()

    async def test_transport_failure_has_no_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(APIError) as exc_info:
            await client.get_books()
        assert exc_info.value.status is None
        assert "connection refused" in exc_info.value.message
        await client.aclose()
