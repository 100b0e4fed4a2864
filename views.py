# views.py — HTML pages for browsing and editing books, backed by the JSON API
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from services.api_client import APIError
from validation import GENRES, SORT_FIELDS

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

router = APIRouter()

LIST_PARAMS = ("search", "genre", "minPrice", "maxPrice", "sort", "order", "page", "limit")
SORT_LABELS = {
    "title": "Title",
    "author": "Author",
    "price": "Price",
    "publishedDate": "Published date",
    "createdAt": "Date added",
    "updatedAt": "Last updated",
}
EMPTY_BOOK = {
    "title": "", "author": "", "price": "", "publishedDate": "", "isbn": "",
    "genre": "Other", "description": "", "coverImage": "", "stock": "0",
}


def _api(request: Request):
    return request.app.state.api_client


def _render(request: Request, name: str, context: Dict[str, Any], status_code: int = 200):
    context = {"genres": GENRES, "today": date.today().isoformat(), **context}
    return templates.TemplateResponse(request, name, context, status_code=status_code)


def _form_payload(title, author, price, published_date, isbn, genre, description, cover_image, stock) -> Dict[str, Any]:
    payload = {
        "title": title,
        "author": author,
        "price": price,
        "publishedDate": published_date,
        "genre": genre or "Other",
    }
    # blank optional inputs are left out rather than sent as ""
    for key, value in (("isbn", isbn), ("description", description), ("coverImage", cover_image), ("stock", stock)):
        if value.strip():
            payload[key] = value
    return payload


def _page_url(filters: Dict[str, str], page: int) -> str:
    query = {k: v for k, v in filters.items() if v and k != "page"}
    query["page"] = page
    return "/books?" + urlencode(query)


def _field_errors(error: APIError) -> Dict[str, str]:
    return {d.get("field"): d.get("message") for d in error.details if d.get("field")}


@router.get("/books", response_class=HTMLResponse)
async def book_list_page(request: Request):
    filters = {k: request.query_params.get(k, "") for k in LIST_PARAMS}
    books, pagination, error = [], None, None
    try:
        response = await _api(request).get_books(filters)
        books = response["data"]
        pagination = response["pagination"]
    except APIError as e:
        error = e.message

    return _render(request, "books/list.html", {
        "books": books,
        "pagination": pagination,
        "filters": filters,
        "sort_fields": SORT_FIELDS,
        "sort_labels": SORT_LABELS,
        "prev_url": _page_url(filters, pagination["currentPage"] - 1) if pagination else None,
        "next_url": _page_url(filters, pagination["currentPage"] + 1) if pagination else None,
        "error": error,
    }, status_code=200 if error is None else 400)


@router.get("/books/new", response_class=HTMLResponse)
async def new_book_page(request: Request):
    return _render(request, "books/form.html", {"book": EMPTY_BOOK, "book_id": None, "field_errors": {}})


@router.post("/books/new")
async def create_book_page(
    request: Request,
    title: str = Form(""),
    author: str = Form(""),
    price: str = Form(""),
    published_date: str = Form(""),
    isbn: str = Form(""),
    genre: str = Form("Other"),
    description: str = Form(""),
    cover_image: str = Form(""),
    stock: str = Form(""),
):
    payload = _form_payload(title, author, price, published_date, isbn, genre, description, cover_image, stock)
    try:
        response = await _api(request).create_book(payload)
    except APIError as e:
        return _render(request, "books/form.html", {
            "book": {**EMPTY_BOOK, **payload},
            "book_id": None,
            "error": e.message,
            "field_errors": _field_errors(e),
        }, status_code=e.status or 400)
    return RedirectResponse(f"/books/{response['data']['id']}", status_code=303)


@router.get("/books/{book_id}", response_class=HTMLResponse)
async def book_detail_page(request: Request, book_id: str):
    try:
        response = await _api(request).get_book(book_id)
    except APIError as e:
        return _render(request, "books/detail.html", {"book": None, "error": e.message}, status_code=e.status or 400)
    return _render(request, "books/detail.html", {"book": response["data"]})


@router.get("/books/{book_id}/edit", response_class=HTMLResponse)
async def edit_book_page(request: Request, book_id: str):
    try:
        response = await _api(request).get_book(book_id)
    except APIError as e:
        return _render(request, "books/detail.html", {"book": None, "error": e.message}, status_code=e.status or 400)
    book = {k: ("" if v is None else v) for k, v in response["data"].items()}
    return _render(request, "books/form.html", {"book": book, "book_id": book_id, "field_errors": {}})


@router.post("/books/{book_id}/edit")
async def update_book_page(
    request: Request,
    book_id: str,
    title: str = Form(""),
    author: str = Form(""),
    price: str = Form(""),
    published_date: str = Form(""),
    isbn: str = Form(""),
    genre: str = Form("Other"),
    description: str = Form(""),
    cover_image: str = Form(""),
    stock: str = Form(""),
):
    payload = _form_payload(title, author, price, published_date, isbn, genre, description, cover_image, stock)
    # cleared optional inputs must clear the stored value on edit
    for key in ("isbn", "description", "coverImage", "stock"):
        payload.setdefault(key, None)
    try:
        await _api(request).update_book(book_id, payload)
    except APIError as e:
        return _render(request, "books/form.html", {
            "book": {**EMPTY_BOOK, **{k: v for k, v in payload.items() if v is not None}},
            "book_id": book_id,
            "error": e.message,
            "field_errors": _field_errors(e),
        }, status_code=e.status or 400)
    return RedirectResponse(f"/books/{book_id}", status_code=303)


@router.post("/books/{book_id}/delete")
async def delete_book_page(request: Request, book_id: str):
    try:
        await _api(request).delete_book(book_id)
    except APIError as e:
        return _render(request, "books/detail.html", {"book": None, "error": e.message}, status_code=e.status or 400)
    return RedirectResponse("/books", status_code=303)


@router.get("/stats", response_class=HTMLResponse)
async def stats_page(request: Request):
    stats: Optional[Dict[str, Any]] = None
    error = None
    try:
        stats = (await _api(request).get_stats())["data"]
    except APIError as e:
        error = e.message

    max_genre = max((g["count"] for g in stats["byGenre"]), default=0) if stats else 0
    max_year = max((y["count"] for y in stats["byYear"]), default=0) if stats else 0
    return _render(request, "stats.html", {
        "stats": stats,
        "max_genre": max_genre,
        "max_year": max_year,
        "error": error,
    }, status_code=200 if error is None else 500)
