# main.py — Book Store API: app factory, JSON routes and error envelopes
import logging
import secrets
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
import uvicorn
from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

import views
from config import Settings, setup_logging
from crud.book import create_book, delete_book, get_book, list_books, update_book
from crud.query import build_book_query
from crud.stats import get_book_stats
from database import Database, get_db
from errors import BookStoreError, BookValidationError, InvalidBookIdError
from middleware import INTERNAL_HEADER, RateLimitMiddleware, RequestLogMiddleware
from schemas import book_to_dict, dump
from services.api_client import BookAPIClient
from validation import FieldError, is_valid_book_id, validate_book, validate_list_query

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
BASE_DIR = Path(__file__).resolve().parent

router = APIRouter()


def _check_id(book_id: str):
    if not is_valid_book_id(book_id):
        raise InvalidBookIdError()


def _precheck(payload: Dict[str, Any], partial: bool):
    result = validate_book(payload, partial=partial)
    if not result.valid:
        raise BookValidationError(result.errors)


# ─────────────────────── BOOK ROUTES ───────────────────────
@router.get("/api/books")
async def list_books_route(request: Request, db: AsyncSession = Depends(get_db)):
    result = validate_list_query(dict(request.query_params))
    if not result.valid:
        raise BookValidationError(result.errors)

    page = await list_books(db, build_book_query(result.values))
    return {
        "success": True,
        "data": [book_to_dict(b) for b in page.books],
        "pagination": dump(page.pagination),
    }


@router.get("/api/books/stats")
async def book_stats_route(db: AsyncSession = Depends(get_db)):
    stats = await get_book_stats(db)
    return {"success": True, "data": dump(stats)}


@router.get("/api/books/{book_id}")
async def get_book_route(book_id: str, db: AsyncSession = Depends(get_db)):
    _check_id(book_id)
    book = await get_book(db, book_id)
    return {"success": True, "data": book_to_dict(book)}


@router.post("/api/books", status_code=201)
async def create_book_route(payload: Dict[str, Any] = Body(...), db: AsyncSession = Depends(get_db)):
    _precheck(payload, partial=False)
    book = await create_book(db, payload)
    return {"success": True, "message": "Book created successfully", "data": book_to_dict(book)}


@router.put("/api/books/{book_id}")
async def update_book_route(book_id: str, payload: Dict[str, Any] = Body(...), db: AsyncSession = Depends(get_db)):
    _check_id(book_id)
    _precheck(payload, partial=True)
    book = await update_book(db, book_id, payload)
    return {"success": True, "message": "Book updated successfully", "data": book_to_dict(book)}


@router.delete("/api/books/{book_id}")
async def delete_book_route(book_id: str, db: AsyncSession = Depends(get_db)):
    _check_id(book_id)
    deleted_id = await delete_book(db, book_id)
    return {"success": True, "message": "Book deleted successfully", "data": {"id": deleted_id}}


# ─────────────────────── INFO ROUTES ───────────────────────
@router.get("/")
async def root():
    return {
        "message": "Welcome to the Book Store API!",
        "version": API_VERSION,
        "documentation": "Visit /api for endpoint details.",
        "healthCheck": "/health",
    }


@router.get("/api")
async def api_info():
    return {
        "message": "Book Store API",
        "version": API_VERSION,
        "endpoints": {
            "GET /api/books": "Get all books",
            "GET /api/books/stats": "Get book statistics",
            "GET /api/books/:id": "Get a single book",
            "POST /api/books": "Create a new book",
            "PUT /api/books/:id": "Update a book",
            "DELETE /api/books/:id": "Delete a book",
        },
    }


@router.get("/health")
async def health(request: Request):
    database_ok = await request.app.state.db.ping()
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        "environment": request.app.state.settings.environment,
        "database": "ok" if database_ok else "failed",
    }


# ─────────────────────── ERROR ENVELOPES ───────────────────────
async def book_store_error_handler(request: Request, exc: BookStoreError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        location = [str(part) for part in err.get("loc", ()) if part != "body"]
        errors.append(FieldError(".".join(location) or "body", err.get("msg", "Invalid value")))
    return JSONResponse(status_code=400, content=BookValidationError(errors).to_dict())


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        content = {
            "success": False,
            "error": "Route not found",
            "message": f"Cannot {request.method} {request.url.path}",
        }
    else:
        content = {"success": False, "error": str(exc.detail), "message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content)


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    settings = request.app.state.settings
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "message": "Something went wrong" if not settings.is_development else str(exc),
        },
    )


def make_api_client(app: FastAPI, settings: Settings) -> BookAPIClient:
    if settings.api_base_url:
        return BookAPIClient(settings.api_base_url)
    return BookAPIClient(
        "http://bookstore.internal",
        transport=httpx.ASGITransport(app=app),
        headers={INTERNAL_HEADER: app.state.internal_token},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(settings.database_url)
        await db.init()
        app.state.db = db
        app.state.api_client = make_api_client(app, settings)
        logger.info("Book Store API started (%s)", settings.environment)
        yield
        await app.state.api_client.aclose()
        await db.close()

    app = FastAPI(title="Book Store API", version=API_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.internal_token = secrets.token_hex(16)

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        RateLimitMiddleware,
        window_ms=settings.rate_limit_window_ms,
        max_requests=settings.rate_limit_max_requests,
        internal_token=app.state.internal_token,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    if settings.is_development:
        app.add_middleware(RequestLogMiddleware)

    app.add_exception_handler(BookStoreError, book_store_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")
    app.include_router(router)
    app.include_router(views.router)
    return app


app = create_app()


def run():
    settings = app.state.settings
    logger.info("Book Store API: http://localhost:%s/api", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
