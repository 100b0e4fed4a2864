# crud/book.py — every read and write of the books table goes through here
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crud.query import BookQuery
from errors import BookNotFoundError, BookValidationError, DuplicateISBNError, InvalidBookIdError
from models import Book, utcnow
from schemas import Pagination
from validation import is_valid_book_id, normalize_book, validate_book

logger = logging.getLogger(__name__)


@dataclass
class BookPage:
    books: List[Book]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    @property
    def pagination(self) -> Pagination:
        return Pagination(
            current_page=self.page,
            total_pages=self.total_pages,
            total_books=self.total,
            has_next_page=self.page < self.total_pages,
            has_prev_page=self.page > 1,
        )


def _checked_values(fields: Dict[str, Any], partial: bool) -> Dict[str, Any]:
    result = validate_book(fields, partial=partial)
    if not result.valid:
        raise BookValidationError(result.errors)
    return normalize_book(result.values)


async def _commit_or_duplicate(db: AsyncSession):
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if "isbn" in str(e.orig).lower():
            raise DuplicateISBNError() from e
        raise


async def list_books(db: AsyncSession, query: BookQuery) -> BookPage:
    result = await db.execute(query.statement())
    books = list(result.scalars().all())
    total = (await db.execute(query.count_statement())).scalar_one()
    return BookPage(books=books, total=total, page=query.page, limit=query.limit)


async def get_book(db: AsyncSession, book_id: str) -> Book:
    if not is_valid_book_id(book_id):
        raise InvalidBookIdError()
    result = await db.execute(select(Book).where(Book.id == book_id))
    book = result.scalar_one_or_none()
    if book is None:
        raise BookNotFoundError()
    return book


async def create_book(db: AsyncSession, fields: Dict[str, Any]) -> Book:
    values = _checked_values(fields, partial=False)
    now = utcnow()
    book = Book(**values, created_at=now, updated_at=now)
    db.add(book)
    await _commit_or_duplicate(db)
    await db.refresh(book)
    logger.info("Created book %s (%s)", book.id, book.title)
    return book


async def update_book(db: AsyncSession, book_id: str, fields: Dict[str, Any]) -> Book:
    """Apply a partial patch; only the supplied fields are validated and written."""
    values = _checked_values(fields, partial=True)
    book = await get_book(db, book_id)
    for attr, value in values.items():
        setattr(book, attr, value)
    book.updated_at = utcnow()
    await _commit_or_duplicate(db)
    await db.refresh(book)
    logger.info("Updated book %s fields=%s", book.id, sorted(values))
    return book


async def delete_book(db: AsyncSession, book_id: str) -> str:
    book = await get_book(db, book_id)
    await db.delete(book)
    await db.commit()
    logger.info("Deleted book %s", book_id)
    return book_id
