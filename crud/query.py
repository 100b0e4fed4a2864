"""
Turns validated list parameters into a book query.

``build_book_query`` is pure: the same parameters always give the same
filters, ordering and window. The HTTP layer is expected to have rejected
bad values already (see ``validation.validate_list_query``).
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, asc, desc, func, or_, select, true
from sqlalchemy.sql.elements import ColumnElement

from models import Book

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
DEFAULT_SORT = "createdAt"
DEFAULT_ORDER = "desc"

SORT_COLUMNS = {
    "title": Book.title,
    "author": Book.author,
    "price": Book.price,
    "publishedDate": Book.published_date,
    "createdAt": Book.created_at,
    "updatedAt": Book.updated_at,
}


def _like_escape(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_filter(search: str) -> Optional[ColumnElement]:
    """Any whitespace-separated term found in title or author matches."""
    terms = search.split()
    if not terms:
        return None
    clauses = []
    for term in terms:
        pattern = f"%{_like_escape(term)}%"
        clauses.append(Book.title.ilike(pattern, escape="\\"))
        clauses.append(Book.author.ilike(pattern, escape="\\"))
    return or_(*clauses)


@dataclass(frozen=True)
class BookQuery:
    filters: List[ColumnElement] = field(default_factory=list)
    sort: str = DEFAULT_SORT
    order: str = DEFAULT_ORDER
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def predicate(self):
        return and_(true(), *self.filters)

    def statement(self):
        column = SORT_COLUMNS[self.sort]
        direction = desc if self.order == "desc" else asc
        # id breaks ties so pages never overlap
        return (
            select(Book)
            .where(self.predicate)
            .order_by(direction(column), Book.id)
            .offset(self.offset)
            .limit(self.limit)
        )

    def count_statement(self):
        return select(func.count(Book.id)).where(self.predicate)


def build_book_query(params: Dict[str, Any]) -> BookQuery:
    filters = []

    genre = params.get("genre")
    if genre:
        filters.append(Book.genre == genre)

    search = params.get("search")
    if search:
        clause = search_filter(search)
        if clause is not None:
            filters.append(clause)

    min_price = params.get("min_price")
    if min_price is not None:
        filters.append(Book.price >= min_price)
    max_price = params.get("max_price")
    if max_price is not None:
        filters.append(Book.price <= max_price)

    return BookQuery(
        filters=filters,
        sort=params.get("sort") or DEFAULT_SORT,
        order=params.get("order") or DEFAULT_ORDER,
        page=params.get("page") or DEFAULT_PAGE,
        limit=params.get("limit") or DEFAULT_LIMIT,
    )
