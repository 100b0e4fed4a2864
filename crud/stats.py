# crud/stats.py — whole-collection aggregates, no filters or paging
from typing import List

from sqlalchemy import desc, extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Book
from schemas import BookStats, GenreStat, StatsOverview, YearStat

YEAR_LIMIT = 10


async def book_overview(db: AsyncSession) -> StatsOverview:
    row = (
        await db.execute(
            select(
                func.count(Book.id),
                func.sum(Book.price),
                func.avg(Book.price),
                func.min(Book.price),
                func.max(Book.price),
            )
        )
    ).one()
    total, value, average, lowest, highest = row
    return StatsOverview(
        total_books=total or 0,
        total_value=float(value or 0),
        average_price=None if average is None else float(average),
        min_price=None if lowest is None else float(lowest),
        max_price=None if highest is None else float(highest),
    )


async def books_by_genre(db: AsyncSession) -> List[GenreStat]:
    count = func.count(Book.id).label("book_count")
    result = await db.execute(
        select(Book.genre, count, func.avg(Book.price))
        .group_by(Book.genre)
        .order_by(desc(count), Book.genre)
    )
    return [
        GenreStat(genre=genre, count=n, average_price=float(average))
        for genre, n, average in result.all()
    ]


async def books_by_year(db: AsyncSession, limit: int = YEAR_LIMIT) -> List[YearStat]:
    year = extract("year", Book.published_date).label("year")
    result = await db.execute(
        select(year, func.count(Book.id))
        .group_by(year)
        .order_by(desc(year))
        .limit(limit)
    )
    return [YearStat(year=int(y), count=n) for y, n in result.all()]


async def get_book_stats(db: AsyncSession) -> BookStats:
    return BookStats(
        overview=await book_overview(db),
        by_genre=await books_by_genre(db),
        by_year=await books_by_year(db),
    )
