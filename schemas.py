from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel


class BookOut(CamelModel):
    id: str
    title: str
    author: str
    price: float
    published_date: date
    isbn: Optional[str] = None
    genre: str
    description: Optional[str] = None
    cover_image: Optional[str] = None
    stock: int
    created_at: datetime
    updated_at: datetime
    formatted_price: str
    age: int


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_books: int
    has_next_page: bool
    has_prev_page: bool


class StatsOverview(CamelModel):
    total_books: int = 0
    total_value: float = 0.0
    average_price: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None


class GenreStat(CamelModel):
    genre: str
    count: int
    average_price: float


class YearStat(CamelModel):
    year: int
    count: int


class BookStats(CamelModel):
    overview: StatsOverview
    by_genre: List[GenreStat]
    by_year: List[YearStat]


def dump(model: BaseModel) -> dict:
    return model.model_dump(by_alias=True, mode="json")


def book_to_dict(book) -> dict:
    return dump(BookOut.model_validate(book))
