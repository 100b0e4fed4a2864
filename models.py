# models.py
from datetime import date, datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Index, Integer, Numeric, String

from database import Base


def new_book_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    # stored naive, always UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Book(Base):
    __tablename__ = "books"
    id = Column(String(32), primary_key=True, default=new_book_id)
    title = Column(String(200), nullable=False, index=True)
    author = Column(String(100), nullable=False, index=True)
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    published_date = Column(Date, nullable=False)
    isbn = Column(String(13), unique=True, nullable=True)  # NULLs never collide
    genre = Column(String(20), nullable=False, default="Other", index=True)
    description = Column(String(1000), nullable=True)
    cover_image = Column(String, nullable=True)
    stock = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    @property
    def formatted_price(self) -> str:
        return f"${self.price:.2f}"

    @property
    def age(self) -> int:
        # calendar-year difference, not elapsed years
        return date.today().year - self.published_date.year


Index("ix_books_published_date_desc", Book.published_date.desc())
