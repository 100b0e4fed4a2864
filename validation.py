"""
Field rules for books and list queries, and the one validator that reads them.

Both the HTTP layer (request pre-check) and the book service (write path)
call into this module, so the constraint list lives in exactly one place.
Every failing rule is reported; validation never stops at the first error.
"""
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

GENRES = (
    "Fiction",
    "Non-Fiction",
    "Science Fiction",
    "Mystery",
    "Romance",
    "Biography",
    "History",
    "Self-Help",
    "Other",
)
DEFAULT_GENRE = "Other"

SORT_FIELDS = ("title", "author", "price", "publishedDate", "createdAt", "updatedAt")
SORT_ORDERS = ("asc", "desc")

ISBN_PATTERN = re.compile(r"[0-9]{10}|[0-9]{13}")
URL_PATTERN = re.compile(r"https?://.+")
BOOK_ID_PATTERN = re.compile(r"[0-9a-f]{32}")

# SQLite INTEGER is a signed 64-bit value; the page bound keeps (page - 1) * limit inside it
MAX_INTEGER = 2**63 - 1
MAX_LIMIT = 100
MAX_PAGE = MAX_INTEGER // MAX_LIMIT + 1

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")


@dataclass(frozen=True)
class FieldRule:
    """One declarative constraint row.

    ``name`` is the wire name, ``attr`` the attribute it is stored under.
    ``kind`` is one of string, number, integer, date, choice.
    """

    name: str
    attr: str
    kind: str
    message: str
    required: bool = False
    required_message: Optional[str] = None
    trim: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    choices: Tuple[str, ...] = ()
    pattern: Optional[re.Pattern] = None
    not_future: bool = False
    future_message: Optional[str] = None
    default: Any = None


@dataclass
class FieldError:
    field: str
    message: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        out = {"field": self.field, "message": self.message}
        if self.value is not None:
            out["value"] = self.value if isinstance(self.value, (str, int, float, bool)) else str(self.value)
        return out


@dataclass
class ValidationResult:
    valid: bool
    errors: List[FieldError] = field(default_factory=list)
    values: Dict[str, Any] = field(default_factory=dict)


BOOK_RULES: Tuple[FieldRule, ...] = (
    FieldRule(
        "title", "title", "string",
        message="Title is required and must be between 1 and 200 characters",
        required=True, trim=True, min_length=1, max_length=200,
    ),
    FieldRule(
        "author", "author", "string",
        message="Author is required and must be between 1 and 100 characters",
        required=True, trim=True, min_length=1, max_length=100,
    ),
    FieldRule(
        "price", "price", "number",
        message="Price must be a number between 0 and 10,000",
        required=True, required_message="Price is required",
        minimum=0, maximum=10000,
    ),
    FieldRule(
        "publishedDate", "published_date", "date",
        message="Published date must be a valid date",
        required=True, required_message="Published date is required",
        not_future=True, future_message="Published date cannot be in the future",
    ),
    FieldRule(
        "isbn", "isbn", "string",
        message="ISBN must be 10 or 13 digits",
        trim=True, pattern=ISBN_PATTERN,
    ),
    FieldRule(
        "genre", "genre", "choice",
        message="Invalid genre",
        choices=GENRES, default=DEFAULT_GENRE,
    ),
    FieldRule(
        "description", "description", "string",
        message="Description cannot exceed 1000 characters",
        max_length=1000,
    ),
    FieldRule(
        "coverImage", "cover_image", "string",
        message="Cover image must be a valid URL",
        trim=True, pattern=URL_PATTERN,
    ),
    FieldRule(
        "stock", "stock", "integer",
        message="Stock must be a non-negative integer",
        minimum=0, maximum=MAX_INTEGER, default=0,
    ),
)

LIST_QUERY_RULES: Tuple[FieldRule, ...] = (
    FieldRule("page", "page", "integer", message="Page must be a positive integer", minimum=1, maximum=MAX_PAGE),
    FieldRule("limit", "limit", "integer", message="Limit must be between 1 and 100", minimum=1, maximum=MAX_LIMIT),
    FieldRule("sort", "sort", "choice", message="Invalid sort field", choices=SORT_FIELDS),
    FieldRule("order", "order", "choice", message="Order must be either asc or desc", choices=SORT_ORDERS),
    FieldRule("genre", "genre", "choice", message="Invalid genre filter", choices=GENRES),
    FieldRule("search", "search", "string", message="Search must be text", trim=True),
    FieldRule("minPrice", "min_price", "number", message="Minimum price must be a non-negative number", minimum=0),
    FieldRule("maxPrice", "max_price", "number", message="Maximum price must be a non-negative number", minimum=0),
)


def _coerce_number(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and _FLOAT_RE.fullmatch(value.strip()):
        number = float(value.strip())
    else:
        return None
    return number if math.isfinite(number) else None


def _coerce_integer(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and _INT_RE.fullmatch(value.strip()):
        return int(value.strip())
    return None


def _coerce_date(value) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check(rule: FieldRule, value, today: date) -> Tuple[Any, Optional[str]]:
    """Return (coerced value, error message or None) for a non-blank value."""
    if rule.kind == "string":
        if not isinstance(value, str):
            return None, rule.message
        text = value.strip() if rule.trim else value
        if rule.min_length is not None and len(text) < rule.min_length:
            return None, rule.message
        if rule.max_length is not None and len(text) > rule.max_length:
            return None, rule.message
        if rule.pattern is not None and not rule.pattern.fullmatch(text):
            return None, rule.message
        return text, None

    if rule.kind == "choice":
        if not isinstance(value, str) or value not in rule.choices:
            return None, rule.message
        return value, None

    if rule.kind == "number":
        number = _coerce_number(value)
    elif rule.kind == "integer":
        number = _coerce_integer(value)
    elif rule.kind == "date":
        parsed = _coerce_date(value)
        if parsed is None:
            return None, rule.message
        if rule.not_future and parsed > today:
            return None, rule.future_message or rule.message
        return parsed, None
    else:
        raise ValueError(f"Unknown rule kind: {rule.kind}")

    if number is None:
        return None, rule.message
    if rule.minimum is not None and number < rule.minimum:
        return None, rule.message
    if rule.maximum is not None and number > rule.maximum:
        return None, rule.message
    return number, None


def validate(
    data: Dict[str, Any],
    rules: Sequence[FieldRule],
    partial: bool = False,
    today: Optional[date] = None,
) -> ValidationResult:
    """Check ``data`` (keyed by wire name) against ``rules``.

    In full mode absent optional fields take their default and absent
    required fields are errors. In partial mode only supplied fields are
    checked. A supplied blank value for an optional field resets it to the
    default. Keys with no rule are dropped.
    """
    today = today or date.today()
    errors: List[FieldError] = []
    values: Dict[str, Any] = {}

    for rule in rules:
        present = rule.name in data
        if partial and not present:
            continue
        raw = data.get(rule.name)
        if _is_blank(raw):
            if rule.required:
                errors.append(FieldError(rule.name, rule.required_message or rule.message, raw))
            else:
                values[rule.attr] = rule.default
            continue
        value, message = _check(rule, raw, today)
        if message:
            errors.append(FieldError(rule.name, message, raw))
        else:
            values[rule.attr] = value

    return ValidationResult(valid=not errors, errors=errors, values=values)


def validate_book(data: Dict[str, Any], partial: bool = False, today: Optional[date] = None) -> ValidationResult:
    return validate(data, BOOK_RULES, partial=partial, today=today)


def validate_list_query(params: Dict[str, Any]) -> ValidationResult:
    # every list parameter is optional, so partial mode leaves absent ones out
    return validate(params, LIST_QUERY_RULES, partial=True)


def sentence_case(text: str) -> str:
    return text[:1].upper() + text[1:].lower()


def normalize_book(values: Dict[str, Any]) -> Dict[str, Any]:
    """Apply the write-time normalization to already validated values."""
    normalized = dict(values)
    for attr in ("title", "author"):
        if normalized.get(attr):
            normalized[attr] = sentence_case(normalized[attr])
    return normalized


def is_valid_book_id(book_id) -> bool:
    return isinstance(book_id, str) and BOOK_ID_PATTERN.fullmatch(book_id) is not None
