# errors.py — expected failure outcomes of the book service
from typing import Any, Dict, List, Optional


class BookStoreError(Exception):
    """Base for failures that map to a client-visible error envelope."""

    status_code = 500
    error = "Internal Server Error"
    message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, details: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body = {"success": False, "error": self.error, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class BookValidationError(BookStoreError):
    status_code = 400
    error = "Validation Error"
    message = "Invalid book data"

    def __init__(self, errors, message: Optional[str] = None):
        details = [e.to_dict() if hasattr(e, "to_dict") else dict(e) for e in errors]
        if message is None and details:
            message = "; ".join(d["message"] for d in details)
        super().__init__(message, details)


class BookNotFoundError(BookStoreError):
    status_code = 404
    error = "Book not found"
    message = "No book found with the provided ID"


class DuplicateISBNError(BookStoreError):
    status_code = 400
    error = "Duplicate Error"
    message = "A book with this ISBN already exists"


class InvalidBookIdError(BookStoreError):
    status_code = 400
    error = "Invalid ID format"
    message = "The provided ID is not valid"
