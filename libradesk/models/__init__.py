from libradesk.models.base import Base
from libradesk.models.book import Book
from libradesk.models.borrowing import Borrowing, BorrowingStatus
from libradesk.models.member import Member


__all__ = [
    "Base",
    "Book",
    "Member",
    "Borrowing",
    "BorrowingStatus",
]
