from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, cast

from libradesk.models.book import Book
from libradesk.models.borrowing import Borrowing, BorrowingStatus
from libradesk.models.member import Member
from libradesk.services import events
from libradesk.services.errors import (
    AlreadyReturned,
    InactiveMember,
    InvalidInput,
    NotAvailable,
    NotFound,
)
from libradesk.services.fees import compute_late_fee
from sqlalchemy import update
from sqlalchemy.engine import CursorResult
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_field(obj: Any, key: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def as_date(value: Any, *, field_name: str = "date") -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidInput(f"{field_name} must be a date in YYYY-MM-DD format")


def compute_status(borrowing: Any, as_of: date) -> str:
    """Status to display for ``borrowing`` on ``as_of``.

    ``overdue`` only exists here; the stored status is never changed by it.
    Works on ORM rows and plain dicts alike.
    """
    if get_field(borrowing, "return_date") is not None:
        return BorrowingStatus.returned.value
    if get_field(borrowing, "status") == BorrowingStatus.returned.value:
        return BorrowingStatus.returned.value
    due = as_date(get_field(borrowing, "due_date"), field_name="due_date")
    if due is not None and due < as_of:
        return BorrowingStatus.overdue.value
    return BorrowingStatus.borrowed.value


def preview_late_fee(borrowing: Any, as_of: date) -> Decimal:
    """Fee already charged for a returned loan, or what returning it on ``as_of`` would cost."""
    if get_field(borrowing, "status") != BorrowingStatus.borrowed.value:
        return Decimal(str(get_field(borrowing, "late_fee") or 0))
    due = as_date(get_field(borrowing, "due_date"), field_name="due_date")
    if due is None:
        return Decimal("0.00")
    return compute_late_fee(due, as_of)


def _rowcount(result: Any) -> int:
    return int(cast(CursorResult[Any], result).rowcount or 0)


def _release_copy(db: Session, book_id: str) -> bool:
    """Put one copy back on the shelf, never exceeding ``quantity``."""
    res = db.execute(
        update(Book)
        .where(Book.id == book_id, Book.available_quantity < Book.quantity)
        .values(available_quantity=Book.available_quantity + 1, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    released = _rowcount(res) == 1
    if not released:
        logger.warning("Book %s already has every copy available; not incrementing", book_id)
    return released


def borrow(
    db: Session,
    *,
    book_id: str,
    member_id: str,
    due_date: date | str | None,
    today: date | None = None,
) -> Borrowing:
    """Lend one copy of ``book_id`` to ``member_id`` until ``due_date``.

    The copy is taken with a guarded decrement (``available_quantity >= 1``)
    in the same transaction as the insert, so concurrent borrows of the last
    copy cannot both succeed.
    """
    day = today or date.today()

    if not book_id or not member_id:
        raise InvalidInput("book_id, member_id, and due_date are required")
    due = as_date(due_date, field_name="due_date")
    if due is None:
        raise InvalidInput("book_id, member_id, and due_date are required")

    book = db.get(Book, book_id)
    if book is None:
        raise NotFound("Book not found")
    # An exhausted book is reported as such whatever else is wrong with the
    # request; the guarded decrement below still decides races.
    if book.available_quantity < 1:
        raise NotAvailable("Book is not available")

    member = db.get(Member, member_id)
    if member is None:
        raise NotFound("Member not found")
    if not member.is_active:
        raise InactiveMember("Member is not active")
    if due < day:
        raise InvalidInput("due_date cannot be before the borrow date")

    res = db.execute(
        update(Book)
        .where(Book.id == book_id, Book.available_quantity >= 1)
        .values(available_quantity=Book.available_quantity - 1, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if _rowcount(res) != 1:
        raise NotAvailable("Book is not available")

    borrowing = Borrowing(
        book_id=book_id,
        member_id=member_id,
        borrow_date=day,
        due_date=due,
        return_date=None,
        late_fee=Decimal("0.00"),
        status=BorrowingStatus.borrowed.value,
    )
    db.add(borrowing)
    db.commit()
    db.refresh(borrowing)

    logger.info("Borrowing created: %s (book=%s member=%s)", borrowing.id, book_id, member_id)
    events.emit("borrowings", "borrowed", borrowing.id)
    events.emit("books", "updated", book_id)
    return borrowing


def return_borrowing(
    db: Session, *, borrowing_id: str, as_of: date | None = None
) -> Borrowing:
    """Close a loan: stamp the return date, charge the late fee, release the copy.

    Not idempotent; the status guard makes a second return fail with
    ``AlreadyReturned`` and leaves the first fee in place.
    """
    borrowing = db.get(Borrowing, borrowing_id)
    if borrowing is None:
        raise NotFound("Borrowing not found")
    if borrowing.status != BorrowingStatus.borrowed.value:
        raise AlreadyReturned("Book has already been returned")

    today = date.today()
    returned_on = as_of or today
    if returned_on < borrowing.borrow_date:
        raise InvalidInput("Return date cannot be before the borrow date")
    if returned_on > today:
        raise InvalidInput("Return date cannot be in the future")

    fee = compute_late_fee(borrowing.due_date, returned_on)

    res = db.execute(
        update(Borrowing)
        .where(
            Borrowing.id == borrowing_id,
            Borrowing.status == BorrowingStatus.borrowed.value,
        )
        .values(
            status=BorrowingStatus.returned.value,
            return_date=returned_on,
            late_fee=fee,
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if _rowcount(res) != 1:
        raise AlreadyReturned("Book has already been returned")

    book_id = borrowing.book_id
    _release_copy(db, book_id)
    db.commit()
    db.refresh(borrowing)

    logger.info("Book returned: %s (late_fee=%s)", borrowing_id, fee)
    events.emit("borrowings", "returned", borrowing_id)
    events.emit("books", "updated", book_id)
    return borrowing


def change_due_date(
    db: Session, *, borrowing_id: str, due_date: date | str | None
) -> Borrowing:
    borrowing = db.get(Borrowing, borrowing_id)
    if borrowing is None:
        raise NotFound("Borrowing not found")
    if borrowing.status != BorrowingStatus.borrowed.value:
        raise AlreadyReturned("Returned borrowings cannot be changed")

    due = as_date(due_date, field_name="due_date")
    if due is None:
        raise InvalidInput("due_date is required")
    if due < borrowing.borrow_date:
        raise InvalidInput("due_date cannot be before the borrow date")

    borrowing.due_date = due
    db.commit()
    db.refresh(borrowing)

    logger.info("Borrowing updated: %s (due_date=%s)", borrowing_id, due)
    events.emit("borrowings", "updated", borrowing_id)
    return borrowing


def delete_borrowing(db: Session, *, borrowing_id: str) -> None:
    borrowing = db.get(Borrowing, borrowing_id)
    if borrowing is None:
        raise NotFound("Borrowing not found")

    book_id = borrowing.book_id
    was_open = borrowing.status == BorrowingStatus.borrowed.value
    if was_open:
        _release_copy(db, book_id)

    db.delete(borrowing)
    db.commit()

    logger.info("Borrowing deleted: %s", borrowing_id)
    events.emit("borrowings", "deleted", borrowing_id)
    if was_open:
        events.emit("books", "updated", book_id)
