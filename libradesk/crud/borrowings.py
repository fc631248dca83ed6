from __future__ import annotations

from datetime import date
from typing import Optional

from libradesk.models.book import Book
from libradesk.models.borrowing import Borrowing, BorrowingStatus
from libradesk.models.member import Member
from libradesk.services.errors import InvalidInput
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, joinedload

_STATUSES = {s.value for s in BorrowingStatus}


def get_borrowing(db: Session, *, borrowing_id: str) -> Optional[Borrowing]:
    return db.execute(
        select(Borrowing)
        .options(joinedload(Borrowing.book), joinedload(Borrowing.member))
        .where(Borrowing.id == borrowing_id)
    ).scalar_one_or_none()


def list_borrowings(
    db: Session,
    *,
    as_of: date,
    q: str | None = None,
    status: str | None = None,
    book_id: str | None = None,
    member_id: str | None = None,
) -> list[Borrowing]:
    """Borrowings newest first, with book and member loaded.

    ``status`` matches the derived status: ``overdue`` selects open loans past
    their due date and ``borrowed`` only the open loans that are not.
    """
    stmt = select(Borrowing).options(
        joinedload(Borrowing.book), joinedload(Borrowing.member)
    )

    if status:
        if status not in _STATUSES:
            raise InvalidInput("status must be one of: borrowed, returned, overdue")
        if status == BorrowingStatus.returned.value:
            stmt = stmt.where(Borrowing.status == BorrowingStatus.returned.value)
        elif status == BorrowingStatus.overdue.value:
            stmt = stmt.where(
                Borrowing.status == BorrowingStatus.borrowed.value,
                Borrowing.due_date < as_of,
            )
        else:
            stmt = stmt.where(
                Borrowing.status == BorrowingStatus.borrowed.value,
                Borrowing.due_date >= as_of,
            )

    if book_id:
        stmt = stmt.where(Borrowing.book_id == book_id)
    if member_id:
        stmt = stmt.where(Borrowing.member_id == member_id)

    if q:
        like = f"%{q.strip().lower()}%"
        stmt = (
            stmt.join(Book, Book.id == Borrowing.book_id)
            .join(Member, Member.id == Borrowing.member_id)
            .where(or_(func.lower(Book.title).like(like), func.lower(Member.name).like(like)))
        )

    stmt = stmt.order_by(Borrowing.created_at.desc())
    return list(db.execute(stmt).unique().scalars().all())
