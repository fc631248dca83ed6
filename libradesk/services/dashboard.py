from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Sequence

from libradesk.core.config import settings
from libradesk.models.book import Book
from libradesk.models.borrowing import Borrowing, BorrowingStatus
from libradesk.models.member import Member
from libradesk.services.borrowing import as_date, compute_status, get_field
from sqlalchemy import select
from sqlalchemy.orm import Session


@dataclass(frozen=True)
class RankedBook:
    book_id: str
    title: str
    count: int


@dataclass(frozen=True)
class RankedMember:
    member_id: str
    name: str
    loans: int


@dataclass(frozen=True)
class DashboardStats:
    as_of: date
    total_books: int
    total_members: int
    active_loans: int
    overdue_loans: int
    total_revenue: Decimal
    books_due_today: int
    most_borrowed_books: list[RankedBook] = field(default_factory=list)
    most_active_members: list[RankedMember] = field(default_factory=list)


def _top_counts(keys: Sequence[str], limit: int) -> list[tuple[str, int]]:
    # dicts keep first-seen order and sorted() is stable, so ties stay in
    # encounter order.
    counts: dict[str, int] = {}
    for key in keys:
        counts[key] = counts.get(key, 0) + 1
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return ranked[:limit]


def compute_dashboard_stats(
    books: Sequence[Any],
    members: Sequence[Any],
    borrowings: Sequence[Any],
    *,
    as_of: date,
    top_n: int | None = None,
) -> DashboardStats:
    """Reduce a full snapshot of the store to dashboard figures.

    Pure: records may be ORM rows or dicts, nothing is written. ``top_n``
    bounds both rankings (defaults to ``DASHBOARD_TOP_N``).
    """
    limit = top_n if top_n is not None else settings.dashboard_top_n
    borrowed = BorrowingStatus.borrowed.value

    title_by_id = {get_field(b, "id"): get_field(b, "title") for b in books}
    name_by_id = {get_field(m, "id"): get_field(m, "name") for m in members}

    active_loans = 0
    overdue_loans = 0
    due_today = 0
    revenue = Decimal("0.00")
    for br in borrowings:
        revenue += Decimal(str(get_field(br, "late_fee") or 0))
        if get_field(br, "status") != borrowed:
            continue
        active_loans += 1
        if as_date(get_field(br, "due_date"), field_name="due_date") == as_of:
            due_today += 1
        if compute_status(br, as_of) == BorrowingStatus.overdue.value:
            overdue_loans += 1

    most_borrowed = [
        RankedBook(book_id=book_id, title=title_by_id.get(book_id) or "Unknown", count=n)
        for book_id, n in _top_counts([get_field(br, "book_id") for br in borrowings], limit)
    ]
    most_active = [
        RankedMember(member_id=member_id, name=name_by_id.get(member_id) or "Unknown", loans=n)
        for member_id, n in _top_counts(
            [get_field(br, "member_id") for br in borrowings], limit
        )
    ]

    return DashboardStats(
        as_of=as_of,
        total_books=sum(int(get_field(b, "quantity") or 0) for b in books),
        total_members=sum(1 for m in members if get_field(m, "is_active")),
        active_loans=active_loans,
        overdue_loans=overdue_loans,
        total_revenue=revenue,
        books_due_today=due_today,
        most_borrowed_books=most_borrowed,
        most_active_members=most_active,
    )


def load_dashboard_stats(db: Session, *, as_of: date) -> DashboardStats:
    books = db.execute(select(Book)).scalars().all()
    members = db.execute(select(Member)).scalars().all()
    # Oldest first so ranking ties follow the order loans were made.
    borrowings = (
        db.execute(select(Borrowing).order_by(Borrowing.created_at.asc()))
        .scalars()
        .all()
    )
    return compute_dashboard_stats(books, members, borrowings, as_of=as_of)
