from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from libradesk.models.base import Base
from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BorrowingStatus(str, Enum):
    borrowed = "borrowed"
    returned = "returned"
    # Derived at read time; nothing persists it.
    overdue = "overdue"


class Borrowing(Base):
    __tablename__ = "borrowings"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )

    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id", ondelete="CASCADE"), index=True, nullable=False
    )
    member_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("members.id", ondelete="CASCADE"), index=True, nullable=False
    )

    borrow_date: Mapped[date] = mapped_column(Date, default=date.today, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    return_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    late_fee: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )

    # borrowed | returned (| overdue, see BorrowingStatus)
    status: Mapped[str] = mapped_column(
        String(20), index=True, nullable=False, default=BorrowingStatus.borrowed.value
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    book = relationship("Book", back_populates="borrowings")
    member = relationship("Member", back_populates="borrowings")

    __table_args__ = (
        CheckConstraint("late_fee >= 0", name="ck_borrowings_late_fee_non_negative"),
        CheckConstraint("due_date >= borrow_date", name="ck_borrowings_due_after_borrow"),
        CheckConstraint(
            "status IN ('borrowed', 'returned', 'overdue')",
            name="ck_borrowings_status",
        ),
    )
