from __future__ import annotations

from datetime import date, datetime

from libradesk.schemas.books import BookOut
from libradesk.schemas.members import MemberOut
from pydantic import BaseModel, ConfigDict, Field


class BorrowIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    book_id: str = Field(min_length=1)
    member_id: str = Field(min_length=1)
    due_date: date


class BorrowingPatchIn(BaseModel):
    due_date: date


class BorrowingOut(BaseModel):
    id: str
    book_id: str
    member_id: str
    borrow_date: date
    due_date: date
    return_date: date | None
    late_fee: float
    # Stored value: borrowed | returned
    status: str
    # Derived for today: borrowed | overdue | returned
    current_status: str
    # Fee charged on return, or what returning today would cost
    accrued_late_fee: float
    created_at: datetime
    updated_at: datetime

    book: BookOut | None = None
    member: MemberOut | None = None


class DeletedOut(BaseModel):
    success: bool = True
