from __future__ import annotations

from datetime import date

from libradesk.crud.borrowings import get_borrowing, list_borrowings
from libradesk.db.session import get_db
from libradesk.models.borrowing import Borrowing
from libradesk.schemas.books import BookOut
from libradesk.schemas.borrowings import (
    BorrowIn,
    BorrowingOut,
    BorrowingPatchIn,
    DeletedOut,
)
from libradesk.schemas.members import MemberOut
from libradesk.services.borrowing import (
    borrow,
    change_due_date,
    compute_status,
    delete_borrowing,
    preview_late_fee,
    return_borrowing,
)
from libradesk.services.errors import InvalidInput, NotFound
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

router = APIRouter(tags=["borrowings"])


def _to_out(b: Borrowing, as_of: date) -> BorrowingOut:
    return BorrowingOut(
        id=b.id,
        book_id=b.book_id,
        member_id=b.member_id,
        borrow_date=b.borrow_date,
        due_date=b.due_date,
        return_date=b.return_date,
        late_fee=float(b.late_fee or 0),
        status=b.status,
        current_status=compute_status(b, as_of),
        accrued_late_fee=float(preview_late_fee(b, as_of)),
        created_at=b.created_at,
        updated_at=b.updated_at,
        book=BookOut.model_validate(b.book) if b.book is not None else None,
        member=MemberOut.model_validate(b.member) if b.member is not None else None,
    )


def _detail(db: Session, borrowing_id: str) -> BorrowingOut:
    b = get_borrowing(db, borrowing_id=borrowing_id)
    if b is None:
        raise NotFound("Borrowing not found")
    return _to_out(b, date.today())


@router.get("/api-borrowings", response_model=BorrowingOut | list[BorrowingOut])
def get_borrowings(
    *,
    borrowing_id: str | None = Query(default=None, alias="id"),
    q: str | None = Query(default=None, max_length=200),
    status: str | None = Query(default=None),
    book_id: str | None = Query(default=None),
    member_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    if borrowing_id:
        return _detail(db, borrowing_id)

    today = date.today()
    rows = list_borrowings(
        db, as_of=today, q=q, status=status, book_id=book_id, member_id=member_id
    )
    return [_to_out(b, today) for b in rows]


@router.post("/api-borrowings", response_model=BorrowingOut, status_code=201)
def post_borrowing(payload: BorrowIn, db: Session = Depends(get_db)):
    b = borrow(
        db,
        book_id=payload.book_id,
        member_id=payload.member_id,
        due_date=payload.due_date,
    )
    return _detail(db, b.id)


@router.put("/api-borrowings", response_model=BorrowingOut)
def put_borrowing(
    *,
    borrowing_id: str | None = Query(default=None, alias="id"),
    action: str | None = Query(default=None),
    as_of: date | None = Query(default=None),
    payload: BorrowingPatchIn | None = Body(default=None),
    db: Session = Depends(get_db),
):
    if not borrowing_id:
        raise InvalidInput("id is required")

    if action == "return":
        return_borrowing(db, borrowing_id=borrowing_id, as_of=as_of)
        return _detail(db, borrowing_id)

    if action:
        raise InvalidInput(f"Unsupported action: {action}")
    if payload is None:
        raise InvalidInput("due_date is required")

    change_due_date(db, borrowing_id=borrowing_id, due_date=payload.due_date)
    return _detail(db, borrowing_id)


@router.delete("/api-borrowings", response_model=DeletedOut)
def remove_borrowing(
    borrowing_id: str | None = Query(default=None, alias="id"),
    db: Session = Depends(get_db),
):
    if not borrowing_id:
        raise InvalidInput("id is required")
    delete_borrowing(db, borrowing_id=borrowing_id)
    return DeletedOut()
