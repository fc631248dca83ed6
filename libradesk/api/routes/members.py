from __future__ import annotations

from libradesk.crud.members import (
    create_member,
    delete_member,
    get_member,
    list_members,
    update_member,
)
from libradesk.db.session import get_db
from libradesk.schemas.borrowings import DeletedOut
from libradesk.schemas.members import MemberCreateIn, MemberOut, MemberPatchIn
from libradesk.services.errors import InvalidInput, NotFound
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

router = APIRouter(tags=["members"])


@router.get("/api-members", response_model=MemberOut | list[MemberOut])
def get_members(
    *,
    member_id: str | None = Query(default=None, alias="id"),
    q: str | None = Query(default=None, max_length=200),
    active_only: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    if member_id:
        member = get_member(db, member_id=member_id)
        if member is None:
            raise NotFound("Member not found")
        return member
    return list_members(db, q=q, active_only=active_only)


@router.post("/api-members", response_model=MemberOut, status_code=201)
def post_member(payload: MemberCreateIn, db: Session = Depends(get_db)):
    return create_member(
        db,
        name=payload.name,
        email=str(payload.email),
        phone=payload.phone,
        membership_date=payload.membership_date,
    )


@router.put("/api-members", response_model=MemberOut)
def put_member(
    payload: MemberPatchIn,
    member_id: str | None = Query(default=None, alias="id"),
    db: Session = Depends(get_db),
):
    if not member_id:
        raise InvalidInput("id is required")
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("email") is not None:
        changes["email"] = str(changes["email"])
    return update_member(db, member_id=member_id, changes=changes)


@router.delete("/api-members", response_model=DeletedOut)
def remove_member(
    member_id: str | None = Query(default=None, alias="id"),
    db: Session = Depends(get_db),
):
    if not member_id:
        raise InvalidInput("id is required")
    delete_member(db, member_id=member_id)
    return DeletedOut()
