from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from libradesk.models.borrowing import Borrowing, BorrowingStatus
from libradesk.models.member import Member
from libradesk.services import events
from libradesk.services.errors import InvalidInput, NotFound
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

_REQUIRED = ("name", "email", "membership_date", "is_active")
_EDITABLE = ("name", "email", "phone", "membership_date", "is_active")


def get_member(db: Session, *, member_id: str) -> Optional[Member]:
    return db.get(Member, member_id)


def list_members(
    db: Session, *, q: str | None = None, active_only: bool = False
) -> list[Member]:
    stmt = select(Member)
    if q:
        like = f"%{q.strip().lower()}%"
        stmt = stmt.where(
            or_(func.lower(Member.name).like(like), func.lower(Member.email).like(like))
        )
    if active_only:
        stmt = stmt.where(Member.is_active.is_(True))
    return list(db.execute(stmt.order_by(Member.created_at.desc())).scalars().all())


def _email_taken(db: Session, email: str, *, exclude_id: str | None = None) -> bool:
    stmt = select(Member.id).where(func.lower(Member.email) == email.lower())
    if exclude_id is not None:
        stmt = stmt.where(Member.id != exclude_id)
    return db.execute(stmt).first() is not None


def create_member(
    db: Session,
    *,
    name: str,
    email: str,
    phone: str | None = None,
    membership_date: date | None = None,
) -> Member:
    if _email_taken(db, email):
        raise InvalidInput("A member with this email already exists")

    member = Member(
        name=name,
        email=email,
        phone=phone,
        membership_date=membership_date or date.today(),
        is_active=True,
    )
    db.add(member)
    try:
        db.commit()
    except IntegrityError as exc:
        raise InvalidInput("A member with this email already exists") from exc
    db.refresh(member)

    logger.info("Member created: %s", member.id)
    events.emit("members", "created", member.id)
    return member


def update_member(db: Session, *, member_id: str, changes: dict[str, Any]) -> Member:
    member = db.get(Member, member_id)
    if member is None:
        raise NotFound("Member not found")

    for key in _REQUIRED:
        if key in changes and changes[key] is None:
            raise InvalidInput(f"{key} cannot be null")

    if "email" in changes and _email_taken(db, changes["email"], exclude_id=member.id):
        raise InvalidInput("A member with this email already exists")

    for key in _EDITABLE:
        if key in changes:
            setattr(member, key, changes[key])

    try:
        db.commit()
    except IntegrityError as exc:
        raise InvalidInput("A member with this email already exists") from exc
    db.refresh(member)

    logger.info("Member updated: %s", member_id)
    events.emit("members", "updated", member_id)
    return member


def delete_member(db: Session, *, member_id: str) -> None:
    member = db.get(Member, member_id)
    if member is None:
        raise NotFound("Member not found")

    open_loans = db.execute(
        select(func.count())
        .select_from(Borrowing)
        .where(
            Borrowing.member_id == member_id,
            Borrowing.status == BorrowingStatus.borrowed.value,
        )
    ).scalar_one()
    if open_loans:
        raise InvalidInput("Member has books on loan and cannot be deleted")

    db.delete(member)
    db.commit()

    logger.info("Member deleted: %s", member_id)
    events.emit("members", "deleted", member_id)
