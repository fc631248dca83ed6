from __future__ import annotations

import logging
from typing import Any, Optional

from libradesk.core.config import settings
from libradesk.models.book import Book
from libradesk.models.borrowing import Borrowing, BorrowingStatus
from libradesk.services import events
from libradesk.services.errors import InvalidInput, NotFound
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

_REQUIRED = ("title", "author", "isbn", "quantity", "available_quantity")


def get_book(db: Session, *, book_id: str) -> Optional[Book]:
    return db.get(Book, book_id)


def list_books(db: Session, *, q: str | None = None) -> list[Book]:
    stmt = select(Book)
    if q:
        like = f"%{q.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Book.title).like(like),
                func.lower(Book.author).like(like),
                func.lower(Book.isbn).like(like),
            )
        )
    return list(db.execute(stmt.order_by(Book.created_at.desc())).scalars().all())


def _isbn_taken(db: Session, isbn: str, *, exclude_id: str | None = None) -> bool:
    stmt = select(Book.id).where(Book.isbn == isbn)
    if exclude_id is not None:
        stmt = stmt.where(Book.id != exclude_id)
    return db.execute(stmt).first() is not None


def create_book(
    db: Session,
    *,
    title: str,
    author: str,
    isbn: str,
    genre: str | None = None,
    quantity: int | None = None,
) -> Book:
    qty = settings.default_book_quantity if quantity is None else quantity
    if _isbn_taken(db, isbn):
        raise InvalidInput("A book with this ISBN already exists")

    book = Book(
        title=title,
        author=author,
        isbn=isbn,
        genre=genre,
        quantity=qty,
        available_quantity=qty,
    )
    db.add(book)
    try:
        db.commit()
    except IntegrityError as exc:
        raise InvalidInput("A book with this ISBN already exists") from exc
    db.refresh(book)

    logger.info("Book created: %s", book.id)
    events.emit("books", "created", book.id)
    return book


def update_book(db: Session, *, book_id: str, changes: dict[str, Any]) -> Book:
    """Apply a partial update.

    A new ``quantity`` moves ``available_quantity`` by the same delta so the
    copies on loan stay accounted for.
    """
    book = db.get(Book, book_id)
    if book is None:
        raise NotFound("Book not found")

    for key in _REQUIRED:
        if key in changes and changes[key] is None:
            raise InvalidInput(f"{key} cannot be null")

    if "isbn" in changes and _isbn_taken(db, changes["isbn"], exclude_id=book.id):
        raise InvalidInput("A book with this ISBN already exists")

    on_loan = book.on_loan
    quantity = changes.get("quantity", book.quantity)
    if quantity < on_loan:
        raise InvalidInput(
            f"quantity cannot be less than the {on_loan} copies currently on loan"
        )

    if "available_quantity" in changes:
        available = changes["available_quantity"]
        if available > quantity:
            raise InvalidInput("available_quantity cannot exceed quantity")
        if quantity - available < on_loan:
            raise InvalidInput(
                f"available_quantity leaves fewer than the {on_loan} copies on loan"
            )
    else:
        available = quantity - on_loan

    for key in ("title", "author", "isbn", "genre"):
        if key in changes:
            setattr(book, key, changes[key])
    book.quantity = quantity
    book.available_quantity = available

    try:
        db.commit()
    except IntegrityError as exc:
        raise InvalidInput("A book with this ISBN already exists") from exc
    db.refresh(book)

    logger.info("Book updated: %s", book_id)
    events.emit("books", "updated", book_id)
    return book


def delete_book(db: Session, *, book_id: str) -> None:
    book = db.get(Book, book_id)
    if book is None:
        raise NotFound("Book not found")

    open_loans = db.execute(
        select(func.count())
        .select_from(Borrowing)
        .where(
            Borrowing.book_id == book_id,
            Borrowing.status == BorrowingStatus.borrowed.value,
        )
    ).scalar_one()
    if open_loans:
        raise InvalidInput("Book has copies on loan and cannot be deleted")

    db.delete(book)
    db.commit()

    logger.info("Book deleted: %s", book_id)
    events.emit("books", "deleted", book_id)
