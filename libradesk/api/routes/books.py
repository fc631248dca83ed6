from __future__ import annotations

from libradesk.crud.books import create_book, delete_book, get_book, list_books, update_book
from libradesk.db.session import get_db
from libradesk.schemas.books import BookCreateIn, BookOut, BookPatchIn
from libradesk.schemas.borrowings import DeletedOut
from libradesk.services.errors import InvalidInput, NotFound
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

router = APIRouter(tags=["books"])


@router.get("/api-books", response_model=BookOut | list[BookOut])
def get_books(
    *,
    book_id: str | None = Query(default=None, alias="id"),
    q: str | None = Query(default=None, max_length=200),
    db: Session = Depends(get_db),
):
    if book_id:
        book = get_book(db, book_id=book_id)
        if book is None:
            raise NotFound("Book not found")
        return book
    return list_books(db, q=q)


@router.post("/api-books", response_model=BookOut, status_code=201)
def post_book(payload: BookCreateIn, db: Session = Depends(get_db)):
    return create_book(
        db,
        title=payload.title,
        author=payload.author,
        isbn=payload.isbn,
        genre=payload.genre,
        quantity=payload.quantity,
    )


@router.put("/api-books", response_model=BookOut)
def put_book(
    payload: BookPatchIn,
    book_id: str | None = Query(default=None, alias="id"),
    db: Session = Depends(get_db),
):
    if not book_id:
        raise InvalidInput("id is required")
    return update_book(db, book_id=book_id, changes=payload.model_dump(exclude_unset=True))


@router.delete("/api-books", response_model=DeletedOut)
def remove_book(
    book_id: str | None = Query(default=None, alias="id"),
    db: Session = Depends(get_db),
):
    if not book_id:
        raise InvalidInput("id is required")
    delete_book(db, book_id=book_id)
    return DeletedOut()
