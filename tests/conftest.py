import os
from datetime import date
from decimal import Decimal

import pytest
from libradesk.db.session import get_db
from libradesk.main import app
from libradesk.models import Base, Book, Borrowing, Member
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


@pytest.fixture(scope="session")
def engine():
    # Override at runtime: TEST_DATABASE_URL=postgresql+psycopg://... pytest
    url = os.getenv("TEST_DATABASE_URL")
    if url:
        eng = create_engine(url, pool_pre_ping=True)
    else:
        # Default to in-memory SQLite so tests run without external services.
        eng = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)


@pytest.fixture()
def db_session(engine):
    connection = engine.connect()
    tx = connection.begin()

    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=connection
    )
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        tx.rollback()
        connection.close()


@pytest.fixture()
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_book(db_session):
    counter = {"n": 0}

    def _make(*, title="Dune", author="Frank Herbert", quantity=1, available=None, isbn=None):
        counter["n"] += 1
        book = Book(
            title=title,
            author=author,
            isbn=isbn or f"978-0-00-{counter['n']:06d}",
            quantity=quantity,
            available_quantity=quantity if available is None else available,
        )
        db_session.add(book)
        db_session.commit()
        db_session.refresh(book)
        return book

    return _make


@pytest.fixture()
def make_member(db_session):
    counter = {"n": 0}

    def _make(*, name="Ada Lovelace", is_active=True, email=None):
        counter["n"] += 1
        member = Member(
            name=name,
            email=email or f"member{counter['n']}@example.com",
            is_active=is_active,
        )
        db_session.add(member)
        db_session.commit()
        db_session.refresh(member)
        return member

    return _make


@pytest.fixture()
def make_loan(db_session):
    """Insert a borrowing row directly, bypassing the workflow (for history/fixtures)."""

    def _make(book, member, *, borrow_date, due_date, status="borrowed", late_fee="0.00", return_date=None):
        loan = Borrowing(
            book_id=book.id,
            member_id=member.id,
            borrow_date=borrow_date,
            due_date=due_date,
            return_date=return_date,
            status=status,
            late_fee=Decimal(late_fee),
        )
        db_session.add(loan)
        db_session.commit()
        db_session.refresh(loan)
        return loan

    return _make


@pytest.fixture()
def today():
    return date.today()
