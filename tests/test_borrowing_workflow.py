from datetime import date, timedelta
from decimal import Decimal

import pytest
from libradesk.models import Book, Borrowing
from libradesk.services.borrowing import (
    borrow,
    change_due_date,
    compute_status,
    delete_borrowing,
    preview_late_fee,
    return_borrowing,
)
from libradesk.services.errors import (
    AlreadyReturned,
    InactiveMember,
    InvalidInput,
    NotAvailable,
    NotFound,
)


def _book(db_session, book_id):
    return db_session.get(Book, book_id)


def test_borrow_takes_a_copy_and_creates_open_loan(db_session, make_book, make_member, today):
    book = make_book(quantity=3)
    member = make_member()

    loan = borrow(
        db_session,
        book_id=book.id,
        member_id=member.id,
        due_date=today + timedelta(days=14),
    )

    assert loan.status == "borrowed"
    assert loan.borrow_date == today
    assert loan.return_date is None
    assert loan.late_fee == Decimal("0.00")
    assert _book(db_session, book.id).available_quantity == 2


def test_two_borrows_exhaust_two_copies_and_third_fails(db_session, make_book, make_member, today):
    book = make_book(quantity=2)
    a, b, c = make_member(), make_member(), make_member()
    due = today + timedelta(days=7)

    borrow(db_session, book_id=book.id, member_id=a.id, due_date=due)
    borrow(db_session, book_id=book.id, member_id=b.id, due_date=due)
    assert _book(db_session, book.id).available_quantity == 0

    with pytest.raises(NotAvailable):
        borrow(db_session, book_id=book.id, member_id=c.id, due_date=due)

    assert _book(db_session, book.id).available_quantity == 0
    assert db_session.query(Borrowing).filter(Borrowing.book_id == book.id).count() == 2


def test_borrow_rejects_inactive_member(db_session, make_book, make_member, today):
    book = make_book()
    member = make_member(is_active=False)

    with pytest.raises(InactiveMember):
        borrow(db_session, book_id=book.id, member_id=member.id, due_date=today)

    assert _book(db_session, book.id).available_quantity == 1


def test_unavailable_book_wins_over_inactive_member(db_session, make_book, make_member, today):
    book = make_book(quantity=1, available=0)
    member = make_member(is_active=False)

    with pytest.raises(NotAvailable):
        borrow(db_session, book_id=book.id, member_id=member.id, due_date=today)


def test_unavailable_book_wins_over_past_due_date(db_session, make_book, make_member, today):
    book = make_book(quantity=1, available=0)
    member = make_member()

    with pytest.raises(NotAvailable):
        borrow(
            db_session,
            book_id=book.id,
            member_id=member.id,
            due_date=today - timedelta(days=1),
        )

    assert db_session.query(Borrowing).filter(Borrowing.book_id == book.id).count() == 0


def test_borrow_reports_missing_records(db_session, make_book, make_member, today):
    book = make_book()
    member = make_member()

    with pytest.raises(NotFound, match="Book"):
        borrow(db_session, book_id="nope", member_id=member.id, due_date=today)
    with pytest.raises(NotFound, match="Member"):
        borrow(db_session, book_id=book.id, member_id="nope", due_date=today)


@pytest.mark.parametrize("due", [None, "", "next tuesday", "2024-13-40"])
def test_borrow_rejects_missing_or_malformed_due_date(db_session, make_book, make_member, due):
    book = make_book()
    member = make_member()

    with pytest.raises(InvalidInput):
        borrow(db_session, book_id=book.id, member_id=member.id, due_date=due)


def test_borrow_rejects_due_date_in_the_past(db_session, make_book, make_member, today):
    book = make_book()
    member = make_member()

    with pytest.raises(InvalidInput):
        borrow(
            db_session,
            book_id=book.id,
            member_id=member.id,
            due_date=today - timedelta(days=1),
        )


def test_return_charges_late_fee_and_releases_copy(db_session, make_book, make_member):
    book = make_book(quantity=1)
    member = make_member()
    loan = borrow(
        db_session,
        book_id=book.id,
        member_id=member.id,
        due_date=date(2024, 1, 10),
        today=date(2024, 1, 1),
    )
    assert _book(db_session, book.id).available_quantity == 0

    returned = return_borrowing(db_session, borrowing_id=loan.id, as_of=date(2024, 1, 15))

    assert returned.status == "returned"
    assert returned.return_date == date(2024, 1, 15)
    assert returned.late_fee == Decimal("2.50")
    assert _book(db_session, book.id).available_quantity == 1


def test_return_on_time_is_free(db_session, make_book, make_member):
    book = make_book()
    member = make_member()
    loan = borrow(
        db_session,
        book_id=book.id,
        member_id=member.id,
        due_date=date(2024, 1, 10),
        today=date(2024, 1, 1),
    )

    returned = return_borrowing(db_session, borrowing_id=loan.id, as_of=date(2024, 1, 10))

    assert returned.late_fee == Decimal("0.00")


def test_second_return_fails_and_keeps_first_result(db_session, make_book, make_member):
    book = make_book(quantity=1)
    member = make_member()
    loan = borrow(
        db_session,
        book_id=book.id,
        member_id=member.id,
        due_date=date(2024, 1, 10),
        today=date(2024, 1, 1),
    )
    return_borrowing(db_session, borrowing_id=loan.id, as_of=date(2024, 1, 15))

    with pytest.raises(AlreadyReturned):
        return_borrowing(db_session, borrowing_id=loan.id, as_of=date(2024, 1, 20))

    again = db_session.get(Borrowing, loan.id)
    assert again.late_fee == Decimal("2.50")
    assert again.return_date == date(2024, 1, 15)
    assert _book(db_session, book.id).available_quantity == 1


def test_return_unknown_borrowing(db_session):
    with pytest.raises(NotFound):
        return_borrowing(db_session, borrowing_id="missing")


def test_return_date_cannot_precede_borrow_date(db_session, make_book, make_member):
    book = make_book()
    member = make_member()
    loan = borrow(
        db_session,
        book_id=book.id,
        member_id=member.id,
        due_date=date(2024, 1, 10),
        today=date(2024, 1, 5),
    )

    with pytest.raises(InvalidInput):
        return_borrowing(db_session, borrowing_id=loan.id, as_of=date(2024, 1, 1))


def test_return_never_pushes_available_above_quantity(
    db_session, make_book, make_member, make_loan
):
    # A loan recorded while every copy is still on the shelf (e.g. imported data).
    book = make_book(quantity=1)
    member = make_member()
    loan = make_loan(
        book, member, borrow_date=date(2024, 1, 1), due_date=date(2024, 1, 10)
    )

    return_borrowing(db_session, borrowing_id=loan.id, as_of=date(2024, 1, 5))

    refreshed = _book(db_session, book.id)
    assert refreshed.available_quantity == refreshed.quantity == 1


def test_available_stays_within_bounds_over_a_sequence(db_session, make_book, make_member):
    book = make_book(quantity=2)
    members = [make_member() for _ in range(3)]
    start = date(2024, 3, 1)
    loans = []

    for m in members:
        try:
            loans.append(
                borrow(
                    db_session,
                    book_id=book.id,
                    member_id=m.id,
                    due_date=start + timedelta(days=14),
                    today=start,
                )
            )
        except NotAvailable:
            pass
        b = _book(db_session, book.id)
        assert 0 <= b.available_quantity <= b.quantity

    for loan in loans:
        return_borrowing(db_session, borrowing_id=loan.id, as_of=start + timedelta(days=3))
        b = _book(db_session, book.id)
        assert 0 <= b.available_quantity <= b.quantity

    assert len(loans) == 2
    assert _book(db_session, book.id).available_quantity == 2


def test_compute_status_is_derived_not_stored():
    open_loan = {"status": "borrowed", "due_date": date(2024, 1, 10), "return_date": None}
    closed = {"status": "returned", "due_date": date(2024, 1, 10), "return_date": date(2024, 1, 12)}

    assert compute_status(open_loan, date(2024, 1, 10)) == "borrowed"
    assert compute_status(open_loan, date(2024, 1, 11)) == "overdue"
    assert compute_status(closed, date(2024, 2, 1)) == "returned"
    assert open_loan["status"] == "borrowed"


def test_preview_fee_for_open_and_closed_loans():
    open_loan = {"status": "borrowed", "due_date": "2024-01-10", "late_fee": 0}
    closed = {"status": "returned", "due_date": "2024-01-10", "late_fee": "3.00"}

    assert preview_late_fee(open_loan, date(2024, 1, 12)) == Decimal("1.00")
    assert preview_late_fee(closed, date(2024, 6, 1)) == Decimal("3.00")


def test_change_due_date_only_on_open_loans(db_session, make_book, make_member):
    book = make_book()
    member = make_member()
    loan = borrow(
        db_session,
        book_id=book.id,
        member_id=member.id,
        due_date=date(2024, 1, 10),
        today=date(2024, 1, 1),
    )

    updated = change_due_date(db_session, borrowing_id=loan.id, due_date="2024-01-20")
    assert updated.due_date == date(2024, 1, 20)

    with pytest.raises(InvalidInput):
        change_due_date(db_session, borrowing_id=loan.id, due_date=date(2023, 12, 31))

    return_borrowing(db_session, borrowing_id=loan.id, as_of=date(2024, 1, 15))
    with pytest.raises(AlreadyReturned):
        change_due_date(db_session, borrowing_id=loan.id, due_date=date(2024, 2, 1))


def test_deleting_open_loan_restores_copy(db_session, make_book, make_member, today):
    book = make_book(quantity=1)
    member = make_member()
    loan = borrow(
        db_session, book_id=book.id, member_id=member.id, due_date=today + timedelta(days=3)
    )
    assert _book(db_session, book.id).available_quantity == 0

    delete_borrowing(db_session, borrowing_id=loan.id)

    assert db_session.get(Borrowing, loan.id) is None
    assert _book(db_session, book.id).available_quantity == 1
