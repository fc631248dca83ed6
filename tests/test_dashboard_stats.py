from datetime import date, timedelta
from decimal import Decimal

from libradesk.services.dashboard import compute_dashboard_stats, load_dashboard_stats

AS_OF = date(2024, 5, 1)


def _loan(book_id, member_id, *, status="borrowed", due=AS_OF + timedelta(days=7), fee="0"):
    return {
        "book_id": book_id,
        "member_id": member_id,
        "status": status,
        "due_date": due,
        "return_date": None if status == "borrowed" else AS_OF,
        "late_fee": Decimal(fee),
    }


def test_most_borrowed_books_counts_and_stable_ties():
    books = [
        {"id": "A", "title": "Alpha", "quantity": 1},
        {"id": "B", "title": "Beta", "quantity": 1},
        {"id": "C", "title": "Gamma", "quantity": 1},
    ]
    loans = [_loan(b, "m1") for b in ["A", "A", "B", "A", "C", "B"]]

    stats = compute_dashboard_stats(books, [], loans, as_of=AS_OF)

    assert [(r.book_id, r.count) for r in stats.most_borrowed_books] == [
        ("A", 3),
        ("B", 2),
        ("C", 1),
    ]
    assert stats.most_borrowed_books[0].title == "Alpha"


def test_rankings_keep_first_seen_order_on_ties_and_cap_at_five():
    loans = [_loan(f"b{i}", f"m{i}") for i in range(7)]

    stats = compute_dashboard_stats([], [], loans, as_of=AS_OF)

    assert [r.book_id for r in stats.most_borrowed_books] == ["b0", "b1", "b2", "b3", "b4"]
    assert [r.member_id for r in stats.most_active_members] == ["m0", "m1", "m2", "m3", "m4"]
    assert stats.most_borrowed_books[0].title == "Unknown"
    assert stats.most_active_members[0].name == "Unknown"


def test_totals():
    books = [
        {"id": "A", "title": "Alpha", "quantity": 3},
        {"id": "B", "title": "Beta", "quantity": 2},
    ]
    members = [
        {"id": "m1", "name": "Ann", "is_active": True},
        {"id": "m2", "name": "Bob", "is_active": False},
        {"id": "m3", "name": "Cy", "is_active": True},
    ]
    loans = [
        _loan("A", "m1", due=AS_OF),
        _loan("A", "m3", due=AS_OF - timedelta(days=2)),
        _loan("B", "m1", status="returned", fee="2.50"),
        _loan("B", "m3", status="returned", fee="1.00"),
        _loan("A", "m1", fee="0.50"),
    ]

    stats = compute_dashboard_stats(books, members, loans, as_of=AS_OF)

    assert stats.total_books == 5
    assert stats.total_members == 2
    assert stats.active_loans == 3
    assert stats.overdue_loans == 1
    assert stats.books_due_today == 1
    assert stats.total_revenue == Decimal("4.00")
    assert [(r.name, r.loans) for r in stats.most_active_members] == [("Ann", 3), ("Cy", 2)]


def test_empty_store():
    stats = compute_dashboard_stats([], [], [], as_of=AS_OF)

    assert stats.total_books == 0
    assert stats.total_revenue == Decimal("0.00")
    assert stats.most_borrowed_books == []
    assert stats.most_active_members == []


def test_load_from_store(db_session, make_book, make_member, make_loan):
    book = make_book(title="Emma", quantity=4)
    ann = make_member(name="Ann")
    make_member(name="Gone", is_active=False)
    make_loan(book, ann, borrow_date=AS_OF - timedelta(days=10), due_date=AS_OF)
    make_loan(
        book,
        ann,
        borrow_date=AS_OF - timedelta(days=30),
        due_date=AS_OF - timedelta(days=20),
        status="returned",
        return_date=AS_OF - timedelta(days=16),
        late_fee="2.00",
    )

    stats = load_dashboard_stats(db_session, as_of=AS_OF)

    assert stats.total_books == 4
    assert stats.total_members == 1
    assert stats.active_loans == 1
    assert stats.books_due_today == 1
    assert stats.total_revenue == Decimal("2.00")
    assert [(r.title, r.count) for r in stats.most_borrowed_books] == [("Emma", 2)]
