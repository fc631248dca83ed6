from datetime import date, timedelta


def test_dashboard_uses_camel_case_keys(client, make_book, make_member, make_loan):
    as_of = date(2024, 5, 1)
    a = make_book(title="Alpha", quantity=2)
    b = make_book(title="Beta", quantity=1)
    ann = make_member(name="Ann")
    make_member(name="Idle", is_active=False)

    make_loan(a, ann, borrow_date=as_of - timedelta(days=7), due_date=as_of)
    make_loan(
        b,
        ann,
        borrow_date=as_of - timedelta(days=20),
        due_date=as_of - timedelta(days=10),
        status="returned",
        return_date=as_of - timedelta(days=6),
        late_fee="2.00",
    )
    make_loan(a, ann, borrow_date=as_of - timedelta(days=3), due_date=as_of + timedelta(days=4))

    resp = client.get("/api-dashboard", params={"as_of": as_of.isoformat()})

    assert resp.status_code == 200
    body = resp.json()
    assert body["asOf"] == "2024-05-01"
    assert body["totalBooks"] == 3
    assert body["totalMembers"] == 1
    assert body["activeLoans"] == 2
    assert body["overdueLoans"] == 0
    assert body["totalRevenue"] == 2.0
    assert body["booksDueToday"] == 1
    assert body["mostBorrowedBooks"][0] == {"bookId": a.id, "title": "Alpha", "count": 2}
    assert body["mostActiveMembers"] == [{"memberId": ann.id, "name": "Ann", "loans": 3}]


def test_dashboard_defaults_to_today(client, today):
    body = client.get("/api-dashboard").json()

    assert body["asOf"] == today.isoformat()
    assert body["mostBorrowedBooks"] == []


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_event_stream_needs_redis(client):
    resp = client.get("/api-events")

    assert resp.status_code == 503
    assert resp.json() == {"error": "Event stream unavailable"}
