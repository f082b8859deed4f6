"""Card, Loan and Appointment Routes - admin surface around the tap flow."""

from tests.fakes import NOW


async def test_assign_card(client, seed):
    res = await client.post("/api/v1/cards", json={
        "card_id": "ee55", "entity_kind": "computer", "entity_id": seed.laptop.id,
    })
    assert res.status_code == 201
    assert res.json() == {
        "card_id": "EE55", "entity_kind": "computer", "entity_id": seed.laptop.id,
    }


async def test_assign_taken_card_conflicts(client, seed):
    res = await client.post("/api/v1/cards", json={
        "card_id": "AA11", "entity_kind": "book", "entity_id": seed.book.id,
    })
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "CARD_ALREADY_ASSIGNED"


async def test_assign_to_missing_entity(client, seed):
    res = await client.post("/api/v1/cards", json={
        "card_id": "EE55", "entity_kind": "person", "entity_id": 999,
    })
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_unassign_card(client, seed):
    res = await client.delete("/api/v1/cards/bb22")
    assert res.status_code == 200
    assert res.json()["entity_id"] == seed.bruno.id
    assert (await client.delete("/api/v1/cards/BB22")).status_code == 404


async def test_loan_lifecycle(client, seed):
    res = await client.post("/api/v1/loans", json={
        "resource_kind": "book", "resource_id": seed.book.id,
        "borrower_id": seed.alice.id, "operator": "Marta",
    })
    assert res.status_code == 201
    assert res.json()["status"] == "active"
    assert res.json()["due_at"] is not None

    board = (await client.get("/api/v1/loans/active")).json()
    assert board[0]["borrower_name"] == "Alice Romero"
    assert board[0]["days_remaining"] == 7

    res = await client.post("/api/v1/loans/release", json={
        "resource_kind": "book", "resource_id": seed.book.id,
    })
    assert res.status_code == 200
    assert res.json()["status"] == "closed"
    assert (await client.get("/api/v1/loans/active")).json() == []


async def test_desk_loan_records_operator_and_term(client, seed):
    res = await client.post("/api/v1/loans", json={
        "resource_kind": "book", "resource_id": seed.book.id,
        "borrower_id": seed.alice.id, "operator": " Marta ", "loan_days": 14,
    })
    assert res.status_code == 201
    assert res.json()["operator"] == "Marta"

    board = (await client.get("/api/v1/loans/active")).json()
    assert board[0]["operator"] == "Marta"
    assert board[0]["days_remaining"] == 14


async def test_desk_loan_requires_operator(client, seed):
    res = await client.post("/api/v1/loans", json={
        "resource_kind": "book", "resource_id": seed.book.id,
        "borrower_id": seed.alice.id, "operator": "   ",
    })
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"

    res = await client.post("/api/v1/loans", json={
        "resource_kind": "book", "resource_id": seed.book.id,
        "borrower_id": seed.alice.id,
    })
    assert res.status_code == 400


async def test_release_without_loan(client, seed):
    res = await client.post("/api/v1/loans/release", json={
        "resource_kind": "computer", "resource_id": seed.laptop.id,
    })
    assert res.status_code == 409
    error = res.json()["error"]
    assert error["code"] == "NO_ACTIVE_LOAN"
    assert error["severity"] == "warning"


async def test_person_is_not_a_loanable_kind(client, seed):
    res = await client.post("/api/v1/loans", json={
        "resource_kind": "person", "resource_id": seed.alice.id,
        "borrower_id": seed.bruno.id, "operator": "Marta",
    })
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_appointments(client, seed):
    day = NOW.date().isoformat()
    res = await client.post("/api/v1/appointments", json={
        "person_id": seed.alice.id, "scheduled_date": day,
        "scheduled_time": "10:00:00", "area": " Sala 2 ", "notes": "  ",
    })
    assert res.status_code == 201
    created = res.json()
    assert created["status"] == "scheduled"
    assert created["area"] == "Sala 2"
    assert created["notes"] is None

    listed = (await client.get("/api/v1/appointments", params={"date": day})).json()
    assert [a["id"] for a in listed] == [created["id"]]
    assert (await client.get(
        "/api/v1/appointments", params={"date": "2030-01-01"},
    )).json() == []


async def test_appointment_for_missing_person(client, seed):
    res = await client.post("/api/v1/appointments", json={
        "person_id": 999, "scheduled_date": "2026-10-19", "scheduled_time": "10:00",
    })
    assert res.status_code == 404


async def test_manual_sweep(client, seed):
    await client.post("/api/v1/appointments", json={
        "person_id": seed.bruno.id, "scheduled_date": "2020-01-01",
        "scheduled_time": "09:00",
    })
    res = await client.post("/api/v1/appointments/sweep")
    assert res.status_code == 200
    assert len(res.json()["missed"]) == 1
