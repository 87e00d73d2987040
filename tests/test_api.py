from conftest import BUSINESS_ID, MONDAY, OTHER_BUSINESS_ID

WEEK = [
    {"weekday": wd, "is_available": wd in (1, 2, 3, 4, 5), "start_time": "09:00", "end_time": "17:00"}
    for wd in range(7)
]
BASE = f"/businesses/{BUSINESS_ID}/availability"


def open_business(client, business_id=BUSINESS_ID):
    response = client.put(f"/businesses/{business_id}/availability/schedule", json={"days": WEEK})
    assert response.status_code == 200
    return response.json()


def grid(client, **params):
    query = {"start_date": MONDAY.isoformat(), "end_date": MONDAY.isoformat(), **params}
    response = client.get(f"{BASE}/slot-grid", params=query)
    assert response.status_code == 200
    return {slot["time"]: slot for slot in response.json()["slots"]}


def test_health(client):
    assert client.get("/health").status_code == 200


def test_schedule_endpoints(client):
    empty = client.get(f"{BASE}/schedule").json()
    assert len(empty["days"]) == 7
    assert not any(day["is_available"] for day in empty["days"])

    saved = open_business(client)
    assert saved["business_id"] == BUSINESS_ID
    assert saved["days"][1]["is_available"] is True

    bad = client.put(f"{BASE}/schedule", json={"days": WEEK[:5]})
    assert bad.status_code == 400


def test_slot_overrides_endpoints(client):
    open_business(client)
    response = client.put(
        f"{BASE}/slots",
        json={"slots_by_day": {"1": [{"time": "10:00", "enabled": False}]}},
    )
    assert response.status_code == 200
    assert response.json()["slots_by_day"] == {"1": [{"time": "10:00", "enabled": False}]}

    assert "10:00" not in grid(client)


def test_block_lifecycle(client):
    open_business(client)
    created = client.post(
        f"{BASE}/blocks",
        json={"block_date": MONDAY.isoformat(), "start_time": "12:00", "end_time": "13:00"},
    )
    assert created.status_code == 201
    block = created.json()

    cell = grid(client)["12:00"]
    assert cell["status"] == "blocked"
    assert cell["block_id"] == block["id"]

    assert client.patch(f"{BASE}/blocks/{block['id']}", json={}).status_code == 405
    assert client.delete(f"/businesses/{OTHER_BUSINESS_ID}/availability/blocks/{block['id']}").status_code == 404
    assert client.delete(f"{BASE}/blocks/{block['id']}").status_code == 204
    assert grid(client)["12:00"]["status"] == "available"


def test_invalid_block_and_range(client):
    bad_block = client.post(
        f"{BASE}/blocks",
        json={"block_date": MONDAY.isoformat(), "start_time": "13:00", "end_time": "12:00"},
    )
    assert bad_block.status_code == 400

    bad_range = client.get(
        f"{BASE}/slot-grid",
        params={"start_date": MONDAY.isoformat(), "end_date": "2026-10-01"},
    )
    assert bad_range.status_code == 400


def test_calendar_slot_block(client):
    open_business(client)
    response = client.post(
        f"{BASE}/blocks/slot", json={"date": MONDAY.isoformat(), "time": "15:00"}
    )
    assert response.status_code == 201
    assert grid(client)["15:00"]["status"] == "blocked"


def test_lock_and_promote_flow(client):
    open_business(client)
    lock = client.post(
        "/bookings/lock",
        json={"business_id": BUSINESS_ID, "date": MONDAY.isoformat(), "time": "10:00"},
    )
    assert lock.status_code == 201
    lock_id = lock.json()["lock_id"]
    assert grid(client)["10:00"]["status"] == "locked"

    taken = client.post(
        "/bookings/lock",
        json={"business_id": BUSINESS_ID, "date": MONDAY.isoformat(), "time": "10:00"},
    )
    assert taken.status_code == 409

    assert client.get(f"/bookings/lock/{lock_id}").status_code == 200

    booking = client.post(f"/bookings/lock/{lock_id}/promote", json={"order_id": "ord-7"})
    assert booking.status_code == 200
    assert booking.json()["order_id"] == "ord-7"
    assert grid(client)["10:00"]["status"] == "booked"

    ledger = client.get("/bookings/", params={"business_id": BUSINESS_ID}).json()
    assert [(b["date"], b["time"]) for b in ledger] == [(MONDAY.isoformat(), "10:00")]


def test_release_lock_endpoint(client):
    open_business(client)
    lock_id = client.post(
        "/bookings/lock",
        json={"business_id": BUSINESS_ID, "date": MONDAY.isoformat(), "time": "11:00"},
    ).json()["lock_id"]

    assert client.delete(f"/bookings/lock/{lock_id}").status_code == 204
    assert client.delete(f"/bookings/lock/{lock_id}").status_code == 204
    assert client.get(f"/bookings/lock/{lock_id}").status_code == 404
    assert client.post(f"/bookings/lock/{lock_id}/promote").status_code == 410


def test_customer_availability(client):
    open_business(client)
    response = client.get(BASE, params={"start_date": MONDAY.isoformat()})
    assert response.status_code == 200
    body = response.json()

    assert body["end_date"] == "2026-10-25"
    monday = [slot for slot in body["slots"] if slot["date"] == MONDAY.isoformat()]
    assert len(monday) == 15
    assert all(slot["available"] for slot in monday)


def test_checkout_conflict_names_business(client):
    open_business(client)
    open_business(client, OTHER_BUSINESS_ID)
    client.post(
        "/bookings/lock",
        json={"business_id": OTHER_BUSINESS_ID, "date": MONDAY.isoformat(), "time": "11:00"},
    )

    response = client.post(
        "/checkout/reserve",
        json={
            "selections": [
                {"business_id": BUSINESS_ID, "business_name": "Studio A", "date": MONDAY.isoformat(), "time": "10:00"},
                {"business_id": OTHER_BUSINESS_ID, "business_name": "Barber B", "date": MONDAY.isoformat(), "time": "11:00"},
            ]
        },
    )
    assert response.status_code == 409
    body = response.json()
    assert body["business_id"] == OTHER_BUSINESS_ID
    assert "Barber B" in body["message"]
    assert [s["business_id"] for s in body["remaining"]] == [BUSINESS_ID]
    assert grid(client)["10:00"]["status"] == "available"


def test_checkout_then_internal_payment(client):
    open_business(client)
    open_business(client, OTHER_BUSINESS_ID)
    reserved = client.post(
        "/checkout/reserve",
        json={
            "selections": [
                {"business_id": BUSINESS_ID, "date": MONDAY.isoformat(), "time": "10:00"},
                {"business_id": OTHER_BUSINESS_ID, "date": MONDAY.isoformat(), "time": "10:00"},
            ]
        },
    )
    assert reserved.status_code == 201
    lock_ids = [sub["lock"]["lock_id"] for sub in reserved.json()["sub_orders"]]

    paid = client.post(
        "/internal/payments/succeeded", json={"lock_id": lock_ids[0], "order_id": "sub-1"}
    )
    assert paid.status_code == 200
    assert grid(client)["10:00"]["status"] == "booked"

    cancelled = client.post(
        "/internal/orders/cancelled", json={"order_id": "sub-2", "lock_ids": [lock_ids[1]]}
    )
    assert cancelled.status_code == 204
    assert client.get(f"/bookings/lock/{lock_ids[1]}").status_code == 404

    assert client.post("/internal/locks/purge").json() == {"deleted": 1}


def test_cache_invalidation_without_redis(client):
    response = client.post(
        "/slots/invalidate", params={"business_id": BUSINESS_ID, "dates": [MONDAY.isoformat()]}
    )
    assert response.status_code == 200
    assert response.json() == {
        "business_id": BUSINESS_ID,
        "deleted_keys": 0,
        "dates": [MONDAY.isoformat()],
    }


def test_picker_half_hour_time_reserves_at_checkout(client):
    open_business(client)
    picker = client.get(BASE, params={"start_date": MONDAY.isoformat(), "end_date": MONDAY.isoformat()})
    slot = next(s for s in picker.json()["slots"] if s["time"] == "09:30")
    assert slot["available"] is True

    reserved = client.post(
        "/checkout/reserve",
        json={"selections": [{"business_id": BUSINESS_ID, "date": slot["date"], "time": slot["time"]}]},
    )
    assert reserved.status_code == 201
    assert reserved.json()["sub_orders"][0]["lock"]["time"] == "09:30"
    assert grid(client, slot_interval_minutes=30)["09:30"]["status"] == "locked"


def test_zero_duration_grid_is_rejected(client):
    open_business(client)
    response = client.get(
        f"{BASE}/slot-grid",
        params={
            "start_date": MONDAY.isoformat(),
            "end_date": MONDAY.isoformat(),
            "duration_minutes": 0,
        },
    )
    assert response.status_code == 400
