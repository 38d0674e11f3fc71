import asyncio

from tripdesk.services.auth import create_access_token


async def setup_trip(client):
    bus = (await client.post("/buses/", json={"model": "Marcopolo G7", "plate": "101-abc", "capacity": 40})).json()
    trip = await client.post(
        "/trips/",
        json={"departure_at": "2024-05-10T08:00:00+00:00", "arrival_at": "2024-05-12T18:00:00+00:00", "bus_ids": [bus["id"]]},
    )
    assert trip.status_code == 201
    return bus, trip.json()


async def add_passenger(client, trip, name, national_id):
    person = (await client.post("/people/persons", json={"name": name, "national_id": national_id})).json()
    address = (await client.post("/people/addresses", json={"street": "Rua A", "city": "Curitiba", "state": "PR"})).json()
    resp = await client.post(
        "/bookings/passengers/",
        json={
            "person_id": person["id"],
            "trip_id": trip["id"],
            "pickup_address_id": address["id"],
            "delivery_address_id": address["id"],
        },
    )
    assert resp.status_code == 201
    return resp.json()


async def test_health_and_metrics(client):
    assert (await client.get("/health")).json() == {"status": "ok"}
    resp = await client.get("/metrics")
    assert resp.status_code == 200
    assert "tripdesk_seat_bind_attempts_total" in resp.text


async def test_mutations_need_identity(client):
    client.headers.pop("Authorization")
    resp = await client.post("/buses/", json={"plate": "X", "capacity": 1})
    assert resp.status_code == 401

    client.headers["Cookie"] = f"access_token={create_access_token('cookie-user')}"
    resp = await client.post("/buses/", json={"plate": "X", "capacity": 1})
    assert resp.status_code == 201

    resp = await client.get("/buses/")
    assert resp.status_code == 200


async def test_trace_id_is_echoed(client):
    resp = await client.get("/health", headers={"X-Trace-Id": "trace-123"})
    assert resp.headers["X-Trace-Id"] == "trace-123"


async def test_seat_map_bind_and_release(client):
    bus, trip = await setup_trip(client)
    assert bus["plate"] == "101-ABC"

    seats = (await client.get(f"/trips/{trip['id']}/seats")).json()
    assert len(seats) == 40 and seats[11]["label"] == "12"

    p1 = await add_passenger(client, trip, "Ana Souza", "111")
    p2 = await add_passenger(client, trip, "Bruno Lima", "222")
    bind = {"bus_id": bus["id"], "number": 12}
    first, second = await asyncio.gather(
        client.post(f"/trips/{trip['id']}/seats/bind", json={**bind, "booking_id": p1["id"]}),
        client.post(f"/trips/{trip['id']}/seats/bind", json={**bind, "booking_id": p2["id"]}),
    )
    assert sorted([first.status_code, second.status_code]) == [200, 409]
    loser = first if first.status_code == 409 else second
    assert loser.json()["error"] == "seat_conflict"

    seats = (await client.get(f"/trips/{trip['id']}/seats")).json()
    assert seats[11]["occupied"] is True
    assert seats[11]["occupant"]["name"] in ("Ana Souza", "Bruno Lima")

    winner = p1 if first.status_code == 200 else p2
    released = await client.post(f"/bookings/passengers/{winner['id']}/release-seat")
    assert released.json() == {"booking_id": winner["id"], "released": True}
    again = await client.post(f"/bookings/passengers/{winner['id']}/release-seat")
    assert again.json()["released"] is False


async def test_domain_errors_render_as_json(client):
    bus, trip = await setup_trip(client)
    p1 = await add_passenger(client, trip, "Ana Souza", "111")

    resp = await client.post(f"/trips/{trip['id']}/seats/bind", json={"bus_id": bus["id"], "number": 41, "booking_id": p1["id"]})
    assert resp.status_code == 404
    assert resp.json()["error"] == "seat_not_found"

    resp = await client.post(
        "/bookings/bulk-assign", json={"passenger_ids": [p1["id"]], "driver_id": 9999, "type": "PICKUP"}
    )
    assert resp.status_code == 404
    assert resp.json() == {"error": "reference_not_found", "detail": "driver 9999 not found", "kind": "driver", "id": 9999}

    resp = await client.post("/buses/", json={"plate": "777-BAD", "capacity": 1, "layout": [[1, 2]]})
    assert resp.status_code == 422
    assert resp.json()["error"] == "layout_error"

    assert (await client.get("/trips/9999")).status_code == 404
    assert (await client.delete("/bookings/passengers/9999")).status_code == 404
    assert (await client.get("/trips/9999/seats")).status_code == 404


async def test_trip_listing_and_layout(client):
    bus, trip = await setup_trip(client)
    await add_passenger(client, trip, "Ana Souza", "111")

    page = (await client.get("/trips/", params={"month": 5, "year": 2024, "search": "abc"})).json()
    assert page["total"] == 1
    assert page["items"][0]["total_passengers"] == 1
    assert page["items"][0]["buses"][0]["plate"] == "101-ABC"

    assert (await client.get("/trips/", params={"month": 13})).status_code == 422

    layout = (await client.get(f"/buses/{bus['id']}/layout")).json()
    assert layout["seat_count"] == 40
    assert layout["rows"][0][0] == {"number": "01", "kind": "WINDOW"}


async def test_family_group_endpoint(client):
    bus, trip = await setup_trip(client)
    address = (await client.post("/people/addresses", json={"street": "Rua B", "city": "Lapa", "state": "PR"})).json()

    resp = await client.post(
        "/bookings/passengers/family",
        json={
            "trip_id": trip["id"],
            "pickup_address": {"id": address["id"]},
            "delivery_address": {"id": address["id"]},
            "color_tag": "#00aa00",
            "members": [
                {"name": "Eduardo Melo", "national_id": "555", "seat_number": 5},
                {"name": "Gabriel Melo", "seat_number": 6},
            ],
        },
    )
    assert resp.status_code == 201
    body = resp.json()
    assert [e["seat"]["label"] for e in body["entries"]] == ["05", "06"]

    roster = (await client.get(f"/bookings/trips/{trip['id']}/passengers")).json()
    assert [e["person"]["name"] for e in roster] == ["Eduardo Melo", "Gabriel Melo"]


async def test_affiliates(client):
    person = (await client.post("/people/persons", json={"name": "Davi Rocha"})).json()

    driver = await client.post("/affiliates/drivers", json={"person_id": person["id"]})
    assert driver.status_code == 201
    assert driver.json()["person"]["name"] == "Davi Rocha"

    agent = await client.post("/affiliates/agents", json={"person_id": person["id"]})
    assert agent.status_code == 201
    assert len((await client.get("/affiliates/drivers")).json()) == 1
    assert (await client.get("/affiliates/pilots")).status_code == 404
    assert (await client.post("/affiliates/drivers", json={"person_id": 9999})).status_code == 404


async def test_trip_dates_without_offset_are_utc(client):
    resp = await client.post(
        "/trips/", json={"departure_at": "2024-05-10T08:00:00", "arrival_at": "2024-05-12T18:00:00Z", "bus_ids": []}
    )
    assert resp.status_code == 201
    assert resp.json()["departure_at"].startswith("2024-05-10T08:00:00")

    resp = await client.post(
        "/trips/", json={"departure_at": "2024-05-12T18:00:00", "arrival_at": "2024-05-12T20:00:00+03:00"}
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "invalid_request"
