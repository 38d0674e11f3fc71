"""
Load test: fire many concurrent seat binds at a running instance and check
that no seat ever ends up with two passengers.

Usage:
1. Start the database and the app:
   uvicorn tripdesk.main:app
2. Run this script:
   python tests/load/seat_bind_stress.py

Environment variables:
- APP_URL (default http://localhost:8000)
- SECRET_KEY (must match the app's, used to sign the bearer token)
- CONCURRENT_REQUESTS (default 400)
- PASSENGERS (default 60)
- SEAT_COUNT (default 40)

The script will:
- Create a bus with `SEAT_COUNT` seats, a trip on it and `PASSENGERS` bookings
- Fire `CONCURRENT_REQUESTS` bind attempts, each a random booking on a random seat
- Report success/conflict/error counts and latency percentiles
- Read the seat map back and verify every occupied seat has exactly one
  occupant and no booking holds two seats
"""

import asyncio
import os
import random
import statistics
import time
import uuid

import httpx

from tripdesk.services.auth import create_access_token

APP_URL = os.environ.get("APP_URL", "http://localhost:8000")
CONCURRENT = int(os.environ.get("CONCURRENT_REQUESTS", "400"))
PASSENGERS = int(os.environ.get("PASSENGERS", "60"))
SEAT_COUNT = int(os.environ.get("SEAT_COUNT", "40"))


async def create_fixture(client):
    suffix = uuid.uuid4().hex[:6].upper()
    bus = (await client.post("/buses/", json={"model": "stress", "plate": f"ST-{suffix}", "capacity": SEAT_COUNT})).json()
    trip = (
        await client.post(
            "/trips/",
            json={"departure_at": "2030-01-01T08:00:00+00:00", "arrival_at": "2030-01-01T20:00:00+00:00", "bus_ids": [bus["id"]]},
        )
    ).json()
    address = (await client.post("/people/addresses", json={"street": "Stress St", "city": "Loadville", "state": "LV"})).json()
    bookings = []
    for i in range(PASSENGERS):
        person = (await client.post("/people/persons", json={"name": f"Stress {suffix} {i}"})).json()
        resp = await client.post(
            "/bookings/passengers/",
            json={
                "person_id": person["id"],
                "trip_id": trip["id"],
                "pickup_address_id": address["id"],
                "delivery_address_id": address["id"],
            },
        )
        resp.raise_for_status()
        bookings.append(resp.json()["id"])
    return bus, trip, bookings


async def attempt(client, trip_id, bus_id, booking_id, number):
    start = time.perf_counter()
    resp = await client.post(
        f"/trips/{trip_id}/seats/bind",
        json={"booking_id": booking_id, "bus_id": bus_id, "number": number},
    )
    return resp.status_code, time.perf_counter() - start


async def verify(client, trip_id):
    seats = (await client.get(f"/trips/{trip_id}/seats")).json()
    holders = [s["occupant"]["booking_id"] for s in seats if s["occupied"]]
    orphaned = [s["label"] for s in seats if s["occupied"] and s["occupant"] is None]
    duplicates = len(holders) - len(set(holders))
    print(f"occupied seats: {len(holders)}/{len(seats)}")
    print(f"bookings holding more than one seat: {duplicates}")
    print(f"occupied seats without an occupant: {orphaned}")
    return duplicates == 0 and not orphaned


async def main():
    headers = {"Authorization": f"Bearer {create_access_token('seat-bind-stress')}"}
    limits = httpx.Limits(max_connections=100)
    async with httpx.AsyncClient(base_url=APP_URL, headers=headers, timeout=30, limits=limits) as client:
        bus, trip, bookings = await create_fixture(client)
        print(f"trip {trip['id']} bus {bus['plate']} with {len(bookings)} bookings")

        jobs = [
            attempt(client, trip["id"], bus["id"], random.choice(bookings), random.randint(1, SEAT_COUNT))
            for _ in range(CONCURRENT)
        ]
        started = time.perf_counter()
        results = await asyncio.gather(*jobs)
        elapsed = time.perf_counter() - started

        codes = [code for code, _ in results]
        latencies = sorted(lat for _, lat in results)
        print(f"{CONCURRENT} binds in {elapsed:.2f}s")
        print(f"ok={codes.count(200)} conflict={codes.count(409)} other={len(codes) - codes.count(200) - codes.count(409)}")
        print(
            "latency p50={:.3f}s p95={:.3f}s max={:.3f}s".format(
                statistics.median(latencies), latencies[int(len(latencies) * 0.95) - 1], latencies[-1]
            )
        )

        ok = await verify(client, trip["id"])
        print("PASS" if ok else "FAIL: double booking detected")
        return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
