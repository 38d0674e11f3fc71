from datetime import datetime, timezone

import pytest

from tripdesk.errors import InvalidRequest
from tripdesk.schemas.fleet import BusIn
from tripdesk.schemas.trip import TripIn
from tripdesk.services import fleet, trips
from tripdesk.services.trip_query import find_trips


def when(year, month, day):
    return datetime(year, month, day, 7, 30, tzinfo=timezone.utc)


@pytest.fixture
async def timetable(call):
    """Five trips across 2024 on buses with overlapping names."""
    abc1 = await call(fleet.create_bus, BusIn(model="Comil Campione", plate="101-ABC", capacity=4))
    abc2 = await call(fleet.create_bus, BusIn(model="abc Invictus", plate="303-QRS", capacity=4))
    other = await call(fleet.create_bus, BusIn(model="Paradiso 1800", plate="404-TUV", capacity=4))
    percent = await call(fleet.create_bus, BusIn(model="Volare 100%", plate="505-WXY", capacity=4))

    async def trip(dep, buses):
        return await call(trips.create_trip, TripIn(departure_at=dep, arrival_at=dep, bus_ids=[b.id for b in buses]))

    return {
        "may_two_matches": await trip(when(2024, 5, 3), [abc1, abc2]),
        "may_no_match": await trip(when(2024, 5, 20), [other]),
        "may_one_match": await trip(when(2024, 5, 28), [other, abc1]),
        "june_match": await trip(when(2024, 6, 2), [abc1]),
        "may_2023": await trip(when(2023, 5, 5), [abc2, percent]),
    }


async def test_month_year_and_search(timetable, call):
    page = await call(find_trips, month=5, year=2024, search="ABC")

    ids = [t.id for t in page.items]
    assert ids == [timetable["may_two_matches"].id, timetable["may_one_match"].id]
    assert page.total == 2
    # one row per trip, even with two matching buses
    assert len(ids) == len(set(ids))
    assert len(page.items[0].buses) == 2


async def test_filters_are_optional(timetable, call):
    assert (await call(find_trips)).total == 5
    assert (await call(find_trips, year=2023)).total == 1
    assert (await call(find_trips, month=5)).total == 4
    assert (await call(find_trips, search="  paradiso ")).total == 2


async def test_search_treats_wildcards_literally(timetable, call):
    assert (await call(find_trips, search="%")).total == 1
    assert (await call(find_trips, search="1_1")).total == 0


async def test_paging_and_sort(timetable, call):
    first = await call(find_trips, page=0, size=2, sort="departure_at,desc")
    second = await call(find_trips, page=1, size=2, sort="departure_at,desc")
    last = await call(find_trips, page=2, size=2, sort="departure_at,desc")

    assert first.pages == 3 and first.size == 2
    assert [t.id for t in first.items] == [timetable["june_match"].id, timetable["may_one_match"].id]
    assert [t.id for t in second.items] == [timetable["may_no_match"].id, timetable["may_two_matches"].id]
    assert [t.id for t in last.items] == [timetable["may_2023"].id]
    assert (await call(find_trips, page=9)).items == []


async def test_size_is_capped(timetable, call):
    page = await call(find_trips, size=10_000)
    assert page.size == 100


async def test_bad_query_arguments(call):
    with pytest.raises(InvalidRequest):
        await call(find_trips, sort="plate")
    with pytest.raises(InvalidRequest):
        await call(find_trips, sort="id,sideways")
    with pytest.raises(InvalidRequest):
        await call(find_trips, month=13)
