import pytest

from tripdesk.errors import LayoutError
from tripdesk.services.layout import (
    LayoutGap,
    LayoutSeat,
    SeatKind,
    default_layout,
    format_seat_number,
    layout_for_bus,
    parse_layout,
)


class FakeBus:
    def __init__(self, capacity, layout=None):
        self.capacity = capacity
        self.layout = layout


def test_parse_numbers_and_gaps():
    layout = parse_layout([[1, 2, 0, 3, 4], [5, 6, None, 7, 8]], capacity=8)

    assert layout.seat_count == 8
    assert isinstance(layout.rows[0][2], LayoutGap)
    assert isinstance(layout.rows[1][2], LayoutGap)
    assert layout.rows[0][0] == LayoutSeat(1, SeatKind.WINDOW)
    assert layout.rows[0][1] == LayoutSeat(2, SeatKind.AISLE)


def test_explicit_kind_overrides_parity():
    layout = parse_layout([[{"number": 2, "kind": "window"}, {"number": 1, "kind": "AISLE"}]], capacity=2)

    assert [s.kind for s in layout.seats()] == [SeatKind.WINDOW, SeatKind.AISLE]
    assert layout.to_json() == [[{"number": 2, "kind": "WINDOW"}, {"number": 1, "kind": "AISLE"}]]


def test_no_layout_parses_to_none():
    assert parse_layout(None, capacity=40) is None


def test_more_seats_than_capacity():
    with pytest.raises(LayoutError, match="capacity is 3"):
        parse_layout([[1, 2, 0, 3, 4]], capacity=3)


@pytest.mark.parametrize(
    "raw",
    [
        [[1, 1]],
        [[1, -2]],
        [[True, 2]],
        [[1, "twelve"]],
        [[{"number": 3, "kind": "MIDDLE"}]],
        "1,2,3",
        [5],
    ],
)
def test_malformed_layouts_rejected(raw):
    with pytest.raises(LayoutError):
        parse_layout(raw, capacity=10)


def test_default_layout_rows_of_four():
    layout = default_layout(10)

    assert [len(row) for row in layout.rows] == [4, 4, 2]
    assert [s.number for s in layout.seats()] == list(range(1, 11))


def test_layout_for_bus_falls_back_to_default():
    assert layout_for_bus(FakeBus(40)).seat_count == 40
    assert layout_for_bus(FakeBus(40, [[1, 0, 2]])).seat_count == 2


def test_seat_labels_are_zero_padded():
    assert format_seat_number(5) == "05"
    assert format_seat_number(12) == "12"
    assert LayoutSeat(7, SeatKind.WINDOW).label == "07"
