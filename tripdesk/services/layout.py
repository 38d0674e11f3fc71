"""Bus seat layouts.

A layout is stored on the bus as JSON: a list of rows, each row a list of
cells.  A cell is one of

* ``0`` or ``null`` -- an empty space (aisle gap, door, stairs...)
* a positive integer -- a seat number; odd numbers sit at the window and
  even numbers on the aisle
* ``{"number": 12, "kind": "WINDOW"}`` -- a seat with an explicit kind

The raw JSON is parsed once, when the bus is defined, into a ``SeatLayout``
of typed cells and validated against the bus capacity.  Everything that
needs seat positions afterwards (seat generation, the layout view) works on
the parsed form.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Set, Union

from tripdesk.errors import LayoutError

SEATS_PER_ROW = 4


class SeatKind(str, Enum):
    WINDOW = "WINDOW"
    AISLE = "AISLE"


@dataclass(frozen=True)
class LayoutSeat:
    number: int
    kind: SeatKind

    @property
    def label(self) -> str:
        return format_seat_number(self.number)


@dataclass(frozen=True)
class LayoutGap:
    pass


Cell = Union[LayoutSeat, LayoutGap]


@dataclass(frozen=True)
class SeatLayout:
    rows: List[List[Cell]]

    def seats(self) -> Iterator[LayoutSeat]:
        for row in self.rows:
            for cell in row:
                if isinstance(cell, LayoutSeat):
                    yield cell

    @property
    def seat_count(self) -> int:
        return sum(1 for _ in self.seats())

    def to_json(self) -> List[List[Any]]:
        out = []
        for row in self.rows:
            cells: List[Any] = []
            for cell in row:
                if isinstance(cell, LayoutGap):
                    cells.append(0)
                elif cell.kind == kind_for_number(cell.number):
                    cells.append(cell.number)
                else:
                    cells.append({"number": cell.number, "kind": cell.kind.value})
            out.append(cells)
        return out


def format_seat_number(number: int) -> str:
    return "%02d" % number


def kind_for_number(number: int) -> SeatKind:
    return SeatKind.AISLE if number % 2 == 0 else SeatKind.WINDOW


def _parse_cell(raw: Any, row_idx: int, col_idx: int) -> Cell:
    where = f"row {row_idx + 1}, column {col_idx + 1}"
    if raw is None:
        return LayoutGap()
    if isinstance(raw, dict):
        number = raw.get("number")
        kind = raw.get("kind")
        if number is None:
            return LayoutGap()
        number = _parse_number(number, where)
        if number == 0:
            return LayoutGap()
        if kind is None:
            return LayoutSeat(number, kind_for_number(number))
        try:
            return LayoutSeat(number, SeatKind(str(kind).upper()))
        except ValueError:
            raise LayoutError(f"unknown seat kind {kind!r} at {where}")
    number = _parse_number(raw, where)
    if number == 0:
        return LayoutGap()
    return LayoutSeat(number, kind_for_number(number))


def _parse_number(raw: Any, where: str) -> int:
    # bool is an int subclass; true/false in a layout is always a typo
    if isinstance(raw, bool):
        raise LayoutError(f"invalid seat number {raw!r} at {where}")
    try:
        number = int(raw)
    except (TypeError, ValueError):
        raise LayoutError(f"invalid seat number {raw!r} at {where}")
    if number < 0:
        raise LayoutError(f"negative seat number {number} at {where}")
    return number


def parse_layout(raw: Optional[Sequence[Sequence[Any]]], capacity: int) -> Optional[SeatLayout]:
    """Parse and validate a raw layout against ``capacity``.

    Returns ``None`` when no layout is given.  Raises ``LayoutError`` for
    malformed cells, duplicated seat numbers or more seats than capacity.
    """
    if raw is None:
        return None
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        raise LayoutError("layout must be a list of rows")
    rows: List[List[Cell]] = []
    seen: Set[int] = set()
    for row_idx, raw_row in enumerate(raw):
        if isinstance(raw_row, (str, bytes, dict)) or not isinstance(raw_row, Iterable):
            raise LayoutError(f"row {row_idx + 1} must be a list of cells")
        row: List[Cell] = []
        for col_idx, raw_cell in enumerate(raw_row):
            cell = _parse_cell(raw_cell, row_idx, col_idx)
            if isinstance(cell, LayoutSeat):
                if cell.number in seen:
                    raise LayoutError(f"seat {cell.label} appears more than once")
                seen.add(cell.number)
            row.append(cell)
        rows.append(row)
    layout = SeatLayout(rows)
    check_capacity(layout, capacity)
    return layout


def check_capacity(layout: SeatLayout, capacity: int) -> None:
    count = layout.seat_count
    if count > capacity:
        raise LayoutError(f"layout has {count} seats but the bus capacity is {capacity}")


def default_layout(capacity: int) -> SeatLayout:
    """Rows of four seats numbered 1..capacity, used when a bus has no layout."""
    rows: List[List[Cell]] = []
    row: List[Cell] = []
    for number in range(1, capacity + 1):
        row.append(LayoutSeat(number, kind_for_number(number)))
        if len(row) == SEATS_PER_ROW:
            rows.append(row)
            row = []
    if row:
        rows.append(row)
    return SeatLayout(rows)


def layout_for_bus(bus) -> SeatLayout:
    """The effective layout of a bus: its own one, or the default grid."""
    layout = parse_layout(bus.layout, bus.capacity)
    if layout is None:
        return default_layout(bus.capacity)
    return layout
