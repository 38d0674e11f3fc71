from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from tripdesk.schemas.fleet import BusSummary
from tripdesk.services.layout import format_seat_number


class TripIn(BaseModel):
    departure_at: datetime
    arrival_at: datetime
    bus_ids: List[int] = Field(default_factory=list)

    @field_validator("departure_at", "arrival_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # naive timestamps are read as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class TripOut(BaseModel):
    id: int
    departure_at: datetime
    arrival_at: datetime
    buses: List[BusSummary]
    total_passengers: int
    total_cargo: int


class TripPage(BaseModel):
    items: List[TripOut]
    total: int
    page: int
    size: int
    pages: int


class SeatOccupant(BaseModel):
    booking_id: int
    person_id: int
    name: str
    national_id: Optional[str] = None


class SeatOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    trip_id: int
    bus_id: int
    number: int
    kind: str
    occupied: bool

    @computed_field
    @property
    def label(self) -> str:
        return format_seat_number(self.number)


class SeatMapEntry(SeatOut):
    occupant: Optional[SeatOccupant] = None

    @classmethod
    def from_seat(cls, seat) -> "SeatMapEntry":
        occupant = None
        booking = seat.occupant
        if seat.occupied and booking is not None:
            occupant = SeatOccupant(
                booking_id=booking.id,
                person_id=booking.person_id,
                name=booking.person.name,
                national_id=booking.person.national_id,
            )
        return cls(
            id=seat.id,
            trip_id=seat.trip_id,
            bus_id=seat.bus_id,
            number=seat.number,
            kind=seat.kind,
            occupied=seat.occupied,
            occupant=occupant,
        )


class BindSeatRequest(BaseModel):
    booking_id: int
    bus_id: int
    number: int = Field(..., ge=1)
