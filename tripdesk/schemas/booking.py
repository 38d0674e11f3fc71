from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import List, Optional

from tripdesk.services.layout import format_seat_number


class PersonSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    national_id: Optional[str] = None


class SeatRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    bus_id: int
    number: int

    @computed_field
    @property
    def label(self) -> str:
        return format_seat_number(self.number)


class PassengerBookingIn(BaseModel):
    person_id: int
    trip_id: int
    pickup_address_id: int
    delivery_address_id: int
    pickup_driver_id: Optional[int] = None
    delivery_driver_id: Optional[int] = None
    referral_agent_id: Optional[int] = None
    price: Optional[Decimal] = Field(None, ge=0)
    payment_method: Optional[str] = None
    paid: bool = False
    # full replacement: null clears the seat on update
    seat_id: Optional[int] = None
    color_tag: Optional[str] = Field(None, max_length=16)


class PassengerBookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    trip_id: int
    person: PersonSummary
    pickup_address_id: int
    delivery_address_id: int
    pickup_driver_id: Optional[int] = None
    delivery_driver_id: Optional[int] = None
    referral_agent_id: Optional[int] = None
    price: Optional[Decimal] = None
    payment_method: Optional[str] = None
    paid: bool
    seat: Optional[SeatRef] = None
    sort_order: int
    color_tag: Optional[str] = None
    group_id: Optional[str] = None


class ColorRequest(BaseModel):
    color_tag: Optional[str] = Field(None, max_length=16)


class ReorderRequest(BaseModel):
    booking_ids: List[int] = Field(..., min_length=1)


class FamilyAddress(BaseModel):
    """Either an existing address id or the fields of a new address."""

    id: Optional[int] = None
    street: Optional[str] = None
    number: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None


class FamilyMember(BaseModel):
    id: Optional[int] = None  # passenger booking id; null creates a new booking
    person_id: Optional[int] = None
    name: Optional[str] = None
    national_id: Optional[str] = None
    age: Optional[int] = Field(None, ge=0)
    phones: Optional[List[str]] = None
    seat_number: Optional[int] = Field(None, ge=1)
    bus_id: Optional[int] = None
    # per-member overrides of the shared fields
    price: Optional[Decimal] = Field(None, ge=0)
    payment_method: Optional[str] = None
    pickup_address_id: Optional[int] = None
    delivery_address_id: Optional[int] = None
    pickup_driver_id: Optional[int] = None
    delivery_driver_id: Optional[int] = None
    referral_agent_id: Optional[int] = None


class FamilyGroupRequest(BaseModel):
    trip_id: int
    pickup_address: Optional[FamilyAddress] = None
    delivery_address: Optional[FamilyAddress] = None
    pickup_driver_id: Optional[int] = None
    delivery_driver_id: Optional[int] = None
    referral_agent_id: Optional[int] = None
    suggested_price: Optional[Decimal] = Field(None, ge=0)
    payment_method: Optional[str] = None
    color_tag: Optional[str] = Field(None, max_length=16)
    members: List[FamilyMember] = Field(..., min_length=1)


class FamilyGroupOut(BaseModel):
    group_id: str
    color_tag: Optional[str] = None
    entries: List[PassengerBookingOut]


class AssignmentLeg(str, Enum):
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"


class BulkAssignRequest(BaseModel):
    passenger_ids: List[int] = Field(default_factory=list)
    cargo_ids: List[int] = Field(default_factory=list)
    driver_id: int
    type: AssignmentLeg


class BulkAssignOut(BaseModel):
    passengers_updated: int
    cargo_updated: int

    @computed_field
    @property
    def updated(self) -> int:
        return self.passengers_updated + self.cargo_updated


class CargoIn(BaseModel):
    description: Optional[str] = Field(None, max_length=255)
    weight: Optional[Decimal] = Field(None, ge=0)
    trip_id: int
    sender_id: int
    recipient_id: int
    pickup_address_id: int
    delivery_address_id: int
    responsible_id: Optional[int] = None
    pickup_driver_id: Optional[int] = None
    delivery_driver_id: Optional[int] = None
    referral_agent_id: Optional[int] = None
    price: Optional[Decimal] = Field(None, ge=0)
    payment_method: Optional[str] = None
    paid: bool = False


class CargoOut(CargoIn):
    model_config = ConfigDict(from_attributes=True)

    id: int


class BaggageIn(BaseModel):
    weight: Optional[Decimal] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=255)
    passenger_booking_id: Optional[int] = None
    responsible_id: int


class BaggageOut(BaggageIn):
    model_config = ConfigDict(from_attributes=True)

    id: int
