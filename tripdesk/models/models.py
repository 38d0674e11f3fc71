from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Numeric,
    JSON,
    Table,
    UniqueConstraint,
    Index,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from tripdesk.db.base import Base


class Person(Base):
    __tablename__ = "persons"
    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, index=True)
    # used for de-duplication when people are typed in again on a new booking
    national_id = Column(String(32), nullable=True, unique=True, index=True)
    age = Column(Integer, nullable=True)
    phones = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Address(Base):
    __tablename__ = "addresses"
    id = Column(Integer, primary_key=True)
    street = Column(String(255), nullable=False)
    number = Column(String(16), nullable=True)
    neighborhood = Column(String(128), nullable=True)
    city = Column(String(128), nullable=False, index=True)
    state = Column(String(64), nullable=False)
    postal_code = Column(String(16), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Driver(Base):
    __tablename__ = "drivers"
    id = Column(Integer, primary_key=True)
    person_id = Column(Integer, ForeignKey("persons.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    person = relationship("Person")


class ReferralAgent(Base):
    __tablename__ = "referral_agents"
    id = Column(Integer, primary_key=True)
    person_id = Column(Integer, ForeignKey("persons.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    person = relationship("Person")


class Bus(Base):
    __tablename__ = "buses"
    id = Column(Integer, primary_key=True)
    model = Column(String(128), nullable=True)
    plate = Column(String(16), nullable=False, unique=True, index=True)
    capacity = Column(Integer, nullable=False, default=0)
    # rows of cells, see tripdesk.services.layout
    layout = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


trip_buses = Table(
    "trip_buses",
    Base.metadata,
    Column("trip_id", Integer, ForeignKey("trips.id", ondelete="CASCADE"), primary_key=True),
    Column("bus_id", Integer, ForeignKey("buses.id", ondelete="CASCADE"), primary_key=True),
)


class Trip(Base):
    __tablename__ = "trips"
    id = Column(Integer, primary_key=True)
    departure_at = Column(DateTime(timezone=True), nullable=False, index=True)
    arrival_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    buses = relationship("Bus", secondary=trip_buses, order_by="Bus.id")


class Seat(Base):
    __tablename__ = "seats"
    id = Column(Integer, primary_key=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    bus_id = Column(Integer, ForeignKey("buses.id", ondelete="CASCADE"), nullable=False, index=True)
    number = Column(Integer, nullable=False)
    kind = Column(String(16), nullable=False)
    occupied = Column(Boolean, default=False, nullable=False)

    # non-owning: the booking holds the reference through passenger_bookings.seat_id
    occupant = relationship("PassengerBooking", uselist=False, viewonly=True)

    __table_args__ = (UniqueConstraint("trip_id", "bus_id", "number", name="uq_seat_trip_bus_number"),)


class PassengerBooking(Base):
    __tablename__ = "passenger_bookings"
    id = Column(Integer, primary_key=True)
    person_id = Column(Integer, ForeignKey("persons.id", ondelete="RESTRICT"), nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    pickup_address_id = Column(Integer, ForeignKey("addresses.id", ondelete="RESTRICT"), nullable=False)
    delivery_address_id = Column(Integer, ForeignKey("addresses.id", ondelete="RESTRICT"), nullable=False)
    pickup_driver_id = Column(Integer, ForeignKey("drivers.id", ondelete="SET NULL"), nullable=True, index=True)
    delivery_driver_id = Column(Integer, ForeignKey("drivers.id", ondelete="SET NULL"), nullable=True, index=True)
    referral_agent_id = Column(Integer, ForeignKey("referral_agents.id", ondelete="SET NULL"), nullable=True, index=True)
    price = Column(Numeric(10, 2), nullable=True)
    payment_method = Column(String(32), nullable=True)
    paid = Column(Boolean, default=False, nullable=False)
    # at most one booking per seat
    seat_id = Column(Integer, ForeignKey("seats.id", ondelete="SET NULL"), nullable=True, unique=True)
    sort_order = Column(Integer, nullable=False, default=0)
    color_tag = Column(String(16), nullable=True)
    group_id = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    person = relationship("Person")
    seat = relationship("Seat")

    __table_args__ = (Index("ix_passenger_bookings_trip_order", "trip_id", "sort_order"),)


class CargoBooking(Base):
    __tablename__ = "cargo_bookings"
    id = Column(Integer, primary_key=True)
    description = Column(String(255), nullable=True)
    weight = Column(Numeric(10, 2), nullable=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("persons.id", ondelete="RESTRICT"), nullable=False)
    recipient_id = Column(Integer, ForeignKey("persons.id", ondelete="RESTRICT"), nullable=False)
    responsible_id = Column(Integer, ForeignKey("persons.id", ondelete="SET NULL"), nullable=True)
    pickup_address_id = Column(Integer, ForeignKey("addresses.id", ondelete="RESTRICT"), nullable=False)
    delivery_address_id = Column(Integer, ForeignKey("addresses.id", ondelete="RESTRICT"), nullable=False)
    pickup_driver_id = Column(Integer, ForeignKey("drivers.id", ondelete="SET NULL"), nullable=True, index=True)
    delivery_driver_id = Column(Integer, ForeignKey("drivers.id", ondelete="SET NULL"), nullable=True, index=True)
    referral_agent_id = Column(Integer, ForeignKey("referral_agents.id", ondelete="SET NULL"), nullable=True, index=True)
    price = Column(Numeric(10, 2), nullable=True)
    payment_method = Column(String(32), nullable=True)
    paid = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Baggage(Base):
    __tablename__ = "baggage"
    id = Column(Integer, primary_key=True)
    weight = Column(Numeric(10, 2), nullable=True)
    description = Column(String(255), nullable=True)
    passenger_booking_id = Column(Integer, ForeignKey("passenger_bookings.id", ondelete="SET NULL"), nullable=True, index=True)
    responsible_id = Column(Integer, ForeignKey("persons.id", ondelete="RESTRICT"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class AuditLog(Base):
    __tablename__ = "audit_logs"
    id = Column(Integer, primary_key=True)
    actor = Column(String(255), nullable=True, index=True)
    action = Column(String(255), nullable=False)
    object_type = Column(String(128), nullable=True)
    object_id = Column(String(128), nullable=True)
    detail = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
