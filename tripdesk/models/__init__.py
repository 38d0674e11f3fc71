from tripdesk.db.base import Base
from .models import *

__all__ = [
    "Base",
    "Person",
    "Address",
    "Driver",
    "ReferralAgent",
    "Bus",
    "trip_buses",
    "Trip",
    "Seat",
    "PassengerBooking",
    "CargoBooking",
    "Baggage",
    "AuditLog",
]
