from prometheus_client import Counter, Histogram

# Seat ledger metrics
SEAT_BIND_ATTEMPTS = Counter("tripdesk_seat_bind_attempts_total", "Seat bind attempts", ["result"])
SEAT_BIND_LATENCY = Histogram("tripdesk_seat_bind_latency_seconds", "Latency for seat bind operations")
SEATS_GENERATED = Counter("tripdesk_seats_generated_total", "Seat rows generated from bus layouts")

# Allocator metrics
FAMILY_GROUP_MEMBERS = Counter("tripdesk_family_group_members_total", "Passenger bookings written through family groups")
BULK_ASSIGNED = Counter("tripdesk_bulk_assigned_total", "Bookings updated by bulk driver assignment", ["kind", "leg"])
