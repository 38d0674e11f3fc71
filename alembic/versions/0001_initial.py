"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False)


def upgrade():
    op.create_table('persons',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('national_id', sa.String(length=32), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('phones', postgresql.JSON(), nullable=False, server_default=sa.text("'[]'::json")),
        _created_at(),
        sa.UniqueConstraint('national_id', name='persons_national_id_key'),
    )
    op.create_index('ix_persons_name', 'persons', ['name'], unique=False)
    op.create_index('ix_persons_national_id', 'persons', ['national_id'], unique=False)

    op.create_table('addresses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('street', sa.String(length=255), nullable=False),
        sa.Column('number', sa.String(length=16), nullable=True),
        sa.Column('neighborhood', sa.String(length=128), nullable=True),
        sa.Column('city', sa.String(length=128), nullable=False),
        sa.Column('state', sa.String(length=64), nullable=False),
        sa.Column('postal_code', sa.String(length=16), nullable=True),
        _created_at(),
    )
    op.create_index('ix_addresses_city', 'addresses', ['city'], unique=False)
    op.create_index('ix_addresses_postal_code', 'addresses', ['postal_code'], unique=False)

    for table in ('drivers', 'referral_agents'):
        op.create_table(table,
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('person_id', sa.Integer(), nullable=False),
            _created_at(),
            sa.ForeignKeyConstraint(['person_id'], ['persons.id'], ondelete='CASCADE'),
        )
        op.create_index(f'ix_{table}_person_id', table, ['person_id'], unique=False)

    op.create_table('buses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('model', sa.String(length=128), nullable=True),
        sa.Column('plate', sa.String(length=16), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('layout', postgresql.JSON(), nullable=True),
        _created_at(),
        sa.UniqueConstraint('plate', name='buses_plate_key'),
    )
    op.create_index('ix_buses_plate', 'buses', ['plate'], unique=False)

    op.create_table('trips',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('departure_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('arrival_at', sa.DateTime(timezone=True), nullable=False),
        _created_at(),
    )
    op.create_index('ix_trips_departure_at', 'trips', ['departure_at'], unique=False)

    op.create_table('trip_buses',
        sa.Column('trip_id', sa.Integer(), primary_key=True),
        sa.Column('bus_id', sa.Integer(), primary_key=True),
        sa.ForeignKeyConstraint(['trip_id'], ['trips.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['bus_id'], ['buses.id'], ondelete='CASCADE'),
    )

    op.create_table('seats',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('trip_id', sa.Integer(), nullable=False),
        sa.Column('bus_id', sa.Integer(), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('occupied', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.ForeignKeyConstraint(['trip_id'], ['trips.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['bus_id'], ['buses.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('trip_id', 'bus_id', 'number', name='uq_seat_trip_bus_number'),
    )
    op.create_index('ix_seats_trip_id', 'seats', ['trip_id'], unique=False)
    op.create_index('ix_seats_bus_id', 'seats', ['bus_id'], unique=False)

    op.create_table('passenger_bookings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('person_id', sa.Integer(), nullable=False),
        sa.Column('trip_id', sa.Integer(), nullable=False),
        sa.Column('pickup_address_id', sa.Integer(), nullable=False),
        sa.Column('delivery_address_id', sa.Integer(), nullable=False),
        sa.Column('pickup_driver_id', sa.Integer(), nullable=True),
        sa.Column('delivery_driver_id', sa.Integer(), nullable=True),
        sa.Column('referral_agent_id', sa.Integer(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('payment_method', sa.String(length=32), nullable=True),
        sa.Column('paid', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('seat_id', sa.Integer(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('color_tag', sa.String(length=16), nullable=True),
        sa.Column('group_id', sa.String(length=36), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['person_id'], ['persons.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['trip_id'], ['trips.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['pickup_address_id'], ['addresses.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['delivery_address_id'], ['addresses.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['pickup_driver_id'], ['drivers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['delivery_driver_id'], ['drivers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['referral_agent_id'], ['referral_agents.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['seat_id'], ['seats.id'], ondelete='SET NULL'),
        # one booking per seat
        sa.UniqueConstraint('seat_id', name='passenger_bookings_seat_id_key'),
    )
    op.create_index('ix_passenger_bookings_person_id', 'passenger_bookings', ['person_id'], unique=False)
    op.create_index('ix_passenger_bookings_trip_id', 'passenger_bookings', ['trip_id'], unique=False)
    op.create_index('ix_passenger_bookings_pickup_driver_id', 'passenger_bookings', ['pickup_driver_id'], unique=False)
    op.create_index('ix_passenger_bookings_delivery_driver_id', 'passenger_bookings', ['delivery_driver_id'], unique=False)
    op.create_index('ix_passenger_bookings_referral_agent_id', 'passenger_bookings', ['referral_agent_id'], unique=False)
    op.create_index('ix_passenger_bookings_group_id', 'passenger_bookings', ['group_id'], unique=False)
    op.create_index('ix_passenger_bookings_trip_order', 'passenger_bookings', ['trip_id', 'sort_order'], unique=False)

    op.create_table('cargo_bookings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('weight', sa.Numeric(10, 2), nullable=True),
        sa.Column('trip_id', sa.Integer(), nullable=False),
        sa.Column('sender_id', sa.Integer(), nullable=False),
        sa.Column('recipient_id', sa.Integer(), nullable=False),
        sa.Column('responsible_id', sa.Integer(), nullable=True),
        sa.Column('pickup_address_id', sa.Integer(), nullable=False),
        sa.Column('delivery_address_id', sa.Integer(), nullable=False),
        sa.Column('pickup_driver_id', sa.Integer(), nullable=True),
        sa.Column('delivery_driver_id', sa.Integer(), nullable=True),
        sa.Column('referral_agent_id', sa.Integer(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('payment_method', sa.String(length=32), nullable=True),
        sa.Column('paid', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        _created_at(),
        sa.ForeignKeyConstraint(['trip_id'], ['trips.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['persons.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['recipient_id'], ['persons.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['responsible_id'], ['persons.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['pickup_address_id'], ['addresses.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['delivery_address_id'], ['addresses.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['pickup_driver_id'], ['drivers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['delivery_driver_id'], ['drivers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['referral_agent_id'], ['referral_agents.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_cargo_bookings_trip_id', 'cargo_bookings', ['trip_id'], unique=False)
    op.create_index('ix_cargo_bookings_pickup_driver_id', 'cargo_bookings', ['pickup_driver_id'], unique=False)
    op.create_index('ix_cargo_bookings_delivery_driver_id', 'cargo_bookings', ['delivery_driver_id'], unique=False)
    op.create_index('ix_cargo_bookings_referral_agent_id', 'cargo_bookings', ['referral_agent_id'], unique=False)

    op.create_table('baggage',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('weight', sa.Numeric(10, 2), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('passenger_booking_id', sa.Integer(), nullable=True),
        sa.Column('responsible_id', sa.Integer(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['passenger_booking_id'], ['passenger_bookings.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['responsible_id'], ['persons.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_baggage_passenger_booking_id', 'baggage', ['passenger_booking_id'], unique=False)

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor', sa.String(length=255), nullable=True),
        sa.Column('action', sa.String(length=255), nullable=False),
        sa.Column('object_type', sa.String(length=128), nullable=True),
        sa.Column('object_id', sa.String(length=128), nullable=True),
        sa.Column('detail', postgresql.JSON(), nullable=True),
        _created_at(),
    )
    op.create_index('ix_audit_logs_actor', 'audit_logs', ['actor'], unique=False)


def downgrade():
    op.drop_index('ix_audit_logs_actor', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index('ix_baggage_passenger_booking_id', table_name='baggage')
    op.drop_table('baggage')
    op.drop_table('cargo_bookings')
    op.drop_table('passenger_bookings')
    op.drop_table('seats')
    op.drop_table('trip_buses')
    op.drop_table('trips')
    op.drop_table('buses')
    op.drop_table('referral_agents')
    op.drop_table('drivers')
    op.drop_table('addresses')
    op.drop_table('persons')
