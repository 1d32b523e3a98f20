"""Initial database schema

Revision ID: 0001
Revises:
Create Date: 2025-08-02 12:30:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Create users table
    op.create_table('users',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('country', sa.String(length=64), nullable=True),
        sa.Column('city', sa.String(length=64), nullable=True),
        sa.Column('role', sa.String(length=20), server_default='guest', nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('length(username) > 0', name='ck_user_username_not_empty'),
        sa.CheckConstraint("role IN ('admin', 'moderator', 'worker', 'guest')", name='ck_user_role_valid'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_role'), 'users', ['role'], unique=False)

    # Create hotels table
    op.create_table('hotels',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=64), server_default='Hotel', nullable=False),
        sa.Column('city', sa.String(length=128), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('rating', sa.Float(), nullable=True),
        sa.Column('cheapest_price_amount', sa.Integer(), server_default='0', nullable=False),
        sa.Column('featured', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('length(name) > 0', name='ck_hotel_name_not_empty'),
        sa.CheckConstraint('rating IS NULL OR (rating >= 0 AND rating <= 5)', name='ck_hotel_rating_range'),
        sa.CheckConstraint('cheapest_price_amount >= 0', name='ck_hotel_cheapest_price_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_hotels_name'), 'hotels', ['name'], unique=False)
    op.create_index(op.f('ix_hotels_city'), 'hotels', ['city'], unique=False)

    # Create rooms table
    op.create_table('rooms',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('hotel_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('max_people', sa.Integer(), server_default='2', nullable=False),
        sa.Column('price_amount', sa.Integer(), nullable=False),
        sa.Column('price_currency', sa.String(length=3), server_default='USD', nullable=False),
        sa.Column('is_cleaned', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('needs_cleaning', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('last_cleaned_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('length(title) > 0', name='ck_room_title_not_empty'),
        sa.CheckConstraint('max_people > 0', name='ck_room_max_people_positive'),
        sa.CheckConstraint('price_amount >= 0', name='ck_room_price_amount_non_negative'),
        sa.CheckConstraint('length(price_currency) = 3', name='ck_room_price_currency_length'),
        sa.ForeignKeyConstraint(['hotel_id'], ['hotels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_rooms_hotel_id'), 'rooms', ['hotel_id'], unique=False)

    # Create room_numbers table
    op.create_table('room_numbers',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('room_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('number > 0', name='ck_room_number_positive'),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_id', 'number', name='uq_room_number_room_id_number')
    )
    op.create_index(op.f('ix_room_numbers_room_id'), 'room_numbers', ['room_id'], unique=False)

    # Create workers table
    op.create_table('workers',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('hotel_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('length(name) > 0', name='ck_worker_name_not_empty'),
        sa.CheckConstraint(
            "role IN ('Housekeeper', 'Receptionist', 'Manager', 'Maintenance', 'Security')",
            name='ck_worker_role_valid'
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['hotel_id'], ['hotels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_workers_user_id'), 'workers', ['user_id'], unique=False)
    op.create_index(op.f('ix_workers_hotel_id'), 'workers', ['hotel_id'], unique=False)

    # Create bookings table
    op.create_table('bookings',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('guest_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('hotel_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('room_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('room_number', sa.Integer(), nullable=False),
        sa.Column('date_start', sa.Date(), nullable=False),
        sa.Column('date_end', sa.Date(), nullable=False),
        sa.Column('total_price_amount', sa.Integer(), nullable=False),
        sa.Column('total_price_currency', sa.String(length=3), server_default='USD', nullable=False),
        sa.Column('status', sa.String(length=20), server_default='confirmed', nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('date_start <= date_end', name='ck_booking_dates_ordered'),
        sa.CheckConstraint('total_price_amount >= 0', name='ck_booking_total_price_non_negative'),
        sa.CheckConstraint('length(total_price_currency) = 3', name='ck_booking_currency_length'),
        sa.CheckConstraint("status IN ('confirmed', 'cancelled', 'completed')", name='ck_booking_status_valid'),
        sa.ForeignKeyConstraint(['guest_id'], ['users.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['hotel_id'], ['hotels.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_guest_id'), 'bookings', ['guest_id'], unique=False)
    op.create_index(op.f('ix_bookings_hotel_id'), 'bookings', ['hotel_id'], unique=False)
    op.create_index(op.f('ix_bookings_room_id'), 'bookings', ['room_id'], unique=False)
    op.create_index(op.f('ix_bookings_date_start'), 'bookings', ['date_start'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)

    # Create reserved_dates table; the unique constraint is the storage-level double-booking guard
    op.create_table('reserved_dates',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('room_number_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('day', sa.Date(), nullable=False),
        sa.Column('booking_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['room_number_id'], ['room_numbers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_number_id', 'day', name='uq_reserved_date_room_number_day')
    )
    op.create_index(op.f('ix_reserved_dates_room_number_id'), 'reserved_dates', ['room_number_id'], unique=False)
    op.create_index(op.f('ix_reserved_dates_booking_id'), 'reserved_dates', ['booking_id'], unique=False)

    # Create cleaning_records table
    op.create_table('cleaning_records',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('room_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('worker_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('cleaned_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_cleaning_records_room_id'), 'cleaning_records', ['room_id'], unique=False)
    op.create_index(op.f('ix_cleaning_records_worker_id'), 'cleaning_records', ['worker_id'], unique=False)
    op.create_index(op.f('ix_cleaning_records_cleaned_at'), 'cleaning_records', ['cleaned_at'], unique=False)

    # Create idempotency_records table
    op.create_table('idempotency_records',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('idempotency_key', sa.String(length=255), nullable=False),
        sa.Column('method', sa.String(length=100), nullable=False),
        sa.Column('request_body_hash', sa.String(length=64), nullable=False),
        sa.Column('response_status_code', sa.Integer(), nullable=False),
        sa.Column('response_body', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('length(idempotency_key) > 0', name='ck_idempotency_key_not_empty'),
        sa.CheckConstraint('length(request_body_hash) = 64', name='ck_idempotency_hash_length'),
        sa.CheckConstraint(
            'response_status_code >= 100 AND response_status_code <= 599',
            name='ck_idempotency_status_code_valid'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key', 'method', name='uq_idempotency_key_method')
    )
    op.create_index(op.f('ix_idempotency_records_expires_at'), 'idempotency_records', ['expires_at'], unique=False)
    op.create_index(op.f('ix_idempotency_records_idempotency_key'), 'idempotency_records', ['idempotency_key'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('idempotency_records')
    op.drop_table('cleaning_records')
    op.drop_table('reserved_dates')
    op.drop_table('bookings')
    op.drop_table('workers')
    op.drop_table('room_numbers')
    op.drop_table('rooms')
    op.drop_table('hotels')
    op.drop_table('users')
