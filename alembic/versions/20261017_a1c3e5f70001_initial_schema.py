"""initial schema: users, coaches, schedules, bookings, reviews, favorites, notifications

Revision ID: a1c3e5f70001
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f70001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_BOOKING = sa.text("status IN ('CONFIRMED', 'RESCHEDULE_REQUEST', 'RESCHEDULED_ACCEPTED')")


def _timestamps(*, updated: bool = False) -> list:
    cols = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=False)]
    if updated:
        cols.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False))
    return cols


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(120), nullable=False),
        sa.Column('role', sa.String(16), nullable=False),
        sa.Column('phone_number', sa.String(20)),
        sa.Column('profile_image', sa.String(500)),
        sa.Column('fcm_token', sa.String(255)),
        *_timestamps(),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table(
        'athletes',
        sa.Column('id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'specialties',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(120), nullable=False),
        sa.Column('icon', sa.String(500)),
        sa.UniqueConstraint('title', name='uq_specialties_title'),
    )

    op.create_table(
        'coaches',
        sa.Column('id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('specialty_id', sa.BigInteger(), sa.ForeignKey('specialties.id', ondelete='SET NULL')),
        sa.Column('price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('experience', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('gender', sa.String(16)),
        sa.Column('expertise', sa.Text()),
        sa.Column('certification', sa.Text()),
        sa.Column('location', sa.String(255)),
        sa.Column('address', sa.String(255)),
        sa.Column('latitude', sa.Float()),
        sa.Column('longitude', sa.Float()),
        sa.Column('is_recommended', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_subscribed', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_coaches_specialty_id', 'coaches', ['specialty_id'])
    op.create_index('ix_coaches_price', 'coaches', ['price'])

    op.create_table(
        'coach_availabilities',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('coach_id', sa.BigInteger(), sa.ForeignKey('coaches.id', ondelete='CASCADE'), nullable=False),
        sa.Column('slot_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(updated=True),
        sa.UniqueConstraint('coach_id', 'slot_date', name='uq_coach_availabilities_coach_id_slot_date'),
    )
    op.create_index('ix_coach_availabilities_slot_date', 'coach_availabilities', ['slot_date'])

    op.create_table(
        'time_slots',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            'availability_id',
            sa.BigInteger(),
            sa.ForeignKey('coach_availabilities.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='ACTIVE'),
        sa.Column('is_booked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.CheckConstraint('start_time < end_time', name='ck_time_slots_start_before_end'),
    )
    op.create_index('ix_time_slots_availability_id', 'time_slots', ['availability_id'])

    op.create_table(
        'bookings',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('athlete_id', sa.BigInteger(), sa.ForeignKey('athletes.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('coach_id', sa.BigInteger(), sa.ForeignKey('coaches.id', ondelete='RESTRICT'), nullable=False),
        sa.Column(
            'time_slot_id', sa.BigInteger(), sa.ForeignKey('time_slots.id', ondelete='RESTRICT'), nullable=False
        ),
        sa.Column('booking_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('booking_day', sa.Date(), nullable=False),
        sa.Column('status', sa.String(32), nullable=False, server_default='CONFIRMED'),
        sa.Column('reschedule_from_id', sa.BigInteger(), sa.ForeignKey('bookings.id', ondelete='RESTRICT')),
        sa.Column('requested_by', sa.String(16)),
        sa.Column('notes', sa.Text()),
        sa.Column('location', sa.String(255)),
        sa.Column('latitude', sa.Float()),
        sa.Column('longitude', sa.Float()),
        *_timestamps(updated=True),
    )
    op.create_index('ix_bookings_athlete_id', 'bookings', ['athlete_id'])
    op.create_index('ix_bookings_coach_id', 'bookings', ['coach_id'])
    op.create_index('ix_bookings_reschedule_from_id', 'bookings', ['reschedule_from_id'])
    # One active booking per slot per day
    op.create_index(
        'uq_bookings_active_slot_day',
        'bookings',
        ['time_slot_id', 'booking_day'],
        unique=True,
        postgresql_where=ACTIVE_BOOKING,
        sqlite_where=ACTIVE_BOOKING,
    )

    op.create_table(
        'reviews',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('booking_id', sa.BigInteger(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('athlete_id', sa.BigInteger(), sa.ForeignKey('athletes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('coach_id', sa.BigInteger(), sa.ForeignKey('coaches.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text()),
        *_timestamps(),
        sa.UniqueConstraint('booking_id', name='uq_reviews_booking_id'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_reviews_rating_range'),
    )
    op.create_index('ix_reviews_coach_id', 'reviews', ['coach_id'])

    op.create_table(
        'favorites',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('athlete_id', sa.BigInteger(), sa.ForeignKey('athletes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('coach_id', sa.BigInteger(), sa.ForeignKey('coaches.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('athlete_id', 'coach_id', name='uq_favorites_athlete_id_coach_id'),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('receiver_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sender_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_notifications_receiver_id', 'notifications', ['receiver_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_notifications_receiver_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_table('favorites')
    op.drop_index('ix_reviews_coach_id', table_name='reviews')
    op.drop_table('reviews')
    op.drop_index('uq_bookings_active_slot_day', table_name='bookings')
    op.drop_index('ix_bookings_reschedule_from_id', table_name='bookings')
    op.drop_index('ix_bookings_coach_id', table_name='bookings')
    op.drop_index('ix_bookings_athlete_id', table_name='bookings')
    op.drop_table('bookings')
    op.drop_index('ix_time_slots_availability_id', table_name='time_slots')
    op.drop_table('time_slots')
    op.drop_index('ix_coach_availabilities_slot_date', table_name='coach_availabilities')
    op.drop_table('coach_availabilities')
    op.drop_index('ix_coaches_price', table_name='coaches')
    op.drop_index('ix_coaches_specialty_id', table_name='coaches')
    op.drop_table('coaches')
    op.drop_table('specialties')
    op.drop_table('athletes')
    op.drop_table('users')
