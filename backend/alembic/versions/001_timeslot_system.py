"""Timeslot system: members, events, co-hosts, timeslots, claims, lineup state

Revision ID: 001
Revises:
Create Date: (run alembic upgrade head)

Occupancy: at most one confirmed/offered/performed claim per timeslot (partial unique
index); waitlist claims queue behind it with unique positions.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_OCCUPYING_WHERE = sa.text("status IN ('confirmed', 'offered', 'performed')")
_WAITLIST_WHERE = sa.text("status = 'waitlist'")
_OFFERED_WHERE = sa.text("status = 'offered'")


def upgrade() -> None:
    op.create_table(
        "members",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("display_name", sa.String(256), nullable=True),
        sa.Column("role", sa.String(16), nullable=False, server_default="member"),
        sa.Column("no_show_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("host_id", sa.Uuid(), sa.ForeignKey("members.id"), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("has_timeslots", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("total_slots", sa.Integer(), nullable=True),
        sa.Column("slot_duration_minutes", sa.Integer(), nullable=True, server_default="15"),
        sa.Column("slot_offer_window_minutes", sa.Integer(), nullable=True, server_default="120"),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("total_slots IS NULL OR total_slots > 0", name="ck_events_total_slots_positive"),
        sa.CheckConstraint(
            "slot_duration_minutes IS NULL OR (slot_duration_minutes >= 5 AND slot_duration_minutes <= 90)",
            name="ck_events_slot_duration_range",
        ),
    )
    op.create_index("ix_events_host_id", "events", ["host_id"])

    op.create_table(
        "event_hosts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Uuid(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("member_id", sa.Uuid(), sa.ForeignKey("members.id", ondelete="CASCADE"), nullable=False),
        sa.Column("invitation_status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "member_id", name="uq_event_hosts_event_member"),
    )
    op.create_index("ix_event_hosts_event_id", "event_hosts", ["event_id"])
    op.create_index("ix_event_hosts_member_id", "event_hosts", ["member_id"])

    op.create_table(
        "event_timeslots",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("event_id", sa.Uuid(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("slot_index", sa.Integer(), nullable=False),
        sa.Column("start_offset_minutes", sa.Integer(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "slot_index", name="uq_event_timeslots_event_slot_index"),
    )
    op.create_index("ix_event_timeslots_event_id", "event_timeslots", ["event_id"])

    op.create_table(
        "timeslot_claims",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "timeslot_id", sa.Uuid(), sa.ForeignKey("event_timeslots.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("member_id", sa.Uuid(), sa.ForeignKey("members.id"), nullable=True),
        sa.Column("guest_name", sa.String(256), nullable=True),
        sa.Column("guest_verification_id", sa.String(64), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="confirmed"),
        sa.Column("offer_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("waitlist_position", sa.Integer(), nullable=True),
        sa.Column("claimed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_by", sa.Uuid(), nullable=True),
        sa.CheckConstraint(
            "(member_id IS NOT NULL AND guest_name IS NULL AND guest_verification_id IS NULL) "
            "OR (member_id IS NULL AND guest_name IS NOT NULL AND guest_verification_id IS NOT NULL)",
            name="ck_timeslot_claims_member_or_guest",
        ),
        sa.CheckConstraint(
            "status IN ('confirmed', 'offered', 'waitlist', 'cancelled', 'no_show', 'performed')",
            name="ck_timeslot_claims_status",
        ),
    )
    op.create_index("ix_timeslot_claims_timeslot_id", "timeslot_claims", ["timeslot_id"])
    op.create_index("ix_timeslot_claims_member_id", "timeslot_claims", ["member_id"])
    op.create_index(
        "uq_timeslot_claims_occupying_slot",
        "timeslot_claims",
        ["timeslot_id"],
        unique=True,
        postgresql_where=_OCCUPYING_WHERE,
    )
    op.create_index(
        "uq_timeslot_claims_waitlist_position",
        "timeslot_claims",
        ["timeslot_id", "waitlist_position"],
        unique=True,
        postgresql_where=_WAITLIST_WHERE,
    )
    op.create_index(
        "ix_timeslot_claims_offer_expires_at",
        "timeslot_claims",
        ["offer_expires_at"],
        postgresql_where=_OFFERED_WHERE,
    )

    op.create_table(
        "event_lineup_state",
        sa.Column("event_id", sa.Uuid(), sa.ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
        sa.Column(
            "now_playing_timeslot_id",
            sa.Uuid(),
            sa.ForeignKey("event_timeslots.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("updated_by", sa.Uuid(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("event_lineup_state")
    op.drop_index("ix_timeslot_claims_offer_expires_at", table_name="timeslot_claims")
    op.drop_index("uq_timeslot_claims_waitlist_position", table_name="timeslot_claims")
    op.drop_index("uq_timeslot_claims_occupying_slot", table_name="timeslot_claims")
    op.drop_index("ix_timeslot_claims_member_id", table_name="timeslot_claims")
    op.drop_index("ix_timeslot_claims_timeslot_id", table_name="timeslot_claims")
    op.drop_table("timeslot_claims")
    op.drop_index("ix_event_timeslots_event_id", table_name="event_timeslots")
    op.drop_table("event_timeslots")
    op.drop_index("ix_event_hosts_member_id", table_name="event_hosts")
    op.drop_index("ix_event_hosts_event_id", table_name="event_hosts")
    op.drop_table("event_hosts")
    op.drop_index("ix_events_host_id", table_name="events")
    op.drop_table("events")
    op.drop_table("members")
