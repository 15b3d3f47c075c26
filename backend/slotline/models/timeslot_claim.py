"""
Claim on a timeslot by a member or a verified guest.

status: confirmed = holds the slot, offered = promoted from waitlist and waiting for
acceptance until offer_expires_at, waitlist = queued at waitlist_position,
cancelled / no_show = final, performed = final success.
Occupancy: at most one confirmed/offered/performed claim per timeslot (partial unique
index); any number of waitlist claims queue behind it.
"""
import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Uuid, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from slotline.db.base import Base

_OCCUPYING_WHERE = text("status IN ('confirmed', 'offered', 'performed')")
_WAITLIST_WHERE = text("status = 'waitlist'")
_OFFERED_WHERE = text("status = 'offered'")


class TimeslotClaim(Base):
    __tablename__ = "timeslot_claims"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    timeslot_id = Column(Uuid, ForeignKey("event_timeslots.id", ondelete="CASCADE"), nullable=False, index=True)

    # Occupant: member_id XOR (guest_name + guest_verification_id); see core.occupants
    member_id = Column(Uuid, ForeignKey("members.id"), nullable=True, index=True)
    guest_name = Column(String(256), nullable=True)  # publicly visible
    guest_verification_id = Column(String(64), nullable=True)  # external verification record (holds the contact)

    status = Column(String(16), nullable=False, default="confirmed", server_default="confirmed")
    offer_expires_at = Column(DateTime(timezone=True), nullable=True)  # only while offered
    waitlist_position = Column(Integer, nullable=True)  # only while waitlist
    claimed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_by = Column(Uuid, nullable=True)  # member who last transitioned this claim; NULL for guest self-service

    timeslot = relationship("Timeslot", back_populates="claims")

    __table_args__ = (
        CheckConstraint(
            "(member_id IS NOT NULL AND guest_name IS NULL AND guest_verification_id IS NULL) "
            "OR (member_id IS NULL AND guest_name IS NOT NULL AND guest_verification_id IS NOT NULL)",
            name="ck_timeslot_claims_member_or_guest",
        ),
        CheckConstraint(
            "status IN ('confirmed', 'offered', 'waitlist', 'cancelled', 'no_show', 'performed')",
            name="ck_timeslot_claims_status",
        ),
        Index(
            "uq_timeslot_claims_occupying_slot",
            "timeslot_id",
            unique=True,
            postgresql_where=_OCCUPYING_WHERE,
            sqlite_where=_OCCUPYING_WHERE,
        ),
        Index(
            "uq_timeslot_claims_waitlist_position",
            "timeslot_id",
            "waitlist_position",
            unique=True,
            postgresql_where=_WAITLIST_WHERE,
            sqlite_where=_WAITLIST_WHERE,
        ),
        Index(
            "ix_timeslot_claims_offer_expires_at",
            "offer_expires_at",
            postgresql_where=_OFFERED_WHERE,
            sqlite_where=_OFFERED_WHERE,
        ),
    )

    @property
    def is_guest(self) -> bool:
        return self.member_id is None
