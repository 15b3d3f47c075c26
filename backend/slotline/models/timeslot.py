"""One performance slot of an event. Created in bulk by the slot generator; replaced only by regeneration."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from slotline.db.base import Base


class Timeslot(Base):
    __tablename__ = "event_timeslots"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    slot_index = Column(Integer, nullable=False)  # 0-based
    start_offset_minutes = Column(Integer, nullable=True)  # minutes from event start_time; NULL if no start_time
    duration_minutes = Column(Integer, nullable=False, default=15)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    event = relationship("Event", back_populates="timeslots")
    claims = relationship(
        "TimeslotClaim",
        back_populates="timeslot",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (UniqueConstraint("event_id", "slot_index", name="uq_event_timeslots_event_slot_index"),)
