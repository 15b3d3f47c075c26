"""Event configuration (read-only for the slot core): capacity, slot length, offer window, publish state."""
import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Time, Uuid, true
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from slotline.db.base import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(256), nullable=False)
    host_id = Column(Uuid, ForeignKey("members.id"), nullable=True, index=True)
    start_time = Column(Time, nullable=True)  # NULL = no fixed start; slots carry no offsets
    has_timeslots = Column(Boolean, nullable=False, default=True, server_default=true())
    total_slots = Column(Integer, nullable=True)
    slot_duration_minutes = Column(Integer, nullable=True, default=15, server_default="15")
    slot_offer_window_minutes = Column(Integer, nullable=True, default=120, server_default="120")
    is_published = Column(Boolean, nullable=False, default=True, server_default=true())  # false = draft, no signups
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    timeslots = relationship(
        "Timeslot",
        back_populates="event",
        order_by="Timeslot.slot_index",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("total_slots IS NULL OR total_slots > 0", name="ck_events_total_slots_positive"),
        CheckConstraint(
            "slot_duration_minutes IS NULL OR (slot_duration_minutes >= 5 AND slot_duration_minutes <= 90)",
            name="ck_events_slot_duration_range",
        ),
    )

    @property
    def has_start_time(self) -> bool:
        return self.start_time is not None
