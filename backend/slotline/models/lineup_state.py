"""One row per event: which timeslot is "now playing" on live signage."""
from sqlalchemy import Column, DateTime, ForeignKey, Uuid
from sqlalchemy.sql import func

from slotline.db.base import Base


class LineupState(Base):
    __tablename__ = "event_lineup_state"

    event_id = Column(Uuid, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True)
    now_playing_timeslot_id = Column(Uuid, ForeignKey("event_timeslots.id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(Uuid, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
