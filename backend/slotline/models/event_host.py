"""Co-host invitations; an accepted co-host may administer the event's slots and lineup."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.sql import func

from slotline.db.base import Base


class EventHost(Base):
    __tablename__ = "event_hosts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Uuid, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    invitation_status = Column(String(16), nullable=False, default="pending", server_default="pending")  # pending | accepted | declined
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (UniqueConstraint("event_id", "member_id", name="uq_event_hosts_event_member"),)
