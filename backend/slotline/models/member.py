"""Member profile as owned by the host application. no_show_count is the only column this service writes."""
import uuid

from sqlalchemy import Column, DateTime, Integer, String, Uuid
from sqlalchemy.sql import func

from slotline.core.constants import ROLE_MEMBER
from slotline.db.base import Base


class Member(Base):
    __tablename__ = "members"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    display_name = Column(String(256), nullable=True)
    role = Column(String(16), nullable=False, default=ROLE_MEMBER, server_default=ROLE_MEMBER)  # member | admin
    # Times marked no-show (visible to host/admin only); incremented atomically, never decremented here
    no_show_count = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
