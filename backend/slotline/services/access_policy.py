"""
Access policy: "may this member administer event E" (host, accepted co-host, or admin).

The host application owns the real policy; services take any object with
can_administer so it can be swapped. EventHostPolicy answers from the
events / event_hosts / members tables.
"""
import uuid
from typing import Protocol

from sqlalchemy.orm import Session

from slotline.core.constants import COHOST_ACCEPTED, ROLE_ADMIN
from slotline.core.errors import PermissionDenied
from slotline.models.event import Event
from slotline.models.event_host import EventHost
from slotline.models.member import Member


class AccessPolicy(Protocol):
    def can_administer(self, db: Session, member_id: uuid.UUID | None, event_id: uuid.UUID) -> bool:
        ...


class EventHostPolicy:
    """Host of the event, an accepted co-host, or a member with role=admin."""

    def can_administer(self, db: Session, member_id: uuid.UUID | None, event_id: uuid.UUID) -> bool:
        if member_id is None:
            return False
        host_id = db.query(Event.host_id).filter(Event.id == event_id).scalar()
        if host_id is not None and host_id == member_id:
            return True
        cohost = (
            db.query(EventHost.id)
            .filter(
                EventHost.event_id == event_id,
                EventHost.member_id == member_id,
                EventHost.invitation_status == COHOST_ACCEPTED,
            )
            .first()
        )
        if cohost is not None:
            return True
        role = db.query(Member.role).filter(Member.id == member_id).scalar()
        return role == ROLE_ADMIN


default_policy = EventHostPolicy()


def require_event_admin(
    db: Session,
    policy: AccessPolicy,
    member_id: uuid.UUID | None,
    event_id: uuid.UUID,
    action: str,
) -> None:
    """Raise PermissionDenied unless the member may administer the event."""
    if not policy.can_administer(db, member_id, event_id):
        raise PermissionDenied(f"Only the host or an admin can {action}", event_id=str(event_id))
