"""
No-show reputation: a per-member counter on members.no_show_count.

Incremented with a single UPDATE (no read-modify-write) so concurrent no-show marks
never lose an update. Never decremented here; corrections are an admin concern.
Guests have no durable identity and are never counted.
"""
import logging
import uuid

from sqlalchemy.orm import Session

from slotline.models.member import Member

logger = logging.getLogger(__name__)


def increment_no_show_count(db: Session, member_id: uuid.UUID) -> int:
    """Add one no-show to the member. Runs inside the caller's transaction (no commit). Returns rows updated."""
    updated = (
        db.query(Member)
        .filter(Member.id == member_id)
        .update({Member.no_show_count: Member.no_show_count + 1}, synchronize_session=False)
    )
    if not updated:
        logger.warning("No-show for member %s: member record not found; counter not incremented", member_id)
    return updated


def get_no_show_count(db: Session, member_id: uuid.UUID) -> int:
    count = db.query(Member.no_show_count).filter(Member.id == member_id).scalar()
    return count or 0
