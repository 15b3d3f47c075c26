"""
Waitlist allocator: turn the next waitlisted claim of a timeslot into a timed offer.

- Candidate = lowest waitlist_position among status=waitlist, selected
  FOR UPDATE SKIP LOCKED. A concurrent promotion never waits behind another one:
  it either takes the next unlocked candidate or reports "no candidate".
- Promotion: status=offered, offer_expires_at=now+window, waitlist_position=NULL.
- No candidate (empty waitlist, all candidates locked, or slot still held) returns None
  and changes nothing. Cancellations on slots nobody waits for are the common case.
- The write runs in a SAVEPOINT; if a concurrent promotion already filled the slot the
  occupancy index rejects it and this call reports "no candidate" instead of failing
  the caller's transaction.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from slotline.config import settings
from slotline.core.constants import CLAIM_OFFERED, CLAIM_WAITLIST, OCCUPYING_STATUSES
from slotline.core.errors import NotFound, ValidationError
from slotline.db.session import transaction
from slotline.models.event import Event
from slotline.models.timeslot import Timeslot
from slotline.models.timeslot_claim import TimeslotClaim
from slotline.services import notify
from slotline.services.access_policy import AccessPolicy, require_event_admin

logger = logging.getLogger(__name__)


def offer_window_for_event(event: Event | None) -> int:
    if event is not None and event.slot_offer_window_minutes:
        return event.slot_offer_window_minutes
    return settings.default_offer_window_minutes


def _slot_is_held(db: Session, timeslot_id: uuid.UUID) -> bool:
    return (
        db.query(TimeslotClaim.id)
        .filter(TimeslotClaim.timeslot_id == timeslot_id, TimeslotClaim.status.in_(OCCUPYING_STATUSES))
        .first()
        is not None
    )


def promote_next(
    db: Session,
    timeslot_id: uuid.UUID,
    offer_window_minutes: int,
    now: datetime | None = None,
    updated_by: uuid.UUID | None = None,
) -> TimeslotClaim | None:
    """
    Promote inside the caller's transaction (flush, no commit). Pending changes that
    free the slot must already be flushed. Returns the offered claim or None.
    """
    now = now or datetime.now(timezone.utc)
    if _slot_is_held(db, timeslot_id):
        logger.info("Timeslot %s is still held; nothing to promote", timeslot_id)
        return None
    candidate = (
        db.query(TimeslotClaim)
        .filter(TimeslotClaim.timeslot_id == timeslot_id, TimeslotClaim.status == CLAIM_WAITLIST)
        .order_by(TimeslotClaim.waitlist_position.asc())
        .with_for_update(skip_locked=True)
        .first()
    )
    if candidate is None:
        return None
    position = candidate.waitlist_position
    try:
        with db.begin_nested():
            candidate.status = CLAIM_OFFERED
            candidate.offer_expires_at = now + timedelta(minutes=offer_window_minutes)
            candidate.waitlist_position = None
            candidate.updated_at = now
            if updated_by is not None:
                candidate.updated_by = updated_by
            db.flush()
    except IntegrityError:
        logger.info("Timeslot %s was filled by a concurrent promotion; no candidate", timeslot_id)
        db.refresh(candidate)
        return None
    logger.info(
        "Promoted claim %s (waitlist position %s) on timeslot %s; offer expires %s",
        candidate.id, position, timeslot_id, candidate.offer_expires_at.isoformat(),
    )
    return candidate


def _promote_with_payload(db, timeslot_id, offer_window_minutes, now, updated_by=None):
    promoted = promote_next(db, timeslot_id, offer_window_minutes, now=now, updated_by=updated_by)
    if promoted is None:
        return None, None
    return promoted.id, notify.claim_payload(promoted)


def promote_waitlist(
    db: Session,
    timeslot_id: uuid.UUID,
    offer_window_minutes: int,
    now: datetime | None = None,
) -> uuid.UUID | None:
    """Promote the next waitlisted claim in its own transaction. Returns the promoted claim id or None."""
    if offer_window_minutes is None or offer_window_minutes <= 0:
        raise ValidationError("offer_window_minutes must be greater than 0", offer_window_minutes=offer_window_minutes)
    with transaction(db):
        if db.query(Timeslot.id).filter(Timeslot.id == timeslot_id).first() is None:
            raise NotFound("Timeslot not found", timeslot_id=str(timeslot_id))
        promoted_id, payload = _promote_with_payload(db, timeslot_id, offer_window_minutes, now)
    if payload is not None:
        notify.emit("claim.offered", payload)
    return promoted_id


def promote_waitlist_as_host(
    db: Session,
    timeslot_id: uuid.UUID,
    actor_id: uuid.UUID | None,
    policy: AccessPolicy,
    now: datetime | None = None,
) -> uuid.UUID | None:
    """Host/admin "offer to next in line" using the event's offer window."""
    with transaction(db):
        row = (
            db.query(Timeslot, Event)
            .join(Event, Event.id == Timeslot.event_id)
            .filter(Timeslot.id == timeslot_id)
            .one_or_none()
        )
        if row is None:
            raise NotFound("Timeslot not found", timeslot_id=str(timeslot_id))
        _, event = row
        require_event_admin(db, policy, actor_id, event.id, "promote the waitlist")
        promoted_id, payload = _promote_with_payload(db, timeslot_id, offer_window_for_event(event), now, actor_id)
    if payload is not None:
        notify.emit("claim.offered", payload)
    return promoted_id


def get_waitlist(db: Session, timeslot_id: uuid.UUID) -> list[TimeslotClaim]:
    """Waitlisted claims in promotion order."""
    return (
        db.query(TimeslotClaim)
        .filter(TimeslotClaim.timeslot_id == timeslot_id, TimeslotClaim.status == CLAIM_WAITLIST)
        .order_by(TimeslotClaim.waitlist_position.asc())
        .all()
    )
