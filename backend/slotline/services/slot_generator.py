"""
Slot generator: builds the ordered, immutable timeslot set of an event.

WARNING: generation is a destructive regeneration. Every existing timeslot of the event
is deleted first and all claims on them go with it (history included). Call it before
signups open; once claims exist only call it when discarding them is intended.
Runs in one transaction: the event ends up with either the old or the new slot set.
"""
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from slotline.config import settings
from slotline.core.constants import MAX_SLOT_DURATION_MINUTES, MIN_SLOT_DURATION_MINUTES
from slotline.core.errors import NotFound, ValidationError
from slotline.db.session import transaction
from slotline.models.event import Event
from slotline.models.lineup_state import LineupState
from slotline.models.timeslot import Timeslot
from slotline.models.timeslot_claim import TimeslotClaim
from slotline.services import notify
from slotline.services.access_policy import AccessPolicy, require_event_admin

logger = logging.getLogger(__name__)


def _validate(total_slots: int, slot_duration_minutes: int) -> None:
    if total_slots is None or total_slots <= 0:
        raise ValidationError("total_slots must be greater than 0", total_slots=total_slots)
    if slot_duration_minutes is None or not (
        MIN_SLOT_DURATION_MINUTES <= slot_duration_minutes <= MAX_SLOT_DURATION_MINUTES
    ):
        raise ValidationError(
            f"slot_duration_minutes must be between {MIN_SLOT_DURATION_MINUTES} and {MAX_SLOT_DURATION_MINUTES}",
            slot_duration_minutes=slot_duration_minutes,
        )


def _discard_existing(db: Session, event_id: uuid.UUID) -> tuple[int, int]:
    """Delete claims, lineup pointer and timeslots of the event. Returns (timeslots, claims) deleted."""
    slot_ids = select(Timeslot.id).where(Timeslot.event_id == event_id)
    claims_deleted = (
        db.query(TimeslotClaim)
        .filter(TimeslotClaim.timeslot_id.in_(slot_ids))
        .delete(synchronize_session=False)
    )
    db.query(LineupState).filter(LineupState.event_id == event_id).update(
        {LineupState.now_playing_timeslot_id: None}, synchronize_session=False
    )
    slots_deleted = db.query(Timeslot).filter(Timeslot.event_id == event_id).delete(synchronize_session=False)
    return slots_deleted, claims_deleted


def generate_timeslots(
    db: Session,
    event_id: uuid.UUID,
    total_slots: int,
    slot_duration_minutes: int,
    has_start_time: bool,
) -> list[Timeslot]:
    """
    Replace the event's timeslots with total_slots fresh ones (destructive, see module doc).
    slot i gets slot_index=i, duration_minutes=slot_duration_minutes and
    start_offset_minutes=i*slot_duration_minutes when the event has a start time, else NULL.
    Returns the new timeslots ordered by slot_index.
    """
    _validate(total_slots, slot_duration_minutes)
    with transaction(db):
        event = db.query(Event).filter(Event.id == event_id).with_for_update().one_or_none()
        if event is None:
            raise NotFound("Event not found", event_id=str(event_id))
        slots_deleted, claims_deleted = _discard_existing(db, event_id)
        if claims_deleted:
            logger.warning(
                "Regenerating timeslots for event %s discarded %s timeslots and %s claims",
                event_id, slots_deleted, claims_deleted,
            )
        db.expire(event, ["timeslots"])
        created = []
        for i in range(total_slots):
            slot = Timeslot(
                event_id=event_id,
                slot_index=i,
                start_offset_minutes=i * slot_duration_minutes if has_start_time else None,
                duration_minutes=slot_duration_minutes,
            )
            db.add(slot)
            created.append(slot)
        db.flush()
        result = {"event_id": str(event_id), "total_slots": total_slots, "claims_discarded": claims_deleted}
    logger.info("Generated %s timeslots for event %s", total_slots, event_id)
    notify.emit("timeslots.regenerated", result)
    return created


def regenerate_event_timeslots(
    db: Session,
    event_id: uuid.UUID,
    actor_id: uuid.UUID | None,
    policy: AccessPolicy,
) -> list[Timeslot]:
    """Host-triggered (re)generation from the event's own configuration. Destructive, see module doc."""
    with transaction(db):
        event = db.query(Event).filter(Event.id == event_id).one_or_none()
        if event is None:
            raise NotFound("Event not found", event_id=str(event_id))
        require_event_admin(db, policy, actor_id, event_id, "generate timeslots")
        if not event.total_slots:
            raise ValidationError("Event must have total_slots configured", event_id=str(event_id))
        total_slots = event.total_slots
        duration = event.slot_duration_minutes or settings.default_slot_duration_minutes
        has_start_time = event.has_start_time
    return generate_timeslots(db, event_id, total_slots, duration, has_start_time)


def get_event_timeslots(db: Session, event_id: uuid.UUID) -> list[Timeslot]:
    return (
        db.query(Timeslot)
        .filter(Timeslot.event_id == event_id)
        .order_by(Timeslot.slot_index.asc())
        .all()
    )
