"""
Lineup tracker: the "now playing" timeslot of an event, for live signage.

One row per event in event_lineup_state, created on first write. Pure assignment,
administrator only; nothing else in the core reads it.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from slotline.core.errors import NotFound
from slotline.db.session import transaction
from slotline.models.event import Event
from slotline.models.lineup_state import LineupState
from slotline.models.timeslot import Timeslot
from slotline.services import notify
from slotline.services.access_policy import AccessPolicy, require_event_admin

logger = logging.getLogger(__name__)


def _require_event(db: Session, event_id: uuid.UUID) -> None:
    if db.query(Event.id).filter(Event.id == event_id).first() is None:
        raise NotFound("Event not found", event_id=str(event_id))


def _upsert(db: Session, event_id: uuid.UUID, timeslot_id: uuid.UUID | None, actor_id: uuid.UUID | None) -> LineupState:
    state = db.query(LineupState).filter(LineupState.event_id == event_id).with_for_update().one_or_none()
    if state is None:
        state = LineupState(event_id=event_id)
        db.add(state)
    state.now_playing_timeslot_id = timeslot_id
    state.updated_by = actor_id
    state.updated_at = datetime.now(timezone.utc)
    db.flush()
    return state


def _payload(state: LineupState) -> dict[str, Any]:
    return {
        "event_id": str(state.event_id),
        "now_playing_timeslot_id": str(state.now_playing_timeslot_id) if state.now_playing_timeslot_id else None,
        "updated_by": str(state.updated_by) if state.updated_by else None,
    }


def set_now_playing(
    db: Session,
    event_id: uuid.UUID,
    timeslot_id: uuid.UUID | None,
    actor_id: uuid.UUID | None,
    policy: AccessPolicy,
) -> LineupState:
    """Point the lineup at a timeslot of the event, or clear it with None."""
    with transaction(db):
        _require_event(db, event_id)
        require_event_admin(db, policy, actor_id, event_id, "update the lineup")
        if timeslot_id is not None:
            belongs = (
                db.query(Timeslot.id)
                .filter(Timeslot.id == timeslot_id, Timeslot.event_id == event_id)
                .first()
            )
            if belongs is None:
                raise NotFound("Timeslot not found for this event", timeslot_id=str(timeslot_id))
        state = _upsert(db, event_id, timeslot_id, actor_id)
        payload = _payload(state)
    logger.info("Lineup of event %s now playing %s", event_id, timeslot_id)
    notify.emit("lineup.updated", payload)
    return state


def get_lineup_state(db: Session, event_id: uuid.UUID) -> LineupState | None:
    return db.query(LineupState).filter(LineupState.event_id == event_id).one_or_none()


def advance_lineup(
    db: Session,
    event_id: uuid.UUID,
    actor_id: uuid.UUID | None,
    policy: AccessPolicy,
    step: int = 1,
) -> LineupState:
    """
    Move now playing by step slots in slot_index order. From nothing, a forward step
    starts at the first slot. Past the last slot the lineup is cleared; before the
    first it stays on the first.
    """
    with transaction(db):
        _require_event(db, event_id)
        require_event_admin(db, policy, actor_id, event_id, "update the lineup")
        slots = (
            db.query(Timeslot.id)
            .filter(Timeslot.event_id == event_id)
            .order_by(Timeslot.slot_index.asc())
            .all()
        )
        slot_ids = [row.id for row in slots]
        state = db.query(LineupState).filter(LineupState.event_id == event_id).with_for_update().one_or_none()
        current = state.now_playing_timeslot_id if state is not None else None
        if not slot_ids:
            target = None
        elif current is None or current not in slot_ids:
            target = slot_ids[0] if step > 0 else None
        else:
            index = slot_ids.index(current) + step
            if index >= len(slot_ids):
                target = None
            else:
                target = slot_ids[max(index, 0)]
        state = _upsert(db, event_id, target, actor_id)
        payload = _payload(state)
    logger.info("Lineup of event %s advanced by %s to %s", event_id, step, target)
    notify.emit("lineup.updated", payload)
    return state


def lineup_to_dict(state: LineupState | None, event_id: uuid.UUID) -> dict[str, Any]:
    if state is None:
        return {"event_id": str(event_id), "now_playing_timeslot_id": None, "updated_by": None, "updated_at": None}
    out = _payload(state)
    out["updated_at"] = state.updated_at.isoformat() if state.updated_at else None
    return out
