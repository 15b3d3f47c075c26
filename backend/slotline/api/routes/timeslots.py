"""
Event timeslots API: (re)generate the slot set, public slot board, host claim listing.
"""
import uuid
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from slotline.api.deps import get_access_policy, get_member_id
from slotline.db.session import get_db
from slotline.services.access_policy import AccessPolicy
from slotline.services.claim_ledger import get_slot_board, list_event_claims
from slotline.services.slot_generator import regenerate_event_timeslots

router = APIRouter()


@router.post("/{event_id}/timeslots")
def generate_event_timeslots(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    member_id: uuid.UUID = Depends(get_member_id),
    policy: AccessPolicy = Depends(get_access_policy),
) -> dict[str, Any]:
    """
    Rebuild the event's timeslots from its configuration (total_slots, slot_duration_minutes, start_time).
    Destructive: every existing claim on the event is discarded.
    """
    slots = regenerate_event_timeslots(db, event_id, member_id, policy)
    return {
        "event_id": str(event_id),
        "timeslots": [
            {
                "id": str(s.id),
                "slot_index": s.slot_index,
                "start_offset_minutes": s.start_offset_minutes,
                "duration_minutes": s.duration_minutes,
            }
            for s in slots
        ],
        "total": len(slots),
    }


@router.get("/{event_id}/timeslots")
def list_event_timeslots(event_id: uuid.UUID, db: Session = Depends(get_db)) -> dict[str, Any]:
    """Slot board: every slot with its current holder and waitlist length."""
    slots = get_slot_board(db, event_id)
    return {"event_id": str(event_id), "timeslots": slots, "total": len(slots)}


@router.get("/{event_id}/claims")
def list_claims_for_event(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    member_id: uuid.UUID = Depends(get_member_id),
    policy: AccessPolicy = Depends(get_access_policy),
) -> dict[str, Any]:
    """Host view of every claim (history included) with status counts."""
    return list_event_claims(db, event_id, member_id, policy)
