"""
Claims API: claim a slot, join its waitlist, and move claims through their states.

Caller identity comes from X-Member-Id or X-Guest-Name + X-Guest-Verification-Id.
"""
import uuid
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from slotline.api.deps import get_access_policy, get_caller, get_member_id
from slotline.core.occupants import Occupant
from slotline.db.session import get_db
from slotline.services import claim_ledger
from slotline.services.access_policy import AccessPolicy
from slotline.services.claim_ledger import claim_to_dict
from slotline.services.waitlist import get_waitlist, promote_waitlist_as_host

router = APIRouter()


# --- Per timeslot ---


@router.post("/timeslots/{timeslot_id}/claim")
def claim_timeslot(
    timeslot_id: uuid.UUID,
    db: Session = Depends(get_db),
    caller: Occupant = Depends(get_caller),
) -> dict[str, Any]:
    """Take a free slot. 409 SlotUnavailable when taken: join the waitlist instead."""
    claim = claim_ledger.claim_slot(db, timeslot_id, caller)
    return claim_to_dict(claim)


@router.post("/timeslots/{timeslot_id}/waitlist")
def join_timeslot_waitlist(
    timeslot_id: uuid.UUID,
    db: Session = Depends(get_db),
    caller: Occupant = Depends(get_caller),
) -> dict[str, Any]:
    claim = claim_ledger.join_waitlist(db, timeslot_id, caller)
    return claim_to_dict(claim)


@router.get("/timeslots/{timeslot_id}/waitlist")
def list_timeslot_waitlist(timeslot_id: uuid.UUID, db: Session = Depends(get_db)) -> dict[str, Any]:
    rows = get_waitlist(db, timeslot_id)
    return {"timeslot_id": str(timeslot_id), "waitlist": [claim_to_dict(c) for c in rows], "count": len(rows)}


@router.post("/timeslots/{timeslot_id}/promote")
def promote_timeslot_waitlist(
    timeslot_id: uuid.UUID,
    db: Session = Depends(get_db),
    member_id: uuid.UUID = Depends(get_member_id),
    policy: AccessPolicy = Depends(get_access_policy),
) -> dict[str, Any]:
    """Host: offer the slot to the next in line. promoted_claim_id is null when nobody could be promoted."""
    promoted_id = promote_waitlist_as_host(db, timeslot_id, member_id, policy)
    return {"timeslot_id": str(timeslot_id), "promoted_claim_id": str(promoted_id) if promoted_id else None}


# --- Per claim ---


@router.get("/claims/{claim_id}")
def get_claim(claim_id: uuid.UUID, db: Session = Depends(get_db)) -> dict[str, Any]:
    return claim_to_dict(claim_ledger.get_claim(db, claim_id))


@router.post("/claims/{claim_id}/cancel")
def cancel_claim(
    claim_id: uuid.UUID,
    db: Session = Depends(get_db),
    caller: Occupant = Depends(get_caller),
    policy: AccessPolicy = Depends(get_access_policy),
) -> dict[str, Any]:
    """Occupant or host. Cancelling an offer declines it; the next in line gets the offer."""
    claim = claim_ledger.cancel_claim(db, claim_id, caller, policy)
    return claim_to_dict(claim)


@router.delete("/claims/{claim_id}")
def delete_claim(
    claim_id: uuid.UUID,
    db: Session = Depends(get_db),
    caller: Occupant = Depends(get_caller),
) -> dict[str, Any]:
    """Occupant only; waitlisted claims, or confirmed claims nobody is waiting behind."""
    claim_ledger.delete_own_claim(db, claim_id, caller)
    return {"deleted": True, "claim_id": str(claim_id)}


@router.post("/claims/{claim_id}/accept")
def accept_claim_offer(
    claim_id: uuid.UUID,
    db: Session = Depends(get_db),
    caller: Occupant = Depends(get_caller),
) -> dict[str, Any]:
    """Accept a waitlist offer before it expires."""
    claim = claim_ledger.accept_offer(db, claim_id, caller)
    return claim_to_dict(claim)


@router.post("/claims/{claim_id}/no-show")
def mark_claim_no_show(
    claim_id: uuid.UUID,
    db: Session = Depends(get_db),
    member_id: uuid.UUID = Depends(get_member_id),
    policy: AccessPolicy = Depends(get_access_policy),
) -> dict[str, Any]:
    claim = claim_ledger.mark_no_show(db, claim_id, member_id, policy)
    return claim_to_dict(claim)


@router.post("/claims/{claim_id}/performed")
def mark_claim_performed(
    claim_id: uuid.UUID,
    db: Session = Depends(get_db),
    member_id: uuid.UUID = Depends(get_member_id),
    policy: AccessPolicy = Depends(get_access_policy),
) -> dict[str, Any]:
    claim = claim_ledger.mark_performed(db, claim_id, member_id, policy)
    return claim_to_dict(claim)
