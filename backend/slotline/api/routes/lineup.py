"""
Lineup API: "now playing" pointer for live signage. Reads are public; writes are host/admin.
"""
import uuid
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from slotline.api.deps import get_access_policy, get_member_id
from slotline.db.session import get_db
from slotline.services.access_policy import AccessPolicy
from slotline.services.lineup import advance_lineup, get_lineup_state, lineup_to_dict, set_now_playing

router = APIRouter()


class NowPlayingUpdate(BaseModel):
    timeslot_id: uuid.UUID | None = Field(None, description="Timeslot now on stage; null clears the lineup")


class LineupAdvance(BaseModel):
    step: int = Field(1, description="Slots to move; negative goes back")


@router.get("/{event_id}/lineup")
def get_lineup(event_id: uuid.UUID, db: Session = Depends(get_db)) -> dict[str, Any]:
    return lineup_to_dict(get_lineup_state(db, event_id), event_id)


@router.put("/{event_id}/lineup")
def update_lineup(
    event_id: uuid.UUID,
    body: NowPlayingUpdate,
    db: Session = Depends(get_db),
    member_id: uuid.UUID = Depends(get_member_id),
    policy: AccessPolicy = Depends(get_access_policy),
) -> dict[str, Any]:
    state = set_now_playing(db, event_id, body.timeslot_id, member_id, policy)
    return lineup_to_dict(state, event_id)


@router.post("/{event_id}/lineup/advance")
def advance_event_lineup(
    event_id: uuid.UUID,
    body: LineupAdvance | None = None,
    db: Session = Depends(get_db),
    member_id: uuid.UUID = Depends(get_member_id),
    policy: AccessPolicy = Depends(get_access_policy),
) -> dict[str, Any]:
    step = body.step if body is not None else 1
    state = advance_lineup(db, event_id, member_id, policy, step=step)
    return lineup_to_dict(state, event_id)
