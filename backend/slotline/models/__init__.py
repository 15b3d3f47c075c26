from slotline.models.event import Event
from slotline.models.event_host import EventHost
from slotline.models.lineup_state import LineupState
from slotline.models.member import Member
from slotline.models.timeslot import Timeslot
from slotline.models.timeslot_claim import TimeslotClaim

__all__ = [
    "Event",
    "EventHost",
    "LineupState",
    "Member",
    "Timeslot",
    "TimeslotClaim",
]
