"""
Centralized constants for claim statuses, slot bounds and scheduler jobs.

Change job IDs or status groupings here instead of scattering literals across
services, routes and migrations.
"""

# Claim statuses
CLAIM_CONFIRMED = "confirmed"
CLAIM_OFFERED = "offered"
CLAIM_WAITLIST = "waitlist"
CLAIM_CANCELLED = "cancelled"
CLAIM_NO_SHOW = "no_show"
CLAIM_PERFORMED = "performed"

CLAIM_STATUSES = (
    CLAIM_CONFIRMED,
    CLAIM_OFFERED,
    CLAIM_WAITLIST,
    CLAIM_CANCELLED,
    CLAIM_NO_SHOW,
    CLAIM_PERFORMED,
)

# Statuses that hold the slot: at most one claim per timeslot may be in one of these.
# Waitlisted claims queue behind the holder and are not counted.
OCCUPYING_STATUSES = (CLAIM_CONFIRMED, CLAIM_OFFERED, CLAIM_PERFORMED)

# Never transitioned again (performed may still be corrected to no_show).
TERMINAL_STATUSES = (CLAIM_CANCELLED, CLAIM_NO_SHOW)

# Statuses an occupant (or host) may cancel; confirmed/offered free the slot.
CANCELLABLE_STATUSES = (CLAIM_CONFIRMED, CLAIM_OFFERED, CLAIM_WAITLIST)
SLOT_FREEING_STATUSES = (CLAIM_CONFIRMED, CLAIM_OFFERED)

# Statuses a host may mark no-show (performed -> no_show corrects a mistaken mark).
NO_SHOW_FROM_STATUSES = (CLAIM_CONFIRMED, CLAIM_PERFORMED)

# Slot duration bounds (minutes), same as the events.slot_duration_minutes check
MIN_SLOT_DURATION_MINUTES = 5
MAX_SLOT_DURATION_MINUTES = 90

# Member roles and co-host invitation states
ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"
COHOST_ACCEPTED = "accepted"

# Scheduler job IDs (must match ids used in main.py add_job)
OFFER_EXPIRY_JOB_ID = "offer_expiry_sweep"
