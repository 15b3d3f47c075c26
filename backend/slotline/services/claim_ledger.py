"""
Claim ledger: creates claims and moves them through their states.

    (new) -> confirmed            claim_slot, slot must be free
    (new) -> waitlist             join_waitlist, slot must be held; position = max + 1
    confirmed|offered|waitlist -> cancelled   occupant or host; frees + promotes if it held the slot
    confirmed|performed -> no_show            host; member no_show_count += 1; promotes
    confirmed -> performed                    host
    offered -> confirmed          accept_offer, occupant, only while now <= offer_expires_at
    offered -> cancelled          expire_offer (sweeper), then re-promote

Every public operation is one transaction. Claim creation locks the timeslot row so
concurrent claims on the same slot serialize; the partial unique index on occupying
statuses backs that up. Notifications are emitted after commit.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, NamedTuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from slotline.core.constants import (
    CANCELLABLE_STATUSES,
    CLAIM_CANCELLED,
    CLAIM_CONFIRMED,
    CLAIM_NO_SHOW,
    CLAIM_OFFERED,
    CLAIM_PERFORMED,
    CLAIM_STATUSES,
    CLAIM_WAITLIST,
    NO_SHOW_FROM_STATUSES,
    OCCUPYING_STATUSES,
    SLOT_FREEING_STATUSES,
    TERMINAL_STATUSES,
)
from slotline.core.errors import InvalidTransition, NotFound, PermissionDenied, SlotUnavailable, ValidationError
from slotline.core.occupants import Occupant, member_id_of, occupant_columns, same_occupant
from slotline.db.session import transaction
from slotline.models.event import Event
from slotline.models.timeslot import Timeslot
from slotline.models.timeslot_claim import TimeslotClaim
from slotline.services import notify
from slotline.services.access_policy import AccessPolicy, require_event_admin
from slotline.services.reputation import increment_no_show_count
from slotline.services.waitlist import offer_window_for_event, promote_next

logger = logging.getLogger(__name__)

LIVE_STATUSES = tuple(s for s in CLAIM_STATUSES if s not in TERMINAL_STATUSES)


class ExpiredOffer(NamedTuple):
    claim_id: uuid.UUID
    promoted_claim_id: uuid.UUID | None


def as_utc(value: datetime | None) -> datetime | None:
    """Stored timestamps may come back naive (e.g. SQLite); they are always UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _now(now: datetime | None) -> datetime:
    return as_utc(now) if now is not None else datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Locking helpers
# ---------------------------------------------------------------------------


def _lock_timeslot(db: Session, timeslot_id: uuid.UUID) -> tuple[Timeslot, Event]:
    """Row-lock the timeslot so claim creation on it is serialized."""
    timeslot = db.query(Timeslot).filter(Timeslot.id == timeslot_id).with_for_update().one_or_none()
    if timeslot is None:
        raise NotFound("Timeslot not found", timeslot_id=str(timeslot_id))
    event = db.query(Event).filter(Event.id == timeslot.event_id).one()
    return timeslot, event


def _lock_claim(db: Session, claim_id: uuid.UUID) -> tuple[TimeslotClaim, Event]:
    claim = db.query(TimeslotClaim).filter(TimeslotClaim.id == claim_id).with_for_update().one_or_none()
    if claim is None:
        raise NotFound("Claim not found", claim_id=str(claim_id))
    event = (
        db.query(Event)
        .join(Timeslot, Timeslot.event_id == Event.id)
        .filter(Timeslot.id == claim.timeslot_id)
        .one()
    )
    return claim, event


def _ensure_open_for_signups(event: Event) -> None:
    if not event.is_published:
        raise ValidationError("Event is not published", event_id=str(event.id))
    if not event.has_timeslots:
        raise ValidationError("Event does not have timeslots", event_id=str(event.id))


def _current_holder(db: Session, timeslot_id: uuid.UUID) -> TimeslotClaim | None:
    return (
        db.query(TimeslotClaim)
        .filter(TimeslotClaim.timeslot_id == timeslot_id, TimeslotClaim.status.in_(OCCUPYING_STATUSES))
        .first()
    )


def _ensure_no_live_claim(db: Session, timeslot_id: uuid.UUID, occupant: Occupant) -> None:
    live = (
        db.query(TimeslotClaim)
        .filter(TimeslotClaim.timeslot_id == timeslot_id, TimeslotClaim.status.in_(LIVE_STATUSES))
        .all()
    )
    if any(same_occupant(c, occupant) for c in live):
        raise ValidationError("You already have a claim on this slot", timeslot_id=str(timeslot_id))


def _touch(claim: TimeslotClaim, status: str, now: datetime, actor_id: uuid.UUID | None) -> None:
    claim.status = status
    claim.updated_at = now
    claim.updated_by = actor_id
    if status != CLAIM_OFFERED:
        claim.offer_expires_at = None
    if status != CLAIM_WAITLIST:
        claim.waitlist_position = None


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def claim_slot(db: Session, timeslot_id: uuid.UUID, occupant: Occupant, now: datetime | None = None) -> TimeslotClaim:
    """Claim a free slot directly. Raises SlotUnavailable when it is already held (join the waitlist instead)."""
    now = _now(now)
    with transaction(db):
        _, event = _lock_timeslot(db, timeslot_id)
        _ensure_open_for_signups(event)
        if _current_holder(db, timeslot_id) is not None:
            raise SlotUnavailable("This slot is already taken", timeslot_id=str(timeslot_id))
        _ensure_no_live_claim(db, timeslot_id, occupant)
        claim = TimeslotClaim(
            timeslot_id=timeslot_id,
            status=CLAIM_CONFIRMED,
            updated_at=now,
            updated_by=member_id_of(occupant),
            **occupant_columns(occupant),
        )
        db.add(claim)
        try:
            db.flush()
        except IntegrityError as e:
            raise SlotUnavailable("This slot was just taken by someone else", timeslot_id=str(timeslot_id)) from e
        payload = notify.claim_payload(claim, event_id=str(event.id))
    logger.info("Claim %s confirmed on timeslot %s for %s", claim.id, timeslot_id, occupant.display_label)
    notify.emit("claim.confirmed", payload)
    return claim


def join_waitlist(db: Session, timeslot_id: uuid.UUID, occupant: Occupant, now: datetime | None = None) -> TimeslotClaim:
    """Queue behind the current holder at max(position) + 1. A free slot must be claimed directly."""
    now = _now(now)
    with transaction(db):
        _, event = _lock_timeslot(db, timeslot_id)
        _ensure_open_for_signups(event)
        _ensure_no_live_claim(db, timeslot_id, occupant)
        if _current_holder(db, timeslot_id) is None:
            raise ValidationError("This slot is open; claim it instead of joining the waitlist", timeslot_id=str(timeslot_id))
        last_position = (
            db.query(func.max(TimeslotClaim.waitlist_position))
            .filter(TimeslotClaim.timeslot_id == timeslot_id, TimeslotClaim.status == CLAIM_WAITLIST)
            .scalar()
        )
        claim = TimeslotClaim(
            timeslot_id=timeslot_id,
            status=CLAIM_WAITLIST,
            waitlist_position=(last_position or 0) + 1,
            updated_at=now,
            updated_by=member_id_of(occupant),
            **occupant_columns(occupant),
        )
        db.add(claim)
        db.flush()
        payload = notify.claim_payload(claim, event_id=str(event.id))
    logger.info(
        "Claim %s joined waitlist of timeslot %s at position %s", claim.id, timeslot_id, payload["waitlist_position"]
    )
    notify.emit("claim.waitlisted", payload)
    return claim


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def cancel_claim(
    db: Session,
    claim_id: uuid.UUID,
    actor: Occupant,
    policy: AccessPolicy,
    now: datetime | None = None,
) -> TimeslotClaim:
    """
    Cancel a confirmed, offered (declining the offer) or waitlisted claim. Allowed for the
    occupant or an event administrator. Freeing a held slot promotes the next in line.
    """
    now = _now(now)
    promoted_payload = None
    with transaction(db):
        claim, event = _lock_claim(db, claim_id)
        if not same_occupant(claim, actor) and not policy.can_administer(db, member_id_of(actor), event.id):
            raise PermissionDenied("Only the claimant, host or an admin can cancel this claim", claim_id=str(claim_id))
        if claim.status not in CANCELLABLE_STATUSES:
            raise InvalidTransition(f"Cannot cancel a {claim.status} claim", claim_id=str(claim_id), status=claim.status)
        freed = claim.status in SLOT_FREEING_STATUSES
        _touch(claim, CLAIM_CANCELLED, now, member_id_of(actor))
        db.flush()
        payload = notify.claim_payload(claim, event_id=str(event.id))
        if freed:
            promoted = promote_next(db, claim.timeslot_id, offer_window_for_event(event), now=now)
            if promoted is not None:
                promoted_payload = notify.claim_payload(promoted, event_id=str(event.id))
    logger.info("Claim %s cancelled by %s", claim_id, actor.display_label)
    notify.emit("claim.cancelled", payload)
    if promoted_payload:
        notify.emit("claim.offered", promoted_payload)
    return claim


def delete_own_claim(db: Session, claim_id: uuid.UUID, occupant: Occupant) -> None:
    """
    Hard delete by the occupant. Only while waitlisted, or while confirmed with nobody
    waiting (no promotion is owed). Everything else keeps its history: cancel instead.
    """
    with transaction(db):
        claim, event = _lock_claim(db, claim_id)
        if not same_occupant(claim, occupant):
            raise PermissionDenied("Only the claimant can delete this claim", claim_id=str(claim_id))
        if claim.status == CLAIM_CONFIRMED:
            waiting = (
                db.query(TimeslotClaim.id)
                .filter(TimeslotClaim.timeslot_id == claim.timeslot_id, TimeslotClaim.status == CLAIM_WAITLIST)
                .first()
            )
            if waiting is not None:
                raise InvalidTransition(
                    "Others are waiting for this slot; cancel the claim instead", claim_id=str(claim_id)
                )
        elif claim.status != CLAIM_WAITLIST:
            raise InvalidTransition(f"Cannot delete a {claim.status} claim", claim_id=str(claim_id), status=claim.status)
        payload = notify.claim_payload(claim, event_id=str(event.id))
        db.delete(claim)
        db.flush()
    logger.info("Claim %s deleted by %s", claim_id, occupant.display_label)
    notify.emit("claim.deleted", payload)


def mark_no_show(
    db: Session,
    claim_id: uuid.UUID,
    actor_id: uuid.UUID | None,
    policy: AccessPolicy,
    now: datetime | None = None,
) -> TimeslotClaim:
    """Host/admin: confirmed or performed -> no_show, count it against a member occupant, promote the next in line."""
    now = _now(now)
    promoted_payload = None
    with transaction(db):
        claim, event = _lock_claim(db, claim_id)
        require_event_admin(db, policy, actor_id, event.id, "mark no-show")
        if claim.status not in NO_SHOW_FROM_STATUSES:
            raise InvalidTransition(
                "Can only mark confirmed or performed claims as no-show", claim_id=str(claim_id), status=claim.status
            )
        _touch(claim, CLAIM_NO_SHOW, now, actor_id)
        if claim.member_id is not None:
            increment_no_show_count(db, claim.member_id)
        db.flush()
        payload = notify.claim_payload(claim, event_id=str(event.id))
        promoted = promote_next(db, claim.timeslot_id, offer_window_for_event(event), now=now)
        if promoted is not None:
            promoted_payload = notify.claim_payload(promoted, event_id=str(event.id))
    logger.info("Claim %s marked no-show by %s", claim_id, actor_id)
    notify.emit("claim.no_show", payload)
    if promoted_payload:
        notify.emit("claim.offered", promoted_payload)
    return claim


def mark_performed(
    db: Session,
    claim_id: uuid.UUID,
    actor_id: uuid.UUID | None,
    policy: AccessPolicy,
    now: datetime | None = None,
) -> TimeslotClaim:
    now = _now(now)
    with transaction(db):
        claim, event = _lock_claim(db, claim_id)
        require_event_admin(db, policy, actor_id, event.id, "mark performed")
        if claim.status != CLAIM_CONFIRMED:
            raise InvalidTransition(
                "Can only mark confirmed claims as performed", claim_id=str(claim_id), status=claim.status
            )
        _touch(claim, CLAIM_PERFORMED, now, actor_id)
        db.flush()
        payload = notify.claim_payload(claim, event_id=str(event.id))
    notify.emit("claim.performed", payload)
    return claim


def accept_offer(db: Session, claim_id: uuid.UUID, occupant: Occupant, now: datetime | None = None) -> TimeslotClaim:
    """
    Occupant accepts an offer. Expiry is re-checked under the row lock in this transaction,
    so an expired offer cannot be accepted even if the sweeper has not run yet.
    """
    now = _now(now)
    with transaction(db):
        claim, event = _lock_claim(db, claim_id)
        if not same_occupant(claim, occupant):
            raise PermissionDenied("Only the claimant can accept this offer", claim_id=str(claim_id))
        if claim.status != CLAIM_OFFERED:
            raise InvalidTransition(f"Claim is {claim.status}, not offered", claim_id=str(claim_id), status=claim.status)
        expires_at = as_utc(claim.offer_expires_at)
        if expires_at is None or now > expires_at:
            raise InvalidTransition(
                "Offer has expired",
                claim_id=str(claim_id),
                offer_expires_at=expires_at.isoformat() if expires_at else None,
            )
        _touch(claim, CLAIM_CONFIRMED, now, member_id_of(occupant))
        db.flush()
        payload = notify.claim_payload(claim, event_id=str(event.id))
    logger.info("Offer %s accepted by %s", claim_id, occupant.display_label)
    notify.emit("claim.confirmed", payload)
    return claim


def expire_offer(db: Session, claim_id: uuid.UUID, now: datetime | None = None) -> ExpiredOffer | None:
    """
    Sweeper contract: offered past offer_expires_at -> cancelled, then offer the slot to
    the next in line. Returns None (and changes nothing) when the claim is locked by
    another transaction, gone, no longer offered, or not yet expired.
    """
    now = _now(now)
    promoted_payload = None
    with transaction(db):
        claim = (
            db.query(TimeslotClaim)
            .filter(TimeslotClaim.id == claim_id)
            .with_for_update(skip_locked=True)
            .one_or_none()
        )
        if claim is None or claim.status != CLAIM_OFFERED:
            return None
        expires_at = as_utc(claim.offer_expires_at)
        if expires_at is not None and now <= expires_at:
            return None
        event = (
            db.query(Event)
            .join(Timeslot, Timeslot.event_id == Event.id)
            .filter(Timeslot.id == claim.timeslot_id)
            .one()
        )
        _touch(claim, CLAIM_CANCELLED, now, None)
        db.flush()
        payload = notify.claim_payload(claim, event_id=str(event.id), reason="offer_expired")
        promoted = promote_next(db, claim.timeslot_id, offer_window_for_event(event), now=now)
        promoted_id = promoted.id if promoted is not None else None
        if promoted is not None:
            promoted_payload = notify.claim_payload(promoted, event_id=str(event.id))
    logger.info("Offer %s expired; promoted %s", claim_id, promoted_id)
    notify.emit("claim.expired", payload)
    if promoted_payload:
        notify.emit("claim.offered", promoted_payload)
    return ExpiredOffer(claim_id=claim_id, promoted_claim_id=promoted_id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_claim(db: Session, claim_id: uuid.UUID) -> TimeslotClaim:
    claim = db.query(TimeslotClaim).filter(TimeslotClaim.id == claim_id).one_or_none()
    if claim is None:
        raise NotFound("Claim not found", claim_id=str(claim_id))
    return claim


def claim_to_dict(claim: TimeslotClaim, include_private: bool = False) -> dict[str, Any]:
    """API shape. The guest verification reference is private (host view only)."""
    out = {
        "id": str(claim.id),
        "timeslot_id": str(claim.timeslot_id),
        "member_id": str(claim.member_id) if claim.member_id else None,
        "guest_name": claim.guest_name,
        "is_guest": claim.is_guest,
        "status": claim.status,
        "offer_expires_at": as_utc(claim.offer_expires_at).isoformat() if claim.offer_expires_at else None,
        "waitlist_position": claim.waitlist_position,
        "claimed_at": as_utc(claim.claimed_at).isoformat() if claim.claimed_at else None,
        "updated_at": as_utc(claim.updated_at).isoformat() if claim.updated_at else None,
    }
    if include_private:
        out["guest_verification_id"] = claim.guest_verification_id
        out["updated_by"] = str(claim.updated_by) if claim.updated_by else None
    return out


def get_slot_board(db: Session, event_id: uuid.UUID) -> list[dict[str, Any]]:
    """
    Public view of an event's slots: each slot with its holder (confirmed, offered or
    performed) and how many are waiting. An offer past its expiry still shows as offered
    until the sweeper runs.
    """
    if db.query(Event.id).filter(Event.id == event_id).first() is None:
        raise NotFound("Event not found", event_id=str(event_id))
    slots = db.query(Timeslot).filter(Timeslot.event_id == event_id).order_by(Timeslot.slot_index.asc()).all()
    if not slots:
        return []
    slot_ids = [s.id for s in slots]
    holders = {
        c.timeslot_id: c
        for c in db.query(TimeslotClaim)
        .filter(TimeslotClaim.timeslot_id.in_(slot_ids), TimeslotClaim.status.in_(OCCUPYING_STATUSES))
        .all()
    }
    waiting = dict(
        db.query(TimeslotClaim.timeslot_id, func.count(TimeslotClaim.id))
        .filter(TimeslotClaim.timeslot_id.in_(slot_ids), TimeslotClaim.status == CLAIM_WAITLIST)
        .group_by(TimeslotClaim.timeslot_id)
        .all()
    )
    return [
        {
            "id": str(s.id),
            "slot_index": s.slot_index,
            "start_offset_minutes": s.start_offset_minutes,
            "duration_minutes": s.duration_minutes,
            "claim": claim_to_dict(holders[s.id]) if s.id in holders else None,
            "waitlist_count": waiting.get(s.id, 0),
        }
        for s in slots
    ]


def list_event_claims(
    db: Session,
    event_id: uuid.UUID,
    actor_id: uuid.UUID | None,
    policy: AccessPolicy,
) -> dict[str, Any]:
    """Host view: every claim of the event (history included), ordered by slot then claim time, with counts."""
    if db.query(Event.id).filter(Event.id == event_id).first() is None:
        raise NotFound("Event not found", event_id=str(event_id))
    require_event_admin(db, policy, actor_id, event_id, "view claims")
    rows = (
        db.query(TimeslotClaim, Timeslot)
        .join(Timeslot, Timeslot.id == TimeslotClaim.timeslot_id)
        .filter(Timeslot.event_id == event_id)
        .order_by(Timeslot.slot_index.asc(), TimeslotClaim.claimed_at.asc())
        .all()
    )
    claims = []
    by_status = {status: 0 for status in CLAIM_STATUSES}
    for claim, slot in rows:
        item = claim_to_dict(claim, include_private=True)
        item["slot_index"] = slot.slot_index
        item["start_offset_minutes"] = slot.start_offset_minutes
        item["duration_minutes"] = slot.duration_minutes
        claims.append(item)
        by_status[claim.status] = by_status.get(claim.status, 0) + 1
    active = sum(by_status[s] for s in LIVE_STATUSES)
    return {
        "claims": claims,
        "total_claims": len(claims),
        "active_claims": active,
        "by_status": by_status,
    }
