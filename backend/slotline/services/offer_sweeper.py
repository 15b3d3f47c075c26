"""
Offer sweeper: expire offers past offer_expires_at and re-promote their slots.

Each expired offer is handled in its own transaction through claim_ledger.expire_offer,
which takes the claim row with SKIP LOCKED: two sweepers running at once split the work
instead of waiting on each other. One failing offer is logged and skipped.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from slotline.config import settings
from slotline.core.constants import CLAIM_OFFERED
from slotline.models.timeslot_claim import TimeslotClaim
from slotline.services.claim_ledger import expire_offer

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    expired: list[uuid.UUID] = field(default_factory=list)
    promoted: list[uuid.UUID] = field(default_factory=list)
    failed: list[uuid.UUID] = field(default_factory=list)

    def as_dict(self) -> dict[str, int]:
        return {"expired": len(self.expired), "promoted": len(self.promoted), "failed": len(self.failed)}


def find_expired_offers(db: Session, now: datetime, limit: int) -> list[uuid.UUID]:
    """Ids of offered claims whose window closed before now, oldest expiry first."""
    rows = (
        db.query(TimeslotClaim.id)
        .filter(TimeslotClaim.status == CLAIM_OFFERED, TimeslotClaim.offer_expires_at < now)
        .order_by(TimeslotClaim.offer_expires_at.asc())
        .limit(limit)
        .all()
    )
    return [row.id for row in rows]


def sweep_expired_offers(db: Session, now: datetime | None = None, limit: int | None = None) -> SweepResult:
    now = now or datetime.now(timezone.utc)
    limit = limit or settings.offer_sweep_batch_size
    result = SweepResult()
    claim_ids = find_expired_offers(db, now, limit)
    # Release the read transaction before per-offer transactions start
    db.rollback()
    for claim_id in claim_ids:
        try:
            outcome = expire_offer(db, claim_id, now=now)
        except Exception as e:
            logger.exception("Expiring offer %s failed: %s", claim_id, e)
            result.failed.append(claim_id)
            continue
        if outcome is None:
            continue
        result.expired.append(outcome.claim_id)
        if outcome.promoted_claim_id is not None:
            result.promoted.append(outcome.promoted_claim_id)
    if claim_ids:
        logger.info(
            "Offer sweep: %s expired, %s promoted, %s failed (of %s found)",
            len(result.expired), len(result.promoted), len(result.failed), len(claim_ids),
        )
    return result
