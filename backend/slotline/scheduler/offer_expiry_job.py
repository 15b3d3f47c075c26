"""Runs every OFFER_SWEEP_INTERVAL_SECONDS: expire unaccepted waitlist offers and offer the slot to the next in line."""
import logging

from slotline.db.session import SessionLocal
from slotline.services.offer_sweeper import SweepResult, sweep_expired_offers

logger = logging.getLogger(__name__)


def run_offer_expiry_job() -> SweepResult:
    db = SessionLocal()
    try:
        result = sweep_expired_offers(db)
        if result.expired or result.failed:
            logger.info("Offer expiry job: %s", result.as_dict())
        return result
    finally:
        db.close()
