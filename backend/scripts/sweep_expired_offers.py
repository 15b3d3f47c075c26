#!/usr/bin/env python3
"""Expire every overdue waitlist offer now and promote the next in line (same work as the scheduled job).
Run from backend: python scripts/sweep_expired_offers.py [--limit N]
"""
import argparse
import sys
from pathlib import Path

# Ensure backend is on path when run as script
backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from slotline.config import settings
from slotline.db.session import SessionLocal
from slotline.services.offer_sweeper import sweep_expired_offers


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--limit", type=int, default=settings.offer_sweep_batch_size)
    args = parser.parse_args()

    db = SessionLocal()
    try:
        result = sweep_expired_offers(db, limit=args.limit)
        print("Offer sweep finished:")
        for key, count in result.as_dict().items():
            print(f"  {key}: {count}")
        for claim_id in result.failed:
            print(f"  failed claim: {claim_id}", file=sys.stderr)
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
