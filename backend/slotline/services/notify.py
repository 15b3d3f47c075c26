"""
Fire-and-forget notifications for claim and lineup transitions.

Callers emit after their transaction commits. Sinks run on a small shared thread pool
(NOTIFY_MAX_WORKERS) so a slow or failing sink never blocks or fails the transition.
Built-in sinks: a log line for every event, and an HTTP webhook (NOTIFY_WEBHOOK_URL)
for the host application's e-mail / push delivery. Extra sinks can be added with register_sink.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable

import httpx

from slotline.config import settings

logger = logging.getLogger(__name__)

Sink = Callable[[str, dict[str, Any]], None]

_extra_sinks: list[Sink] = []
_sinks_lock = threading.Lock()
_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


def register_sink(sink: Sink) -> None:
    with _sinks_lock:
        _extra_sinks.append(sink)


def unregister_sink(sink: Sink) -> None:
    with _sinks_lock:
        if sink in _extra_sinks:
            _extra_sinks.remove(sink)


def log_sink(event_type: str, payload: dict[str, Any]) -> None:
    logger.info("Notify %s: %s", event_type, payload)


def webhook_sink(event_type: str, payload: dict[str, Any]) -> None:
    """POST {"type", "payload"} to NOTIFY_WEBHOOK_URL. No-op when unset."""
    url = settings.notify_webhook_url
    if not url:
        return
    try:
        with httpx.Client(timeout=settings.notify_webhook_timeout_seconds) as client:
            resp = client.post(url, json={"type": event_type, "payload": payload})
        if resp.status_code >= 400:
            logger.warning("Notify webhook returned %s for %s: %s", resp.status_code, event_type, resp.text[:200])
    except httpx.HTTPError as e:
        logger.warning("Notify webhook failed for %s: %s", event_type, e)


def _sinks() -> list[Sink]:
    with _sinks_lock:
        return [log_sink, webhook_sink, *_extra_sinks]


def _deliver(event_type: str, payload: dict[str, Any], sinks: list[Sink]) -> None:
    for sink in sinks:
        try:
            sink(event_type, payload)
        except Exception as e:
            logger.warning("Notify sink %s failed for %s: %s", getattr(sink, "__name__", sink), event_type, e, exc_info=True)


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=max(1, settings.notify_max_workers),
                thread_name_prefix="slotline_notify",
            )
        return _executor


def _spawn(target: Callable[..., None], *args) -> None:
    _get_executor().submit(target, *args)


def shutdown(wait: bool = True) -> None:
    """Drain queued notifications and stop the pool (app shutdown)."""
    global _executor
    with _executor_lock:
        executor, _executor = _executor, None
    if executor is not None:
        executor.shutdown(wait=wait)


def emit(event_type: str, payload: dict[str, Any]) -> None:
    """Queue one notification; returns immediately."""
    body = {**payload, "occurred_at": datetime.now(timezone.utc).isoformat()}
    _spawn(_deliver, event_type, body, _sinks())


def claim_payload(claim, **extra) -> dict[str, Any]:
    """Serializable snapshot of a claim for sinks. Build it before commit expires the row."""
    return {
        "claim_id": str(claim.id),
        "timeslot_id": str(claim.timeslot_id),
        "status": claim.status,
        "member_id": str(claim.member_id) if claim.member_id else None,
        "guest_name": claim.guest_name,
        "guest_verification_id": claim.guest_verification_id,
        "offer_expires_at": claim.offer_expires_at.isoformat() if claim.offer_expires_at else None,
        "waitlist_position": claim.waitlist_position,
        "updated_by": str(claim.updated_by) if claim.updated_by else None,
        **extra,
    }
