import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from countylock.extensions import db
from countylock.models import WebhookEvent, WebhookEventStatus
from countylock.models.base import utcnow

logger = logging.getLogger(__name__)


def begin_event(event_id: str, event_type: str) -> Optional[WebhookEvent]:
    """
    Record an inbound event before handling it.

    Returns None when the event was already processed (or another delivery of
    it is being recorded right now), so the caller can acknowledge and skip.
    Failed events are handed back for another attempt.
    """
    record = db.session.get(WebhookEvent, event_id)
    if record is not None and record.status == WebhookEventStatus.PROCESSED:
        return None

    if record is None:
        record = WebhookEvent(id=event_id, event_type=event_type)
        db.session.add(record)

    record.status = WebhookEventStatus.PROCESSING
    record.attempts = (record.attempts or 0) + 1
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.info(f"Event {event_id} is being recorded by a concurrent delivery")
        return None
    return record


def mark_processed(record: WebhookEvent) -> None:
    record.status = WebhookEventStatus.PROCESSED
    record.error = None
    record.processed_at = utcnow()
    db.session.commit()


def mark_failed(record_id: str, error: str) -> None:
    record = db.session.get(WebhookEvent, record_id)
    if record is None:
        return
    record.status = WebhookEventStatus.FAILED
    record.error = error[:2000]
    db.session.commit()
