from countylock.extensions import db
from countylock.models.base import utcnow


class WebhookEventStatus:
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


class WebhookEvent(db.Model):
    """Inbound Stripe events, keyed by Stripe's event id."""

    __tablename__ = "webhook_events"

    id = db.Column(db.String(255), primary_key=True)
    event_type = db.Column(db.String(100), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=WebhookEventStatus.PROCESSING)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    error = db.Column(db.Text, nullable=True)
    received_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    processed_at = db.Column(db.DateTime, nullable=True)
