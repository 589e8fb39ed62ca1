# countylock/models/subscription.py
from enum import Enum

from countylock.extensions import db
from countylock.models.base import utcnow, isoformat


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"
    INACTIVE = "inactive"


class Subscription(db.Model):
    """
    A user's licence on a county at a given offer tier.

    Rows are never deleted; cancellation and lapses move ``status`` instead.
    """

    __tablename__ = "subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    county_id = db.Column(db.Integer, db.ForeignKey("counties.id"), nullable=False, index=True)
    offer_id = db.Column(db.Integer, db.ForeignKey("offers.id"), nullable=False, index=True)

    status = db.Column(
        db.String(20), nullable=False, default=SubscriptionStatus.ACTIVE.value, index=True
    )
    start_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    end_date = db.Column(db.DateTime, nullable=True)

    # Mirrored from Stripe
    stripe_subscription_id = db.Column(db.String(255), unique=True, nullable=True, index=True)
    stripe_current_period_end = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = db.relationship("User", back_populates="subscriptions")
    county = db.relationship("County", back_populates="subscriptions")
    offer = db.relationship("Offer", back_populates="subscriptions")

    @property
    def is_active(self):
        return self.status == SubscriptionStatus.ACTIVE.value

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "county_id": self.county_id,
            "offer_id": self.offer_id,
            "status": self.status,
            "start_date": isoformat(self.start_date),
            "end_date": isoformat(self.end_date),
            "stripe_subscription_id": self.stripe_subscription_id,
            "stripe_current_period_end": isoformat(self.stripe_current_period_end),
            "county": self.county.to_dict(include_state=True) if self.county else None,
            "offer": self.offer.to_dict() if self.offer else None,
        }

    def __repr__(self):
        return f"<Subscription {self.id} county={self.county_id} {self.status}>"
