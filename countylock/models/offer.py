from countylock.extensions import db
from countylock.models.base import utcnow


class Offer(db.Model):
    """A monthly pricing tier (1=Basic/Rural, 2=Plus/Suburban, 3=Pro/Urban)."""

    __tablename__ = "offers"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    tier_level = db.Column(db.Integer, nullable=False, index=True)
    stripe_product_id = db.Column(db.String(255), nullable=True)
    stripe_price_id = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    subscriptions = db.relationship("Subscription", back_populates="offer", lazy="dynamic")

    @property
    def is_exclusive(self):
        return self.tier_level == 3

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": float(self.price),
            "tier_level": self.tier_level,
            "stripe_price_id": self.stripe_price_id,
            "is_active": self.is_active,
        }
