# countylock/models/auction.py
from countylock.extensions import db
from countylock.models.base import utcnow, isoformat


class Auction(db.Model):
    """An external HiBid listing, keyed by the numeric id in its URL."""

    __tablename__ = "auctions"

    id = db.Column(db.Integer, primary_key=True)
    external_auction_id = db.Column(db.String(64), unique=True, nullable=True, index=True)
    url = db.Column(db.String(500), unique=True, nullable=False)
    title = db.Column(db.String(500), nullable=True)
    county_id = db.Column(db.Integer, db.ForeignKey("counties.id"), nullable=True, index=True)
    zip_code = db.Column(db.String(20), nullable=True)
    item_count = db.Column(db.Integer, nullable=True)
    auction_date = db.Column(db.DateTime, nullable=True)
    is_free_claim = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    county = db.relationship("County", back_populates="auctions")
    claim = db.relationship("ClaimedAuction", back_populates="auction", uselist=False)

    @property
    def is_claimed(self):
        return self.claim is not None

    def to_dict(self):
        return {
            "id": self.id,
            "external_auction_id": self.external_auction_id,
            "url": self.url,
            "title": self.title,
            "county_id": self.county_id,
            "zip_code": self.zip_code,
            "item_count": self.item_count,
            "auction_date": isoformat(self.auction_date),
            "is_free_claim": self.is_free_claim,
            "available": not self.is_claimed,
            "created_at": isoformat(self.created_at),
        }


class ClaimedAuction(db.Model):
    """Exclusive lock of one user on one auction."""

    __tablename__ = "claimed_auctions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    # The unique constraint is the sole arbiter of who wins a claim race
    auction_id = db.Column(db.Integer, db.ForeignKey("auctions.id"), unique=True, nullable=False)
    price_paid = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    claimed_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    user = db.relationship("User", back_populates="claimed_auctions")
    auction = db.relationship("Auction", back_populates="claim")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "auction_id": self.auction_id,
            "price_paid": float(self.price_paid or 0),
            "claimed_at": isoformat(self.claimed_at),
            "auction": self.auction.to_dict() if self.auction else None,
        }
