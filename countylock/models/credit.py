from countylock.extensions import db
from countylock.models.base import utcnow, isoformat


class CreditReason:
    SIGNUP_BONUS = "signup_bonus"
    SUBSCRIPTION_START = "subscription_start"
    SUBSCRIPTION_RENEWAL = "subscription_renewal"
    AUCTION_USAGE = "auction_usage"


class CreditTransaction(db.Model):
    """Append-only credit ledger row. Grants are positive, spends negative."""

    __tablename__ = "credit_transactions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    amount = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(50), nullable=False)
    auction_id = db.Column(db.Integer, db.ForeignKey("auctions.id"), nullable=True)
    # Upstream object id (checkout session, invoice) the grant belongs to
    idempotency_key = db.Column(db.String(255), unique=True, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    user = db.relationship("User", back_populates="credit_transactions")

    def to_dict(self):
        return {
            "id": self.id,
            "amount": self.amount,
            "reason": self.reason,
            "auction_id": self.auction_id,
            "created_at": isoformat(self.created_at),
        }
