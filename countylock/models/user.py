# countylock/models/user.py
from enum import Enum

from werkzeug.security import generate_password_hash, check_password_hash

from countylock.extensions import db
from countylock.models.base import utcnow, isoformat


class UserType(str, Enum):
    STANDARD = "standard"
    FREE_CLAIM = "free_claim"


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=True)
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    phone = db.Column(db.String(50), nullable=True, index=True)
    address = db.Column(db.String(500), nullable=True)
    user_type = db.Column(db.String(20), nullable=False, default=UserType.STANDARD.value)

    # Running balance; the ledger in credit_transactions is the audit trail
    credits = db.Column(db.Integer, nullable=False, default=0)
    has_used_free_trial = db.Column(db.Boolean, nullable=False, default=False)
    stripe_customer_id = db.Column(db.String(255), unique=True, nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    subscriptions = db.relationship("Subscription", back_populates="user", lazy="dynamic")
    claimed_auctions = db.relationship("ClaimedAuction", back_populates="user", lazy="dynamic")
    credit_transactions = db.relationship(
        "CreditTransaction", back_populates="user", lazy="dynamic",
        order_by="CreditTransaction.created_at",
    )

    @staticmethod
    def normalize_email(email):
        return (email or "").strip().lower()

    @classmethod
    def find_by_email(cls, email):
        return cls.query.filter_by(email=cls.normalize_email(email)).first()

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def full_name(self):
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or "User"

    @property
    def is_free_claim(self):
        return self.user_type == UserType.FREE_CLAIM.value

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "user_type": self.user_type,
            "credits": self.credits,
            "created_at": isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<User {self.email}>"
