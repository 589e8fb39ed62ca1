# countylock/models/geography.py
from enum import Enum

from countylock.extensions import db
from countylock.models.base import utcnow


class CountyStatus(str, Enum):
    AVAILABLE = "available"
    PARTIALLY_LOCKED = "partially_locked"
    FULLY_LOCKED = "fully_locked"


class State(db.Model):
    __tablename__ = "states"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    abbreviation = db.Column(db.String(2), unique=True, nullable=False, index=True)

    counties = db.relationship("County", back_populates="state", lazy="dynamic")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "abbreviation": self.abbreviation,
        }

    def __repr__(self):
        return f"<State {self.abbreviation}>"


class County(db.Model):
    __tablename__ = "counties"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    state_id = db.Column(db.Integer, db.ForeignKey("states.id"), nullable=False, index=True)
    population = db.Column(db.Integer, nullable=True)

    # Cached occupancy; only written through recompute_county_status
    status = db.Column(
        db.String(32),
        nullable=False,
        default=CountyStatus.AVAILABLE.value,
        index=True,
    )
    free_trial_count = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    state = db.relationship("State", back_populates="counties")
    subscriptions = db.relationship("Subscription", back_populates="county", lazy="dynamic")
    trial_registration = db.relationship(
        "TrialRegistration", back_populates="county", uselist=False
    )
    auctions = db.relationship("Auction", back_populates="county", lazy="dynamic")

    @property
    def display_name(self):
        abbr = self.state.abbreviation if self.state else ""
        return f"{self.name}, {abbr}" if abbr else self.name

    def to_dict(self, include_state=False):
        data = {
            "id": self.id,
            "name": self.name,
            "state_id": self.state_id,
            "population": self.population,
            "status": self.status,
            "free_trial_count": self.free_trial_count,
        }
        if include_state and self.state:
            data["state"] = self.state.to_dict()
        return data

    def __repr__(self):
        return f"<County {self.id} {self.name} {self.status}>"
