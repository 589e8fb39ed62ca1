from countylock.extensions import db
from countylock.models.base import utcnow, isoformat


class TrialStatus:
    ACTIVE = "active"
    EXPIRED = "expired"


class TrialRegistration(db.Model):
    __tablename__ = "trial_registrations"

    id = db.Column(db.Integer, primary_key=True)
    # At most one registration per county, enforced by the database
    county_id = db.Column(
        db.Integer, db.ForeignKey("counties.id"), unique=True, nullable=False
    )
    email = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(50), nullable=False)
    address = db.Column(db.String(500), nullable=False)
    external_user_id = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=TrialStatus.ACTIVE)
    registration_date = db.Column(db.DateTime, nullable=False, default=utcnow)

    county = db.relationship("County", back_populates="trial_registration")

    @property
    def is_active(self):
        return self.status == TrialStatus.ACTIVE

    def to_dict(self):
        return {
            "id": self.id,
            "county_id": self.county_id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "status": self.status,
            "registration_date": isoformat(self.registration_date),
        }
