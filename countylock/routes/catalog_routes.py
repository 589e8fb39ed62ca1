"""Read-only geography and offer endpoints."""

from flask import Blueprint, jsonify

from countylock.domain.pricing import county_tier_quote
from countylock.errors import NotFoundError
from countylock.extensions import db
from countylock.models import County, Offer, State, TrialRegistration, TrialStatus

bp = Blueprint("catalog", __name__, url_prefix="/api")


def _get_or_404(model, object_id, label):
    obj = db.session.get(model, object_id)
    if obj is None:
        raise NotFoundError(f"{label} not found")
    return obj


@bp.route("/states", methods=["GET"])
def list_states():
    states = State.query.order_by(State.name).all()
    return jsonify({"success": True, "data": [s.to_dict() for s in states]})


@bp.route("/counties/<int:state_id>", methods=["GET"])
def list_counties(state_id):
    _get_or_404(State, state_id, "State")
    counties = County.query.filter_by(state_id=state_id).order_by(County.name).all()
    return jsonify({"success": True, "data": [c.to_dict() for c in counties]})


@bp.route("/county/<int:county_id>", methods=["GET"])
def get_county(county_id):
    county = _get_or_404(County, county_id, "County")
    return jsonify({"success": True, "data": county.to_dict(include_state=True)})


@bp.route("/county-status/<int:county_id>", methods=["GET"])
def get_county_status(county_id):
    county = _get_or_404(County, county_id, "County")
    trial = TrialRegistration.query.filter_by(
        county_id=county_id, status=TrialStatus.ACTIVE
    ).first()

    return jsonify({
        "success": True,
        "data": {
            "county_id": county.id,
            "name": county.name,
            "status": county.status,
            "state_id": county.state_id,
            "population": county.population,
            "has_active_trial": trial is not None,
            # Contact details stay private
            "trial_info": {
                "registration_date": trial.registration_date.isoformat(),
            } if trial else None,
            "pricing": county_tier_quote(county.population),
        },
    })


@bp.route("/offers/<int:offer_id>", methods=["GET"])
def get_offer(offer_id):
    offer = _get_or_404(Offer, offer_id, "Offer")
    return jsonify({"success": True, "data": offer.to_dict()})
