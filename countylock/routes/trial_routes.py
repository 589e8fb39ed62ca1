from flask import Blueprint, jsonify, request

from countylock.extensions import limiter
from countylock.services.trial_service import TrialService

bp = Blueprint("trials", __name__, url_prefix="/api")


@bp.route("/trial-registration", methods=["POST"])
@limiter.limit("10 per hour")
def register_trial():
    result = TrialService.register_trial(request.get_json(silent=True) or {})
    return jsonify({
        "success": True,
        "message": "Registration successful",
        "data": result,
    }), 201
