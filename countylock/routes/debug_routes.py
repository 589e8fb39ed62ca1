"""Operator tooling. Disabled unless DEBUG_ENDPOINTS_ENABLED is set."""

import logging

from flask import Blueprint, abort, current_app, jsonify, request

from countylock.errors import ValidationError
from countylock.services.claim_service import ClaimService
from countylock.services.stripe_service import stripe_service

logger = logging.getLogger(__name__)

bp = Blueprint("debug", __name__, url_prefix="/api/debug")


@bp.before_request
def require_debug_enabled():
    if not current_app.config.get("DEBUG_ENDPOINTS_ENABLED"):
        abort(404)


@bp.route("/claim-success", methods=["GET"])
def replay_claim_success():
    """Re-run auction claim fulfilment for a paid Checkout Session."""
    session_id = request.args.get("session_id")
    if not session_id:
        raise ValidationError("session_id is required")

    session = stripe_service.retrieve_checkout_session(session_id)
    metadata = session.get("metadata") or {}
    if metadata.get("type") != "auction_claim":
        raise ValidationError("Session is not an auction claim")
    if session.get("payment_status") != "paid":
        raise ValidationError("Session has not been paid")

    logger.warning(f"Manual claim replay for session {session_id}")
    claim = ClaimService.fulfil_paid_claim(session)
    return jsonify({
        "success": claim is not None,
        "data": claim.to_dict() if claim is not None else None,
    })
