# countylock/routes/stripe_routes.py
import logging

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from countylock.auth import get_current_user
from countylock.billing.webhook_handlers import StripeWebhookHandler
from countylock.errors import WebhookSignatureError
from countylock.extensions import limiter
from countylock.services.claim_service import ClaimService
from countylock.services.stripe_service import stripe_service
from countylock.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

bp = Blueprint("stripe", __name__, url_prefix="/api/stripe")


@bp.route("/checkout", methods=["POST"])
@jwt_required()
def create_checkout():
    """Start a subscription checkout for {offerId, countyId}."""
    user = get_current_user()
    data = request.get_json(silent=True) or {}
    session = SubscriptionService.start_subscription_checkout(
        user, data.get("offerId"), data.get("countyId")
    )
    return jsonify({"success": True, "data": session})


@bp.route("/checkout-auction", methods=["POST"])
@limiter.limit("20 per hour")
def create_auction_checkout():
    data = request.get_json(silent=True) or {}
    session = ClaimService.start_paid_claim(
        data.get("url"),
        data.get("email"),
        phone=data.get("phone"),
        first_name=data.get("firstName"),
        last_name=data.get("lastName"),
    )
    return jsonify({"success": True, "data": session})


@bp.route("/portal", methods=["POST"])
@jwt_required()
def create_portal():
    user = get_current_user()
    data = request.get_json(silent=True) or {}
    url = SubscriptionService.create_portal_url(user, data.get("returnUrl"))
    return jsonify({"success": True, "data": {"url": url}})


@bp.route("/webhook", methods=["POST"])
@limiter.exempt
def stripe_webhook():
    payload = request.get_data()
    signature = request.headers.get("Stripe-Signature")
    if not signature:
        return jsonify({"error": "Missing stripe-signature header"}), 400

    try:
        event = stripe_service.construct_event(payload, signature)
    except WebhookSignatureError as e:
        logger.warning(f"Webhook signature verification failed: {e.message}")
        return jsonify({"error": e.message}), 400

    try:
        processed = StripeWebhookHandler.process_event(event)
    except Exception:
        logger.error(f"Webhook handler failed for {event['type']} {event['id']}", exc_info=True)
        return jsonify({"error": "Webhook handler failed"}), 500

    if not processed:
        return jsonify({"received": True, "duplicate": True})
    return jsonify({"received": True})
