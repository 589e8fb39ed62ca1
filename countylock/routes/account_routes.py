from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from countylock.auth import get_current_user
from countylock.models import CreditReason
from countylock.services.credit_service import CreditService
from countylock.services.subscription_service import SubscriptionService

bp = Blueprint("account", __name__, url_prefix="/api")


@bp.route("/subscriptions", methods=["GET"])
@jwt_required()
def list_subscriptions():
    user = get_current_user()
    return jsonify({"success": True, "data": SubscriptionService.list_user_subscriptions(user)})


@bp.route("/credits/balance", methods=["GET"])
@jwt_required()
def credit_balance():
    user = get_current_user()
    return jsonify({"success": True, "data": CreditService.get_balance(user)})


@bp.route("/credits/use", methods=["POST"])
@jwt_required()
def use_credits():
    user = get_current_user()
    data = request.get_json(silent=True) or {}
    balance = CreditService.use_credits(
        user,
        data.get("amount"),
        reason=data.get("reason") or CreditReason.AUCTION_USAGE,
        auction_id=data.get("auctionId"),
    )
    return jsonify({"success": True, "data": {"credits": balance}})
