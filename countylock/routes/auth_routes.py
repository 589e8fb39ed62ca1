from flask import Blueprint, jsonify, request

from countylock.extensions import limiter
from countylock.services.account_service import AccountService

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@bp.route("/register", methods=["POST"])
@limiter.limit("20 per hour")
def register():
    result = AccountService.register(request.get_json(silent=True) or {})
    if not result["created"]:
        return jsonify({"success": True, "message": "User identified", "data": result["user"]})
    return jsonify({
        "success": True,
        "message": "User registered successfully",
        "data": result["user"],
        "access_token": result["access_token"],
    }), 201


@bp.route("/login", methods=["POST"])
@limiter.limit("10 per minute")
def login():
    data = request.get_json(silent=True) or {}
    result = AccountService.login(data.get("email"), data.get("password"))
    return jsonify({"success": True, "data": result["user"], "access_token": result["access_token"]})


@bp.route("/signup", methods=["POST"])
@limiter.limit("20 per hour")
def signup():
    result = AccountService.signup(request.get_json(silent=True) or {})
    return jsonify({"success": True, "message": result["message"]})
