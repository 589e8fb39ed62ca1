# countylock/extensions.py
"""
Flask extensions initialization module.
Extensions are created unbound here and attached to the app in init_extensions.
"""

import logging

from flask import jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_mail import Mail
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
jwt = JWTManager()
cors = CORS()
migrate = Migrate()
mail = Mail()
limiter = Limiter(key_func=get_remote_address)

logger = logging.getLogger(__name__)


def init_extensions(app):
    """Initialize all Flask extensions."""
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", [])}},
        supports_credentials=False,
        max_age=600,
    )

    app.config.setdefault("RATELIMIT_DEFAULT", "300 per hour")
    limiter.init_app(app)

    setup_jwt_callbacks()
    logger.info("All extensions initialized")
    return app


def setup_jwt_callbacks():
    """JSON bodies for JWT failures, in the same envelope as AppError."""

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({
            "success": False,
            "error": "token_expired",
            "message": "The token has expired. Please log in again.",
        }), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({
            "success": False,
            "error": "invalid_token",
            "message": "Invalid token. Please provide a valid authentication token.",
        }), 401

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({
            "success": False,
            "error": "authorization_required",
            "message": "Authentication required. Please log in.",
        }), 401


__all__ = ["db", "jwt", "cors", "migrate", "mail", "limiter", "init_extensions"]
