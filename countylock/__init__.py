"""
Flask application factory for the county licensing service.
"""

import logging

import sentry_sdk
from flask import Flask, jsonify
from sentry_sdk.integrations.flask import FlaskIntegration
from sqlalchemy import text

from countylock.config import Environment, get_config
from countylock.error_handlers import register_error_handlers
from countylock.extensions import db, init_extensions
from countylock.logging_config import configure_logging
from countylock.middleware.request_id import init_request_id_middleware
from countylock.services.stripe_service import stripe_service

logger = logging.getLogger(__name__)


def setup_sentry(app: Flask) -> None:
    """Initialize Sentry error tracking"""
    dsn = app.config.get("SENTRY_DSN")
    if not dsn or app.config.get("ENVIRONMENT") == Environment.TESTING.value:
        return
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
        environment=app.config.get("ENVIRONMENT"),
        release=app.config.get("APP_VERSION"),
        send_default_pii=False,
    )
    logger.info("Sentry error tracking initialized")


def register_blueprints(app: Flask) -> None:
    from countylock.routes.account_routes import bp as account_bp
    from countylock.routes.auction_routes import bp as auctions_bp
    from countylock.routes.auth_routes import bp as auth_bp
    from countylock.routes.catalog_routes import bp as catalog_bp
    from countylock.routes.debug_routes import bp as debug_bp
    from countylock.routes.stripe_routes import bp as stripe_bp
    from countylock.routes.trial_routes import bp as trials_bp

    for bp in (auth_bp, catalog_bp, auctions_bp, stripe_bp, account_bp, trials_bp, debug_bp):
        app.register_blueprint(bp)


def create_app(config_name=None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    configure_logging(app)
    setup_sentry(app)
    init_extensions(app)
    stripe_service.init_app(app)
    init_request_id_middleware(app)
    register_error_handlers(app)
    register_blueprints(app)

    from countylock.commands import register_commands
    register_commands(app)

    @app.route("/health")
    def health():
        try:
            db.session.execute(text("SELECT 1"))
            database = "ok"
        except Exception as e:
            logger.error(f"Health check database failure: {e}")
            database = "unavailable"
        status = 200 if database == "ok" else 503
        return jsonify({"status": "ok" if status == 200 else "degraded", "database": database}), status

    logger.info(f"{app.config['APP_NAME']} started in {app.config['ENVIRONMENT']} mode")
    return app
