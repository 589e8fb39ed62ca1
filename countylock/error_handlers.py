# countylock/error_handlers.py
import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from countylock.errors import AppError
from countylock.extensions import db

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    """Register all error handlers for the application"""

    @app.errorhandler(AppError)
    def handle_app_error(error):
        if error.status_code >= 500:
            logger.error(f"{error.__class__.__name__}: {error.message} - Path: {request.path}")
        else:
            logger.info(f"{error.__class__.__name__}: {error.message} - Path: {request.path}")
        response = jsonify(error.to_dict())
        response.status_code = error.status_code
        return response

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handles known HTTP errors (404, 405, 429, ...)"""
        logger.warning(f"{e.code} {e.name}: {request.method} {request.path}")
        return jsonify({
            "success": False,
            "error": e.name,
            "message": e.description,
        }), e.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        """Handles all unexpected server errors without leaking stack traces"""
        logger.error(f"Unhandled exception on {request.method} {request.path}", exc_info=e)
        db.session.rollback()
        return jsonify({
            "success": False,
            "error": "An unexpected error occurred",
            "message": "Something went wrong. Please try again later.",
        }), 500
