from flask_jwt_extended import get_jwt_identity

from countylock.errors import AuthenticationError
from countylock.extensions import db
from countylock.models import User


def get_current_user() -> User:
    """Load the user behind the request's JWT. Call inside a @jwt_required view."""
    identity = get_jwt_identity()
    try:
        user = db.session.get(User, int(identity))
    except (TypeError, ValueError):
        user = None
    if user is None:
        raise AuthenticationError("Unauthorized. Please log in or register.")
    return user
