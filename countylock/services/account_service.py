# countylock/services/account_service.py
import logging
import re
import secrets

from flask import current_app
from flask_jwt_extended import create_access_token

from countylock.errors import AuthenticationError, ConflictError, ValidationError
from countylock.extensions import db
from countylock.models import User
from countylock.notifications.notification_service import NotificationService
from countylock.services.token_service import TokenService

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _require_email(email, message="Invalid email format"):
    if not email:
        raise ValidationError("Email is required")
    if not EMAIL_RE.match(email.strip()):
        raise ValidationError(message)
    return User.normalize_email(email)


def issue_access_token(user) -> str:
    return create_access_token(identity=str(user.id), additional_claims={"email": user.email})


class AccountService:

    @staticmethod
    def register(data: dict) -> dict:
        """
        Create an account with a password and return an access token.

        A known email is recognised without a token so checkout can proceed;
        a phone number owned by another email is a conflict.
        """
        email = _require_email(data.get("email"))
        phone = (data.get("phone") or "").strip() or None

        existing = User.query.filter_by(email=email).first()
        if existing is not None:
            return {"created": False, "user": {"id": existing.id, "email": existing.email}}

        if phone and User.query.filter_by(phone=phone).first():
            raise ConflictError("Phone number associated with another account", status_code=409)

        # Password-less registrations get a random one; the user sets theirs on activation
        password = data.get("password") or secrets.token_hex(16) + "A1!"

        user = User(
            email=email,
            first_name=(data.get("firstName") or "").strip() or None,
            last_name=(data.get("lastName") or "").strip() or None,
            phone=phone,
            address=data.get("address"),
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        logger.info(f"Registered user {user.id}")

        return {
            "created": True,
            "user": user.to_dict(),
            "access_token": issue_access_token(user),
        }

    @staticmethod
    def login(email, password) -> dict:
        if not email or not password:
            raise ValidationError("Email and password are required")
        user = User.find_by_email(email)
        if user is None or not user.check_password(password):
            raise AuthenticationError("Invalid email or password")
        return {"user": user.to_dict(), "access_token": issue_access_token(user)}

    @staticmethod
    def signup(data: dict) -> dict:
        """
        Minimal signup: create the account and email an activation link that
        carries the trial credit grant. Known emails just get a fresh link.
        """
        first_name = (data.get("firstName") or "").strip()
        last_name = (data.get("lastName") or "").strip()
        if not data.get("email") or not first_name or not last_name:
            raise ValidationError("First name, last name, and email are required")
        email = _require_email(data.get("email"), "Please enter a valid email address")

        credits = current_app.config["AUCTION_CLAIM_BONUS_CREDITS"]
        user = User.query.filter_by(email=email).first()
        if user is not None:
            # Same response either way so registered emails are not disclosed
            token = TokenService.generate_activation_token(user, credits)
            NotificationService.send_activation(user, TokenService.activation_url(token))
            return {"created": False, "message": "Check your email to activate your account!"}

        user = User(email=email, first_name=first_name, last_name=last_name)
        user.set_password(secrets.token_hex(16) + "A1!")
        db.session.add(user)
        db.session.commit()
        logger.info(f"Signup created user {user.id}")

        token = TokenService.generate_activation_token(user, credits)
        NotificationService.send_activation(user, TokenService.activation_url(token))
        NotificationService.send_welcome(user)
        return {
            "created": True,
            "message": "Account created! Check your email to activate your account.",
        }
