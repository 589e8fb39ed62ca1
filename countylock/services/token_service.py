# countylock/services/token_service.py
"""
Stateless activation tokens for the cross-app handoff.

A token is ``base64(json payload) + "." + hex(HMAC-SHA256(base64 payload))``
signed with CROSS_APP_SECRET. The payload is readable by anyone holding the
token; the signature only prevents tampering.
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Optional
from urllib.parse import quote

from flask import current_app

from countylock.errors import ValidationError


class TokenService:

    @staticmethod
    def _secret() -> bytes:
        return current_app.config["CROSS_APP_SECRET"].encode("utf-8")

    @staticmethod
    def sign(encoded_payload: str) -> str:
        return hmac.new(
            TokenService._secret(), encoded_payload.encode("utf-8"), hashlib.sha256
        ).hexdigest()

    @staticmethod
    def generate_activation_token(user, credits: int = 0, extra_payload: Optional[dict] = None,
                                  now: Optional[float] = None) -> str:
        """Mint a signed token carrying identity and a credit grant for the main app."""
        now = time.time() if now is None else now
        ttl_hours = current_app.config["ACTIVATION_TOKEN_TTL_HOURS"]

        payload = {
            "uid": user.id,
            "email": user.email,
            "name": user.first_name or "User",
            "credits": credits,
            # Milliseconds since the epoch
            "exp": int((now + ttl_hours * 3600) * 1000),
        }
        payload.update(extra_payload or {})

        encoded = base64.b64encode(
            json.dumps(payload, separators=(",", ":")).encode("utf-8")
        ).decode("ascii")
        return f"{encoded}.{TokenService.sign(encoded)}"

    @staticmethod
    def verify_activation_token(token: str, now: Optional[float] = None) -> dict:
        """Check signature and expiry and return the payload."""
        try:
            encoded, signature = token.rsplit(".", 1)
        except (AttributeError, ValueError):
            raise ValidationError("Malformed activation token")

        if not hmac.compare_digest(TokenService.sign(encoded), signature):
            raise ValidationError("Invalid activation token signature")

        try:
            payload = json.loads(base64.b64decode(encoded, validate=True))
        except ValueError:
            raise ValidationError("Malformed activation token")

        now = time.time() if now is None else now
        if payload.get("exp", 0) < now * 1000:
            raise ValidationError("Activation token has expired")
        return payload

    @staticmethod
    def activation_url(token: str) -> str:
        return f"{current_app.config['MAIN_APP_URL']}/auth/activate?token={quote(token, safe='')}"
