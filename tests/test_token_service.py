import base64
import json

import pytest

from countylock.errors import ValidationError
from countylock.services.token_service import TokenService

NOW = 1_700_000_000.0


def _decode(token):
    encoded, _ = token.split(".")
    return json.loads(base64.b64decode(encoded))


def test_token_payload_shape(user):
    token = TokenService.generate_activation_token(user, 100, {"expiresInDays": 30}, now=NOW)
    payload = _decode(token)

    assert payload["uid"] == user.id
    assert payload["email"] == user.email
    assert payload["name"] == user.first_name
    assert payload["credits"] == 100
    assert payload["expiresInDays"] == 30
    # 24h later, in milliseconds
    assert payload["exp"] == int((NOW + 24 * 3600) * 1000)


def test_name_falls_back_to_user(make_user):
    anonymous = make_user(first_name=None)
    payload = _decode(TokenService.generate_activation_token(anonymous, now=NOW))
    assert payload["name"] == "User"


def test_signature_recomputes_over_payload(user):
    token = TokenService.generate_activation_token(user, 500, now=NOW)
    encoded, signature = token.split(".")

    assert TokenService.sign(encoded) == signature
    assert len(signature) == 64
    assert TokenService.verify_activation_token(token, now=NOW)["credits"] == 500


def test_tampered_payload_is_rejected(user):
    token = TokenService.generate_activation_token(user, 500, now=NOW)
    encoded, signature = token.split(".")
    forged = dict(_decode(token), credits=50_000)
    forged_encoded = base64.b64encode(json.dumps(forged).encode()).decode()

    with pytest.raises(ValidationError):
        TokenService.verify_activation_token(f"{forged_encoded}.{signature}", now=NOW)


def test_any_changed_byte_breaks_signature(user):
    token = TokenService.generate_activation_token(user, 500, now=NOW)
    encoded, signature = token.split(".")
    flipped = ("B" if encoded[0] != "B" else "C") + encoded[1:]

    assert TokenService.sign(flipped) != signature


def test_expired_token_is_rejected(user):
    token = TokenService.generate_activation_token(user, now=NOW)

    with pytest.raises(ValidationError, match="expired"):
        TokenService.verify_activation_token(token, now=NOW + 25 * 3600)


def test_wrong_secret_is_rejected(app, user):
    token = TokenService.generate_activation_token(user, now=NOW)
    app.config["CROSS_APP_SECRET"] = "another-secret"

    with pytest.raises(ValidationError):
        TokenService.verify_activation_token(token, now=NOW)


def test_malformed_token(app):
    with pytest.raises(ValidationError):
        TokenService.verify_activation_token("not-a-token", now=NOW)


def test_activation_url(app):
    url = TokenService.activation_url("abc+/=.ff")
    assert url == "http://main.test/auth/activate?token=abc%2B%2F%3D.ff"
