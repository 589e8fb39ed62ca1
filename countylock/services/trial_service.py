# countylock/services/trial_service.py
import logging
import re

import requests
from flask import current_app
from sqlalchemy.exc import IntegrityError

from countylock.domain.county_status import recompute_county_status
from countylock.errors import (
    AppError,
    CountyUnavailableForTrial,
    NotFoundError,
    TrialAlreadyClaimed,
    UpstreamError,
    ValidationError,
)
from countylock.extensions import db
from countylock.models import County, CountyStatus, TrialRegistration, TrialStatus
from countylock.models.base import utcnow

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[\d\s\-\+\(\)]{10,}$")
SPECIAL_CHAR_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")

REQUIRED_FIELDS = ("firstName", "lastName", "email", "phone", "address", "password", "countyId")


def is_strong_password(password: str) -> bool:
    return (
        len(password) >= 8
        and re.search(r"[A-Z]", password) is not None
        and re.search(r"[a-z]", password) is not None
        and re.search(r"\d", password) is not None
        and SPECIAL_CHAR_RE.search(password) is not None
    )


def validate_registration(form: dict) -> None:
    if any(not form.get(field) for field in REQUIRED_FIELDS):
        raise ValidationError("All fields are required")
    if not EMAIL_RE.match(form["email"]):
        raise ValidationError("Invalid email format")
    if not PHONE_RE.match(form["phone"]):
        raise ValidationError("Invalid phone number format")
    if not is_strong_password(form["password"]):
        raise ValidationError("Password does not meet strength requirements")


class TrialService:

    @staticmethod
    def _forward_registration(payload: dict) -> dict:
        """Send the registration to the external trial provisioning webhook."""
        url = current_app.config.get("TRIAL_WEBHOOK_URL")
        if not url:
            logger.error("TRIAL_WEBHOOK_URL is not configured")
            raise AppError("Registration service is not configured", status_code=500)

        try:
            resp = requests.post(
                url,
                json=payload,
                headers={"bidsquire": current_app.config.get("TRIAL_WEBHOOK_API_KEY") or ""},
                timeout=current_app.config["TRIAL_WEBHOOK_TIMEOUT"],
            )
        except requests.Timeout:
            logger.error(f"Trial webhook timed out for {payload['email']}")
            raise UpstreamError("Registration request timed out. Please try again.", status_code=504)
        except requests.ConnectionError:
            logger.error(f"Trial webhook unreachable at {url}")
            raise UpstreamError("Unable to connect to registration service", status_code=503)
        except requests.RequestException as e:
            logger.error(f"Trial webhook request failed: {e}")
            raise UpstreamError("Failed to complete registration", status_code=500)

        try:
            data = resp.json()
        except ValueError:
            data = {"rawResponse": resp.text}
        if not isinstance(data, dict):
            data = {"rawResponse": data}

        if not resp.ok:
            logger.error(f"Trial webhook rejected registration: {resp.status_code} {data}")
            raise UpstreamError(
                data.get("error") or "Failed to register trial",
                status_code=resp.status_code,
                payload={"details": data.get("message")},
            )
        return data

    @staticmethod
    def register_trial(form: dict) -> dict:
        """
        Claim a county's single free trial.

        The trial row is inserted before the upstream call so the unique
        county constraint decides concurrent attempts; it is only committed
        once the upstream registration succeeds.
        """
        validate_registration(form)

        try:
            county_id = int(form["countyId"])
        except (TypeError, ValueError):
            raise ValidationError("Invalid countyId")

        county = db.session.get(County, county_id)
        if county is None:
            raise NotFoundError("County not found")

        if county.status != CountyStatus.AVAILABLE.value:
            raise CountyUnavailableForTrial(
                "Free trial is not available for this county",
                payload={"county_status": county.status},
            )

        if TrialRegistration.query.filter_by(
            county_id=county_id, status=TrialStatus.ACTIVE
        ).first():
            raise TrialAlreadyClaimed(
                "Free trial has already been claimed for this county",
                payload={"details": "Only one free trial is allowed per county"},
            )

        trial = TrialRegistration(
            county_id=county_id,
            email=form["email"].strip().lower(),
            first_name=form["firstName"],
            last_name=form["lastName"],
            phone=form["phone"],
            address=form["address"],
            status=TrialStatus.ACTIVE,
        )
        db.session.add(trial)
        try:
            db.session.flush()
        except IntegrityError:
            db.session.rollback()
            raise TrialAlreadyClaimed(
                "Free trial has already been claimed for this county",
                payload={"details": "Only one free trial is allowed per county"},
            )

        county_name = form.get("countyName") or county.name
        try:
            upstream = TrialService._forward_registration({
                "firstName": form["firstName"],
                "lastName": form["lastName"],
                "email": form["email"],
                "phone": form["phone"],
                "address": form["address"],
                "password": form["password"],
                "countyId": county_id,
                "countyName": county_name,
                "registrationDate": utcnow().isoformat() + "Z",
                "source": "offer-page",
            })
        except AppError:
            db.session.rollback()
            raise

        external_id = upstream.get("userId") or upstream.get("id")
        trial.external_user_id = str(external_id) if external_id is not None else None
        county.free_trial_count = (county.free_trial_count or 0) + 1
        recompute_county_status(county_id)
        db.session.commit()
        logger.info(f"Trial registered for county {county_id}")

        return {
            "email": trial.email,
            "countyId": county_id,
            "countyName": county_name,
            "externalUserId": trial.external_user_id,
        }
