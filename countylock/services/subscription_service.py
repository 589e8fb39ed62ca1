# countylock/services/subscription_service.py
import logging

from flask import current_app

from countylock.errors import (
    CountyFullyLocked,
    DuplicateSubscription,
    NotFoundError,
    ValidationError,
)
from countylock.extensions import db
from countylock.models import County, CountyStatus, Offer, Subscription, SubscriptionStatus
from countylock.services.stripe_service import stripe_service

logger = logging.getLogger(__name__)


def _parse_id(value, field):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}")


class SubscriptionService:

    @staticmethod
    def start_subscription_checkout(user, offer_id, county_id) -> dict:
        """
        Validate a subscription request and open a Stripe Checkout Session.

        Both guards are request-time checks; the Subscription row itself is
        only created once Stripe reports the checkout as completed.
        """
        if not offer_id or not county_id:
            raise ValidationError("Missing required fields: offerId, countyId")

        offer = db.session.get(Offer, _parse_id(offer_id, "offerId"))
        if offer is None:
            raise NotFoundError("Offer not found")

        county = db.session.get(County, _parse_id(county_id, "countyId"))
        if county is None:
            raise NotFoundError("County not found")

        if county.status == CountyStatus.FULLY_LOCKED.value:
            raise CountyFullyLocked(
                f"{county.display_name} is fully locked and unavailable for subscription."
            )

        existing = Subscription.query.filter_by(
            user_id=user.id,
            county_id=county.id,
            status=SubscriptionStatus.ACTIVE.value,
        ).first()
        if existing is not None:
            raise DuplicateSubscription()

        customer_id = stripe_service.get_or_create_customer(user)
        db.session.commit()

        app_url = current_app.config["APP_URL"]
        session = stripe_service.create_subscription_checkout(
            customer_id, offer, county,
            success_url=f"{app_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{app_url}/checkout/cancel",
        )
        logger.info(
            f"Subscription checkout {session.id} for user {user.id}, "
            f"county {county.id}, offer {offer.id}"
        )
        return {"sessionId": session.id, "url": session.url}

    @staticmethod
    def list_user_subscriptions(user):
        subscriptions = (
            user.subscriptions
            .order_by(Subscription.created_at.desc())
            .all()
        )
        return [sub.to_dict() for sub in subscriptions]

    @staticmethod
    def create_portal_url(user, return_url=None) -> str:
        if not user.stripe_customer_id:
            raise NotFoundError("No billing account found for this user")
        session = stripe_service.create_portal_session(
            user.stripe_customer_id,
            return_url or f"{current_app.config['APP_URL']}/account/subscriptions",
        )
        return session.url
