# countylock/services/stripe_service.py
import logging
from functools import wraps
from typing import Optional

import stripe
from flask import current_app

from countylock.domain.pricing import to_cents
from countylock.errors import BillingError, WebhookSignatureError
from countylock.extensions import db

logger = logging.getLogger(__name__)


def translate_stripe_errors(operation: str):
    """Re-raise Stripe SDK failures as BillingError, logged with the operation name."""
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except stripe.StripeError as e:
                logger.error(
                    f"Stripe {operation} failed: {e.user_message or str(e)}",
                    extra={"stripe_operation": operation},
                )
                raise BillingError(f"Payment provider error during {operation}")
        return wrapper
    return decorator


class StripeService:
    """Thin adapter over the Stripe SDK. The only module that talks to Stripe."""

    def init_app(self, app):
        stripe.api_key = app.config.get("STRIPE_SECRET_KEY")
        # No in-request retries; Stripe redelivers webhooks on its own schedule
        stripe.max_network_retries = 0
        stripe.default_http_client = stripe.RequestsClient(
            timeout=app.config.get("STRIPE_TIMEOUT", 10)
        )
        if not stripe.api_key:
            logger.warning("STRIPE_SECRET_KEY not set; payment endpoints will fail")

    # ==================== CUSTOMERS ====================

    @translate_stripe_errors("customer creation")
    def get_or_create_customer(self, user) -> str:
        """Return the user's Stripe customer id, creating and storing one on first use."""
        if user.stripe_customer_id:
            return user.stripe_customer_id

        customer = stripe.Customer.create(
            email=user.email,
            name=user.full_name,
            metadata={"userId": str(user.id)},
        )
        user.stripe_customer_id = customer.id
        db.session.flush()
        logger.info(f"Created Stripe customer {customer.id} for user {user.id}")
        return customer.id

    # ==================== CHECKOUT ====================

    @translate_stripe_errors("subscription checkout")
    def create_subscription_checkout(self, customer_id: str, offer, county,
                                     success_url: str, cancel_url: str):
        if offer.stripe_price_id:
            line_item = {"price": offer.stripe_price_id, "quantity": 1}
        else:
            line_item = {
                "price_data": {
                    "currency": current_app.config["STRIPE_CURRENCY"],
                    "product_data": {
                        "name": f"{offer.name} - {county.display_name}",
                        "description": offer.description or f"Tier {offer.tier_level} county licence",
                    },
                    "unit_amount": to_cents(offer.price),
                    "recurring": {"interval": "month"},
                },
                "quantity": 1,
            }

        metadata = {"countyId": str(county.id), "offerId": str(offer.id)}
        return stripe.checkout.Session.create(
            customer=customer_id,
            mode="subscription",
            payment_method_types=["card"],
            line_items=[line_item],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
            subscription_data={"metadata": metadata},
        )

    @translate_stripe_errors("auction checkout")
    def create_auction_checkout(self, customer_id: str, user, auction, price,
                                success_url: str, cancel_url: str):
        title = auction.title or "HiBid auction"
        return stripe.checkout.Session.create(
            customer=customer_id,
            mode="payment",
            payment_method_types=["card"],
            line_items=[{
                "price_data": {
                    "currency": current_app.config["STRIPE_CURRENCY"],
                    "product_data": {
                        "name": f"Auction claim: {title[:200]}",
                        "description": f"Exclusive claim on auction {auction.external_auction_id}",
                    },
                    "unit_amount": to_cents(price),
                },
                "quantity": 1,
            }],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={
                "type": "auction_claim",
                "userId": str(user.id),
                "auctionId": str(auction.id),
                "pricePaid": str(price),
            },
        )

    @translate_stripe_errors("checkout session lookup")
    def retrieve_checkout_session(self, session_id: str):
        return stripe.checkout.Session.retrieve(session_id)

    # ==================== PORTAL ====================

    @translate_stripe_errors("billing portal")
    def create_portal_session(self, customer_id: str, return_url: Optional[str] = None):
        return stripe.billing_portal.Session.create(
            customer=customer_id,
            return_url=return_url or current_app.config["APP_URL"],
        )

    # ==================== WEBHOOKS ====================

    def construct_event(self, payload: bytes, signature: str):
        """Verify a webhook payload against STRIPE_WEBHOOK_SECRET."""
        try:
            return stripe.Webhook.construct_event(
                payload, signature, current_app.config["STRIPE_WEBHOOK_SECRET"]
            )
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError(f"Webhook Error: {e}")
        except ValueError as e:
            raise WebhookSignatureError(f"Webhook Error: invalid payload ({e})")


stripe_service = StripeService()
