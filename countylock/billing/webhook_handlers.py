# countylock/billing/webhook_handlers.py
"""
Stripe event handlers for the subscription and auction-claim lifecycle.

Each handler owns its unit of work and commits it. Any change to a
subscription's status is followed by a full county status recompute. Emails
and portal links go out after the commit and never fail the event.
"""

import calendar
import logging
from datetime import datetime, timezone

from flask import current_app

from countylock.billing.idempotency import begin_event, mark_failed, mark_processed
from countylock.domain.county_status import recompute_county_status
from countylock.domain.pricing import credits_for_tier
from countylock.errors import AppError
from countylock.extensions import db
from countylock.models import (
    County,
    CreditReason,
    Offer,
    Subscription,
    SubscriptionStatus,
    User,
)
from countylock.models.base import utcnow
from countylock.notifications.notification_service import NotificationService
from countylock.services.claim_service import ClaimService
from countylock.services.credit_service import CreditService
from countylock.services.stripe_service import stripe_service
from countylock.services.token_service import TokenService

logger = logging.getLogger(__name__)


# ==================== PAYLOAD HELPERS ====================

def _from_timestamp(value):
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


def _one_month_later(dt):
    year = dt.year + dt.month // 12
    month = dt.month % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def subscription_period_end(stripe_subscription):
    """current_period_end moved onto subscription items in newer API versions."""
    value = stripe_subscription.get("current_period_end")
    if not value:
        items = (stripe_subscription.get("items") or {}).get("data") or []
        if items:
            value = items[0].get("current_period_end")
    return _from_timestamp(value)


def invoice_subscription_id(invoice):
    subscription_id = invoice.get("subscription")
    if not subscription_id:
        details = (invoice.get("parent") or {}).get("subscription_details") or {}
        subscription_id = details.get("subscription")
    # Expanded objects carry the id inside
    if isinstance(subscription_id, dict):
        subscription_id = subscription_id.get("id")
    return subscription_id


def invoice_period_end(invoice):
    lines = (invoice.get("lines") or {}).get("data") or []
    if lines:
        period_end = (lines[0].get("period") or {}).get("end")
        if period_end:
            return _from_timestamp(period_end)
    return _from_timestamp(invoice.get("period_end"))


def mirrored_status(stripe_status):
    if stripe_status == "active":
        return SubscriptionStatus.ACTIVE.value
    return SubscriptionStatus.INACTIVE.value


class StripeWebhookHandler:
    """Dispatches verified Stripe events to lifecycle handlers."""

    @staticmethod
    def process_event(event) -> bool:
        """
        Run the handler for an event once.

        Returns False for an event that was already processed. Handler
        failures mark the event failed and propagate so Stripe retries.
        """
        event_id = event["id"]
        event_type = event["type"]

        record = begin_event(event_id, event_type)
        if record is None:
            logger.info(f"Skipping already processed event {event_id} ({event_type})")
            return False

        handler = EVENT_HANDLERS.get(event_type)
        try:
            if handler is None:
                logger.info(f"Unhandled event type: {event_type}")
            else:
                logger.info(f"Processing {event_type}: {event['data']['object'].get('id')}")
                handler(event["data"]["object"])
        except Exception as e:
            db.session.rollback()
            mark_failed(event_id, f"{type(e).__name__}: {e}")
            raise

        mark_processed(record)
        return True

    # ==================== CHECKOUT ====================

    @staticmethod
    def handle_checkout_completed(session):
        metadata = session.get("metadata") or {}
        if session.get("mode") == "payment" and metadata.get("type") == "auction_claim":
            ClaimService.fulfil_paid_claim(session)
            return
        StripeWebhookHandler._handle_subscription_checkout(session)

    @staticmethod
    def _handle_subscription_checkout(session):
        metadata = session.get("metadata") or {}
        customer_id = session.get("customer")
        stripe_subscription_id = session.get("subscription")

        try:
            county_id = int(metadata["countyId"])
            offer_id = int(metadata["offerId"])
        except (KeyError, TypeError, ValueError):
            logger.error(f"Checkout session {session.get('id')} is missing county/offer metadata")
            return

        user = User.query.filter_by(stripe_customer_id=customer_id).first()
        if user is None:
            logger.error(f"User not found for customer: {customer_id}")
            return

        offer = db.session.get(Offer, offer_id)
        if offer is None:
            logger.error(f"Offer not found: {offer_id}")
            return

        county = db.session.get(County, county_id)
        if county is None:
            logger.error(f"County not found: {county_id}")
            return

        subscription = None
        if stripe_subscription_id:
            subscription = Subscription.query.filter_by(
                stripe_subscription_id=stripe_subscription_id
            ).first()

        created = subscription is None
        if created:
            start = utcnow()
            subscription = Subscription(
                user_id=user.id,
                county_id=county_id,
                offer_id=offer_id,
                start_date=start,
                end_date=_one_month_later(start),
                status=SubscriptionStatus.ACTIVE.value,
                stripe_subscription_id=stripe_subscription_id,
            )
            db.session.add(subscription)
        else:
            logger.info(f"Subscription {stripe_subscription_id} already recorded")

        credits = credits_for_tier(offer.tier_level)
        granted = CreditService.grant_credits(
            user, credits, CreditReason.SUBSCRIPTION_START,
            idempotency_key=f"checkout:{session['id']}",
        )

        recompute_county_status(county_id)
        db.session.commit()

        if not created:
            return

        logger.info(
            f"Subscription created for user {user.id}, county {county_id}, tier {offer.tier_level}"
        )
        token = TokenService.generate_activation_token(
            user, credits,
            {"expiresInDays": current_app.config["SUBSCRIPTION_TOKEN_EXPIRES_DAYS"]},
        )
        NotificationService.send_activation(user, TokenService.activation_url(token))
        NotificationService.send_subscription_confirmation(
            user, county, offer, credits if granted else 0
        )

    # ==================== SUBSCRIPTIONS ====================

    @staticmethod
    def handle_subscription_created(stripe_subscription):
        subscription = Subscription.query.filter_by(
            stripe_subscription_id=stripe_subscription["id"]
        ).first()
        if subscription is None:
            # checkout.session.completed creates the row; this may arrive first
            logger.info(f"No local subscription yet for {stripe_subscription['id']}")
            return

        subscription.status = mirrored_status(stripe_subscription.get("status"))
        subscription.stripe_current_period_end = subscription_period_end(stripe_subscription)
        recompute_county_status(subscription.county_id)
        db.session.commit()

    @staticmethod
    def handle_subscription_updated(stripe_subscription):
        subscription = Subscription.query.filter_by(
            stripe_subscription_id=stripe_subscription["id"]
        ).first()
        if subscription is None:
            logger.error(f"Subscription not found in database: {stripe_subscription['id']}")
            return

        period_end = subscription_period_end(stripe_subscription)
        subscription.status = mirrored_status(stripe_subscription.get("status"))
        if period_end:
            subscription.stripe_current_period_end = period_end
            subscription.end_date = period_end

        recompute_county_status(subscription.county_id)
        db.session.commit()

    @staticmethod
    def handle_subscription_deleted(stripe_subscription):
        subscription = Subscription.query.filter_by(
            stripe_subscription_id=stripe_subscription["id"]
        ).first()
        if subscription is None:
            logger.error(f"Subscription not found in database: {stripe_subscription['id']}")
            return

        subscription.status = SubscriptionStatus.CANCELLED.value
        recompute_county_status(subscription.county_id)
        db.session.commit()
        logger.info(f"Subscription {subscription.id} cancelled")

        if subscription.user:
            NotificationService.send_cancellation(
                subscription.user, subscription.county, subscription.end_date or utcnow()
            )

    # ==================== INVOICES ====================

    @staticmethod
    def handle_payment_succeeded(invoice):
        stripe_subscription_id = invoice_subscription_id(invoice)
        if not stripe_subscription_id:
            return

        subscription = Subscription.query.filter_by(
            stripe_subscription_id=stripe_subscription_id
        ).first()
        if subscription is None:
            logger.error(f"Subscription not found for invoice {invoice.get('id')}")
            return

        period_end = invoice_period_end(invoice)
        if period_end:
            subscription.stripe_current_period_end = period_end
            subscription.end_date = period_end
        subscription.status = SubscriptionStatus.ACTIVE.value
        recompute_county_status(subscription.county_id)

        # The first invoice's credits were granted at checkout completion
        credits = 0
        if invoice.get("billing_reason") != "subscription_create" and subscription.offer:
            credits = credits_for_tier(subscription.offer.tier_level)
            if not CreditService.grant_credits(
                subscription.user, credits, CreditReason.SUBSCRIPTION_RENEWAL,
                idempotency_key=f"invoice:{invoice['id']}",
            ):
                credits = 0
        db.session.commit()

        if credits:
            NotificationService.send_renewal_confirmation(
                subscription.user, subscription.county, credits
            )

    @staticmethod
    def handle_payment_failed(invoice):
        stripe_subscription_id = invoice_subscription_id(invoice)
        if not stripe_subscription_id:
            return

        subscription = Subscription.query.filter_by(
            stripe_subscription_id=stripe_subscription_id
        ).first()
        if subscription is None:
            logger.error(f"Subscription not found for invoice {invoice.get('id')}")
            return

        subscription.status = SubscriptionStatus.PAST_DUE.value
        recompute_county_status(subscription.county_id)
        db.session.commit()
        logger.info(f"Subscription {subscription.id} marked past_due")

        user = subscription.user
        if user is None or not user.stripe_customer_id:
            return
        try:
            portal = stripe_service.create_portal_session(
                user.stripe_customer_id, current_app.config["APP_URL"]
            )
        except AppError as e:
            logger.error(f"Could not create billing portal link for user {user.id}: {e.message}")
            return
        NotificationService.send_payment_failed(user, portal.url)


EVENT_HANDLERS = {
    "checkout.session.completed": StripeWebhookHandler.handle_checkout_completed,
    "customer.subscription.created": StripeWebhookHandler.handle_subscription_created,
    "customer.subscription.updated": StripeWebhookHandler.handle_subscription_updated,
    "customer.subscription.deleted": StripeWebhookHandler.handle_subscription_deleted,
    "invoice.payment_succeeded": StripeWebhookHandler.handle_payment_succeeded,
    "invoice.payment_failed": StripeWebhookHandler.handle_payment_failed,
}
