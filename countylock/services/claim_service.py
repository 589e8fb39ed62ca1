# countylock/services/claim_service.py
"""
Auction claims.

Exclusivity is decided by the unique constraint on
``claimed_auctions.auction_id``. The existence checks below only produce a
friendlier error early; the IntegrityError on insert is what settles a race.
"""

import logging
from decimal import Decimal
from typing import Optional
from urllib.parse import quote

from flask import current_app
from sqlalchemy.exc import IntegrityError

from countylock.domain.pricing import (
    calculate_auction_price,
    is_trial_eligible,
    price_breakdown,
)
from countylock.errors import (
    AppError,
    AuctionAlreadyClaimed,
    InvalidAuctionURL,
    PhoneInUse,
    ValidationError,
)
from countylock.extensions import db
from countylock.models import (
    Auction,
    ClaimedAuction,
    County,
    CountyStatus,
    CreditReason,
    User,
    UserType,
)
from countylock.notifications.notification_service import NotificationService
from countylock.services.auction_parser import extract_auction_id, is_valid_auction_url
from countylock.services.credit_service import CreditService
from countylock.services.main_app_sync import auction_payload, provision_on_main_app
from countylock.services.scraper import scrape_auction_data
from countylock.services.stripe_service import stripe_service
from countylock.services.token_service import TokenService

logger = logging.getLogger(__name__)

MAX_URL_LENGTH = 495
MAX_TITLE_LENGTH = 495
MAX_ZIP_LENGTH = 20


class ClaimService:

    # ==================== LOOKUPS ====================

    @staticmethod
    def _require_auction_id(url) -> str:
        external_id = extract_auction_id(url)
        if not external_id:
            raise InvalidAuctionURL("Could not extract Auction ID from URL")
        return external_id

    @staticmethod
    def _existing_claim(external_id) -> Optional[ClaimedAuction]:
        return (
            ClaimedAuction.query
            .join(Auction, ClaimedAuction.auction_id == Auction.id)
            .filter(Auction.external_auction_id == external_id)
            .first()
        )

    @staticmethod
    def check_auction(url) -> dict:
        """Report whether an auction is claimable, with its price quote when it is."""
        if not is_valid_auction_url(url):
            raise InvalidAuctionURL()
        external_id = ClaimService._require_auction_id(url)

        claim = ClaimService._existing_claim(external_id)
        if claim is not None:
            return {
                "status": "LOCKED",
                "message": "This auction has already been claimed.",
                "data": {
                    "auctionId": external_id,
                    "title": claim.auction.title,
                    "claimedAt": claim.claimed_at.isoformat(),
                },
            }

        scraped = scrape_auction_data(url)
        price = calculate_auction_price(scraped.item_count)
        return {
            "status": "AVAILABLE",
            "message": "Auction is available for claiming.",
            "data": {
                "auctionId": external_id,
                **scraped.to_dict(),
                "price": float(price),
                "isTrialEligible": is_trial_eligible(scraped.item_count),
                "breakdown": price_breakdown(scraped.item_count),
            },
        }

    # ==================== FIND OR CREATE ====================

    @staticmethod
    def find_or_create_claimant(email, phone, user_type=UserType.STANDARD.value,
                                first_name=None, last_name=None) -> User:
        """
        Match a claimant by email, creating the account if needed.

        A phone number already attached to a different email is rejected.
        """
        email = User.normalize_email(email)
        phone = (phone or "").strip()

        if phone:
            clash = User.query.filter(User.phone == phone, User.email != email).first()
            if clash is not None:
                raise PhoneInUse()

        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(
                email=email,
                phone=phone or None,
                first_name=first_name,
                last_name=last_name,
                user_type=user_type,
                has_used_free_trial=user_type == UserType.FREE_CLAIM.value,
            )
            db.session.add(user)
            try:
                db.session.commit()
            except IntegrityError:
                db.session.rollback()
                user = User.query.filter_by(email=email).first()
                if user is None:
                    raise
            else:
                logger.info(f"Created {user_type} user {user.id}")
        else:
            if phone and not user.phone:
                user.phone = phone
            if first_name and not user.first_name:
                user.first_name = first_name
            if last_name and not user.last_name:
                user.last_name = last_name
            db.session.commit()
        return user

    @staticmethod
    def _default_county() -> County:
        county = (
            County.query.filter_by(status=CountyStatus.AVAILABLE.value).order_by(County.id).first()
            or County.query.order_by(County.id).first()
        )
        if county is None:
            raise AppError("System error: No county configured.", status_code=500)
        return county

    @staticmethod
    def find_or_create_auction(external_id, url, scraped, is_free_claim=False) -> Auction:
        """First writer wins on the external auction id; later callers get that row."""
        auction = Auction.query.filter_by(external_auction_id=external_id).first()
        if auction is not None:
            return auction

        auction = Auction(
            external_auction_id=external_id,
            url=url[:MAX_URL_LENGTH],
            title=(scraped.title or "Untitled Auction")[:MAX_TITLE_LENGTH],
            county_id=ClaimService._default_county().id,
            zip_code=scraped.zip_code[:MAX_ZIP_LENGTH] if scraped.zip_code else None,
            item_count=scraped.item_count,
            is_free_claim=is_free_claim,
        )
        db.session.add(auction)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            auction = Auction.query.filter_by(external_auction_id=external_id).first()
            if auction is None:
                # Same URL already stored under another id, e.g. a bulk import
                auction = Auction.query.filter_by(url=url[:MAX_URL_LENGTH]).first()
            if auction is None:
                raise
            if auction.external_auction_id is None:
                auction.external_auction_id = external_id
                db.session.commit()
        return auction

    @staticmethod
    def _insert_claim(user, auction, price_paid) -> Optional[ClaimedAuction]:
        """Insert the claim row, or return None when another claim already holds the auction."""
        claim = ClaimedAuction(user_id=user.id, auction_id=auction.id, price_paid=price_paid)
        db.session.add(claim)
        try:
            db.session.flush()
        except IntegrityError:
            db.session.rollback()
            return None
        return claim

    @staticmethod
    def _handoff(user, credits, auction, scraped=None, extra_payload=None, is_free=False):
        """Token, main app sync and emails. None of these can fail the claim."""
        token = TokenService.generate_activation_token(user, credits, extra_payload)
        activation_url = TokenService.activation_url(token)
        logger.info(f"Activation link issued for user {user.id}")

        provision_on_main_app(user, credits, auction_payload(auction, scraped))
        NotificationService.send_activation(user, activation_url)
        NotificationService.send_auction_claim(user, auction, is_free=is_free)
        return token

    # ==================== FREE CLAIM ====================

    @staticmethod
    def claim_auction_free(url, email, phone) -> dict:
        if not url or not email or not phone:
            raise ValidationError("URL, email, and phone are required")

        if not is_valid_auction_url(url):
            raise InvalidAuctionURL("Invalid URL")
        external_id = extract_auction_id(url)
        if not external_id:
            raise InvalidAuctionURL("Invalid URL")

        scraped = scrape_auction_data(url)
        if scraped.item_count is not None and scraped.item_count > current_app.config["TRIAL_MAX_ITEMS"]:
            raise ValidationError("This auction is unusually large. Please contact support.")

        user = ClaimService.find_or_create_claimant(
            email, phone,
            user_type=UserType.FREE_CLAIM.value,
            first_name="Trial",
            last_name="User",
        )
        auction = ClaimService.find_or_create_auction(external_id, url, scraped, is_free_claim=True)

        if auction.claim is not None:
            raise AuctionAlreadyClaimed()

        claim = ClaimService._insert_claim(user, auction, Decimal("0"))
        if claim is None:
            logger.info(f"Lost claim race for auction {auction.id}")
            raise AuctionAlreadyClaimed()

        bonus = current_app.config["AUCTION_CLAIM_BONUS_CREDITS"]
        CreditService.grant_credits(
            user, bonus, CreditReason.SIGNUP_BONUS,
            auction_id=auction.id,
            idempotency_key=f"free_claim:{claim.id}",
        )
        db.session.commit()
        logger.info(f"Free claim {claim.id}: user {user.id} auction {auction.id}")

        ClaimService._handoff(
            user, bonus, auction, scraped,
            extra_payload={
                "hibid_url": url,
                "hibid_title": scraped.title,
                "trial_auction_item_count": scraped.item_count,
            },
            is_free=True,
        )
        return {
            "claimId": claim.id,
            "url": f"/checkout/success?session_id=free_claim_{claim.id}&free=true",
        }

    # ==================== PAID CLAIM ====================

    @staticmethod
    def start_paid_claim(url, email, phone=None, first_name=None, last_name=None) -> dict:
        """Create a one-time Checkout Session for an auction claim."""
        if not url or not email:
            raise ValidationError("URL and email are required")
        if not is_valid_auction_url(url):
            raise InvalidAuctionURL()
        external_id = ClaimService._require_auction_id(url)

        scraped = scrape_auction_data(url)
        price = calculate_auction_price(scraped.item_count)

        user = ClaimService.find_or_create_claimant(
            email, phone, first_name=first_name, last_name=last_name
        )
        auction = ClaimService.find_or_create_auction(external_id, url, scraped)
        if auction.claim is not None:
            raise AuctionAlreadyClaimed("This auction has already been claimed.")

        customer_id = stripe_service.get_or_create_customer(user)
        db.session.commit()

        app_url = current_app.config["APP_URL"]
        session = stripe_service.create_auction_checkout(
            customer_id, user, auction, price,
            success_url=f"{app_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}&type=auction",
            cancel_url=f"{app_url}/claim?url={quote(url, safe='')}",
        )
        logger.info(f"Auction checkout {session.id} for auction {auction.id} at ${price}")
        return {"sessionId": session.id, "url": session.url, "price": float(price)}

    @staticmethod
    def fulfil_paid_claim(session) -> Optional[ClaimedAuction]:
        """
        Record a paid claim from a completed ``auction_claim`` Checkout Session.

        Safe to run more than once for the same session: the claim insert and
        the bonus grant are both keyed so replays change nothing.
        """
        metadata = session.get("metadata") or {}
        try:
            user = db.session.get(User, int(metadata["userId"]))
            auction = db.session.get(Auction, int(metadata["auctionId"]))
        except (KeyError, TypeError, ValueError):
            logger.error(f"Auction claim session {session.get('id')} has malformed metadata")
            return None
        if user is None or auction is None:
            logger.error(f"Auction claim session {session.get('id')} references missing user or auction")
            return None

        price_paid = Decimal(str(metadata.get("pricePaid") or "0"))
        claim = ClaimService._insert_claim(user, auction, price_paid)
        if claim is None:
            existing = ClaimedAuction.query.filter_by(auction_id=auction.id).first()
            if existing is not None and existing.user_id != user.id:
                # Paid after someone else won; needs a manual refund
                logger.error(
                    f"Auction {auction.id} paid by user {user.id} but held by user {existing.user_id}"
                )
                return None
            logger.info(f"Auction {auction.id} already claimed (duplicate delivery)")
            claim = existing
        else:
            logger.info(f"Auction {auction.id} claimed by user {user.id} for ${price_paid}")

        bonus = current_app.config["AUCTION_CLAIM_BONUS_CREDITS"]
        granted = CreditService.grant_credits(
            user, bonus, CreditReason.SIGNUP_BONUS,
            auction_id=auction.id,
            idempotency_key=f"checkout:{session['id']}",
        )
        db.session.commit()

        if granted:
            ClaimService._handoff(user, bonus, auction, is_free=False)
        return claim
