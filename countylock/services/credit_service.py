# countylock/services/credit_service.py
import logging
from typing import Optional

from countylock.errors import InsufficientCredits, PermissionDenied, ValidationError
from countylock.extensions import db
from countylock.models import ClaimedAuction, CreditReason, CreditTransaction

logger = logging.getLogger(__name__)


class CreditService:
    """Balance changes and their ledger rows, written in the same session."""

    @staticmethod
    def grant_credits(user, amount: int, reason: str, auction_id: Optional[int] = None,
                      idempotency_key: Optional[str] = None) -> bool:
        """
        Add credits to a user and append a ledger row.

        Returns False without changing anything when a grant with the same
        idempotency key already exists.
        """
        if amount <= 0:
            return False

        if idempotency_key and CreditTransaction.query.filter_by(
            idempotency_key=idempotency_key
        ).first():
            logger.info(f"Credit grant {idempotency_key} already applied; skipping")
            return False

        db.session.add(CreditTransaction(
            user_id=user.id,
            amount=amount,
            reason=reason,
            auction_id=auction_id,
            idempotency_key=idempotency_key,
        ))
        user.credits = (user.credits or 0) + amount
        db.session.flush()
        logger.info(f"Granted {amount} credits to user {user.id} ({reason})")
        return True

    @staticmethod
    def use_credits(user, amount, reason: str = CreditReason.AUCTION_USAGE,
                    auction_id: Optional[int] = None) -> int:
        """Spend credits. Free-claim users may only spend on auctions they own."""
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValidationError("Invalid credit amount")

        if user.is_free_claim:
            owns_auction = auction_id is not None and ClaimedAuction.query.filter_by(
                user_id=user.id, auction_id=auction_id
            ).first() is not None
            if not owns_auction:
                raise PermissionDenied(
                    "Free claim credits can only be used on your claimed auction"
                )

        if (user.credits or 0) < amount:
            raise InsufficientCredits(payload={"currentBalance": user.credits or 0})

        user.credits -= amount
        db.session.add(CreditTransaction(
            user_id=user.id,
            amount=-amount,
            reason=reason,
            auction_id=auction_id,
        ))
        db.session.commit()
        logger.info(f"User {user.id} used {amount} credits ({reason})")
        return user.credits

    @staticmethod
    def get_balance(user) -> dict:
        claims = user.claimed_auctions.all()
        return {
            "credits": user.credits or 0,
            "userType": user.user_type,
            "claimedAuctions": [claim.to_dict() for claim in claims],
            "recentTransactions": [
                tx.to_dict()
                for tx in CreditTransaction.query.filter_by(user_id=user.id)
                .order_by(CreditTransaction.id.desc())
                .limit(20)
            ],
        }
