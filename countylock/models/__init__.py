from countylock.models.geography import State, County, CountyStatus
from countylock.models.offer import Offer
from countylock.models.subscription import Subscription, SubscriptionStatus
from countylock.models.trial import TrialRegistration, TrialStatus
from countylock.models.auction import Auction, ClaimedAuction
from countylock.models.credit import CreditTransaction, CreditReason
from countylock.models.user import User, UserType
from countylock.models.webhook_event import WebhookEvent, WebhookEventStatus

__all__ = [
    "State",
    "County",
    "CountyStatus",
    "Offer",
    "Subscription",
    "SubscriptionStatus",
    "TrialRegistration",
    "TrialStatus",
    "Auction",
    "ClaimedAuction",
    "CreditTransaction",
    "CreditReason",
    "User",
    "UserType",
    "WebhookEvent",
    "WebhookEventStatus",
]
