# countylock/domain/county_status.py
"""
County occupancy status.

``County.status`` is a cached value. It is derived from the county's active
subscriptions and its trial registration, and is written only through
``recompute_county_status`` so every mutating path settles on the same rule:

1. any active tier-3 (Pro) subscription           -> fully_locked
2. any other active subscription, or active trial -> partially_locked
3. otherwise                                      -> available
"""

import logging
from typing import Iterable

from countylock.extensions import db
from countylock.errors import NotFoundError
from countylock.models import (
    County,
    CountyStatus,
    Offer,
    Subscription,
    SubscriptionStatus,
    TrialRegistration,
    TrialStatus,
)

logger = logging.getLogger(__name__)

EXCLUSIVE_TIER = 3


def derive_county_status(active_tier_levels: Iterable[int], has_active_trial: bool) -> CountyStatus:
    """Apply the occupancy precedence rule. Pure; no database access."""
    tiers = list(active_tier_levels)
    if any(tier == EXCLUSIVE_TIER for tier in tiers):
        return CountyStatus.FULLY_LOCKED
    if tiers or has_active_trial:
        return CountyStatus.PARTIALLY_LOCKED
    return CountyStatus.AVAILABLE


def active_tier_levels(county_id: int) -> list[int]:
    rows = (
        db.session.query(Offer.tier_level)
        .join(Subscription, Subscription.offer_id == Offer.id)
        .filter(
            Subscription.county_id == county_id,
            Subscription.status == SubscriptionStatus.ACTIVE.value,
        )
        .all()
    )
    return [row[0] for row in rows]


def has_active_trial(county_id: int) -> bool:
    return (
        db.session.query(TrialRegistration.id)
        .filter_by(county_id=county_id, status=TrialStatus.ACTIVE)
        .first()
        is not None
    )


def recompute_county_status(county_id: int) -> CountyStatus:
    """
    Re-derive a county's status from current subscriptions and trial and store it.

    Flushes but does not commit; the caller owns the unit of work. Calling it
    repeatedly without intervening changes leaves the same stored value.
    """
    county = db.session.get(County, county_id)
    if county is None:
        raise NotFoundError("County not found")

    # Pending subscription/trial rows must be visible to the queries below
    db.session.flush()

    status = derive_county_status(active_tier_levels(county_id), has_active_trial(county_id))
    if county.status != status.value:
        logger.info(
            f"County {county_id} status {county.status} -> {status.value}"
        )
        county.status = status.value
        db.session.flush()
    return status


def recompute_all_county_statuses() -> dict:
    """Repair drift for every county. Returns {county_id: status} for changed rows."""
    changed = {}
    for county in County.query.order_by(County.id).all():
        before = county.status
        after = recompute_county_status(county.id)
        if before != after.value:
            changed[county.id] = after.value
    db.session.commit()
    return changed
