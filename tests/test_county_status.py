import pytest

from countylock.domain.county_status import (
    derive_county_status,
    recompute_all_county_statuses,
    recompute_county_status,
)
from countylock.errors import NotFoundError
from countylock.extensions import db
from countylock.models import CountyStatus, SubscriptionStatus


@pytest.mark.parametrize("tiers, trial, expected", [
    ([], False, CountyStatus.AVAILABLE),
    ([], True, CountyStatus.PARTIALLY_LOCKED),
    ([1], False, CountyStatus.PARTIALLY_LOCKED),
    ([2, 1], False, CountyStatus.PARTIALLY_LOCKED),
    ([3], False, CountyStatus.FULLY_LOCKED),
    ([1, 3], True, CountyStatus.FULLY_LOCKED),
])
def test_derive_county_status_precedence(tiers, trial, expected):
    """Pro outranks everything, any other occupancy locks partially"""
    assert derive_county_status(tiers, trial) == expected


def test_recompute_writes_derived_status(county, offers, user, make_subscription):
    make_subscription(user, county, offers[3])

    assert recompute_county_status(county.id) == CountyStatus.FULLY_LOCKED
    assert county.status == "fully_locked"


def test_recompute_is_idempotent(county, offers, user, make_subscription):
    make_subscription(user, county, offers[2])

    first = recompute_county_status(county.id)
    second = recompute_county_status(county.id)

    assert first == second == CountyStatus.PARTIALLY_LOCKED
    assert county.status == "partially_locked"


def test_cancelling_one_of_two_basic_subscriptions_keeps_partial_lock(
    county, offers, make_user, make_subscription
):
    first = make_subscription(make_user(), county, offers[1])
    make_subscription(make_user(), county, offers[2])
    recompute_county_status(county.id)

    first.status = SubscriptionStatus.CANCELLED.value
    recompute_county_status(county.id)

    assert county.status == "partially_locked"


def test_cancelling_sole_subscription_with_trial_keeps_partial_lock(
    county, offers, user, make_subscription, make_trial
):
    make_trial(county)
    sub = make_subscription(user, county, offers[1])

    sub.status = SubscriptionStatus.CANCELLED.value
    recompute_county_status(county.id)

    assert county.status == "partially_locked"


def test_cancelling_sole_subscription_without_trial_frees_county(
    county, offers, user, make_subscription
):
    sub = make_subscription(user, county, offers[3])
    recompute_county_status(county.id)
    assert county.status == "fully_locked"

    sub.status = SubscriptionStatus.CANCELLED.value
    recompute_county_status(county.id)

    assert county.status == "available"


def test_inactive_and_past_due_subscriptions_do_not_lock(county, offers, make_user, make_subscription):
    make_subscription(make_user(), county, offers[3], status="past_due")
    make_subscription(make_user(), county, offers[1], status="inactive")

    assert recompute_county_status(county.id) == CountyStatus.AVAILABLE


def test_expired_trial_does_not_lock(county, make_trial):
    make_trial(county, status="expired")

    assert recompute_county_status(county.id) == CountyStatus.AVAILABLE


def test_recompute_unknown_county_raises(app):
    with pytest.raises(NotFoundError):
        recompute_county_status(9999)


def test_recompute_all_repairs_drift(make_county, offers, user, make_subscription):
    drifted = make_county(status="fully_locked")
    occupied = make_county()
    make_subscription(user, occupied, offers[1])

    changed = recompute_all_county_statuses()

    assert changed == {drifted.id: "available", occupied.id: "partially_locked"}
    db.session.refresh(drifted)
    assert drifted.status == "available"
