import pytest

from countylock.errors import InsufficientCredits, PermissionDenied, ValidationError
from countylock.extensions import db
from countylock.models import Auction, ClaimedAuction, CreditReason, CreditTransaction
from countylock.services.credit_service import CreditService


@pytest.fixture()
def claimed_auction(county, make_user):
    owner = make_user(user_type="free_claim", credits=500)
    auction = Auction(external_auction_id="777", url="https://hibid.com/catalog/777", county_id=county.id)
    db.session.add(auction)
    db.session.flush()
    db.session.add(ClaimedAuction(user_id=owner.id, auction_id=auction.id, price_paid=0))
    db.session.commit()
    return owner, auction


def test_grant_is_keyed(user):
    assert CreditService.grant_credits(user, 100, CreditReason.SUBSCRIPTION_RENEWAL, idempotency_key="invoice:in_1")
    assert not CreditService.grant_credits(user, 100, CreditReason.SUBSCRIPTION_RENEWAL, idempotency_key="invoice:in_1")
    db.session.commit()

    assert user.credits == 100
    assert CreditTransaction.query.filter_by(user_id=user.id).count() == 1


def test_grant_ignores_non_positive_amounts(user):
    assert not CreditService.grant_credits(user, 0, CreditReason.SUBSCRIPTION_START)
    assert user.credits == 0


def test_use_credits_records_debit(make_user):
    spender = make_user(credits=150)

    assert CreditService.use_credits(spender, 40) == 110

    tx = CreditTransaction.query.filter_by(user_id=spender.id).one()
    assert tx.amount == -40
    assert tx.reason == "auction_usage"


@pytest.mark.parametrize("amount", [0, -5, "10", 1.5, True, None])
def test_use_credits_rejects_bad_amounts(user, amount):
    with pytest.raises(ValidationError):
        CreditService.use_credits(user, amount)


def test_use_credits_insufficient_balance(make_user):
    spender = make_user(credits=10)

    with pytest.raises(InsufficientCredits) as exc:
        CreditService.use_credits(spender, 11)
    assert exc.value.payload == {"currentBalance": 10}
    assert spender.credits == 10


def test_free_claim_user_limited_to_own_auction(claimed_auction, county):
    owner, auction = claimed_auction
    other = Auction(url="https://hibid.com/catalog/888", county_id=county.id)
    db.session.add(other)
    db.session.commit()

    with pytest.raises(PermissionDenied):
        CreditService.use_credits(owner, 10, auction_id=other.id)
    with pytest.raises(PermissionDenied):
        CreditService.use_credits(owner, 10)

    assert CreditService.use_credits(owner, 10, auction_id=auction.id) == 490


def test_balance_endpoint(client, claimed_auction, auth_headers):
    owner, auction = claimed_auction

    resp = client.get("/api/credits/balance", headers=auth_headers(owner))

    data = resp.get_json()["data"]
    assert data["credits"] == 500
    assert data["userType"] == "free_claim"
    assert data["claimedAuctions"][0]["auction_id"] == auction.id


def test_use_endpoint_reports_balance(client, make_user, auth_headers):
    spender = make_user(credits=20)

    ok = client.post("/api/credits/use", json={"amount": 5}, headers=auth_headers(spender))
    short = client.post("/api/credits/use", json={"amount": 50}, headers=auth_headers(spender))

    assert ok.get_json()["data"] == {"credits": 15}
    assert short.status_code == 400
    assert short.get_json()["message"] == "Insufficient credits"
    assert short.get_json()["currentBalance"] == 15


def test_subscriptions_endpoint(client, user, county, offers, auth_headers, make_subscription):
    make_subscription(user, county, offers[2], stripe_id="sub_listed")

    resp = client.get("/api/subscriptions", headers=auth_headers(user))

    data = resp.get_json()["data"]
    assert len(data) == 1
    assert data[0]["stripe_subscription_id"] == "sub_listed"
