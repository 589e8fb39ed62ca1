from unittest.mock import MagicMock, patch

import pytest

from countylock.errors import AuctionAlreadyClaimed
from countylock.extensions import db, mail
from countylock.models import Auction, ClaimedAuction, CreditTransaction, User
from countylock.services.claim_service import ClaimService
from countylock.services.scraper import ScrapedAuction
from countylock.services.token_service import TokenService

CATALOG_URL = "https://hibid.com/catalog/123456/estate-sale"
SCRAPE = "countylock.services.claim_service.scrape_auction_data"


@pytest.fixture()
def claim_payload():
    return {"url": CATALOG_URL, "email": "Claimer@Example.com", "phone": "512-555-0199"}


# ==================== CHECK ====================

def test_check_invalid_url(client):
    resp = client.post("/api/auctions/check", json={"url": "https://example.com/catalog/1"})

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Invalid HiBid URL provided"


def test_check_available_auction(client, scraped_catalog):
    with patch(SCRAPE, return_value=scraped_catalog):
        resp = client.post("/api/auctions/check", json={"url": CATALOG_URL})

    body = resp.get_json()
    assert body["status"] == "AVAILABLE"
    assert body["data"]["auctionId"] == "123456"
    assert body["data"]["price"] == 34.95
    assert body["data"]["itemCount"] == 150
    assert body["data"]["isTrialEligible"] is True
    assert body["data"]["breakdown"]["extraItems"] == 50


def test_check_locked_auction_skips_scrape(client, county, user):
    auction = Auction(external_auction_id="123456", url=CATALOG_URL, title="Taken", county_id=county.id)
    db.session.add(auction)
    db.session.flush()
    db.session.add(ClaimedAuction(user_id=user.id, auction_id=auction.id, price_paid=0))
    db.session.commit()

    with patch(SCRAPE) as scrape:
        resp = client.post("/api/auctions/check", json={"url": CATALOG_URL})

    assert resp.get_json()["status"] == "LOCKED"
    assert resp.get_json()["data"]["title"] == "Taken"
    scrape.assert_not_called()


# ==================== FREE CLAIM ====================

def test_free_claim_success(client, county, claim_payload, scraped_catalog, mock_main_app):
    with patch(SCRAPE, return_value=scraped_catalog), mail.record_messages() as outbox:
        resp = client.post("/api/auctions/claim-free", json=claim_payload)

    assert resp.status_code == 200
    body = resp.get_json()
    claim = ClaimedAuction.query.one()
    assert body["url"] == f"/checkout/success?session_id=free_claim_{claim.id}&free=true"

    user = User.query.filter_by(email="claimer@example.com").one()
    assert user.user_type == "free_claim"
    assert user.has_used_free_trial is True
    assert user.credits == 500
    assert user.first_name == "Trial"
    assert claim.user_id == user.id
    assert claim.auction.item_count == 150
    assert claim.auction.county_id == county.id
    assert CreditTransaction.query.filter_by(idempotency_key=f"free_claim:{claim.id}").count() == 1

    subjects = [m.subject for m in outbox]
    assert "Activate Your BidSquire Account" in subjects
    assert "Free Trial Claim Confirmed: Estate Liquidation Auction" in subjects

    sent = mock_main_app.call_args.kwargs["json"]
    assert sent["email"] == "claimer@example.com"
    assert sent["credits"] == 500


def test_free_claim_token_carries_auction(client, county, claim_payload, scraped_catalog, mock_main_app):
    with patch(SCRAPE, return_value=scraped_catalog), \
            patch.object(TokenService, "generate_activation_token",
                         wraps=TokenService.generate_activation_token) as generate:
        client.post("/api/auctions/claim-free", json=claim_payload)

    args = generate.call_args.args
    assert args[1] == 500
    assert args[2]["hibid_url"] == CATALOG_URL
    assert args[2]["trial_auction_item_count"] == 150


def test_free_claim_missing_fields(client):
    resp = client.post("/api/auctions/claim-free", json={"url": CATALOG_URL})

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "URL, email, and phone are required"


def test_free_claim_already_claimed(client, county, claim_payload, scraped_catalog, mock_main_app):
    with patch(SCRAPE, return_value=scraped_catalog):
        client.post("/api/auctions/claim-free", json=claim_payload)
        resp = client.post("/api/auctions/claim-free", json={
            "url": CATALOG_URL, "email": "second@example.com", "phone": "512-555-0222",
        })

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Auction already claimed by another user"
    assert ClaimedAuction.query.count() == 1


def test_free_claim_phone_in_use(client, county, make_user, claim_payload, scraped_catalog):
    make_user(email="owner@example.com", phone="512-555-0199")

    with patch(SCRAPE, return_value=scraped_catalog):
        resp = client.post("/api/auctions/claim-free", json=claim_payload)

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "This phone number is already in use by another account."
    assert Auction.query.count() == 0


def test_free_claim_oversized_auction(client, county, claim_payload):
    huge = ScrapedAuction(item_count=10_001, title="Warehouse")
    with patch(SCRAPE, return_value=huge):
        resp = client.post("/api/auctions/claim-free", json=claim_payload)

    assert resp.status_code == 400
    assert "unusually large" in resp.get_json()["message"]
    assert User.query.count() == 0


def test_free_claim_without_counties(client, claim_payload, scraped_catalog):
    with patch(SCRAPE, return_value=scraped_catalog):
        resp = client.post("/api/auctions/claim-free", json=claim_payload)

    assert resp.status_code == 500
    assert resp.get_json()["message"] == "System error: No county configured."


def test_losing_the_insert_race_reports_already_claimed(app, county, make_user, scraped_catalog,
                                                        mock_main_app):
    rival = make_user()
    insert_claim = ClaimService._insert_claim

    def rival_claims_first(user, auction, price_paid):
        # Another request commits its claim between our pre-check and our insert
        db.session.add(ClaimedAuction(user_id=rival.id, auction_id=auction.id, price_paid=0))
        db.session.commit()
        return insert_claim(user, auction, price_paid)

    with patch(SCRAPE, return_value=scraped_catalog), \
            patch.object(ClaimService, "_insert_claim", side_effect=rival_claims_first):
        with pytest.raises(AuctionAlreadyClaimed):
            ClaimService.claim_auction_free(CATALOG_URL, "racer@example.com", "512-555-0333")

    assert ClaimedAuction.query.one().user_id == rival.id
    assert User.query.filter_by(email="racer@example.com").one().credits == 0
    mock_main_app.assert_not_called()


def test_free_claim_rejects_non_hibid_url(client, claim_payload):
    claim_payload["url"] = "http://169.254.169.254/latest/meta-data?id=42"

    with patch(SCRAPE) as scrape:
        resp = client.post("/api/auctions/claim-free", json=claim_payload)

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Invalid URL"
    scrape.assert_not_called()
    assert Auction.query.count() == 0
    assert ClaimedAuction.query.count() == 0


def test_scrape_failure_is_reported(client, claim_payload):
    with patch("countylock.services.scraper.requests.get", return_value=MagicMock(ok=False, status_code=503)):
        resp = client.post("/api/auctions/claim-free", json=claim_payload)

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Failed to retrieve auction details. Please check the URL."


# ==================== PAID CLAIM ====================

@pytest.mark.payment
def test_paid_claim_opens_checkout(client, county, scraped_catalog):
    session = MagicMock(id="cs_auction_1", url="https://checkout.stripe.com/c/pay/cs_auction_1")
    with patch(SCRAPE, return_value=scraped_catalog), \
            patch("countylock.services.stripe_service.stripe.Customer.create",
                  return_value=MagicMock(id="cus_claim_1")), \
            patch("countylock.services.stripe_service.stripe.checkout.Session.create",
                  return_value=session) as create:
        resp = client.post("/api/stripe/checkout-auction", json={
            "url": CATALOG_URL, "email": "buyer@example.com", "firstName": "Dana",
        })

    assert resp.status_code == 200
    assert resp.get_json()["data"] == {
        "sessionId": "cs_auction_1",
        "url": "https://checkout.stripe.com/c/pay/cs_auction_1",
        "price": 34.95,
    }
    kwargs = create.call_args.kwargs
    assert kwargs["mode"] == "payment"
    assert kwargs["line_items"][0]["price_data"]["unit_amount"] == 3495
    assert kwargs["metadata"]["type"] == "auction_claim"
    assert kwargs["metadata"]["pricePaid"] == "34.95"
    assert kwargs["cancel_url"].startswith("http://app.test/claim?url=https%3A%2F%2Fhibid.com")
    assert ClaimedAuction.query.count() == 0


def _paid_session(user, auction, session_id="cs_paid_1"):
    return {
        "id": session_id,
        "mode": "payment",
        "payment_status": "paid",
        "metadata": {
            "type": "auction_claim",
            "userId": str(user.id),
            "auctionId": str(auction.id),
            "pricePaid": "34.95",
        },
    }


@pytest.fixture()
def listed_auction(county):
    auction = Auction(external_auction_id="123456", url=CATALOG_URL, title="Estate Sale",
                      county_id=county.id, item_count=150)
    db.session.add(auction)
    db.session.commit()
    return auction


@pytest.mark.payment
def test_paid_claim_webhook_records_claim_once(post_webhook, make_event, user, listed_auction,
                                               mock_main_app):
    session = _paid_session(user, listed_auction)

    with mail.record_messages() as outbox:
        post_webhook(make_event("checkout.session.completed", session))
        post_webhook(make_event("checkout.session.completed", session))

    claim = ClaimedAuction.query.one()
    assert claim.user_id == user.id
    assert str(claim.price_paid) == "34.95"
    db.session.refresh(user)
    assert user.credits == 500
    assert mock_main_app.call_count == 1
    assert [m.subject for m in outbox].count("Auction Claim Confirmed: Estate Sale") == 1


@pytest.mark.payment
def test_paid_claim_after_another_winner(app, make_user, listed_auction, mock_main_app):
    winner = make_user()
    db.session.add(ClaimedAuction(user_id=winner.id, auction_id=listed_auction.id, price_paid=0))
    db.session.commit()
    loser = make_user()

    assert ClaimService.fulfil_paid_claim(_paid_session(loser, listed_auction)) is None

    assert ClaimedAuction.query.one().user_id == winner.id
    db.session.refresh(loser)
    assert loser.credits == 0


def test_debug_replay_claim(client, user, listed_auction, mock_main_app):
    session = _paid_session(user, listed_auction, session_id="cs_replay")
    with patch("countylock.services.stripe_service.stripe.checkout.Session.retrieve",
               return_value=session):
        resp = client.get("/api/debug/claim-success?session_id=cs_replay")

    assert resp.status_code == 200
    assert resp.get_json()["success"] is True
    assert ClaimedAuction.query.count() == 1


def test_debug_replay_requires_paid_session(client, user, listed_auction):
    session = dict(_paid_session(user, listed_auction), payment_status="unpaid")
    with patch("countylock.services.stripe_service.stripe.checkout.Session.retrieve",
               return_value=session):
        resp = client.get("/api/debug/claim-success?session_id=cs_unpaid")

    assert resp.status_code == 400


def test_debug_endpoints_disabled(app, client):
    app.config["DEBUG_ENDPOINTS_ENABLED"] = False

    resp = client.get("/api/debug/claim-success?session_id=cs_x")

    assert resp.status_code == 404


@pytest.mark.payment
def test_paid_claim_with_malformed_metadata_is_ignored(app, mock_main_app):
    session = {"id": "cs_bad", "mode": "payment", "metadata": {"type": "auction_claim"}}

    assert ClaimService.fulfil_paid_claim(session) is None
    assert ClaimedAuction.query.count() == 0
    mock_main_app.assert_not_called()
