import json
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from faker import Faker
from flask_jwt_extended import create_access_token

from countylock import create_app
from countylock.extensions import db
from countylock.models import (
    County,
    Offer,
    State,
    Subscription,
    SubscriptionStatus,
    TrialRegistration,
    User,
)
from countylock.services.scraper import ScrapedAuction

# Initialize Faker for generating test data
fake = Faker()


def pytest_configure(config):
    config.addinivalue_line("markers", "payment: mark test as payment-related")
    config.addinivalue_line("markers", "db: mark test as database-intensive")


@pytest.fixture()
def app():
    """Application with a fresh in-memory schema per test"""
    app = create_app("testing")

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


# ==================== FACTORIES ====================

@pytest.fixture()
def state(app):
    state = State(name="Texas", abbreviation="TX")
    db.session.add(state)
    db.session.commit()
    return state


@pytest.fixture()
def make_county(state):
    def _make(name=None, population=120_000, status="available"):
        county = County(
            name=name or fake.city(),
            state_id=state.id,
            population=population,
            status=status,
        )
        db.session.add(county)
        db.session.commit()
        return county
    return _make


@pytest.fixture()
def county(make_county):
    return make_county(name="Travis")


@pytest.fixture()
def offers(app):
    """Seed offers keyed by tier level"""
    rows = {}
    for tier, (name, price) in {1: ("Rural", "99"), 2: ("Suburban", "199"), 3: ("Urban", "399")}.items():
        offer = Offer(name=name, price=Decimal(price), tier_level=tier)
        db.session.add(offer)
        rows[tier] = offer
    db.session.commit()
    return rows


@pytest.fixture()
def make_user(app):
    def _make(email=None, phone=None, **kwargs):
        password = kwargs.pop("password", "Str0ng!Pass")
        user = User(
            email=(email or fake.unique.email()).lower(),
            first_name=kwargs.pop("first_name", fake.first_name()),
            last_name=kwargs.pop("last_name", fake.last_name()),
            phone=phone,
            **kwargs,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture()
def user(make_user):
    return make_user(stripe_customer_id="cus_test_123")


@pytest.fixture()
def auth_headers(app):
    def _headers(user):
        token = create_access_token(identity=str(user.id))
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture()
def make_subscription(app):
    def _make(user, county, offer, status=SubscriptionStatus.ACTIVE.value, stripe_id=None):
        sub = Subscription(
            user_id=user.id,
            county_id=county.id,
            offer_id=offer.id,
            status=status,
            stripe_subscription_id=stripe_id or f"sub_{fake.uuid4()[:12]}",
        )
        db.session.add(sub)
        db.session.commit()
        return sub
    return _make


@pytest.fixture()
def make_trial(app):
    def _make(county, status="active"):
        trial = TrialRegistration(
            county_id=county.id,
            email=fake.email(),
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            phone="512-555-0100",
            address=fake.address(),
            status=status,
        )
        db.session.add(trial)
        db.session.commit()
        return trial
    return _make


# ==================== STRIPE HELPERS ====================

@pytest.fixture()
def make_event():
    def _make(event_type, obj, event_id=None):
        return {
            "id": event_id or f"evt_{fake.uuid4()[:16]}",
            "type": event_type,
            "data": {"object": obj},
        }
    return _make


@pytest.fixture()
def post_webhook(client):
    """POST an event to the webhook with signature verification stubbed out"""
    def _post(event):
        with patch("countylock.services.stripe_service.stripe.Webhook.construct_event",
                   return_value=event):
            return client.post(
                "/api/stripe/webhook",
                data=json.dumps(event),
                headers={"Stripe-Signature": "t=1,v1=test", "Content-Type": "application/json"},
            )
    return _post


@pytest.fixture()
def mock_main_app():
    """Stub the outbound provisioning call"""
    with patch("countylock.services.main_app_sync.requests.post") as post:
        post.return_value = MagicMock(ok=True, status_code=200, text="ok")
        yield post


@pytest.fixture()
def scraped_catalog():
    return ScrapedAuction(
        item_count=150,
        zip_code="78701",
        location="100 Congress Ave, Austin, TX 78701",
        title="Estate Liquidation Auction",
        auctioneer="Lone Star Auctions",
    )
