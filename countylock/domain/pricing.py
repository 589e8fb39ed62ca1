"""Pricing and credit rules."""

from decimal import Decimal, ROUND_HALF_UP

from flask import current_app

AUCTION_BASE_PRICE = Decimal("29.95")
AUCTION_INCLUDED_ITEMS = 100
AUCTION_PRICE_PER_EXTRA_ITEM = Decimal("0.10")

CENT = Decimal("0.01")

# (population floor exclusive, label, tier, monthly price), highest first
POPULATION_TIERS = (
    (500_000, "Urban", 3, Decimal("399")),
    (50_000, "Suburban", 2, Decimal("199")),
    (None, "Rural", 1, Decimal("99")),
)


def _extra_items(item_count):
    if not item_count:
        return 0
    return max(0, int(item_count) - AUCTION_INCLUDED_ITEMS)


def calculate_auction_price(item_count) -> Decimal:
    """
    Price of claiming an auction: $29.95 covers the first 100 items, each
    further item costs $0.10. Unknown or zero item counts pay the base price.
    """
    price = AUCTION_BASE_PRICE + AUCTION_PRICE_PER_EXTRA_ITEM * _extra_items(item_count)
    return price.quantize(CENT, rounding=ROUND_HALF_UP)


def price_breakdown(item_count):
    if item_count is None:
        return None
    extra = _extra_items(item_count)
    return {
        "basePrice": float(AUCTION_BASE_PRICE),
        "includedItems": AUCTION_INCLUDED_ITEMS,
        "extraItems": extra,
        "extraCost": float((AUCTION_PRICE_PER_EXTRA_ITEM * extra).quantize(CENT)),
    }


def to_cents(amount) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def county_tier_quote(population):
    """Suggested tier and monthly price for a county of the given population."""
    population = population or 0
    for floor, label, tier, price in POPULATION_TIERS:
        if floor is None or population > floor:
            return {"label": label, "tier_level": tier, "price": float(price)}


def credits_for_tier(tier_level) -> int:
    if tier_level in (1, 2, 3):
        return current_app.config["SUBSCRIPTION_CREDITS_PER_TIER"]
    return 0


def is_trial_eligible(item_count) -> bool:
    return item_count is None or item_count <= current_app.config["TRIAL_MAX_ITEMS"]
