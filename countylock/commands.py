# countylock/commands.py
"""Flask CLI commands: `flask init-db`, `flask seed-db`, ..."""

from decimal import Decimal

import click

from countylock.domain.county_status import recompute_all_county_statuses
from countylock.extensions import db
from countylock.models import County, Offer, State

SEED_OFFERS = (
    {
        "name": "Rural",
        "description": "Non-exclusive licence for rural counties",
        "price": Decimal("99.00"),
        "tier_level": 1,
    },
    {
        "name": "Suburban",
        "description": "Non-exclusive licence for suburban counties",
        "price": Decimal("199.00"),
        "tier_level": 2,
    },
    {
        "name": "Urban",
        "description": "Exclusive licence; locks the county for everyone else",
        "price": Decimal("399.00"),
        "tier_level": 3,
    },
)

SEED_STATES = (
    ("Texas", "TX", (("Harris", 4_731_145), ("Travis", 1_290_188), ("Loving", 64))),
    ("Colorado", "CO", (("Denver", 715_522), ("Pitkin", 17_358))),
)


def seed_reference_data():
    """Insert offers, states and counties that are missing. Returns rows added."""
    added = 0
    for row in SEED_OFFERS:
        if not Offer.query.filter_by(tier_level=row["tier_level"]).first():
            db.session.add(Offer(**row))
            added += 1

    for name, abbr, counties in SEED_STATES:
        state = State.query.filter_by(abbreviation=abbr).first()
        if state is None:
            state = State(name=name, abbreviation=abbr)
            db.session.add(state)
            db.session.flush()
            added += 1
        for county_name, population in counties:
            if not County.query.filter_by(state_id=state.id, name=county_name).first():
                db.session.add(County(name=county_name, state_id=state.id, population=population))
                added += 1

    db.session.commit()
    return added


def register_commands(app):

    @app.cli.command("init-db")
    def init_db():
        """Create all tables"""
        db.create_all()
        click.echo("Database initialized.")

    @app.cli.command("drop-db")
    @click.confirmation_option(prompt="Drop all tables?")
    def drop_db():
        """Drop all tables"""
        db.drop_all()
        click.echo("Database dropped.")

    @app.cli.command("seed-db")
    def seed_db():
        """Seed offers, states and counties"""
        added = seed_reference_data()
        click.echo(f"Seeded {added} rows.")

    @app.cli.command("recompute-statuses")
    def recompute_statuses():
        """Re-derive every county's status from subscriptions and trials"""
        changed = recompute_all_county_statuses()
        for county_id, status in changed.items():
            click.echo(f"county {county_id} -> {status}")
        click.echo(f"{len(changed)} counties updated.")
