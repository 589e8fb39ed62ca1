"""Direct provisioning call to the main app. Best effort: never raises, never retries."""

import logging
from typing import Optional

import requests
from flask import current_app

logger = logging.getLogger(__name__)

PROVISION_PATH = "/api/internal/provision-trial"


def auction_payload(auction, scraped=None) -> dict:
    """Auction details the main app attaches to the provisioned account."""
    data = {
        "url": auction.url,
        "title": auction.title,
        "itemCount": auction.item_count,
    }
    if scraped is not None:
        data.update({
            "zipCode": scraped.zip_code,
            "location": scraped.location,
            "auctioneer": scraped.auctioneer,
            "auctionName": scraped.auction_name,
        })
    return data


def provision_on_main_app(user, credits: int, auction: Optional[dict] = None) -> bool:
    """POST the user (and optional auction details) to the main app. True on a 2xx."""
    url = f"{current_app.config['MAIN_APP_URL']}{PROVISION_PATH}"
    body = {
        # Shared secret in the body; the main app compares it verbatim
        "secret": current_app.config["CROSS_APP_SECRET"],
        "email": user.email,
        "name": user.full_name,
        "credits": credits,
        "auction": auction,
    }

    try:
        resp = requests.post(url, json=body, timeout=current_app.config["MAIN_APP_SYNC_TIMEOUT"])
    except requests.RequestException as e:
        logger.error(f"Main app sync failed for {user.email}: {e}")
        return False

    if not resp.ok:
        logger.error(f"Main app sync rejected for {user.email}: {resp.status_code} {resp.text[:500]}")
        return False

    logger.info(f"Synced {user.email} to main app")
    return True
