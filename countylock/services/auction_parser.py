"""HiBid URL helpers."""

import re
from typing import Optional
from urllib.parse import urlparse, parse_qs

HIBID_URL_PATTERNS = (
    re.compile(r"^https?://(?:[\w-]+\.)?hibid\.com/(?:.*/)?(?:catalog|auction|lot)/\d+", re.IGNORECASE),
)

_ID_IN_PATH = re.compile(r"/(?:catalog|auction|lot)/(\d+)", re.IGNORECASE)
_ID_QUERY_PARAMS = ("id", "auctionId")


def is_valid_auction_url(url) -> bool:
    if not url or not isinstance(url, str):
        return False
    return any(pattern.search(url.strip()) for pattern in HIBID_URL_PATTERNS)


def extract_auction_id(url) -> Optional[str]:
    """
    Pull the external auction id out of a listing URL.

    ``.../catalog/123/...``, ``.../auction/123`` and ``.../lot/123`` yield ``"123"``;
    otherwise an ``id`` or ``auctionId`` query parameter is used.
    """
    if not url or not isinstance(url, str):
        return None

    match = _ID_IN_PATH.search(url)
    if match:
        return match.group(1)

    try:
        query = parse_qs(urlparse(url).query)
    except ValueError:
        return None
    for name in _ID_QUERY_PARAMS:
        values = query.get(name)
        if values and values[0]:
            return values[0]
    return None


def normalize_auction_url(url: str) -> str:
    """Drop the query string and trailing slashes."""
    return url.split("?", 1)[0].rstrip("/")


def is_lot_page(url: str) -> bool:
    return "/lot/" in url.lower()
