# countylock/services/scraper.py
"""
HiBid page scraper.

Catalog pages expose the lot count and the auctioneer's address block; single
lot pages only expose the title, location and auction name, so their item
count is reported as unknown.
"""

import logging
import re
from dataclasses import dataclass, asdict
from typing import Optional

import requests
from bs4 import BeautifulSoup
from flask import current_app

from countylock.errors import ScrapeError
from countylock.services.auction_parser import is_lot_page

log = logging.getLogger(__name__)

ZIP_RE = re.compile(r"\b\d{5}\b")
PAGING_COUNT_RE = re.compile(r"of\s+([\d,]+)\s+lots", re.IGNORECASE)
CATALOG_BUTTON_RE = re.compile(r"(\d+)\s+Lots", re.IGNORECASE)
WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class ScrapedAuction:
    item_count: Optional[int] = None
    zip_code: Optional[str] = None
    location: Optional[str] = None
    title: Optional[str] = None
    auctioneer: Optional[str] = None
    auction_name: Optional[str] = None

    def to_dict(self):
        data = asdict(self)
        return {
            "itemCount": data["item_count"],
            "zipCode": data["zip_code"],
            "location": data["location"],
            "title": data["title"],
            "auctioneer": data["auctioneer"],
            "auctionName": data["auction_name"],
        }


def _text(node) -> str:
    return node.get_text().strip() if node is not None else ""


def _joined_text(soup, selector) -> str:
    return "".join(node.get_text() for node in soup.select(selector))


def parse_lot_page(soup) -> ScrapedAuction:
    data = ScrapedAuction()

    # "<lot title> | Live and Online Auctions on HiBid.com"
    page_title = _text(soup.title)
    if page_title:
        data.title = page_title.split("|")[0].strip() or None
    if not data.title:
        data.title = _text(soup.find("h1")) or None

    location = _text(soup.select_one("app-city-state-zip-link a"))
    if location:
        data.location = WHITESPACE_RE.sub(" ", location).strip()
        zip_match = ZIP_RE.search(data.location)
        if zip_match:
            data.zip_code = zip_match.group(0)

    data.auctioneer = _text(soup.select_one("app-company-page-link a")) or None

    for row in soup.select("app-auction-info-panel tr"):
        if _text(row.find("th")) == "Name":
            data.auction_name = _text(row.find("td"))

    return data


def parse_catalog_page(soup) -> ScrapedAuction:
    data = ScrapedAuction()

    paging_match = PAGING_COUNT_RE.search(_joined_text(soup, ".paging-item-count"))
    if paging_match:
        data.item_count = int(paging_match.group(1).replace(",", ""))
    else:
        # "View Catalog (3001 Lots)"
        button_match = CATALOG_BUTTON_RE.search(_joined_text(soup, ".auction-btn"))
        if button_match:
            data.item_count = int(button_match.group(1))

    zip_match = ZIP_RE.search(_joined_text(soup, ".company-address"))
    if zip_match:
        data.zip_code = zip_match.group(0)

    address_lines = [node.get_text().strip() for node in soup.select(".company-address strong div")]
    if address_lines:
        data.location = ", ".join(address_lines)

    data.title = (
        _text(soup.find("h1"))
        or _joined_text(soup, ".auction-header").strip()
        or None
    )
    return data


def parse_auction_html(url: str, html: str) -> ScrapedAuction:
    soup = BeautifulSoup(html, "html.parser")
    if is_lot_page(url):
        return parse_lot_page(soup)
    return parse_catalog_page(soup)


def scrape_auction_data(url: str) -> ScrapedAuction:
    """Fetch a HiBid page and extract the listing details."""
    try:
        resp = requests.get(
            url,
            headers={"User-Agent": current_app.config["SCRAPER_USER_AGENT"]},
            timeout=current_app.config["SCRAPER_TIMEOUT"],
        )
    except requests.RequestException as e:
        log.warning(f"Scrape request failed for {url}: {e}")
        raise ScrapeError()

    if not resp.ok:
        log.warning(f"Scrape of {url} returned {resp.status_code} {resp.reason}")
        raise ScrapeError()

    data = parse_auction_html(url, resp.text)
    log.info(
        f"Scraped {url}",
        extra={"item_count": data.item_count, "zip_code": data.zip_code},
    )
    return data
