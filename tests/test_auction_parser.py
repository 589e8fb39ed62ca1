import pytest

from countylock.services.auction_parser import (
    extract_auction_id,
    is_lot_page,
    is_valid_auction_url,
    normalize_auction_url,
)


@pytest.mark.parametrize("url", [
    "https://hibid.com/catalog/123456/estate-sale",
    "https://www.hibid.com/auction/98765",
    "http://texas.hibid.com/lot/555/antique-chair",
    "https://HIBID.com/catalog/1",
])
def test_valid_urls(url):
    assert is_valid_auction_url(url)


@pytest.mark.parametrize("url", [
    None,
    "",
    42,
    "https://example.com/catalog/123",
    "https://hibid.com/catalog/",
    "https://hibid.com.evil.io/catalog/1",
])
def test_invalid_urls(url):
    assert not is_valid_auction_url(url)


@pytest.mark.parametrize("url, expected", [
    ("https://hibid.com/catalog/123456/estate-sale", "123456"),
    ("https://hibid.com/lot/777/chair", "777"),
    ("https://hibid.com/search?auctionId=321", "321"),
    ("https://hibid.com/search?id=55&sort=1", "55"),
    ("https://hibid.com/search", None),
    (None, None),
])
def test_extract_auction_id(url, expected):
    assert extract_auction_id(url) == expected


def test_normalize_strips_query_and_trailing_slash():
    url = "https://hibid.com/catalog/123/estate-sale/?utm_source=mail"
    assert normalize_auction_url(url) == "https://hibid.com/catalog/123/estate-sale"


def test_is_lot_page():
    assert is_lot_page("https://hibid.com/LOT/1/x")
    assert not is_lot_page("https://hibid.com/catalog/1/x")
