from datetime import datetime

from flask import Blueprint, jsonify, request
from sqlalchemy import or_

from countylock.errors import NotFoundError, ValidationError
from countylock.extensions import db, limiter
from countylock.models import Auction, County
from countylock.models.base import utcnow
from countylock.services.auction_parser import normalize_auction_url
from countylock.services.claim_service import ClaimService

bp = Blueprint("auctions", __name__, url_prefix="/api/auctions")


def _parse_date(value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        raise ValidationError(f"Invalid auctionDate: {value}")


@bp.route("/check", methods=["POST"])
@limiter.limit("60 per hour")
def check_auction():
    data = request.get_json(silent=True) or {}
    result = ClaimService.check_auction(data.get("url"))
    return jsonify({"success": True, **result})


@bp.route("/claim-free", methods=["POST"])
@limiter.limit("10 per hour")
def claim_free():
    data = request.get_json(silent=True) or {}
    result = ClaimService.claim_auction_free(data.get("url"), data.get("email"), data.get("phone"))
    return jsonify({"success": True, "url": result["url"]})


@bp.route("/county/<int:county_id>", methods=["GET"])
def list_county_auctions(county_id):
    """Upcoming auctions for a county (undated ones included) with availability."""
    county = db.session.get(County, county_id)
    if county is None:
        raise NotFoundError("County not found")

    auctions = (
        Auction.query
        .filter(Auction.county_id == county_id)
        .filter(or_(Auction.auction_date >= utcnow(), Auction.auction_date.is_(None)))
        .order_by(Auction.auction_date.asc())
        .all()
    )
    rows = [{
        "id": a.id,
        "url": a.url,
        "title": a.title,
        "auctionDate": a.auction_date.isoformat() if a.auction_date else None,
        "available": not a.is_claimed,
        "createdAt": a.created_at.isoformat(),
    } for a in auctions]

    return jsonify({
        "success": True,
        "county": {
            "id": county.id,
            "name": county.name,
            "state": county.state.abbreviation if county.state else None,
            "stateName": county.state.name if county.state else None,
        },
        "auctions": rows,
        "total": len(rows),
        "available": sum(1 for r in rows if r["available"]),
    })


@bp.route("/county/<int:county_id>", methods=["POST"])
def add_county_auctions(county_id):
    """Bulk upsert of auctions for a county, keyed by normalized URL."""
    data = request.get_json(silent=True) or {}
    items = data.get("auctions")
    if not isinstance(items, list):
        raise ValidationError("Auctions array is required")

    if db.session.get(County, county_id) is None:
        raise NotFoundError("County not found")

    results = []
    for item in items:
        raw_url = (item or {}).get("url") if isinstance(item, dict) else None
        if not raw_url:
            results.append({"url": raw_url, "status": "error", "error": "url is required"})
            continue
        try:
            url = normalize_auction_url(raw_url)
            auction_date = _parse_date(item.get("auctionDate"))
            auction = Auction.query.filter_by(url=url).first()
            if auction is None:
                auction = Auction(
                    url=url,
                    title=item.get("title"),
                    auction_date=auction_date,
                    county_id=county_id,
                )
                db.session.add(auction)
            else:
                if item.get("title"):
                    auction.title = item["title"]
                if auction_date:
                    auction.auction_date = auction_date
            db.session.commit()
            results.append({"url": url, "id": auction.id, "status": "success"})
        except ValidationError as e:
            db.session.rollback()
            results.append({"url": raw_url, "status": "error", "error": e.message})

    success_count = sum(1 for r in results if r["status"] == "success")
    return jsonify({
        "success": True,
        "message": f"Added/updated {success_count} of {len(items)} auctions",
        "results": results,
    })
