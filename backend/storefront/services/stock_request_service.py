# Overview: Out-of-stock item requests from customers.

from __future__ import annotations

from ..extensions import db
from ..errors import NotFound, ValidationFailed, parse_identifier
from ..models import StockRequest
from ..models.content import STOCK_REQUEST_STATUSES
from ..validation import optional_text, require_text
from storefront.time_utils import utcnow


# The public list is a short "others are waiting for" teaser
PUBLIC_LIMIT = 6
ADMIN_LIMIT = 200


def submit_request(payload: dict) -> StockRequest:
    if not isinstance(payload, dict):
        raise ValidationFailed("Invalid JSON payload")

    stock_request = StockRequest(
        name=require_text(payload, "name", max_len=80),
        phone=require_text(payload, "phone", max_len=30),
        item_name=require_text(payload, "itemName", min_len=2, max_len=200),
        details=optional_text(payload, "details", max_len=500),
        status="pending",
        created_at=utcnow(),
    )
    db.session.add(stock_request)
    db.session.commit()
    return stock_request


def list_requests(*, public: bool = False) -> list[StockRequest]:
    query = db.session.query(StockRequest)
    if public:
        query = query.filter(StockRequest.status == "pending")
    return (
        query.order_by(StockRequest.created_at.desc(), StockRequest.id.desc())
        .limit(PUBLIC_LIMIT if public else ADMIN_LIMIT)
        .all()
    )


def set_request_status(payload: dict) -> StockRequest:
    if not isinstance(payload, dict) or not payload.get("id") or payload.get("status") not in STOCK_REQUEST_STATUSES:
        raise ValidationFailed("Invalid request")

    stock_request = db.session.get(StockRequest, parse_identifier(payload["id"]))
    if not stock_request:
        raise NotFound("Not found")

    stock_request.status = payload["status"]
    stock_request.updated_at = utcnow()
    db.session.commit()
    return stock_request
