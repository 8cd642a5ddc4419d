"""
Sales Service - POS checkout

WHY: A sale is the only operation that mutates stock on behalf of a customer,
so it must never oversell and never leave half a sale behind.

FLOW:
1. validate_sale()  - read-only: every line resolves to a product with
                      enough stock. Nothing is written if any line fails.
2. commit_sale()    - one DB transaction: bill number, sale row + lines,
                      conditional stock decrements, CREATE_SALE audit entry.

OVERSELL POLICY:
Validation reads a stock snapshot; commit re-checks atomically with
UPDATE ... SET stock_qty = stock_qty - :qty WHERE stock_qty >= :qty.
If another checkout consumed the stock in between, the decrement matches no
row, the whole transaction is rolled back and InsufficientStock is raised.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import (
    InsufficientStock,
    ProductNotFound,
    SaleNotFound,
    StorageUnavailable,
    parse_identifier,
)
from ..models import Product, Sale, SaleLine
from ..models.sales import SALE_TYPE_SALE
from ..validation import SaleRequest
from storefront.time_utils import utcnow
from .audit_service import append_audit_log, ACTION_CREATE_SALE
from .bill_number_service import next_bill_number
from .concurrency import run_with_retry


@dataclass(frozen=True)
class ValidatedLine:
    product_id: int
    product_name: str
    sku: str
    qty: int
    unit_price: int
    getting_price: int
    subtotal: int


@dataclass(frozen=True)
class SaleTotals:
    subtotal: int
    discount_amount: int
    total: int
    total_cost: int
    profit: int


@dataclass(frozen=True)
class SaleResult:
    sale_id: int
    bill_no: str
    total: int
    profit: int

    def to_dict(self) -> dict:
        return {
            "saleId": self.sale_id,
            "billNo": self.bill_no,
            "total": self.total,
            "profit": self.profit,
        }


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative amounts (2.5 -> 3, not 2)."""
    return int(math.floor(value + 0.5))


def compute_totals(lines, discount: float, discount_type: str) -> SaleTotals:
    subtotal = sum(line.subtotal for line in lines)

    if discount_type == "percent":
        discount_amount = round_half_up(subtotal * discount / 100)
    else:
        discount_amount = int(discount)

    # Clamp on total only; discount_amount keeps what the cashier entered
    total = max(0, subtotal - discount_amount)
    total_cost = sum(line.getting_price * line.qty for line in lines)

    return SaleTotals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        total=total,
        total_cost=total_cost,
        profit=total - total_cost,
    )


def validate_sale(request: SaleRequest) -> list[ValidatedLine]:
    """
    Resolve every line to an existing product with sufficient stock.

    Lines for the same product are checked against their combined quantity.
    Raises on the first failing line; performs no writes.
    """
    lines: list[ValidatedLine] = []
    products: dict[int, Product] = {}
    requested: dict[int, int] = {}

    for item in request.items:
        product_id = parse_identifier(item.product_id, label="product ID")

        product = products.get(product_id)
        if product is None:
            product = db.session.get(Product, product_id)
            if not product:
                raise ProductNotFound(f"Product not found: {item.product_id}")
            products[product_id] = product

        requested[product_id] = requested.get(product_id, 0) + item.qty
        if product.stock_qty < requested[product_id]:
            raise InsufficientStock(
                product.name,
                details={
                    "productId": product_id,
                    "requestedQty": requested[product_id],
                    "stockQty": product.stock_qty,
                },
            )

        lines.append(ValidatedLine(
            product_id=product_id,
            product_name=item.product_name,
            sku=item.sku,
            qty=item.qty,
            unit_price=item.unit_price,
            getting_price=item.getting_price,
            subtotal=item.subtotal,
        ))

    return lines


def _decrement_stock(line: ValidatedLine, now: datetime) -> None:
    stmt = (
        update(Product)
        .where(Product.id == line.product_id, Product.stock_qty >= line.qty)
        .values(stock_qty=Product.stock_qty - line.qty, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if result.rowcount == 1:
        return

    product = db.session.get(Product, line.product_id)
    if product is None:
        raise ProductNotFound(f"Product not found: {line.product_id}")
    current_app.logger.warning(
        "Stock decrement rejected for product %s (wanted %s)", line.product_id, line.qty
    )
    raise InsufficientStock(product.name, details={"productId": line.product_id, "requestedQty": line.qty})


def commit_sale(
    lines: list[ValidatedLine],
    *,
    discount: float,
    discount_type: str,
    payment_method: str,
    admin_id: int | None,
) -> SaleResult:
    """
    Persist a validated sale and apply its stock effect atomically.

    Sale row is inserted before the decrements so the bill number and
    sale id exist for the audit entry; all of it commits or none of it does.
    """
    totals = compute_totals(lines, discount, discount_type)

    def _op() -> SaleResult:
        now = utcnow()
        try:
            sale = Sale(
                bill_no=next_bill_number(now),
                type=SALE_TYPE_SALE,
                subtotal=totals.subtotal,
                discount=discount,
                discount_type=discount_type,
                discount_amount=totals.discount_amount,
                total=totals.total,
                total_cost=totals.total_cost,
                profit=totals.profit,
                payment_method=payment_method,
                created_by=admin_id,
                created_at=now,
            )
            for position, line in enumerate(lines):
                sale.lines.append(SaleLine(
                    position=position,
                    product_id=line.product_id,
                    product_name=line.product_name,
                    sku=line.sku,
                    qty=line.qty,
                    unit_price=line.unit_price,
                    getting_price=line.getting_price,
                    subtotal=line.subtotal,
                ))
            db.session.add(sale)
            db.session.flush()

            for line in lines:
                _decrement_stock(line, now)

            append_audit_log(
                action=ACTION_CREATE_SALE,
                admin_id=admin_id,
                data={"saleId": sale.id, "billNo": sale.bill_no, "total": sale.total},
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        return SaleResult(sale_id=sale.id, bill_no=sale.bill_no, total=sale.total, profit=sale.profit)

    try:
        result = run_with_retry(_op)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Sale commit failed")
        raise StorageUnavailable() from exc

    current_app.logger.info(
        "Sale %s committed by admin %s: total=%s profit=%s",
        result.bill_no, admin_id, result.total, result.profit,
    )
    return result


def create_sale(request: SaleRequest, *, admin_id: int | None) -> SaleResult:
    """Validate then commit. The acting admin is passed in explicitly."""
    lines = validate_sale(request)
    return commit_sale(
        lines,
        discount=request.discount,
        discount_type=request.discount_type,
        payment_method=request.payment_method,
        admin_id=admin_id,
    )


def get_sale(sale_id) -> Sale:
    sale = db.session.get(Sale, parse_identifier(sale_id, label="ID"))
    if not sale:
        raise SaleNotFound("Sale not found")
    return sale


def list_sales(*, page: int = 1, limit: int = 20) -> dict:
    """Newest first, all record types, with a total count for paging."""
    page = max(page, 1)
    limit = min(max(limit, 1), 100)

    query = db.session.query(Sale)
    total = query.count()
    sales = (
        query.order_by(Sale.created_at.desc(), Sale.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "sales": [s.to_dict() for s in sales],
        "total": total,
        "page": page,
        "limit": limit,
    }
