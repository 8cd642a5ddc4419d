"""
Return Processing Service

WHY: A return reverses a whole sale. It is recorded as a compensating Sale
row (type RETURN) instead of editing or deleting the original, so sales
history stays append-only and reports can net returns against revenue.

RULES (checked in this order, first failure wins):
1. The sale exists                      -> SaleNotFound
2. The sale is not itself a RETURN      -> CannotReturnAReturn
3. No RETURN references it yet          -> AlreadyReturned

EFFECTS (one transaction):
- RETURN row: bill_no "RTN-<original>", amounts and lines copied verbatim,
  profit negated, original_sale_id set
- stock_qty += qty for every original line whose product still exists
- RETURN_SALE audit entry
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..errors import AlreadyReturned, CannotReturnAReturn, SaleNotFound, StorageUnavailable, parse_identifier
from ..models import Product, Sale, SaleLine
from ..models.sales import SALE_TYPE_RETURN
from storefront.time_utils import utcnow
from .audit_service import append_audit_log, ACTION_RETURN_SALE
from .bill_number_service import return_bill_number
from .concurrency import run_with_retry


@dataclass(frozen=True)
class ReturnResult:
    return_id: int
    bill_no: str

    def to_dict(self) -> dict:
        return {"returnId": self.return_id, "billNo": self.bill_no}


def _load_returnable_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if not sale:
        raise SaleNotFound("Sale not found")

    if sale.type == SALE_TYPE_RETURN:
        raise CannotReturnAReturn()

    existing = (
        db.session.query(Sale.id)
        .filter(Sale.original_sale_id == sale.id, Sale.type == SALE_TYPE_RETURN)
        .first()
    )
    if existing:
        raise AlreadyReturned()

    return sale


def _restore_stock(product_id: int, qty: int, now) -> bool:
    """Add qty back; returns False when the product has since been deleted."""
    stmt = (
        update(Product)
        .where(Product.id == product_id)
        .values(stock_qty=Product.stock_qty + qty, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(stmt).rowcount == 1


def process_return(sale_id, *, admin_id: int | None) -> ReturnResult:
    """Reverse a committed SALE. The acting admin is passed in explicitly."""
    sale_pk = parse_identifier(sale_id, label="ID")

    def _op() -> ReturnResult:
        now = utcnow()
        try:
            original = _load_returnable_sale(sale_pk)

            return_sale = Sale(
                bill_no=return_bill_number(original.bill_no),
                type=SALE_TYPE_RETURN,
                original_sale_id=original.id,
                subtotal=original.subtotal,
                discount=original.discount,
                discount_type=original.discount_type,
                discount_amount=original.discount_amount,
                total=original.total,
                total_cost=original.total_cost,
                profit=-original.profit,
                payment_method=original.payment_method,
                created_by=admin_id,
                created_at=now,
            )
            for line in original.lines:
                return_sale.lines.append(SaleLine(
                    position=line.position,
                    product_id=line.product_id,
                    product_name=line.product_name,
                    sku=line.sku,
                    qty=line.qty,
                    unit_price=line.unit_price,
                    getting_price=line.getting_price,
                    subtotal=line.subtotal,
                ))
            db.session.add(return_sale)
            db.session.flush()

            skipped = [
                line.product_id
                for line in original.lines
                if not _restore_stock(line.product_id, line.qty, now)
            ]

            append_audit_log(
                action=ACTION_RETURN_SALE,
                admin_id=admin_id,
                data={
                    "saleId": original.id,
                    "returnId": return_sale.id,
                    "billNo": return_sale.bill_no,
                    "total": return_sale.total,
                    "skippedProductIds": skipped,
                },
            )
            db.session.commit()
        except IntegrityError as exc:
            # Lost the race against a concurrent return of the same sale
            db.session.rollback()
            raise AlreadyReturned() from exc
        except Exception:
            db.session.rollback()
            raise

        if skipped:
            current_app.logger.info(
                "Return %s skipped stock restore for deleted products %s", return_sale.bill_no, skipped
            )
        return ReturnResult(return_id=return_sale.id, bill_no=return_sale.bill_no)

    try:
        result = run_with_retry(_op)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Return commit failed")
        raise StorageUnavailable() from exc

    current_app.logger.info("Return %s committed by admin %s", result.bill_no, admin_id)
    return result
