# Overview: Sales reports over daily/monthly/yearly windows; read-only.

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import current_app, render_template

from ..extensions import db
from ..errors import ValidationFailed
from ..models import Product, Sale
from ..models.sales import SALE_TYPE_RETURN, SALE_TYPE_SALE
from storefront.time_utils import to_utc_z, utcnow


REPORT_TYPES = ("daily", "monthly", "yearly")

END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class ReportWindow:
    report_type: str
    anchor: date
    start: datetime  # UTC-naive, inclusive
    end: datetime    # UTC-naive, inclusive

    @property
    def label(self) -> str:
        if self.report_type == "daily":
            return self.anchor.isoformat()
        if self.report_type == "monthly":
            return self.anchor.strftime("%Y-%m")
        return self.anchor.strftime("%Y")


@dataclass
class SalesReport:
    window: ReportWindow
    sales: list[Sale]
    returns: list[Sale]
    summary: dict
    item_breakdown: list[dict]
    dead_stock: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "period": {
                "type": self.window.report_type,
                "label": self.window.label,
                "startDate": to_utc_z(self.window.start),
                "endDate": to_utc_z(self.window.end),
            },
            "summary": self.summary,
            "itemBreakdown": self.item_breakdown,
            "deadStock": self.dead_stock,
        }


def _report_zone() -> ZoneInfo:
    name = current_app.config.get("REPORT_TIMEZONE", "UTC")
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        current_app.logger.warning("Unknown REPORT_TIMEZONE %r, falling back to UTC", name)
        return ZoneInfo("UTC")


def _to_utc_naive(local: datetime) -> datetime:
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def report_window(report_type: str, anchor: date, tz: ZoneInfo | None = None) -> ReportWindow:
    """
    Inclusive [start, end] bounds for the period containing anchor.

    daily   -> 00:00:00.000 .. 23:59:59.999 of anchor
    monthly -> first instant .. last instant of anchor's month
    yearly  -> Jan 1 00:00:00.000 .. Dec 31 23:59:59.999

    Bounds are cut in tz (store local time) and returned as UTC.
    """
    tz = tz or ZoneInfo("UTC")

    if report_type == "daily":
        first, last = anchor, anchor
    elif report_type == "monthly":
        days_in_month = calendar.monthrange(anchor.year, anchor.month)[1]
        first = anchor.replace(day=1)
        last = anchor.replace(day=days_in_month)
    elif report_type == "yearly":
        first = date(anchor.year, 1, 1)
        last = date(anchor.year, 12, 31)
    else:
        raise ValidationFailed(f"type must be one of: {', '.join(REPORT_TYPES)}")

    start_local = datetime.combine(first, time.min, tzinfo=tz)
    end_local = datetime.combine(last, END_OF_DAY, tzinfo=tz)

    return ReportWindow(
        report_type=report_type,
        anchor=anchor,
        start=_to_utc_naive(start_local),
        end=_to_utc_naive(end_local),
    )


def resolve_window(report_type: str | None, date_str: str | None) -> ReportWindow:
    """Parse ?type=&date= query params; defaults are daily / today (store time)."""
    tz = _report_zone()
    report_type = (report_type or "daily").strip().lower()
    if report_type not in REPORT_TYPES:
        raise ValidationFailed(f"type must be one of: {', '.join(REPORT_TYPES)}")

    if date_str:
        try:
            anchor = date.fromisoformat(date_str.strip()[:10])
        except ValueError:
            raise ValidationFailed("date must be an ISO date (YYYY-MM-DD)")
    else:
        anchor = utcnow().replace(tzinfo=timezone.utc).astimezone(tz).date()

    return report_window(report_type, anchor, tz)


def _records_in_window(record_type: str, window: ReportWindow) -> list[Sale]:
    return (
        db.session.query(Sale)
        .filter(
            Sale.type == record_type,
            Sale.created_at >= window.start,
            Sale.created_at <= window.end,
        )
        .order_by(Sale.created_at.asc(), Sale.id.asc())
        .all()
    )


def summarize(sales: list[Sale], returns: list[Sale]) -> dict:
    total_revenue = sum(s.total for s in sales)
    total_cost = sum(s.total_cost for s in sales)
    total_discount = sum(s.discount_amount for s in sales)
    total_returns = sum(r.total for r in returns)
    net_revenue = total_revenue - total_returns

    return {
        "totalRevenue": total_revenue,
        "totalCost": total_cost,
        "totalDiscount": total_discount,
        "totalReturns": total_returns,
        "netRevenue": net_revenue,
        "netProfit": net_revenue - total_cost,
        "totalSales": len(sales),
        "totalReturnCount": len(returns),
    }


def item_breakdown(sales: list[Sale]) -> list[dict]:
    """SALE lines grouped per product, most units sold first."""
    items: dict[int, dict] = {}
    for sale in sales:
        for line in sale.lines:
            row = items.setdefault(
                line.product_id,
                {"productId": line.product_id, "name": line.product_name, "qty": 0, "revenue": 0},
            )
            row["qty"] += line.qty
            row["revenue"] += line.subtotal
    return sorted(items.values(), key=lambda row: row["qty"], reverse=True)


def dead_stock(sold_product_ids: set[int]) -> list[dict]:
    """In-stock products with no sales in the window."""
    products = (
        db.session.query(Product)
        .filter(Product.stock_qty > 0)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    return [
        {
            "id": p.id,
            "name": p.name,
            "sku": p.sku,
            "stockQty": p.stock_qty,
            "sellingPrice": p.selling_price,
        }
        for p in products
        if p.id not in sold_product_ids
    ]


def build_report(window: ReportWindow) -> SalesReport:
    sales = _records_in_window(SALE_TYPE_SALE, window)
    returns = _records_in_window(SALE_TYPE_RETURN, window)
    breakdown = item_breakdown(sales)

    return SalesReport(
        window=window,
        sales=sales,
        returns=returns,
        summary=summarize(sales, returns),
        item_breakdown=breakdown,
        dead_stock=dead_stock({row["productId"] for row in breakdown}),
    )


def sales_report(report_type: str | None, date_str: str | None) -> dict:
    return build_report(resolve_window(report_type, date_str)).to_dict()


def format_rs(amount) -> str:
    return f"Rs. {amount:,.2f}"


def render_report_html(report_type: str | None, date_str: str | None) -> tuple[str, str]:
    """Static HTML export of the same aggregation. Returns (html, period label)."""
    report = build_report(resolve_window(report_type, date_str))
    html = render_template(
        "reports/summary.html",
        report=report,
        summary=report.summary,
        store_name=current_app.config.get("STORE_NAME", "Store"),
        generated_at=to_utc_z(utcnow()),
    )
    return html, report.window.label
