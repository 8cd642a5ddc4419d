"""
Checkout tests.

Verifies:
- Totals, discounts and profit are computed from the submitted lines
- Request validation rejects malformed sales before any write
- Stock is decremented atomically and never oversold
- Bill numbers and audit entries are written with the sale
"""

import json
import re

import pytest

from conftest import sale_item
from storefront.errors import InsufficientStock, InvalidIdentifier, ProductNotFound, ValidationFailed
from storefront.extensions import db
from storefront.models import AuditLog, Product, Sale
from storefront.services import sales_service
from storefront.services.sales_service import compute_totals, round_half_up
from storefront.validation import MAX_PRICE, parse_sale_request


def _payload(*items, **extra):
    body = {"items": list(items), "paymentMethod": "cash"}
    body.update(extra)
    return body


# =============================================================================
# TOTALS
# =============================================================================


class TestComputeTotals:

    def _lines(self, make_product, db_session):
        a = make_product(selling_price=100, getting_price=60)
        b = make_product(selling_price=250, getting_price=200)
        request = parse_sale_request(_payload(sale_item(a, 2), sale_item(b, 1)))
        return sales_service.validate_sale(request)

    def test_flat_discount(self, make_product, db_session):
        totals = compute_totals(self._lines(make_product, db_session), 50, "flat")
        assert totals.subtotal == 450
        assert totals.discount_amount == 50
        assert totals.total == 400
        assert totals.total_cost == 320
        assert totals.profit == 80

    def test_percent_discount_rounds_half_up(self, make_product, db_session):
        # 450 * 2.5% = 11.25 -> 11
        totals = compute_totals(self._lines(make_product, db_session), 2.5, "percent")
        assert totals.discount_amount == 11
        assert totals.total == 439

    def test_total_is_clamped_at_zero(self, make_product, db_session):
        totals = compute_totals(self._lines(make_product, db_session), 1000, "flat")
        assert totals.discount_amount == 1000
        assert totals.total == 0
        assert totals.profit == -320

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.4999) == 2


# =============================================================================
# REQUEST VALIDATION
# =============================================================================


class TestParseSaleRequest:

    def _item(self, **overrides):
        item = {
            "productId": "1",
            "productName": "Brake Pad",
            "sku": "BP-1",
            "qty": 2,
            "unitPrice": 100,
            "gettingPrice": 60,
            "subtotal": 200,
        }
        item.update(overrides)
        return item

    def test_defaults(self):
        request = parse_sale_request(_payload(self._item()))
        assert request.discount == 0
        assert request.discount_type == "flat"
        assert request.payment_method == "cash"
        assert request.items[0].qty == 2

    @pytest.mark.parametrize(
        "payload,message",
        [
            (None, "Invalid JSON payload"),
            ({"items": [], "paymentMethod": "cash"}, "At least one item required"),
            ({"paymentMethod": "cash"}, "At least one item required"),
        ],
    )
    def test_rejects_empty(self, payload, message):
        with pytest.raises(ValidationFailed, match=message):
            parse_sale_request(payload)

    def test_rejects_unknown_top_level_field(self):
        with pytest.raises(ValidationFailed, match="Unknown field in sale: total"):
            parse_sale_request(_payload(self._item(), total=1))

    def test_rejects_missing_item_field(self):
        item = self._item()
        del item["gettingPrice"]
        with pytest.raises(ValidationFailed, match="missing required fields: gettingPrice"):
            parse_sale_request(_payload(item))

    def test_rejects_zero_qty(self):
        with pytest.raises(ValidationFailed, match="qty must be >= 1"):
            parse_sale_request(_payload(self._item(qty=0, subtotal=0)))

    def test_rejects_subtotal_mismatch(self):
        with pytest.raises(ValidationFailed, match="subtotal must equal"):
            parse_sale_request(_payload(self._item(subtotal=150)))

    def test_rejects_bad_payment_method(self):
        with pytest.raises(ValidationFailed, match="paymentMethod must be one of"):
            parse_sale_request({"items": [self._item()], "paymentMethod": "cheque"})

    def test_requires_payment_method(self):
        with pytest.raises(ValidationFailed, match="paymentMethod is required"):
            parse_sale_request({"items": [self._item()]})

    def test_rejects_negative_discount(self):
        with pytest.raises(ValidationFailed, match="discount must be >= 0"):
            parse_sale_request(_payload(self._item(), discount=-5))

    def test_flat_discount_must_be_whole(self):
        with pytest.raises(ValidationFailed):
            parse_sale_request(_payload(self._item(), discount=2.5))

    def test_percent_discount_may_be_fractional(self):
        request = parse_sale_request(_payload(self._item(), discount=2.5, discountType="percent"))
        assert request.discount == 2.5

    @pytest.mark.parametrize("discount", [float("nan"), float("inf"), float("-inf")])
    def test_percent_discount_must_be_finite(self, discount):
        with pytest.raises(ValidationFailed, match="discount must be a finite number"):
            parse_sale_request(_payload(self._item(), discount=discount, discountType="percent"))

    @pytest.mark.parametrize("discount", [100.5, 10**400])
    def test_percent_discount_is_capped(self, discount):
        with pytest.raises(ValidationFailed, match="discount must be <= 100"):
            parse_sale_request(_payload(self._item(), discount=discount, discountType="percent"))

    def test_flat_discount_is_capped(self):
        with pytest.raises(ValidationFailed, match=f"discount must be <= {MAX_PRICE}"):
            parse_sale_request(_payload(self._item(), discount=10**20))

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"unitPrice": 10**19, "subtotal": 2 * 10**19}, "unitPrice"),
            ({"gettingPrice": MAX_PRICE + 1}, "gettingPrice"),
            ({"qty": 10**19, "unitPrice": 0, "subtotal": 0}, "qty"),
        ],
    )
    def test_amounts_are_capped(self, overrides, field):
        with pytest.raises(ValidationFailed, match=rf"items\[0\]\.{field} must be <="):
            parse_sale_request(_payload(self._item(**overrides)))

    def test_decimal_price_is_rejected(self):
        with pytest.raises(ValidationFailed, match="unitPrice must be an integer"):
            parse_sale_request(_payload(self._item(unitPrice=99.5, subtotal=199)))


# =============================================================================
# VALIDATE + COMMIT
# =============================================================================


class TestCreateSale:

    def test_commit_decrements_stock_and_writes_audit(self, make_product, cashier, db_session):
        product = make_product(stock_qty=5, selling_price=100, getting_price=60)

        result = sales_service.create_sale(
            parse_sale_request(_payload(sale_item(product, 3))), admin_id=cashier.id
        )

        assert result.total == 300
        assert result.profit == 120
        assert re.fullmatch(r"REDA-\d{8}-00001", result.bill_no)
        assert db.session.get(Product, product.id).stock_qty == 2

        sale = db.session.get(Sale, result.sale_id)
        assert sale.type == "SALE"
        assert sale.created_by == cashier.id
        assert [line.qty for line in sale.lines] == [3]

        entry = db_session.query(AuditLog).filter_by(action="CREATE_SALE").one()
        assert entry.admin_id == cashier.id
        assert entry.data["billNo"] == result.bill_no

    def test_insufficient_stock_writes_nothing(self, make_product, cashier, db_session):
        product = make_product(name="Brake Pad", stock_qty=2)

        with pytest.raises(InsufficientStock, match="Insufficient stock for: Brake Pad"):
            sales_service.create_sale(
                parse_sale_request(_payload(sale_item(product, 3))), admin_id=cashier.id
            )

        assert db_session.query(Sale).count() == 0
        assert db.session.get(Product, product.id).stock_qty == 2

    def test_duplicate_lines_are_checked_together(self, make_product, cashier, db_session):
        product = make_product(stock_qty=3)

        with pytest.raises(InsufficientStock):
            sales_service.create_sale(
                parse_sale_request(_payload(sale_item(product, 2), sale_item(product, 2))),
                admin_id=cashier.id,
            )

    def test_failing_second_line_leaves_first_untouched(self, make_product, cashier, db_session):
        first = make_product(stock_qty=5)
        second = make_product(name="Clutch Plate", stock_qty=1)

        with pytest.raises(InsufficientStock, match="Insufficient stock for: Clutch Plate"):
            sales_service.create_sale(
                parse_sale_request(_payload(sale_item(first, 3), sale_item(second, 2))),
                admin_id=cashier.id,
            )

        assert db_session.query(Sale).count() == 0
        assert db.session.get(Product, first.id).stock_qty == 5
        assert db.session.get(Product, second.id).stock_qty == 1

    def test_commit_failure_on_second_line_rolls_back_first(self, make_product, cashier, db_session):
        first = make_product(stock_qty=5)
        second = make_product(stock_qty=5)
        lines = sales_service.validate_sale(
            parse_sale_request(_payload(sale_item(first, 3), sale_item(second, 2)))
        )

        # Another checkout takes the second product's stock after validation
        db.session.get(Product, second.id).stock_qty = 1
        db.session.commit()

        with pytest.raises(InsufficientStock):
            sales_service.commit_sale(
                lines, discount=0, discount_type="flat", payment_method="cash", admin_id=cashier.id
            )

        assert db.session.get(Product, first.id).stock_qty == 5
        assert db.session.get(Product, second.id).stock_qty == 1
        assert db_session.query(Sale).count() == 0
        assert db_session.query(AuditLog).filter_by(action="CREATE_SALE").count() == 0

    def test_unknown_product(self, cashier, db_session):
        item = {
            "productId": "999",
            "productName": "Ghost",
            "sku": "",
            "qty": 1,
            "unitPrice": 10,
            "gettingPrice": 5,
            "subtotal": 10,
        }
        with pytest.raises(ProductNotFound, match="Product not found: 999"):
            sales_service.create_sale(parse_sale_request(_payload(item)), admin_id=cashier.id)

    def test_malformed_product_id(self, cashier, db_session):
        item = {
            "productId": "abc",
            "productName": "Ghost",
            "sku": "",
            "qty": 1,
            "unitPrice": 10,
            "gettingPrice": 5,
            "subtotal": 10,
        }
        with pytest.raises(InvalidIdentifier):
            sales_service.create_sale(parse_sale_request(_payload(item)), admin_id=cashier.id)

    def test_concurrent_checkouts_never_oversell(self, make_product, cashier, db_session):
        """Both validate against stock 5; only the first commit may take 4."""
        product = make_product(stock_qty=5)
        request = parse_sale_request(_payload(sale_item(product, 4)))

        first = sales_service.validate_sale(request)
        second = sales_service.validate_sale(request)

        sales_service.commit_sale(
            first, discount=0, discount_type="flat", payment_method="cash", admin_id=cashier.id
        )
        with pytest.raises(InsufficientStock):
            sales_service.commit_sale(
                second, discount=0, discount_type="flat", payment_method="cash", admin_id=cashier.id
            )

        assert db.session.get(Product, product.id).stock_qty == 1
        assert db_session.query(Sale).count() == 1

    def test_two_half_stock_sales_both_commit(self, make_product, cashier, db_session):
        product = make_product(stock_qty=4)
        request = parse_sale_request(_payload(sale_item(product, 2)))

        first = sales_service.validate_sale(request)
        second = sales_service.validate_sale(request)
        for lines in (first, second):
            sales_service.commit_sale(
                lines, discount=0, discount_type="flat", payment_method="cash", admin_id=cashier.id
            )

        assert db.session.get(Product, product.id).stock_qty == 0
        assert db_session.query(Sale).count() == 2

    def test_bill_numbers_increase_within_a_day(self, make_product, cashier, db_session):
        product = make_product(stock_qty=10)
        bills = [
            sales_service.create_sale(
                parse_sale_request(_payload(sale_item(product, 1))), admin_id=cashier.id
            ).bill_no
            for _ in range(3)
        ]
        assert [b[-5:] for b in bills] == ["00001", "00002", "00003"]


# =============================================================================
# HTTP
# =============================================================================


class TestSalesRoutes:

    def test_requires_auth(self, client, db_session):
        resp = client.post("/api/sales", json={})
        assert resp.status_code == 401

    def test_checkout(self, client, cashier_headers, make_product):
        product = make_product(stock_qty=5, selling_price=100, getting_price=60)

        resp = client.post(
            "/api/sales",
            json=_payload(sale_item(product, 2), discount=10, discountType="percent"),
            headers=cashier_headers,
        )

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["total"] == 180
        assert body["profit"] == 60
        assert body["billNo"].startswith("REDA-")
        assert body["saleId"]

    def test_checkout_insufficient_stock(self, client, cashier_headers, make_product):
        product = make_product(name="Oil Filter", stock_qty=1)

        resp = client.post("/api/sales", json=_payload(sale_item(product, 2)), headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Insufficient stock for: Oil Filter"

    def test_checkout_validation_error(self, client, cashier_headers, db_session):
        resp = client.post("/api/sales", json={"items": []}, headers=cashier_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "At least one item required"

    @pytest.mark.parametrize(
        "body",
        [
            '"discount": NaN, "discountType": "percent"',
            '"discount": Infinity, "discountType": "percent"',
            '"discount": 100000000000000000000',
        ],
    )
    def test_checkout_rejects_out_of_range_discount(self, client, cashier_headers, make_product, body):
        product = make_product(stock_qty=5)
        item = json.dumps(sale_item(product, 1))

        resp = client.post(
            "/api/sales",
            data=f'{{"items": [{item}], "paymentMethod": "cash", {body}}}',
            content_type="application/json",
            headers=cashier_headers,
        )

        assert resp.status_code == 400
        assert resp.get_json()["error"].startswith("discount must be")
        assert db.session.get(Product, product.id).stock_qty == 5

    def test_checkout_rejects_oversized_price(self, client, cashier_headers, make_product):
        product = make_product(stock_qty=5)
        item = sale_item(product, 1, unit_price=10**19)

        resp = client.post("/api/sales", json=_payload(item), headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json()["error"] == f"items[0].unitPrice must be <= {MAX_PRICE}"

    def test_list_and_get(self, client, cashier_headers, make_product):
        product = make_product(stock_qty=5)
        created = client.post(
            "/api/sales", json=_payload(sale_item(product, 1)), headers=cashier_headers
        ).get_json()

        listing = client.get("/api/sales", headers=cashier_headers).get_json()
        assert listing["total"] == 1
        assert listing["sales"][0]["billNo"] == created["billNo"]

        resp = client.get(f"/api/sales/{created['saleId']}", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.get_json()["sale"]["items"][0]["productId"] == product.id

    def test_get_unknown_sale(self, client, cashier_headers):
        resp = client.get("/api/sales/4242", headers=cashier_headers)
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Sale not found"

    def test_get_malformed_id(self, client, cashier_headers):
        resp = client.get("/api/sales/not-an-id", headers=cashier_headers)
        assert resp.status_code == 400
