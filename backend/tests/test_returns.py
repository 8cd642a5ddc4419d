"""
Return processing tests.

A return reverses a whole sale exactly once, restores stock for products
that still exist and never touches the original record.
"""

import pytest

from conftest import sale_item
from storefront.errors import AlreadyReturned, CannotReturnAReturn, SaleNotFound
from storefront.extensions import db
from storefront.models import AuditLog, Product, Sale
from storefront.services import return_service, sales_service
from storefront.validation import parse_sale_request


@pytest.fixture
def committed_sale(make_product, cashier):
    brake = make_product(name="Brake Pad", stock_qty=5, selling_price=100, getting_price=60)
    oil = make_product(name="Engine Oil", stock_qty=4, selling_price=250, getting_price=200)
    request = parse_sale_request({
        "items": [sale_item(brake, 2), sale_item(oil, 1)],
        "discount": 50,
        "discountType": "flat",
        "paymentMethod": "card",
    })
    result = sales_service.create_sale(request, admin_id=cashier.id)
    return result, brake, oil


class TestProcessReturn:

    def test_return_copies_sale_and_restores_stock(self, committed_sale, cashier, db_session):
        result, brake, oil = committed_sale

        returned = return_service.process_return(result.sale_id, admin_id=cashier.id)

        assert returned.bill_no == f"RTN-{result.bill_no}"
        record = db.session.get(Sale, returned.return_id)
        original = db.session.get(Sale, result.sale_id)

        assert record.type == "RETURN"
        assert record.original_sale_id == original.id
        assert record.total == original.total == 400
        assert record.discount_amount == 50
        assert record.profit == -original.profit
        assert record.payment_method == "card"
        assert [(l.product_id, l.qty) for l in record.lines] == [(brake.id, 2), (oil.id, 1)]

        assert db.session.get(Product, brake.id).stock_qty == 5
        assert db.session.get(Product, oil.id).stock_qty == 4

        entry = db_session.query(AuditLog).filter_by(action="RETURN_SALE").one()
        assert entry.data["saleId"] == result.sale_id
        assert entry.data["skippedProductIds"] == []

    def test_second_return_is_rejected(self, committed_sale, cashier, db_session):
        result, brake, _ = committed_sale
        return_service.process_return(result.sale_id, admin_id=cashier.id)

        with pytest.raises(AlreadyReturned, match="Sale already returned"):
            return_service.process_return(result.sale_id, admin_id=cashier.id)

        assert db_session.query(Sale).filter_by(type="RETURN").count() == 1
        assert db.session.get(Product, brake.id).stock_qty == 5

    def test_cannot_return_a_return(self, committed_sale, cashier, db_session):
        result, _, _ = committed_sale
        returned = return_service.process_return(result.sale_id, admin_id=cashier.id)

        with pytest.raises(CannotReturnAReturn, match="Cannot return a return"):
            return_service.process_return(returned.return_id, admin_id=cashier.id)

    def test_unknown_sale(self, cashier, db_session):
        with pytest.raises(SaleNotFound):
            return_service.process_return("77", admin_id=cashier.id)

    def test_deleted_product_is_skipped(self, committed_sale, cashier, db_session):
        result, brake, oil = committed_sale
        oil_id = oil.id
        db_session.delete(oil)
        db_session.commit()

        return_service.process_return(result.sale_id, admin_id=cashier.id)

        assert db.session.get(Product, brake.id).stock_qty == 5
        assert db.session.get(Product, oil_id) is None
        entry = db_session.query(AuditLog).filter_by(action="RETURN_SALE").one()
        assert entry.data["skippedProductIds"] == [oil_id]


class TestReturnRoute:

    def test_return_via_api(self, client, cashier_headers, committed_sale):
        result, _, _ = committed_sale

        resp = client.post(f"/api/sales/{result.sale_id}", headers=cashier_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["message"] == "Return processed"
        assert body["billNo"] == f"RTN-{result.bill_no}"

        again = client.post(f"/api/sales/{result.sale_id}", headers=cashier_headers)
        assert again.status_code == 400
        assert again.get_json()["error"] == "Sale already returned"

    def test_return_unknown_sale(self, client, cashier_headers):
        resp = client.post("/api/sales/999", headers=cashier_headers)
        assert resp.status_code == 404

    def test_return_malformed_id(self, client, cashier_headers):
        resp = client.post("/api/sales/abc", headers=cashier_headers)
        assert resp.status_code == 400
