from flask import Blueprint, jsonify, request, make_response

from ..decorators import require_auth, require_role
from ..models.auth import ROLE_ADMIN, ROLE_OWNER
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("")
@require_auth
@require_role(ROLE_OWNER, ROLE_ADMIN)
def sales_report():
    """?type=daily|monthly|yearly&date=YYYY-MM-DD (both optional)."""
    report = reporting_service.sales_report(request.args.get("type"), request.args.get("date"))
    return jsonify(report), 200


@reports_bp.get("/export")
@require_auth
@require_role(ROLE_OWNER, ROLE_ADMIN)
def export_report():
    html, period_label = reporting_service.render_report_html(
        request.args.get("type"), request.args.get("date")
    )
    response = make_response(html, 200)
    response.headers["Content-Type"] = "text/html; charset=utf-8"
    response.headers["X-Report-Period"] = period_label
    return response
