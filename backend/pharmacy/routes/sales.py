# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/pharmacy/routes/sales.py
"""Sales API routes: admission-checked sale, amendment and refund."""

from flask import Blueprint, request, jsonify, current_app

from ..models import Sale
from ..services import sales_service
from ..services.errors import PharmacyError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    enforce_rules_quantity_positive,
)


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

SALE_POLICY = ModelValidationPolicy(
    writable_fields={"medicine_id", "customer_id", "quantity"},
    required_on_create={"medicine_id", "customer_id", "quantity"},
)

SALE_AMEND_POLICY = ModelValidationPolicy(
    writable_fields={"quantity"},
    required_on_create={"quantity"},
)


@sales_bp.post("/")
def create_sale_route():
    """
    Record a sale.

    400 when the medicine is unknown, expired or short on stock;
    404 when the customer is unknown; 503 when the store cannot commit.
    """
    try:
        patch = validate_payload(model=Sale, payload=request.get_json(silent=True), policy=SALE_POLICY, partial=False)
        enforce_rules_quantity_positive(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        sale = sales_service.add_sale(patch["medicine_id"], patch["customer_id"], patch["quantity"])
        return jsonify({"sale": sale.to_dict()}), 201

    except PharmacyError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.patch("/<int:sale_id>")
def amend_sale_route(sale_id: int):
    try:
        patch = validate_payload(model=Sale, payload=request.get_json(silent=True), policy=SALE_AMEND_POLICY, partial=False)
        enforce_rules_quantity_positive(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        sale = sales_service.amend_sale(sale_id, patch["quantity"])
        return jsonify({"sale": sale.to_dict()}), 200

    except PharmacyError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to amend sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("/<int:sale_id>/refund")
def refund_sale_route(sale_id: int):
    """Refund a sale: the sale is removed and its quantity restocked."""
    try:
        snapshot = sales_service.refund_sale(sale_id)
        return jsonify({"refunded": snapshot.to_dict()}), 200

    except PharmacyError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to refund sale")
        return jsonify({"error": "Internal server error"}), 500
