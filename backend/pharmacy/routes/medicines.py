# Overview: Flask API routes for medicine intake and availability; parses input and returns JSON responses.

# backend/pharmacy/routes/medicines.py
from flask import Blueprint, request, jsonify, current_app

from ..models import Medicine
from ..services import inventory_service
from ..services.errors import PharmacyError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    enforce_rules_medicine,
    enforce_rules_quantity_positive,
)


medicines_bp = Blueprint("medicines", __name__, url_prefix="/api/medicines")

MEDICINE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "quantity", "price_cents", "expiry_date"},
    required_on_create={"name", "quantity", "price_cents", "expiry_date"},
)

RESTOCK_POLICY = ModelValidationPolicy(
    writable_fields={"quantity"},
    required_on_create={"quantity"},
)


@medicines_bp.get("/<int:medicine_id>/availability")
def availability_route(medicine_id: int):
    """Current stock of a medicine; unknown medicines report 0."""
    quantity = inventory_service.check_availability(medicine_id)
    return jsonify({"medicine_id": medicine_id, "quantity": quantity}), 200


@medicines_bp.post("/")
def create_medicine_route():
    """Inventory intake of a new medicine."""
    try:
        patch = validate_payload(model=Medicine, payload=request.get_json(silent=True), policy=MEDICINE_POLICY, partial=False)
        enforce_rules_medicine(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        medicine = inventory_service.add_medicine(**patch)
        return jsonify({"medicine": medicine.to_dict()}), 201

    except PharmacyError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create medicine")
        return jsonify({"error": "Internal server error"}), 500


@medicines_bp.post("/<int:medicine_id>/restock")
def restock_medicine_route(medicine_id: int):
    try:
        patch = validate_payload(model=Medicine, payload=request.get_json(silent=True), policy=RESTOCK_POLICY, partial=False)
        enforce_rules_quantity_positive(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        medicine = inventory_service.restock_medicine(medicine_id, patch["quantity"])
        return jsonify({"medicine": medicine.to_dict()}), 200

    except PharmacyError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to restock medicine")
        return jsonify({"error": "Internal server error"}), 500
