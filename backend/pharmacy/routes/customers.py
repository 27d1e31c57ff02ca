# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..models import Customer
from ..services import customer_service
from ..services.errors import PharmacyError
from ..validation import ModelValidationPolicy, validate_payload, ValidationError


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "contact"},
    required_on_create={"name", "contact"},
)


@customers_bp.post("/")
def create_customer_route():
    try:
        patch = validate_payload(model=Customer, payload=request.get_json(silent=True), policy=CUSTOMER_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        customer = customer_service.add_customer(**patch)
        return jsonify({"customer": customer.to_dict()}), 201

    except PharmacyError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500
