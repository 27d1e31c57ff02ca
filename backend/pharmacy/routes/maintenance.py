# Overview: Flask API routes for maintenance; expired-stock cleanup.

from flask import Blueprint, jsonify, current_app

from ..services import maintenance_service
from ..services.errors import PharmacyError


maintenance_bp = Blueprint("maintenance", __name__, url_prefix="/api/maintenance")


@maintenance_bp.post("/cleanup-expired")
def cleanup_expired_route():
    try:
        purged = maintenance_service.cleanup_expired()
        return jsonify({"purged": purged}), 200

    except PharmacyError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Expired-stock cleanup failed")
        return jsonify({"error": "Internal server error"}), 500
