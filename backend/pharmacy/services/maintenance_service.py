# Overview: Service-layer operations for maintenance; expired-stock cleanup.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Medicine, Sale
from pharmacy.time_utils import utcnow
from . import alert_service, audit_service, inventory_service
from .concurrency import run_in_transaction


def cleanup_expired() -> int:
    """
    Purge every expired medicine together with everything that points at it.

    One transaction for the whole batch, deleting in dependency order:
    audit entries -> sales -> alerts -> medicine. Any failure rolls the
    whole batch back (TransactionFailedError); nothing is partially purged.

    Returns the number of medicines purged.
    """
    counts = {}

    def _op() -> int:
        now = utcnow()
        expired = inventory_service.find_expired(now, lock=True)
        medicine_ids = [m.id for m in expired]
        if not medicine_ids:
            return 0

        counts["audit_entries"] = audit_service.purge_medicine_entries(medicine_ids)
        counts["sales"] = (
            db.session.query(Sale)
            .filter(Sale.medicine_id.in_(medicine_ids))
            .delete()
        )
        counts["alerts"] = alert_service.purge_medicine_alerts(medicine_ids)
        counts["medicines"] = (
            db.session.query(Medicine)
            .filter(Medicine.id.in_(medicine_ids))
            .delete()
        )
        return counts["medicines"]

    purged = run_in_transaction(_op)
    if purged:
        current_app.logger.info(
            "Expired-stock cleanup purged %s medicines, %s sales, %s alerts, %s audit entries",
            counts["medicines"], counts["sales"], counts["alerts"], counts["audit_entries"],
        )
    else:
        current_app.logger.info("Expired-stock cleanup found nothing to purge")
    return purged
