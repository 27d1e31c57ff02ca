# Overview: Service-layer operations for inventory; availability reads and stock intake.

# backend/pharmacy/services/inventory_service.py

from __future__ import annotations

from datetime import date, datetime

from flask import current_app

from ..extensions import db
from ..models import Medicine
from pharmacy.time_utils import expiry_cutoff
from . import alert_service
from .concurrency import lock_for_update, run_in_transaction
from .errors import InsufficientOrInvalidError, NotFoundError
"""
Pharmacy Inventory Invariants (authoritative)

- Medicine.quantity is a mutable counter and may never go negative.
- Every insert/update of a quantity is followed, in the same transaction,
  by alert_service.evaluate_low_stock on the updated row.
- Availability of an unknown medicine is 0, never an error; callers that
  must tell "out of stock" from "unknown" look the medicine up themselves.
"""


def check_availability(medicine_id: int) -> int:
    """Current quantity of a medicine, or 0 if it does not exist."""
    quantity = (
        db.session.query(Medicine.quantity)
        .filter_by(id=medicine_id)
        .scalar()
    )
    return quantity if quantity is not None else 0


def get_medicine_for_update(medicine_id: int) -> Medicine | None:
    return lock_for_update(db.session.query(Medicine).filter_by(id=medicine_id)).first()


def find_expired(now: datetime | None = None, *, lock: bool = False) -> list[Medicine]:
    query = db.session.query(Medicine).filter(Medicine.expiry_date < expiry_cutoff(now)).order_by(Medicine.id)
    if lock:
        query = lock_for_update(query)
    return query.all()


def _validate_non_negative_int(name: str, value) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise InsufficientOrInvalidError(f"{name} must be a non-negative integer", details={name: value})


def add_medicine(*, name: str, quantity: int, price_cents: int, expiry_date: date) -> Medicine:
    """
    Inventory intake: register a new medicine.

    A medicine received below the low-stock threshold raises an alert
    straight away, same as any other quantity change.
    """
    if not name or not name.strip():
        raise InsufficientOrInvalidError("name is required")
    _validate_non_negative_int("quantity", quantity)
    _validate_non_negative_int("price_cents", price_cents)
    if not isinstance(expiry_date, date):
        raise InsufficientOrInvalidError("expiry_date must be a date")

    def _op() -> Medicine:
        medicine = Medicine(
            name=name.strip(),
            quantity=quantity,
            price_cents=price_cents,
            expiry_date=expiry_date,
        )
        db.session.add(medicine)
        db.session.flush()
        alert_service.evaluate_low_stock(medicine)
        return medicine

    medicine = run_in_transaction(_op)
    current_app.logger.info("Medicine %s registered with quantity %s", medicine.id, quantity)
    return medicine


def restock_medicine(medicine_id: int, quantity: int) -> Medicine:
    """Add received units to an existing medicine."""
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise InsufficientOrInvalidError("quantity must be a positive integer", details={"quantity": quantity})

    def _op() -> Medicine:
        medicine = get_medicine_for_update(medicine_id)
        if not medicine:
            raise NotFoundError(f"Medicine {medicine_id} not found")

        medicine.quantity += quantity
        db.session.flush()
        alert_service.evaluate_low_stock(medicine)
        return medicine

    return run_in_transaction(_op)
