"""
Sales Service - admission-checked sales, refunds and amendments

WHY: A sale is only ever created through the admission check (medicine
exists, is not expired, has enough stock). Every sale mutation writes its
audit entry and re-evaluates low stock inside the same transaction, so a
committed sale always comes with its Medicine decrement, its audit entry
and any alert it caused, and a failed one leaves nothing behind.

LIFECYCLE:
    Requested -> [admission check] -> Rejected (InsufficientOrInvalidError)
                                   -> Committed (Sale + Medicine + audit + alert?)
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import (
    Sale,
    Customer,
    Medicine,
    AUDIT_ACTION_INSERT,
    AUDIT_ACTION_UPDATE,
    AUDIT_ACTION_DELETE,
)
from pharmacy.time_utils import utcnow
from . import alert_service, audit_service, inventory_service
from .audit_service import SaleSnapshot
from .concurrency import lock_for_update, run_in_transaction
from .errors import (
    InsufficientOrInvalidError,
    NotFoundError,
    AmbiguousRecordError,
)


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _admit(medicine: Medicine | None, medicine_id: int, quantity: int, now: datetime) -> None:
    """Admission check: raise InsufficientOrInvalidError unless `quantity` may leave stock."""
    if medicine is None:
        raise InsufficientOrInvalidError(
            f"Medicine {medicine_id} not found",
            details={"medicine_id": medicine_id, "reason": "unknown_medicine"},
        )

    if medicine.is_expired(now):
        raise InsufficientOrInvalidError(
            f"Cannot sell expired medicine {medicine.name}",
            details={
                "medicine_id": medicine.id,
                "expiry_date": medicine.expiry_date.isoformat(),
                "reason": "expired",
            },
        )

    available = inventory_service.check_availability(medicine.id)
    if available < quantity:
        raise InsufficientOrInvalidError(
            f"Insufficient stock of {medicine.name}",
            details={
                "medicine_id": medicine.id,
                "requested_quantity": quantity,
                "available": available,
                "reason": "insufficient_stock",
            },
        )


def _count_matching_sales(sale_id: int) -> int:
    return db.session.query(func.count(Sale.id)).filter(Sale.id == sale_id).scalar() or 0


def add_sale(medicine_id: int, customer_id: int, quantity: int) -> Sale:
    """
    Sell `quantity` units of a medicine to a customer.

    Raises:
        InsufficientOrInvalidError: unknown or expired medicine, not enough
            stock, or a non-positive quantity. Nothing is written.
        NotFoundError: unknown customer. Nothing is written.
        TransactionFailedError: the store could not commit (audit failures
            included). Nothing is written.
    """
    if not _is_positive_int(quantity):
        raise InsufficientOrInvalidError(
            "Quantity must be a positive integer",
            details={"quantity": quantity, "reason": "invalid_quantity"},
        )

    def _op() -> Sale:
        now = utcnow()
        medicine = inventory_service.get_medicine_for_update(medicine_id)
        _admit(medicine, medicine_id, quantity, now)

        customer_exists = db.session.query(Customer.id).filter_by(id=customer_id).first()
        if not customer_exists:
            raise NotFoundError(f"Customer {customer_id} not found", details={"customer_id": customer_id})

        sale = Sale(
            medicine_id=medicine.id,
            customer_id=customer_id,
            quantity=quantity,
            sold_at=now,
        )
        db.session.add(sale)

        medicine.quantity -= quantity
        medicine.last_sold_at = now
        db.session.flush()

        audit_service.log_sale_action(SaleSnapshot.of(sale), AUDIT_ACTION_INSERT, logged_at=now)
        alert_service.evaluate_low_stock(medicine)
        return sale

    try:
        sale = run_in_transaction(_op)
    except InsufficientOrInvalidError as exc:
        current_app.logger.info("Sale rejected: %s", exc)
        raise

    current_app.logger.info(
        "Sale %s committed: medicine %s x%s to customer %s",
        sale.id, medicine_id, quantity, customer_id,
    )
    return sale


def refund_sale(sale_id: int) -> SaleSnapshot:
    """
    Refund a sale: delete it and put its quantity back into stock.

    Returns the snapshot of the deleted sale (the row itself is gone).
    The DELETE audit entry outlives the sale.

    Raises:
        NotFoundError: no such sale
        AmbiguousRecordError: the id matches more than one row
        TransactionFailedError: the store could not commit
    """
    def _op() -> SaleSnapshot:
        matches = _count_matching_sales(sale_id)
        if matches > 1:
            raise AmbiguousRecordError(
                f"Multiple sales exist for sale id {sale_id}. Refund cannot proceed.",
                details={"sale_id": sale_id, "matches": matches},
            )

        # A concurrent refund may delete the row between the count and the lock
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
        if not sale:
            raise NotFoundError(
                f"Sale {sale_id} does not exist. Refund cannot proceed.",
                details={"sale_id": sale_id},
            )
        snapshot = SaleSnapshot.of(sale)

        medicine = inventory_service.get_medicine_for_update(sale.medicine_id)
        if not medicine:
            raise NotFoundError(
                f"Medicine {sale.medicine_id} of sale {sale_id} not found",
                details={"sale_id": sale_id, "medicine_id": sale.medicine_id},
            )

        db.session.delete(sale)
        medicine.quantity += snapshot.quantity
        db.session.flush()

        audit_service.log_sale_action(snapshot, AUDIT_ACTION_DELETE, description=f"Refund of sale {sale_id}")
        alert_service.evaluate_low_stock(medicine)
        return snapshot

    snapshot = run_in_transaction(_op)
    current_app.logger.info(
        "Sale %s refunded: %s units of medicine %s restocked",
        sale_id, snapshot.quantity, snapshot.medicine_id,
    )
    return snapshot


def amend_sale(sale_id: int, quantity: int) -> Sale:
    """
    Change the sold quantity of an existing sale.

    Increases go through the same admission check as a new sale; decreases
    return the difference to stock. Writes an UPDATE audit entry.
    Setting the current quantity again is a no-op.
    """
    if not _is_positive_int(quantity):
        raise InsufficientOrInvalidError(
            "Quantity must be a positive integer",
            details={"quantity": quantity, "reason": "invalid_quantity"},
        )

    def _op() -> Sale:
        now = utcnow()
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
        if not sale:
            raise NotFoundError(f"Sale {sale_id} not found", details={"sale_id": sale_id})

        delta = quantity - sale.quantity
        if delta == 0:
            return sale

        medicine = inventory_service.get_medicine_for_update(sale.medicine_id)
        if delta > 0:
            _admit(medicine, sale.medicine_id, delta, now)
        elif medicine is None:
            raise NotFoundError(
                f"Medicine {sale.medicine_id} of sale {sale_id} not found",
                details={"sale_id": sale_id, "medicine_id": sale.medicine_id},
            )

        previous = sale.quantity
        sale.quantity = quantity
        medicine.quantity -= delta
        if delta > 0:
            medicine.last_sold_at = now
        db.session.flush()

        audit_service.log_sale_action(
            SaleSnapshot.of(sale),
            AUDIT_ACTION_UPDATE,
            description=f"Quantity changed from {previous} to {quantity}",
            logged_at=now,
        )
        alert_service.evaluate_low_stock(medicine)
        return sale

    return run_in_transaction(_op)
