# Overview: Service-layer operations for low-stock alerts; deduplicated inserts inside the caller's transaction.

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Medicine, StockAlert


DEFAULT_LOW_STOCK_THRESHOLD = 10
DEFAULT_LOW_STOCK_MESSAGE_TEMPLATE = "Stock of {name} is below {threshold} units with {quantity} remaining!"


def low_stock_threshold() -> int:
    return current_app.config.get("LOW_STOCK_THRESHOLD", DEFAULT_LOW_STOCK_THRESHOLD)


def format_low_stock_message(medicine: Medicine, threshold: int | None = None) -> str:
    template = current_app.config.get("LOW_STOCK_MESSAGE_TEMPLATE", DEFAULT_LOW_STOCK_MESSAGE_TEMPLATE)
    return template.format(
        name=medicine.name,
        quantity=medicine.quantity,
        threshold=threshold if threshold is not None else low_stock_threshold(),
    )


def evaluate_low_stock(medicine: Medicine) -> StockAlert | None:
    """
    Raise a low-stock alert for `medicine` if it is below the threshold.

    Call after every insert/update of a medicine's quantity, inside the same
    transaction. Returns the new alert, or None when stock is healthy or an
    alert for this (medicine, quantity) already exists.

    The insert runs in a SAVEPOINT: if a concurrent writer inserted the same
    alert first, the unique constraint trips, only the savepoint is rolled
    back and the outer transaction carries on.
    """
    threshold = low_stock_threshold()
    if medicine.quantity >= threshold:
        return None

    existing = (
        db.session.query(StockAlert.id)
        .filter_by(medicine_id=medicine.id, quantity=medicine.quantity)
        .first()
    )
    if existing:
        current_app.logger.debug(
            "Low-stock alert for medicine %s at quantity %s already raised",
            medicine.id, medicine.quantity,
        )
        return None

    alert = StockAlert(
        medicine_id=medicine.id,
        quantity=medicine.quantity,
        message=format_low_stock_message(medicine, threshold),
    )
    nested = db.session.begin_nested()
    try:
        db.session.add(alert)
        db.session.flush()
        nested.commit()
    except IntegrityError:
        nested.rollback()
        current_app.logger.debug(
            "Concurrent low-stock alert for medicine %s at quantity %s, skipping",
            medicine.id, medicine.quantity,
        )
        return None

    current_app.logger.info("Low-stock alert raised: %s", alert.message)
    return alert


def purge_medicine_alerts(medicine_ids: list[int]) -> int:
    """Delete alerts of purged medicines (expired-stock cleanup only)."""
    if not medicine_ids:
        return 0
    return (
        db.session.query(StockAlert)
        .filter(StockAlert.medicine_id.in_(medicine_ids))
        .delete()
    )
