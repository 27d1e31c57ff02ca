from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from pharmacy.time_utils import to_utc_z


AUDIT_ACTION_INSERT = "INSERT"
AUDIT_ACTION_UPDATE = "UPDATE"
AUDIT_ACTION_DELETE = "DELETE"

AUDIT_ACTIONS = (AUDIT_ACTION_INSERT, AUDIT_ACTION_UPDATE, AUDIT_ACTION_DELETE)


class SaleAuditEntry(db.Model):
    """
    Append-only audit trail of sale mutations.

    No foreign keys: sale/medicine/customer ids are COPIED at the time of the
    action so the entry survives deletion of the sale it describes.
    The expired-stock cleanup is the only path that deletes rows here.
    """
    __tablename__ = "sale_audit_log"
    __table_args__ = (
        db.Index("ix_sale_audit_log_sale_id", "sale_id"),
        db.Index("ix_sale_audit_log_medicine_id", "medicine_id"),
        db.Index("ix_sale_audit_log_customer_id", "customer_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sale_id = db.Column(db.Integer, nullable=True)
    medicine_id = db.Column(db.Integer, nullable=True)
    customer_id = db.Column(db.Integer, nullable=True)
    quantity = db.Column(db.Integer, nullable=True)

    logged_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    action = db.Column(db.String(16), nullable=False)
    description = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "medicine_id": self.medicine_id,
            "customer_id": self.customer_id,
            "quantity": self.quantity,
            "logged_at": to_utc_z(self.logged_at),
            "action": self.action,
            "description": self.description,
        }


@event.listens_for(SaleAuditEntry, "before_update")
def _reject_audit_update(mapper, connection, target):
    raise ValueError(f"Sale audit entry {target.id} is append-only")


class StockAlert(db.Model):
    """
    Low-stock alert raised by alert_service.evaluate_low_stock.

    DEDUP: one alert per (medicine_id, quantity). Re-evaluating a medicine
    that sits at an already-alerted quantity is a no-op; the unique
    constraint makes that hold under concurrent writers too.
    """
    __tablename__ = "stock_alerts"
    __table_args__ = (
        db.UniqueConstraint("medicine_id", "quantity", name="uq_stock_alerts_medicine_quantity"),
        db.Index("ix_stock_alerts_medicine_id", "medicine_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    medicine_id = db.Column(db.Integer, db.ForeignKey("medicines.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    message = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    medicine = db.relationship("Medicine", backref=db.backref("alerts", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "medicine_id": self.medicine_id,
            "quantity": self.quantity,
            "message": self.message,
            "created_at": to_utc_z(self.created_at),
        }
