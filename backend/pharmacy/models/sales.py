from __future__ import annotations

from ..extensions import db
from pharmacy.time_utils import to_utc_z


class Sale(db.Model):
    """
    A committed sale of one medicine to one customer.

    WHY: Rows only appear through sales_service.add_sale (admission check),
    and only disappear through refund_sale or the expired-stock cleanup.
    Each of those paths writes a SaleAuditEntry in the same transaction.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        db.Index("ix_sales_medicine_id", "medicine_id"),
        db.Index("ix_sales_customer_id", "customer_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    medicine_id = db.Column(db.Integer, db.ForeignKey("medicines.id"), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    sold_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    version_id = db.Column(db.Integer, nullable=False, default=1)

    medicine = db.relationship("Medicine", backref=db.backref("sales", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Sale id={self.id} medicine_id={self.medicine_id} customer_id={self.customer_id} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "medicine_id": self.medicine_id,
            "customer_id": self.customer_id,
            "quantity": self.quantity,
            "sold_at": to_utc_z(self.sold_at),
            "version_id": self.version_id,
        }
