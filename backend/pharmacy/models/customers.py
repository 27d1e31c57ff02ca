from __future__ import annotations

from ..extensions import db
from pharmacy.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data.

    Immutable once created: sales reference customers, nothing in the
    sale workflows writes to this table.
    """
    __tablename__ = "customers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    contact = db.Column(db.String(20), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact": self.contact,
            "created_at": to_utc_z(self.created_at),
        }
