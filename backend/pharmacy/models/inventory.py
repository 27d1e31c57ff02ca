from __future__ import annotations

from datetime import datetime

from ..extensions import db
from pharmacy.time_utils import to_utc_z, is_expired


class Medicine(db.Model):
    """
    Medicine stock record.

    QUANTITY DESIGN DECISION:
    Unlike a ledger-derived model, quantity is a mutable counter on the row.
    - Only the sale / refund / amend / restock services change it
    - Writers lock the row (or take the SQLite write lock) before the
      read-modify-write, and version_id turns a lost update into StaleDataError
    - CHECK constraint is the last line of defence against negative stock

    EXPIRY:
    - expiry_date is a calendar date, compared at start-of-day against now
      (see time_utils.is_expired)
    """
    __tablename__ = "medicines"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_medicines_quantity_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="ck_medicines_price_non_negative"),
        db.Index("ix_medicines_expiry_date", "expiry_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False)

    expiry_date = db.Column(db.Date, nullable=False)
    last_sold_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def is_expired(self, now: datetime | None = None) -> bool:
        return is_expired(self.expiry_date, now)

    def __repr__(self) -> str:
        return f"<Medicine id={self.id} name={self.name!r} quantity={self.quantity} expiry={self.expiry_date}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "last_sold_at": to_utc_z(self.last_sold_at) if self.last_sold_at else None,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
