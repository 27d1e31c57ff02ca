# Overview: Service-layer operations for the sale audit log; append-only writes inside the caller's transaction.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Sale, SaleAuditEntry, AUDIT_ACTIONS
from pharmacy.time_utils import utcnow
from .errors import LoggingFailedError
"""
Sale Audit Log Invariants (authoritative)

- Append-only: entries are never updated; the ORM rejects UPDATEs.
- Entries COPY sale fields; they do not reference Sale by ownership and
  survive the deletion of the sale they describe.
- Entries are written inside the same DB transaction as the sale mutation
  they record (flush, never commit here).
- Only the expired-stock cleanup deletes entries, and only for the
  medicines it purges.
"""


@dataclass(frozen=True)
class SaleSnapshot:
    """Sale fields copied at the time of an action."""
    sale_id: Optional[int]
    medicine_id: int
    customer_id: int
    quantity: int

    @classmethod
    def of(cls, sale: Sale) -> "SaleSnapshot":
        return cls(
            sale_id=sale.id,
            medicine_id=sale.medicine_id,
            customer_id=sale.customer_id,
            quantity=sale.quantity,
        )

    def to_dict(self) -> dict:
        return {
            "sale_id": self.sale_id,
            "medicine_id": self.medicine_id,
            "customer_id": self.customer_id,
            "quantity": self.quantity,
        }


def log_sale_action(
    snapshot: SaleSnapshot,
    action: str,
    *,
    description: Optional[str] = None,
    logged_at: Optional[datetime] = None,
) -> SaleAuditEntry:
    """
    Append one audit entry for a sale mutation.

    Raises:
        ValueError: unknown action tag
        LoggingFailedError: the entry could not be written
    """
    if action not in AUDIT_ACTIONS:
        raise ValueError(f"Unknown audit action: {action}")

    entry = SaleAuditEntry(
        sale_id=snapshot.sale_id,
        medicine_id=snapshot.medicine_id,
        customer_id=snapshot.customer_id,
        quantity=snapshot.quantity,
        action=action,
        description=description,
        logged_at=logged_at or utcnow(),
    )
    try:
        db.session.add(entry)
        db.session.flush()  # ensures entry.id is assigned without committing
    except SQLAlchemyError as exc:
        raise LoggingFailedError(
            f"Failed to append {action} audit entry",
            details={"sale_id": snapshot.sale_id, "medicine_id": snapshot.medicine_id},
        ) from exc
    return entry


def purge_medicine_entries(medicine_ids: list[int]) -> int:
    """Delete audit entries of purged medicines (expired-stock cleanup only)."""
    if not medicine_ids:
        return 0
    return (
        db.session.query(SaleAuditEntry)
        .filter(SaleAuditEntry.medicine_id.in_(medicine_ids))
        .delete()
    )

