# Overview: Service-layer operations for customers.

from __future__ import annotations

from ..extensions import db
from ..models import Customer
from .concurrency import run_in_transaction
from .errors import InsufficientOrInvalidError


def add_customer(*, name: str, contact: str) -> Customer:
    """Create a customer. Customers are immutable afterwards."""
    if not name or not name.strip():
        raise InsufficientOrInvalidError("name is required")
    if not contact or not contact.strip():
        raise InsufficientOrInvalidError("contact is required")
    if len(contact.strip()) > 20:
        raise InsufficientOrInvalidError("contact must be at most 20 characters")

    def _op() -> Customer:
        customer = Customer(name=name.strip(), contact=contact.strip())
        db.session.add(customer)
        db.session.flush()
        return customer

    return run_in_transaction(_op)
