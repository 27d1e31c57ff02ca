"""
Sale audit log tests.

Verifies:
- Entries copy the sale's fields with the right action tag
- Unknown action tags are refused
- Entries are append-only
- Entries outlive the sale they describe
- A failed append surfaces as LoggingFailedError
"""

from dataclasses import fields

import pytest
from sqlalchemy.exc import OperationalError

from pharmacy.extensions import db
from pharmacy.models import Sale, SaleAuditEntry
from pharmacy.services import audit_service, sales_service
from pharmacy.services.audit_service import SaleSnapshot
from pharmacy.services.errors import LoggingFailedError


def test_entry_copies_sale_fields(db_session, aspirin, customer):
    sale = sales_service.add_sale(aspirin.id, customer.id, 5)

    entry = db_session.query(SaleAuditEntry).one()
    assert entry.to_dict()["action"] == "INSERT"
    assert (entry.sale_id, entry.medicine_id, entry.customer_id, entry.quantity) == (
        sale.id, aspirin.id, customer.id, 5,
    )
    assert entry.logged_at is not None


def test_unknown_action_is_refused(db_session):
    snapshot = SaleSnapshot(sale_id=1, medicine_id=1, customer_id=1, quantity=1)

    with pytest.raises(ValueError):
        audit_service.log_sale_action(snapshot, "TRUNCATE")

    db_session.rollback()
    assert db_session.query(SaleAuditEntry).count() == 0


def test_entries_are_append_only(db_session, aspirin, customer):
    sales_service.add_sale(aspirin.id, customer.id, 5)
    entry = db_session.query(SaleAuditEntry).one()

    entry.description = "tampered"
    with pytest.raises(ValueError, match="append-only"):
        db_session.commit()
    db_session.rollback()

    assert db_session.query(SaleAuditEntry).one().description is None


def test_entries_outlive_refunded_sale(db_session, aspirin, customer):
    sale = sales_service.add_sale(aspirin.id, customer.id, 5)
    sale_id = sale.id
    sales_service.refund_sale(sale_id)

    assert db_session.get(Sale, sale_id) is None
    actions = [
        e.action
        for e in db_session.query(SaleAuditEntry).filter_by(sale_id=sale_id).order_by(SaleAuditEntry.id)
    ]
    assert actions == ["INSERT", "DELETE"]


def test_failed_append_raises_logging_failed(db_session, monkeypatch):
    def _broken_flush(*args, **kwargs):
        raise OperationalError("INSERT INTO sale_audit_log", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session, "flush", _broken_flush)
    snapshot = SaleSnapshot(sale_id=1, medicine_id=1, customer_id=1, quantity=1)

    with pytest.raises(LoggingFailedError) as exc_info:
        audit_service.log_sale_action(snapshot, "INSERT")

    assert isinstance(exc_info.value.__cause__, OperationalError)
    monkeypatch.undo()
    db_session.rollback()
    assert db_session.query(SaleAuditEntry).count() == 0


def test_purge_is_limited_to_given_medicines(db_session, aspirin, amoxicillin, customer):
    sales_service.add_sale(aspirin.id, customer.id, 1)
    sales_service.add_sale(amoxicillin.id, customer.id, 1)

    purged = audit_service.purge_medicine_entries([aspirin.id])
    db_session.commit()

    assert purged == 1
    assert [e.medicine_id for e in db_session.query(SaleAuditEntry).all()] == [amoxicillin.id]
    assert audit_service.purge_medicine_entries([]) == 0


def test_snapshot_fields_are_all_persisted(db_session, aspirin, customer):
    sale = sales_service.add_sale(aspirin.id, customer.id, 3)
    snapshot = SaleSnapshot.of(sale)

    entry = db_session.query(SaleAuditEntry).filter_by(sale_id=sale.id).one()

    assert {f.name for f in fields(SaleSnapshot)} == set(snapshot.to_dict())
    for name, value in snapshot.to_dict().items():
        assert getattr(entry, name) == value
