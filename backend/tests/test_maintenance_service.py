"""
Expired-stock cleanup tests.

The purge is all-or-nothing: an expired medicine goes together with its
sales, alerts and audit entries, and a failure anywhere keeps all of them.
"""

import pytest
from sqlalchemy.exc import OperationalError

from pharmacy.models import Medicine, Sale, SaleAuditEntry, StockAlert
from pharmacy.services import alert_service, maintenance_service, sales_service
from pharmacy.services.errors import TransactionFailedError
from conftest import PAST_EXPIRY


def _expire(db_session, medicine_id):
    db_session.get(Medicine, medicine_id).expiry_date = PAST_EXPIRY
    db_session.commit()


def _snapshot(db_session):
    return {
        "medicines": db_session.query(Medicine).count(),
        "sales": db_session.query(Sale).count(),
        "alerts": db_session.query(StockAlert).count(),
        "audit": db_session.query(SaleAuditEntry).count(),
    }


def test_cleanup_purges_expired_medicine_and_dependents(db_session, aspirin, amoxicillin, customer):
    amoxicillin_id = amoxicillin.id
    sales_service.add_sale(amoxicillin.id, customer.id, 19)  # 4 left: alert
    sales_service.add_sale(aspirin.id, customer.id, 5)
    _expire(db_session, amoxicillin.id)

    purged = maintenance_service.cleanup_expired()

    assert purged == 1
    assert db_session.get(Medicine, amoxicillin_id) is None
    assert db_session.query(Sale).filter_by(medicine_id=amoxicillin_id).count() == 0
    assert db_session.query(StockAlert).filter_by(medicine_id=amoxicillin_id).count() == 0
    assert db_session.query(SaleAuditEntry).filter_by(medicine_id=amoxicillin_id).count() == 0

    # Unexpired stock is untouched
    assert db_session.get(Medicine, aspirin.id).quantity == 95
    assert _snapshot(db_session) == {"medicines": 1, "sales": 1, "alerts": 0, "audit": 1}


def test_cleanup_removes_expired_medicine_without_sales(db_session, aspirin, expired_ibuprofen):
    ibuprofen_id = expired_ibuprofen.id
    assert maintenance_service.cleanup_expired() == 1
    assert db_session.get(Medicine, ibuprofen_id) is None
    assert db_session.get(Medicine, aspirin.id) is not None


def test_cleanup_with_nothing_expired(db_session, aspirin, amoxicillin):
    assert maintenance_service.cleanup_expired() == 0
    assert db_session.query(Medicine).count() == 2


def test_cleanup_is_all_or_nothing(db_session, amoxicillin, customer, monkeypatch):
    sales_service.add_sale(amoxicillin.id, customer.id, 19)
    _expire(db_session, amoxicillin.id)
    before = _snapshot(db_session)

    def _fail(medicine_ids):
        raise OperationalError("DELETE FROM stock_alerts", {}, Exception("disk I/O error"))

    monkeypatch.setattr(alert_service, "purge_medicine_alerts", _fail)

    with pytest.raises(TransactionFailedError):
        maintenance_service.cleanup_expired()

    assert _snapshot(db_session) == before
    assert db_session.get(Medicine, amoxicillin.id).quantity == 4


def test_cleanup_is_idempotent(db_session, expired_ibuprofen):
    assert maintenance_service.cleanup_expired() == 1
    assert maintenance_service.cleanup_expired() == 0
