"""
CLI command tests (flask system / sales / medicines / maintenance).
"""

import pytest

from pharmacy.models import Customer, Medicine, Sale, SaleAuditEntry, StockAlert
from pharmacy.services import sales_service


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


def _medicine(db_session, name):
    return db_session.query(Medicine).filter_by(name=name).one()


def test_seed_loads_sample_data(runner, db_session):
    result = runner.invoke(args=["system", "seed"])

    assert result.exit_code == 0, result.output
    assert "Created 4 medicines" in result.output
    assert "rejected" in result.output  # Ibuprofen is past its expiry date

    assert db_session.query(Medicine).count() == 4
    assert db_session.query(Customer).count() == 4
    assert db_session.query(Sale).count() == 4
    assert db_session.query(SaleAuditEntry).filter_by(action="INSERT").count() == 4

    amoxicillin = _medicine(db_session, "Amoxicillin")
    assert amoxicillin.quantity == 6
    alerts = db_session.query(StockAlert).all()
    assert [(a.medicine_id, a.quantity) for a in alerts] == [(amoxicillin.id, 6)]
    assert _medicine(db_session, "Ibuprofen").quantity == 15


def test_seed_is_skipped_when_data_exists(runner, db_session, aspirin):
    result = runner.invoke(args=["system", "seed"])

    assert result.exit_code == 0
    assert "skipping seed" in result.output
    assert db_session.query(Medicine).count() == 1


def test_sales_add_and_refund(runner, db_session, amoxicillin, customer):
    result = runner.invoke(args=[
        "sales", "add",
        "--medicine-id", str(amoxicillin.id),
        "--customer-id", str(customer.id),
        "--quantity", "19",
    ])
    assert result.exit_code == 0, result.output
    assert "4 units left" in result.output

    sale_id = db_session.query(Sale).one().id
    result = runner.invoke(args=["sales", "refund", str(sale_id)])

    assert result.exit_code == 0, result.output
    assert "19 units" in result.output
    db_session.expire_all()
    assert _medicine(db_session, "Amoxicillin").quantity == 23


def test_sales_add_rejection_exits_nonzero(runner, db_session, expired_ibuprofen, customer):
    result = runner.invoke(args=[
        "sales", "add",
        "--medicine-id", str(expired_ibuprofen.id),
        "--customer-id", str(customer.id),
        "--quantity", "1",
    ])

    assert result.exit_code != 0
    assert "expired" in result.output


def test_refund_unknown_sale_exits_nonzero(runner, db_session):
    result = runner.invoke(args=["sales", "refund", "999999"])

    assert result.exit_code != 0
    assert "does not exist" in result.output


def test_availability(runner, db_session, amoxicillin):
    result = runner.invoke(args=["medicines", "availability", str(amoxicillin.id)])
    assert result.output.strip() == "23"

    result = runner.invoke(args=["medicines", "availability", "999999"])
    assert result.output.strip() == "0"


def test_cleanup_expired(runner, db_session, aspirin, expired_ibuprofen, customer):
    sales_service.add_sale(aspirin.id, customer.id, 2)

    result = runner.invoke(args=["maintenance", "cleanup-expired"])

    assert result.exit_code == 0, result.output
    assert "Purged 1 expired medicines." in result.output
    assert [m.name for m in db_session.query(Medicine).all()] == ["Aspirin"]
    assert db_session.query(Sale).count() == 1
