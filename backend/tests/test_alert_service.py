"""
Low-stock alert tests: threshold boundary, message text, dedup and config.
"""

from pharmacy.extensions import db
from pharmacy.models import Medicine, StockAlert
from pharmacy.services import alert_service
from pharmacy.services.concurrency import run_in_transaction
from conftest import make_medicine


def _evaluate(medicine_id):
    """Evaluate a medicine the way the services do: inside a committed transaction."""
    def _op():
        return alert_service.evaluate_low_stock(db.session.get(Medicine, medicine_id))
    return run_in_transaction(_op)


def test_threshold_is_exclusive(db_session):
    at_threshold = make_medicine(db_session, name="Aspirin", quantity=10)
    below = make_medicine(db_session, name="Amoxicillin", quantity=9)

    assert _evaluate(at_threshold.id) is None
    assert _evaluate(below.id) is not None

    alerts = db_session.query(StockAlert).all()
    assert [a.medicine_id for a in alerts] == [below.id]


def test_default_message(db_session):
    medicine = make_medicine(db_session, name="Amoxicillin", quantity=4)

    _evaluate(medicine.id)

    alert = db_session.query(StockAlert).one()
    assert alert.message == "Stock of Amoxicillin is below 10 units with 4 remaining!"
    assert alert.quantity == 4


def test_zero_stock_alerts(db_session):
    medicine = make_medicine(db_session, name="Paracetamol", quantity=0)

    _evaluate(medicine.id)

    assert db_session.query(StockAlert).filter_by(medicine_id=medicine.id, quantity=0).count() == 1


def test_duplicate_quantity_is_deduplicated(db_session):
    medicine = make_medicine(db_session, name="Amoxicillin", quantity=4)

    first = _evaluate(medicine.id)
    second = _evaluate(medicine.id)

    assert first is not None
    assert second is None
    assert db_session.query(StockAlert).count() == 1


def test_same_quantity_on_other_medicine_is_not_a_duplicate(db_session):
    a = make_medicine(db_session, name="Amoxicillin", quantity=4)
    b = make_medicine(db_session, name="Insulin", quantity=4)

    _evaluate(a.id)
    _evaluate(b.id)

    assert db_session.query(StockAlert).count() == 2


def test_unique_constraint_collision_is_absorbed(db_session, monkeypatch):
    """A concurrent insert of the same alert leaves the outer transaction usable."""
    medicine = make_medicine(db_session, name="Amoxicillin", quantity=4)
    _evaluate(medicine.id)

    # Hide the existing row from the pre-check so the insert hits the constraint
    real_query = db_session.query

    class _EmptyFirst:
        def __init__(self, query):
            self._query = query

        def filter_by(self, **kwargs):
            return _EmptyFirst(self._query.filter_by(**kwargs))

        def first(self):
            return None

    def _query(*entities, **kwargs):
        query = real_query(*entities, **kwargs)
        if entities and entities[0] is StockAlert.id:
            return _EmptyFirst(query)
        return query

    monkeypatch.setattr(db_session, "query", _query)
    assert _evaluate(medicine.id) is None
    monkeypatch.undo()

    assert db_session.query(StockAlert).count() == 1
    assert db_session.get(Medicine, medicine.id).quantity == 4


def test_threshold_and_template_are_configurable(app, db_session, monkeypatch):
    monkeypatch.setitem(app.config, "LOW_STOCK_THRESHOLD", 50)
    monkeypatch.setitem(app.config, "LOW_STOCK_MESSAGE_TEMPLATE", "{name}: {quantity} left (min {threshold})")
    medicine = make_medicine(db_session, name="Paracetamol", quantity=30)

    _evaluate(medicine.id)

    assert db_session.query(StockAlert).one().message == "Paracetamol: 30 left (min 50)"
