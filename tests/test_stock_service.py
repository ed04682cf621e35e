from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.config import get_settings
from app.core.errors import (
    ExpiredBatchError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from app.models.pharmacy import MovementType, PharmacyStock, StockMovement
from app.schemas.pharmacy import StockAdjust, StockCreate
from app.services import movement_service, stock_service
from app.utils.datetime_utils import utc_today


@pytest.fixture
def amoxicillin(make_medication):
    return make_medication("Amoxicillin", strength="500mg")


def _expire(db, stock, days_ago=1):
    stock.expiry_date = utc_today() - timedelta(days=days_ago)
    db.commit()


def test_add_stock_journals_purchase(db, amoxicillin, receive_batch):
    stock = receive_batch(amoxicillin, "AMX-001", 10, expires_in_days=90)

    movements = db.query(StockMovement).filter(StockMovement.stock_id == stock.id).all()
    assert len(movements) == 1
    assert movements[0].movement_type == MovementType.PURCHASE
    assert movements[0].quantity == 10
    assert movements[0].batch_number == "AMX-001"
    assert movements[0].reference == stock_service.STOCK_ADD_REFERENCE


def test_add_stock_uses_default_reorder_level(db, amoxicillin, receive_batch):
    defaulted = receive_batch(amoxicillin, "AMX-001", 10, expires_in_days=90)
    explicit = receive_batch(amoxicillin, "AMX-002", 10, expires_in_days=90, reorder_level=3)

    assert defaulted.reorder_level == get_settings().default_reorder_level
    assert explicit.reorder_level == 3


def test_add_expired_batch_rejected(db, amoxicillin):
    with pytest.raises(ExpiredBatchError):
        stock_service.add_stock(
            db,
            StockCreate(
                medication_id=amoxicillin.id,
                quantity=10,
                batch_number="OLD-1",
                expiry_date=utc_today() - timedelta(days=1),
            ),
        )

    assert db.query(PharmacyStock).count() == 0
    assert db.query(StockMovement).count() == 0


def test_batch_expiring_today_is_accepted(db, amoxicillin, receive_batch):
    stock = receive_batch(amoxicillin, "TODAY-1", 5, expires_in_days=0)

    assert stock.expiry_date == utc_today()


def test_add_stock_unknown_medication(db):
    with pytest.raises(NotFoundError):
        stock_service.add_stock(
            db,
            StockCreate(
                medication_id=999,
                quantity=1,
                batch_number="X",
                expiry_date=utc_today() + timedelta(days=10),
            ),
        )


def test_add_stock_rejects_non_positive_quantity_from_service_callers(db, amoxicillin):
    payload = StockCreate.model_construct(
        medication_id=amoxicillin.id,
        quantity=0,
        batch_number="ZERO",
        expiry_date=utc_today() + timedelta(days=10),
        reorder_level=None,
    )

    with pytest.raises(ValidationError):
        stock_service.add_stock(db, payload)


def test_available_stock_orders_by_expiry_and_skips_empty(db, amoxicillin, receive_batch):
    late = receive_batch(amoxicillin, "LATE", 5, expires_in_days=200)
    early = receive_batch(amoxicillin, "EARLY", 5, expires_in_days=20)
    empty = receive_batch(amoxicillin, "EMPTY", 5, expires_in_days=10)
    stock_service.adjust_stock(db, empty.id, StockAdjust(quantity_delta=-5, reason="Breakage"))

    available = stock_service.get_available_stock(db, amoxicillin.id)

    assert [s.id for s in available] == [early.id, late.id]


def test_low_stock_alerts(db, amoxicillin, receive_batch):
    receive_batch(amoxicillin, "PLENTY", 100, expires_in_days=90, reorder_level=10)
    low = receive_batch(amoxicillin, "LOW", 10, expires_in_days=90, reorder_level=10)

    alerts = stock_service.get_low_stock_alerts(db)

    assert [s.id for s in alerts] == [low.id]


def test_adjust_stock_journals_signed_delta(db, amoxicillin, receive_batch):
    stock = receive_batch(amoxicillin, "AMX-001", 10, expires_in_days=90)

    stock_service.adjust_stock(
        db, stock.id, StockAdjust(quantity_delta=-3, reason="Count discrepancy", performed_by=4)
    )
    stock_service.adjust_stock(db, stock.id, StockAdjust(quantity_delta=1, reason="Found one"))

    db.refresh(stock)
    assert stock.quantity == 8
    adjustments = (
        db.query(StockMovement)
        .filter(StockMovement.movement_type == MovementType.ADJUSTMENT)
        .order_by(StockMovement.id)
        .all()
    )
    assert [m.quantity for m in adjustments] == [-3, 1]
    assert adjustments[0].reason == "Count discrepancy"
    assert adjustments[0].performed_by == 4


def test_adjust_below_zero_rejected(db, amoxicillin, receive_batch):
    stock = receive_batch(amoxicillin, "AMX-001", 10, expires_in_days=90)

    with pytest.raises(InsufficientStockError):
        stock_service.adjust_stock(db, stock.id, StockAdjust(quantity_delta=-11, reason="Oops"))

    db.refresh(stock)
    assert stock.quantity == 10
    assert db.query(StockMovement).count() == 1


def test_zero_adjustment_rejected(db, amoxicillin, receive_batch):
    stock = receive_batch(amoxicillin, "AMX-001", 10, expires_in_days=90)

    with pytest.raises(ValidationError):
        stock_service.adjust_stock(db, stock.id, StockAdjust(quantity_delta=0, reason="Nothing"))


def test_adjust_unknown_batch(db):
    with pytest.raises(NotFoundError):
        stock_service.adjust_stock(db, 999, StockAdjust(quantity_delta=1, reason="n/a"))


def test_quantity_check_constraint(db, amoxicillin, receive_batch):
    stock = receive_batch(amoxicillin, "AMX-001", 1, expires_in_days=90)
    stock.quantity = -1

    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_write_off_expired_stock(db, amoxicillin, receive_batch):
    fresh = receive_batch(amoxicillin, "FRESH", 10, expires_in_days=90)
    stale = receive_batch(amoxicillin, "STALE", 7, expires_in_days=90)
    _expire(db, stale)

    movements = stock_service.write_off_expired_stock(db, performed_by=2)

    assert len(movements) == 1
    assert movements[0].movement_type == MovementType.EXPIRED
    assert movements[0].quantity == -7
    assert movements[0].reference == f"EXP-{stale.id}"
    db.refresh(stale)
    db.refresh(fresh)
    assert stale.quantity == 0
    assert fresh.quantity == 10

    # Nothing left to write off the second time round.
    assert stock_service.write_off_expired_stock(db) == []
    assert all(r.balanced for r in movement_service.reconcile_stock(db, amoxicillin.id))
