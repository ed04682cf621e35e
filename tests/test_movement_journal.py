from datetime import timedelta

import pytest

from app.core.errors import ImmutableRecordError
from app.models.admission import Transfer
from app.models.pharmacy import Dispensing, MovementType, StockMovement
from app.schemas.admission import AdmissionCreate, TransferCreate
from app.schemas.pharmacy import DispensingCreate, StockAdjust
from app.services import (
    admission_service,
    dispensing_service,
    movement_service,
    stock_service,
    transfer_service,
)
from app.utils.datetime_utils import utc_now


@pytest.fixture
def amoxicillin(make_medication):
    return make_medication("Amoxicillin")


@pytest.fixture
def dispensed(db, make_patient, make_prescription, amoxicillin, receive_batch):
    receive_batch(amoxicillin, "AMX-001", 10, expires_in_days=60)
    patient = make_patient()
    prescription = make_prescription(patient, amoxicillin)
    return dispensing_service.dispense_medication(
        db,
        DispensingCreate(
            prescription_id=prescription.id,
            patient_id=patient.id,
            medication_id=amoxicillin.id,
            quantity=4,
        ),
    )


def test_movements_newest_first(db, amoxicillin, dispensed):
    movements = movement_service.get_stock_movements(db, amoxicillin.id)

    assert [m.movement_type for m in movements] == [MovementType.DISPENSING, MovementType.PURCHASE]


def test_movements_filtered_by_window(db, amoxicillin, dispensed):
    now = utc_now()

    assert movement_service.get_stock_movements(db, amoxicillin.id, start=now + timedelta(hours=1)) == []
    assert movement_service.get_stock_movements(db, amoxicillin.id, end=now - timedelta(days=1)) == []
    assert len(
        movement_service.get_stock_movements(
            db, amoxicillin.id, start=now - timedelta(days=1), end=now + timedelta(days=1)
        )
    ) == 2


def test_reconciliation_groups_by_batch_number(db, amoxicillin, receive_batch):
    first = receive_batch(amoxicillin, "SHARED", 5, expires_in_days=30)
    receive_batch(amoxicillin, "SHARED", 7, expires_in_days=60)
    receive_batch(amoxicillin, "OTHER", 3, expires_in_days=60)
    stock_service.adjust_stock(db, first.id, StockAdjust(quantity_delta=-2, reason="Damaged"))

    report = {r.batch_number: r for r in movement_service.reconcile_stock(db, amoxicillin.id)}

    assert set(report) == {"OTHER", "SHARED"}
    assert report["SHARED"].ledger_quantity == report["SHARED"].on_hand_quantity == 10
    assert report["OTHER"].balanced


def test_reconciliation_reports_drift(db, amoxicillin, receive_batch):
    stock = receive_batch(amoxicillin, "AMX-001", 10, expires_in_days=60)
    # Out-of-band write that skips the journal.
    stock.quantity = 9
    db.commit()

    (row,) = movement_service.reconcile_stock(db, amoxicillin.id)

    assert row.ledger_quantity == 10
    assert row.on_hand_quantity == 9
    assert row.balanced is False


def test_stock_movement_cannot_be_updated(db, dispensed):
    movement = db.query(StockMovement).filter(StockMovement.movement_type == MovementType.DISPENSING).one()
    movement.quantity = -1

    with pytest.raises(ImmutableRecordError):
        db.commit()
    db.rollback()


def test_stock_movement_cannot_be_deleted(db, dispensed):
    movement = db.query(StockMovement).first()
    db.delete(movement)

    with pytest.raises(ImmutableRecordError):
        db.commit()
    db.rollback()
    assert db.query(StockMovement).count() == 2


def test_dispensing_cannot_be_updated(db, dispensed):
    row = db.get(Dispensing, dispensed.id)
    row.quantity_dispensed = 1

    with pytest.raises(ImmutableRecordError):
        db.commit()
    db.rollback()
    assert db.get(Dispensing, dispensed.id).quantity_dispensed == 4


def test_transfer_cannot_be_updated(db, make_ward, make_patient):
    ward, beds = make_ward("ICU", {"101": ["101-A"], "102": ["102-A"]})
    admission = admission_service.admit_patient(
        db, AdmissionCreate(patient_id=make_patient().id, bed_id=beds["101-A"].id)
    )
    transfer = transfer_service.transfer_patient(
        db,
        TransferCreate(
            admission_id=admission.id,
            to_ward_id=ward.id,
            to_bed_id=beds["102-A"].id,
            authorized_by=1,
        ),
    )

    row = db.get(Transfer, transfer.id)
    row.reason = "rewritten"

    with pytest.raises(ImmutableRecordError):
        db.commit()
    db.rollback()


def test_naive_window_bounds_are_treated_as_utc(db, amoxicillin, dispensed):
    naive_now = utc_now().replace(tzinfo=None)

    movements = movement_service.get_stock_movements(
        db, amoxicillin.id, start=naive_now - timedelta(minutes=5)
    )

    assert len(movements) == 2
