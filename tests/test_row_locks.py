"""
Row locks taken by the ADT and pharmacy workflows.

SQLite drops FOR UPDATE when it compiles a query, so every SELECT the
session runs is captured and re-compiled for the PostgreSQL dialect, the
one the service is deployed on. The assertions check which tables were
read with FOR UPDATE.
"""

import re

import pytest
from sqlalchemy import event
from sqlalchemy.dialects import postgresql

from app.schemas.admission import AdmissionCreate, TransferCreate
from app.schemas.pharmacy import DispensingCreate, DispensingReturn, StockAdjust
from app.services import (
    admission_service,
    bed_service,
    dispensing_service,
    stock_service,
    transfer_service,
)

_FROM_TABLE = re.compile(r"\bFROM (\w+)")


@pytest.fixture
def captured_sql(db):
    statements: list[str] = []

    def _capture(orm_execute_state):
        if orm_execute_state.is_select:
            statements.append(
                str(orm_execute_state.statement.compile(dialect=postgresql.dialect()))
            )

    event.listen(db, "do_orm_execute", _capture)
    yield statements
    event.remove(db, "do_orm_execute", _capture)


def _locked_tables(statements: list[str]) -> list[str]:
    locked = []
    for sql in statements:
        if "FOR UPDATE" in sql:
            match = _FROM_TABLE.search(sql)
            locked.append(match.group(1) if match else sql)
    return locked


@pytest.fixture
def icu(make_ward):
    return make_ward("ICU", {"101": ["101-A", "101-B"]})


@pytest.fixture
def admitted(db, icu, make_patient):
    _, beds = icu
    return admission_service.admit_patient(
        db, AdmissionCreate(patient_id=make_patient().id, bed_id=beds["101-A"].id)
    )


@pytest.fixture
def batch(amoxicillin, receive_batch):
    return receive_batch(amoxicillin, "B-1", 20, 30)


@pytest.fixture
def amoxicillin(make_medication):
    return make_medication("Amoxicillin")


# -----------------------------------------------------------------------------
# ADT
# -----------------------------------------------------------------------------


def test_lock_bed_selects_for_update(db, icu, captured_sql):
    _, beds = icu

    bed_service.lock_bed(db, beds["101-A"].id)

    assert _locked_tables(captured_sql) == ["beds"]


def test_admit_locks_bed_then_patient(db, icu, make_patient, captured_sql):
    _, beds = icu
    patient = make_patient()
    captured_sql.clear()

    admission_service.admit_patient(
        db, AdmissionCreate(patient_id=patient.id, bed_id=beds["101-A"].id)
    )

    assert _locked_tables(captured_sql) == ["beds", "patients"]


def test_lock_admission_selects_for_update(db, admitted, captured_sql):
    captured_sql.clear()

    admission_service.lock_admission(db, admitted.id)

    assert _locked_tables(captured_sql) == ["admissions"]


def test_discharge_locks_admission_then_bed(db, admitted, captured_sql):
    captured_sql.clear()

    admission_service.discharge_patient(db, admitted.id)

    assert _locked_tables(captured_sql) == ["admissions", "beds"]


def test_transfer_locks_admission_and_both_beds(db, icu, admitted, captured_sql):
    ward, beds = icu
    captured_sql.clear()

    transfer_service.transfer_patient(
        db,
        TransferCreate(
            admission_id=admitted.id,
            to_ward_id=ward.id,
            to_bed_id=beds["101-B"].id,
            authorized_by=1,
        ),
    )

    assert _locked_tables(captured_sql) == ["admissions", "beds", "beds"]


# -----------------------------------------------------------------------------
# Pharmacy
# -----------------------------------------------------------------------------


def test_lock_stock_selects_for_update(db, batch, captured_sql):
    captured_sql.clear()

    stock_service.lock_stock(db, batch.id)

    assert _locked_tables(captured_sql) == ["pharmacy_stock"]


def test_adjust_stock_locks_batch(db, batch, captured_sql):
    captured_sql.clear()

    stock_service.adjust_stock(db, batch.id, StockAdjust(quantity_delta=-1, reason="Damaged"))

    assert _locked_tables(captured_sql) == ["pharmacy_stock"]


def test_write_off_locks_candidate_batches(db, batch, captured_sql):
    captured_sql.clear()

    stock_service.write_off_expired_stock(db)

    assert _locked_tables(captured_sql) == ["pharmacy_stock"]


def test_dispensable_batches_selected_for_update(db, amoxicillin, batch, captured_sql):
    captured_sql.clear()

    dispensing_service._lock_dispensable_batches(db, amoxicillin.id)

    assert _locked_tables(captured_sql) == ["pharmacy_stock"]


def test_dispense_and_return_lock_stock(
    db, amoxicillin, batch, make_patient, make_prescription, captured_sql
):
    prescription = make_prescription(make_patient(), amoxicillin)
    captured_sql.clear()

    dispensing = dispensing_service.dispense_medication(
        db,
        DispensingCreate(
            prescription_id=prescription.id,
            patient_id=prescription.patient_id,
            medication_id=amoxicillin.id,
            quantity=5,
        ),
    )
    assert "pharmacy_stock" in _locked_tables(captured_sql)

    captured_sql.clear()
    dispensing_service.return_dispensing(db, dispensing.id, DispensingReturn(quantity=2))

    assert _locked_tables(captured_sql) == ["pharmacy_stock"]
