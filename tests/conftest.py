"""
Pytest fixtures for the ADT / pharmacy test suite.

Provides:
- A fresh in-memory SQLite schema per test (StaticPool, so every session
  and the TestClient threadpool share one connection)
- Small factories for wards/beds, patients, medications, prescriptions
- A FastAPI TestClient with get_db overridden

SQLite drops SELECT ... FOR UPDATE when compiling, so no lock is taken
here. test_row_locks.py re-compiles the captured queries for the
PostgreSQL dialect and checks which tables are read FOR UPDATE; lock
contention itself is not exercised.
"""

from datetime import timedelta
from typing import Generator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import (
    Base,
    Medication,
    Patient,
    Prescription,
)
from app.models.immutability import register_immutability_listeners
from app.schemas.pharmacy import StockCreate
from app.schemas.ward import BedCreate, RoomCreate, WardCreate
from app.services import bed_service, stock_service
from app.utils.datetime_utils import utc_today


@pytest.fixture(autouse=True, scope="session")
def _immutability_listeners():
    register_immutability_listeners()
    yield


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fresh_session(session_factory):
    """
    Open a second, independent session; used to check what actually
    got committed.
    """
    sessions: list[Session] = []

    def _open() -> Session:
        session = session_factory()
        sessions.append(session)
        return session

    yield _open

    for session in sessions:
        session.close()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_ward(db):
    """
    Create a ward with rooms and beds.

        ward, beds = make_ward("ICU", {"101": ["101-A", "101-B"]})
        beds["101-A"].status  # BedStatus.AVAILABLE
    """

    def _make(name: str, layout: dict[str, list[str]]):
        ward = bed_service.create_ward(db, WardCreate(name=name, ward_type=name))
        beds = {}
        for room_number, bed_numbers in layout.items():
            room = bed_service.create_room(db, RoomCreate(ward_id=ward.id, room_number=room_number))
            for bed_number in bed_numbers:
                beds[bed_number] = bed_service.create_bed(
                    db, BedCreate(room_id=room.id, bed_number=bed_number)
                )
        return ward, beds

    return _make


@pytest.fixture
def make_patient(db):
    counter = {"n": 0}

    def _make(first_name: str = "Test", **kwargs) -> Patient:
        counter["n"] += 1
        patient = Patient(
            mrn=kwargs.pop("mrn", f"MRN-{counter['n']:04d}"),
            first_name=first_name,
            **kwargs,
        )
        db.add(patient)
        db.commit()
        return patient

    return _make


@pytest.fixture
def make_medication(db):
    def _make(name: str = "Amoxicillin", **kwargs) -> Medication:
        medication = Medication(name=name, **kwargs)
        db.add(medication)
        db.commit()
        return medication

    return _make


@pytest.fixture
def make_prescription(db):
    def _make(patient: Patient, medication: Medication, **kwargs) -> Prescription:
        prescription = Prescription(
            patient_id=patient.id,
            medication_id=medication.id,
            dosage=kwargs.pop("dosage", "1 tablet"),
            frequency=kwargs.pop("frequency", "twice daily"),
            **kwargs,
        )
        db.add(prescription)
        db.commit()
        return prescription

    return _make


@pytest.fixture
def receive_batch(db):
    """Add stock through the service so a purchase movement is journaled."""

    def _receive(medication: Medication, batch_number: str, quantity: int, expires_in_days: int, **kwargs):
        return stock_service.add_stock(
            db,
            StockCreate(
                medication_id=medication.id,
                quantity=quantity,
                batch_number=batch_number,
                expiry_date=utc_today() + timedelta(days=expires_in_days),
                **kwargs,
            ),
        )

    return _receive


# =============================================================================
# HTTP client
# =============================================================================


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient

    from app.core.database import get_db
    from app.main import app

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
