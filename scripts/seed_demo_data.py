#!/usr/bin/env python3
# scripts/seed_demo_data.py
"""
ADT + pharmacy demo data seeder.

Creates, through the service layer (so every stock change is journaled):
- Wards ICU and General, each with two rooms of two beds
- A handful of patients, two of them admitted
- A small medication catalog with two batches per medication
- Active prescriptions waiting in the dispensing queue

Run:
  python -m scripts.seed_demo_data --seed
  python -m scripts.seed_demo_data --reset
"""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

from sqlalchemy.orm import Session

# Allow "python -m scripts.seed_demo_data" from repo root
REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT))

from app.core.database import get_engine, get_session_factory  # noqa: E402
from app.models import Base, Patient, Prescription  # noqa: E402
from app.schemas.admission import AdmissionCreate  # noqa: E402
from app.schemas.pharmacy import MedicationCreate, StockCreate  # noqa: E402
from app.schemas.ward import BedCreate, RoomCreate, WardCreate  # noqa: E402
from app.services import (  # noqa: E402
    admission_service,
    bed_service,
    medication_service,
    stock_service,
)
from app.utils.datetime_utils import utc_today  # noqa: E402

logger = logging.getLogger("seed_demo_data")

WARDS = {
    "ICU": {"ward_type": "ICU", "floor": "1", "rooms": ["101", "102"]},
    "General": {"ward_type": "General", "floor": "2", "rooms": ["201", "202"]},
}

PATIENTS = [
    ("MRN-0001", "Asha", "Rao"),
    ("MRN-0002", "Daniel", "Okafor"),
    ("MRN-0003", "Mei", "Lin"),
    ("MRN-0004", "Carlos", "Mendez"),
]

MEDICATIONS = [
    {"name": "Amoxicillin", "form": "capsule", "strength": "500mg", "category": "antibiotic"},
    {"name": "Paracetamol", "form": "tablet", "strength": "500mg", "category": "analgesic"},
    {"name": "Ceftriaxone", "form": "injection", "strength": "1g", "category": "antibiotic"},
]


def seed(db: Session) -> None:
    beds = []
    for ward_name, layout in WARDS.items():
        ward = bed_service.create_ward(
            db,
            WardCreate(name=ward_name, ward_type=layout["ward_type"], floor=layout["floor"]),
        )
        for room_number in layout["rooms"]:
            room = bed_service.create_room(db, RoomCreate(ward_id=ward.id, room_number=room_number))
            for suffix in ("A", "B"):
                beds.append(
                    bed_service.create_bed(
                        db, BedCreate(room_id=room.id, bed_number=f"{room_number}-{suffix}")
                    )
                )
    logger.info("Seeded %s beds", len(beds))

    patients = []
    for mrn, first_name, last_name in PATIENTS:
        patient = Patient(mrn=mrn, first_name=first_name, last_name=last_name)
        db.add(patient)
        patients.append(patient)
    db.commit()

    for patient, bed in zip(patients[:2], beds):
        admission_service.admit_patient(
            db,
            AdmissionCreate(patient_id=patient.id, bed_id=bed.id, diagnosis="Observation"),
        )

    today = utc_today()
    medications = []
    for entry in MEDICATIONS:
        medication = medication_service.create_medication(db, MedicationCreate(**entry))
        medications.append(medication)
        for index, (days, quantity) in enumerate(((45, 20), (240, 100)), start=1):
            stock_service.add_stock(
                db,
                StockCreate(
                    medication_id=medication.id,
                    quantity=quantity,
                    batch_number=f"{medication.name[:3].upper()}-{index:03d}",
                    expiry_date=today + timedelta(days=days),
                    cost_price=Decimal("1.50"),
                    selling_price=Decimal("2.25"),
                ),
            )

    for patient, medication in zip(patients, medications):
        db.add(
            Prescription(
                patient_id=patient.id,
                medication_id=medication.id,
                dosage="1 unit",
                frequency="twice daily",
                duration_days=5,
                quantity=10,
            )
        )
    db.commit()
    logger.info("Seed complete")


def reset() -> None:
    engine = get_engine()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    logger.info("Schema dropped and recreated")


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed ADT/pharmacy demo data")
    parser.add_argument("--seed", action="store_true", help="Insert demo data")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables first")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if not args.seed and not args.reset:
        parser.print_help()
        return 1

    if args.reset:
        reset()
    if args.seed:
        db = get_session_factory()()
        try:
            seed(db)
        finally:
            db.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
