# app/models/__init__.py
# Importing every model here registers all tables on Base.metadata
# (used by Alembic autogenerate, create_all in tests and the seeder).
from app.models.base import Base
from app.models.ward import Bed, BedStatus, Room, Ward
from app.models.patient import Patient
from app.models.admission import (
    Admission,
    AdmissionStatus,
    DischargeSummary,
    DischargeType,
    Transfer,
)
from app.models.medication import Medication
from app.models.prescription import Prescription, PrescriptionStatus
from app.models.pharmacy import (
    Dispensing,
    DispensingStatus,
    MovementType,
    PharmacyStock,
    StockMovement,
)

__all__ = [
    "Base",
    "Ward",
    "Room",
    "Bed",
    "BedStatus",
    "Patient",
    "Admission",
    "AdmissionStatus",
    "Transfer",
    "DischargeSummary",
    "DischargeType",
    "Medication",
    "Prescription",
    "PrescriptionStatus",
    "PharmacyStock",
    "Dispensing",
    "DispensingStatus",
    "StockMovement",
    "MovementType",
]
