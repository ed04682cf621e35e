# app/models/prescription.py
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.medication import Medication
from app.models.patient import Patient
from app.utils.datetime_utils import utc_now


class PrescriptionStatus(str, PyEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Prescription(Base):
    """
    Medication order written during an encounter. Pharmacy reads it to
    decide dispensing eligibility and to build the dispensing queue.
    """

    __tablename__ = "prescriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    patient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    medication_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("medications.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    prescriber_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    dosage: Mapped[str] = mapped_column(String(100), nullable=False)  # e.g. "1 tablet"
    frequency: Mapped[str] = mapped_column(String(100), nullable=False)  # e.g. "twice daily"
    duration_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[PrescriptionStatus] = mapped_column(
        Enum(
            PrescriptionStatus,
            name="prescription_status_enum",
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=PrescriptionStatus.ACTIVE,
        server_default=text("'active'"),
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    patient: Mapped["Patient"] = relationship("Patient")
    medication: Mapped["Medication"] = relationship("Medication")
