# app/models/admission.py
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.patient import Patient
from app.models.ward import Bed, Ward
from app.utils.datetime_utils import utc_now


class AdmissionStatus(str, PyEnum):
    # A transfer keeps the admission ADMITTED; only the bed reference moves.
    ADMITTED = "Admitted"
    DISCHARGED = "Discharged"


class DischargeType(str, PyEnum):
    REGULAR = "Regular"
    AMA = "AMA"  # against medical advice
    TRANSFER = "Transfer"
    DEATH = "Death"


ADMISSION_STATUS_ENUM = Enum(
    AdmissionStatus,
    name="admission_status_enum",
    values_callable=lambda members: [m.value for m in members],
)

DISCHARGE_TYPE_ENUM = Enum(
    DischargeType,
    name="discharge_type_enum",
    values_callable=lambda members: [m.value for m in members],
)


class Admission(Base):
    """
    IPD (In-Patient Department) stay. Bound to exactly one bed at a time;
    never deleted.
    """

    __tablename__ = "admissions"

    # Primary Key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Foreign Keys
    patient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    ward_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("wards.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    bed_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("beds.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        doc="Current bed; changes on transfer",
    )
    admitting_doctor_id: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        doc="User ID of the admitting practitioner (not validated here)",
    )

    # Admission Details
    admission_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    discharge_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    diagnosis: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Status
    status: Mapped[AdmissionStatus] = mapped_column(
        ADMISSION_STATUS_ENUM,
        nullable=False,
        default=AdmissionStatus.ADMITTED,
        server_default=text("'Admitted'"),
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
    )

    # Relationships
    patient: Mapped["Patient"] = relationship("Patient")
    ward: Mapped["Ward"] = relationship("Ward")
    bed: Mapped["Bed"] = relationship("Bed")


class Transfer(Base):
    """
    One bed-to-bed move. Written only by the transfer workflow and
    never updated afterwards.
    """

    __tablename__ = "transfers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    admission_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("admissions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    from_ward_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("wards.id", ondelete="RESTRICT"), nullable=False
    )
    from_bed_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("beds.id", ondelete="RESTRICT"), nullable=False
    )
    to_ward_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("wards.id", ondelete="RESTRICT"), nullable=False
    )
    to_bed_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("beds.id", ondelete="RESTRICT"), nullable=False
    )

    transfer_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    authorized_by: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="User ID",
    )

    admission: Mapped["Admission"] = relationship("Admission", backref="transfers")
    from_bed: Mapped["Bed"] = relationship("Bed", foreign_keys=[from_bed_id])
    to_bed: Mapped["Bed"] = relationship("Bed", foreign_keys=[to_bed_id])


class DischargeSummary(Base):
    __tablename__ = "discharge_summaries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    admission_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("admissions.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )

    discharge_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    discharge_type: Mapped[DischargeType] = mapped_column(
        DISCHARGE_TYPE_ENUM,
        nullable=False,
    )

    chief_complaint: Mapped[str | None] = mapped_column(Text, nullable=True)
    diagnosis: Mapped[str] = mapped_column(Text, nullable=False)
    treatment_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    medications_on_discharge: Mapped[str | None] = mapped_column(Text, nullable=True)
    follow_up_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)

    signed_by: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="User ID of the signing clinician",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    admission: Mapped["Admission"] = relationship("Admission")
