# app/models/pharmacy.py
from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.medication import Medication
from app.models.prescription import Prescription
from app.utils.datetime_utils import utc_now


class DispensingStatus(str, PyEnum):
    DISPENSED = "dispensed"
    RETURNED = "returned"


class MovementType(str, PyEnum):
    PURCHASE = "purchase"
    DISPENSING = "dispensing"
    ADJUSTMENT = "adjustment"
    RETURN = "return"
    EXPIRED = "expired"


class PharmacyStock(Base):
    """
    One received batch of a medication.

    quantity is only ever changed together with a StockMovement row in
    the same transaction.
    """

    __tablename__ = "pharmacy_stock"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_pharmacy_stock_quantity_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    medication_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("medications.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    batch_number: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    location: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        doc='e.g., "Shelf A-12"',
    )

    cost_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    selling_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    reorder_level: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default=text("10"),
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

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

    medication: Mapped["Medication"] = relationship("Medication")


class Dispensing(Base):
    """
    One dispensing event. Immutable once written; a return is recorded
    as a StockMovement, not as a change to this row.
    """

    __tablename__ = "dispensing"
    __table_args__ = (
        CheckConstraint("quantity_dispensed > 0", name="ck_dispensing_quantity_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    prescription_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("prescriptions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
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
    stock_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("pharmacy_stock.id", ondelete="RESTRICT"),
        nullable=False,
        doc="Batch row the quantity was drawn from",
    )

    quantity_dispensed: Mapped[int] = mapped_column(Integer, nullable=False)
    batch_number: Mapped[str] = mapped_column(String(100), nullable=False)
    dispensed_by: Mapped[int | None] = mapped_column(Integer, nullable=True)  # pharmacist user ID
    dispensed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[DispensingStatus] = mapped_column(
        Enum(
            DispensingStatus,
            name="dispensing_status_enum",
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=DispensingStatus.DISPENSED,
        server_default=text("'dispensed'"),
    )

    prescription: Mapped["Prescription"] = relationship("Prescription")
    medication: Mapped["Medication"] = relationship("Medication")
    stock: Mapped["PharmacyStock"] = relationship("PharmacyStock")


class StockMovement(Base):
    """
    Append-only ledger of stock quantity changes.

    quantity is signed: positive for inbound (purchase, return),
    negative for outbound (dispensing, expired). Summing a batch's
    movements gives its current on-hand quantity.
    """

    __tablename__ = "stock_movements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    movement_type: Mapped[MovementType] = mapped_column(
        Enum(
            MovementType,
            name="stock_movement_type_enum",
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        index=True,
    )
    medication_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("medications.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    stock_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("pharmacy_stock.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    batch_number: Mapped[str] = mapped_column(String(100), nullable=False)
    reference: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
        index=True,
        doc='e.g., "STOCK-ADD", "DISP-67"',
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    performed_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    performed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    medication: Mapped["Medication"] = relationship("Medication")
