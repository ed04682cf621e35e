# app/services/dispensing_service.py
"""
Dispensing against the stock ledger.

Depletion is first-expired-first-out over a single batch: the request is
served entirely from the earliest-expiring batch that can cover it on its
own. A request is never split across batches, even when the medication's
combined stock would cover it; that case raises NoSingleBatchCoversError.
"""

from __future__ import annotations

import logging

from sqlalchemy import exists
from sqlalchemy.orm import Session

from app.core.database import atomic
from app.core.errors import (
    InsufficientStockError,
    NoSingleBatchCoversError,
    NotFoundError,
    ValidationError,
)
from app.models.medication import Medication
from app.models.pharmacy import (
    Dispensing,
    DispensingStatus,
    MovementType,
    PharmacyStock,
    StockMovement,
)
from app.models.prescription import Prescription, PrescriptionStatus
from app.schemas.pharmacy import DispensingCreate, DispensingReturn
from app.services.movement_service import record_movement, sum_movements_by_reference
from app.services.stock_service import lock_stock
from app.utils.datetime_utils import utc_now, utc_today

logger = logging.getLogger(__name__)


def _dispensing_reference(dispensing_id: int) -> str:
    return f"DISP-{dispensing_id}"


def _return_reference(dispensing_id: int) -> str:
    return f"RETURN-DISP-{dispensing_id}"


def _lock_dispensable_batches(db: Session, medication_id: int) -> list[PharmacyStock]:
    return (
        db.query(PharmacyStock)
        .filter(
            PharmacyStock.medication_id == medication_id,
            PharmacyStock.quantity > 0,
            PharmacyStock.expiry_date >= utc_today(),
        )
        .order_by(PharmacyStock.expiry_date.asc(), PharmacyStock.id.asc())
        .with_for_update()
        .populate_existing()
        .all()
    )


def select_fifo_batch(batches: list[PharmacyStock], quantity: int) -> PharmacyStock:
    """
    Pick the batch to draw `quantity` from.

    `batches` must already be ordered by expiry ascending. Raises
    InsufficientStockError when their total is short, and
    NoSingleBatchCoversError when the total suffices but no one batch does.
    """
    total_available = sum(b.quantity for b in batches)
    if total_available < quantity:
        raise InsufficientStockError(
            f"Insufficient stock available: requested {quantity}, available {total_available}."
        )

    for batch in batches:
        if batch.quantity >= quantity:
            return batch

    raise NoSingleBatchCoversError(
        f"No single batch holds {quantity} units (total across batches: {total_available})."
    )


def dispense_medication(db: Session, payload: DispensingCreate) -> Dispensing:
    """
    Fulfil a prescription from stock.

    Rules:
    - Prescription must exist, be active, and match patient + medication
    - Batches are read under row locks; FIFO selection as described above
    - Dispensing row, batch decrement and `dispensing` movement commit together
    """
    if payload.quantity <= 0:
        raise ValidationError("Quantity must be greater than zero.")

    with atomic(db):
        prescription = db.query(Prescription).filter(Prescription.id == payload.prescription_id).first()
        if not prescription:
            raise NotFoundError("Prescription not found")

        medication = db.query(Medication).filter(Medication.id == payload.medication_id).first()
        if not medication:
            raise NotFoundError("Medication not found")

        if prescription.status != PrescriptionStatus.ACTIVE:
            raise ValidationError(
                f"Cannot dispense against a {prescription.status.value} prescription."
            )
        if prescription.patient_id != payload.patient_id:
            raise ValidationError("Prescription does not belong to this patient.")
        if prescription.medication_id != medication.id:
            raise ValidationError("Prescription is for a different medication.")

        batches = _lock_dispensable_batches(db, medication.id)
        try:
            batch = select_fifo_batch(batches, payload.quantity)
        except (InsufficientStockError, NoSingleBatchCoversError) as exc:
            logger.warning(
                "Dispensing rejected prescription=%s medication=%s qty=%s: %s",
                prescription.id,
                medication.id,
                payload.quantity,
                exc.message,
            )
            raise

        dispensed_at = utc_now()
        dispensing = Dispensing(
            prescription_id=prescription.id,
            patient_id=payload.patient_id,
            medication_id=medication.id,
            stock_id=batch.id,
            quantity_dispensed=payload.quantity,
            batch_number=batch.batch_number,
            dispensed_by=payload.dispensed_by,
            dispensed_at=dispensed_at,
            instructions=payload.instructions,
            notes=payload.notes,
            status=DispensingStatus.DISPENSED,
        )
        db.add(dispensing)
        db.flush()  # assigns dispensing.id for the movement reference

        batch.quantity -= payload.quantity
        record_movement(
            db,
            stock=batch,
            movement_type=MovementType.DISPENSING,
            quantity=-payload.quantity,
            reference=_dispensing_reference(dispensing.id),
            performed_by=payload.dispensed_by,
            performed_at=dispensed_at,
        )

    logger.info(
        "Medication dispensed dispensing=%s prescription=%s batch=%s qty=%s",
        dispensing.id,
        dispensing.prescription_id,
        dispensing.batch_number,
        dispensing.quantity_dispensed,
    )
    return dispensing


def return_dispensing(db: Session, dispensing_id: int, payload: DispensingReturn) -> StockMovement:
    """
    Put dispensed units back into the batch they came from.

    The Dispensing row is left untouched; the return is a `return`
    movement. Total returns for a dispensing may not exceed what was
    dispensed.
    """
    with atomic(db):
        dispensing = db.query(Dispensing).filter(Dispensing.id == dispensing_id).first()
        if not dispensing:
            raise NotFoundError("Dispensing not found")

        stock = lock_stock(db, dispensing.stock_id)
        reference = _return_reference(dispensing.id)
        already_returned = sum_movements_by_reference(db, reference, MovementType.RETURN)
        returnable = dispensing.quantity_dispensed - already_returned
        if payload.quantity > returnable:
            raise ValidationError(
                f"Cannot return {payload.quantity} units; only {returnable} remain returnable."
            )

        stock.quantity += payload.quantity
        movement = record_movement(
            db,
            stock=stock,
            movement_type=MovementType.RETURN,
            quantity=payload.quantity,
            reference=reference,
            reason=payload.reason,
            performed_by=payload.performed_by,
        )

    logger.info(
        "Dispensing returned dispensing=%s qty=%s batch=%s",
        dispensing_id,
        payload.quantity,
        movement.batch_number,
    )
    return movement


def get_dispensing_queue(db: Session) -> list[Prescription]:
    """Active prescriptions with nothing dispensed yet, oldest first."""
    has_dispensing = exists().where(Dispensing.prescription_id == Prescription.id)
    return (
        db.query(Prescription)
        .filter(
            Prescription.status == PrescriptionStatus.ACTIVE,
            ~has_dispensing,
        )
        .order_by(Prescription.created_at.asc(), Prescription.id.asc())
        .all()
    )


def get_patient_dispensing_history(db: Session, patient_id: int) -> list[Dispensing]:
    return (
        db.query(Dispensing)
        .filter(Dispensing.patient_id == patient_id)
        .order_by(Dispensing.dispensed_at.desc(), Dispensing.id.desc())
        .all()
    )
