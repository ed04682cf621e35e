# app/services/stock_service.py
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import atomic
from app.core.errors import (
    ExpiredBatchError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from app.models.medication import Medication
from app.models.pharmacy import MovementType, PharmacyStock, StockMovement
from app.schemas.pharmacy import StockAdjust, StockCreate
from app.services.movement_service import record_movement
from app.utils.datetime_utils import utc_today

logger = logging.getLogger(__name__)

STOCK_ADD_REFERENCE = "STOCK-ADD"


def add_stock(
    db: Session,
    payload: StockCreate,
    performed_by: int | None = None,
) -> PharmacyStock:
    """
    Receive a batch into stock.

    Rejects batches whose expiry date is already past. The stock row and
    its `purchase` movement are written in one unit of work.
    """
    if payload.quantity <= 0:
        raise ValidationError("Quantity must be greater than zero.")
    if payload.expiry_date < utc_today():
        logger.warning(
            "Rejected expired batch medication=%s batch=%s expiry=%s",
            payload.medication_id,
            payload.batch_number,
            payload.expiry_date,
        )
        raise ExpiredBatchError("Cannot add expired medication to stock.")

    reorder_level = payload.reorder_level
    if reorder_level is None:
        reorder_level = get_settings().default_reorder_level

    with atomic(db):
        medication = db.query(Medication).filter(Medication.id == payload.medication_id).first()
        if not medication:
            raise NotFoundError("Medication not found")

        stock = PharmacyStock(
            medication_id=medication.id,
            quantity=payload.quantity,
            batch_number=payload.batch_number,
            expiry_date=payload.expiry_date,
            location=payload.location,
            cost_price=payload.cost_price,
            selling_price=payload.selling_price,
            reorder_level=reorder_level,
            notes=payload.notes,
        )
        db.add(stock)
        db.flush()

        record_movement(
            db,
            stock=stock,
            movement_type=MovementType.PURCHASE,
            quantity=payload.quantity,
            reference=STOCK_ADD_REFERENCE,
            performed_by=performed_by,
        )

    logger.info(
        "Stock added stock=%s medication=%s batch=%s qty=%s",
        stock.id,
        stock.medication_id,
        stock.batch_number,
        stock.quantity,
    )
    return stock


def get_available_stock(db: Session, medication_id: int) -> list[PharmacyStock]:
    """Non-empty batches, earliest expiry first (the FIFO order)."""
    return (
        db.query(PharmacyStock)
        .filter(
            PharmacyStock.medication_id == medication_id,
            PharmacyStock.quantity > 0,
        )
        .order_by(PharmacyStock.expiry_date.asc(), PharmacyStock.id.asc())
        .all()
    )


def get_low_stock_alerts(db: Session) -> list[PharmacyStock]:
    return (
        db.query(PharmacyStock)
        .filter(PharmacyStock.quantity <= PharmacyStock.reorder_level)
        .order_by(PharmacyStock.quantity.asc(), PharmacyStock.expiry_date.asc())
        .all()
    )


def lock_stock(db: Session, stock_id: int) -> PharmacyStock:
    stock = (
        db.query(PharmacyStock)
        .filter(PharmacyStock.id == stock_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not stock:
        raise NotFoundError("Stock batch not found")
    return stock


def adjust_stock(db: Session, stock_id: int, payload: StockAdjust) -> PharmacyStock:
    """
    Manual correction (count discrepancy, breakage, ...). The delta is
    signed and may not take the batch below zero.
    """
    if payload.quantity_delta == 0:
        raise ValidationError("Adjustment quantity must be non-zero.")

    with atomic(db):
        stock = lock_stock(db, stock_id)
        new_quantity = stock.quantity + payload.quantity_delta
        if new_quantity < 0:
            raise InsufficientStockError(
                f"Adjustment of {payload.quantity_delta} exceeds the {stock.quantity} units in batch {stock.batch_number}."
            )

        stock.quantity = new_quantity
        record_movement(
            db,
            stock=stock,
            movement_type=MovementType.ADJUSTMENT,
            quantity=payload.quantity_delta,
            reference=f"ADJ-{stock.id}",
            reason=payload.reason,
            performed_by=payload.performed_by,
        )

    logger.info(
        "Stock adjusted stock=%s delta=%s new_qty=%s",
        stock.id,
        payload.quantity_delta,
        stock.quantity,
    )
    return stock


def write_off_expired_stock(db: Session, performed_by: int | None = None) -> list[StockMovement]:
    """
    Zero every non-empty batch whose expiry date has passed, writing one
    `expired` movement per batch.
    """
    today = utc_today()
    movements: list[StockMovement] = []

    with atomic(db):
        expired = (
            db.query(PharmacyStock)
            .filter(
                PharmacyStock.quantity > 0,
                PharmacyStock.expiry_date < today,
            )
            .order_by(PharmacyStock.id.asc())
            .with_for_update()
            .populate_existing()
            .all()
        )
        for stock in expired:
            written_off = stock.quantity
            stock.quantity = 0
            movements.append(
                record_movement(
                    db,
                    stock=stock,
                    movement_type=MovementType.EXPIRED,
                    quantity=-written_off,
                    reference=f"EXP-{stock.id}",
                    reason=f"Expired on {stock.expiry_date.isoformat()}",
                    performed_by=performed_by,
                )
            )

    logger.info("Expired stock written off batches=%s", len(movements))
    return movements
