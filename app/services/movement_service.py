# app/services/movement_service.py
"""
Stock movement journal.

Append-only: the only writer is record_movement(), always called inside
the same atomic() block as the quantity change it describes. Reads are
projections for reporting and reconciliation.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.pharmacy import MovementType, PharmacyStock, StockMovement
from app.schemas.pharmacy import BatchReconciliation
from app.utils.datetime_utils import as_utc, utc_now

logger = logging.getLogger(__name__)


def record_movement(
    db: Session,
    *,
    stock: PharmacyStock,
    movement_type: MovementType,
    quantity: int,
    reference: str | None = None,
    reason: str | None = None,
    performed_by: int | None = None,
    performed_at: datetime | None = None,
) -> StockMovement:
    """
    Add one journal row for a change of `quantity` (signed) on `stock`.

    Does not commit; the caller's unit of work owns the transaction.
    """
    movement = StockMovement(
        movement_type=movement_type,
        medication_id=stock.medication_id,
        stock_id=stock.id,
        quantity=quantity,
        batch_number=stock.batch_number,
        reference=reference,
        reason=reason,
        performed_by=performed_by,
        performed_at=performed_at or utc_now(),
    )
    db.add(movement)
    db.flush()
    logger.debug(
        "Stock movement type=%s medication=%s batch=%s qty=%s ref=%s",
        movement_type.value,
        movement.medication_id,
        movement.batch_number,
        quantity,
        reference,
    )
    return movement


def get_stock_movements(
    db: Session,
    medication_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[StockMovement]:
    """
    Movements for one medication, newest first.

    start/end are inclusive; naive bounds are taken as UTC.
    """
    query = db.query(StockMovement).filter(StockMovement.medication_id == medication_id)
    if start is not None:
        query = query.filter(StockMovement.performed_at >= as_utc(start))
    if end is not None:
        query = query.filter(StockMovement.performed_at <= as_utc(end))
    return query.order_by(StockMovement.performed_at.desc(), StockMovement.id.desc()).all()


def sum_movements_by_reference(db: Session, reference: str, movement_type: MovementType) -> int:
    total = (
        db.query(func.coalesce(func.sum(StockMovement.quantity), 0))
        .filter(
            StockMovement.reference == reference,
            StockMovement.movement_type == movement_type,
        )
        .scalar()
    )
    return int(total)


def reconcile_stock(db: Session, medication_id: int) -> list[BatchReconciliation]:
    """
    Compare the journal against on-hand quantities, per batch number.

    A batch is balanced when the sum of its movements equals the sum of
    its PharmacyStock.quantity rows.
    """
    ledger = dict(
        db.query(StockMovement.batch_number, func.sum(StockMovement.quantity))
        .filter(StockMovement.medication_id == medication_id)
        .group_by(StockMovement.batch_number)
        .all()
    )
    on_hand = dict(
        db.query(PharmacyStock.batch_number, func.sum(PharmacyStock.quantity))
        .filter(PharmacyStock.medication_id == medication_id)
        .group_by(PharmacyStock.batch_number)
        .all()
    )

    results: list[BatchReconciliation] = []
    for batch_number in sorted(set(ledger) | set(on_hand)):
        ledger_qty = int(ledger.get(batch_number) or 0)
        on_hand_qty = int(on_hand.get(batch_number) or 0)
        balanced = ledger_qty == on_hand_qty
        if not balanced:
            logger.warning(
                "Stock out of balance medication=%s batch=%s ledger=%s on_hand=%s",
                medication_id,
                batch_number,
                ledger_qty,
                on_hand_qty,
            )
        results.append(
            BatchReconciliation(
                medication_id=medication_id,
                batch_number=batch_number,
                ledger_quantity=ledger_qty,
                on_hand_quantity=on_hand_qty,
                balanced=balanced,
            )
        )
    return results
