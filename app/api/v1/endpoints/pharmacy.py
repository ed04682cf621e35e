# app/api/v1/endpoints/pharmacy.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.pharmacy import (
    BatchReconciliation,
    DispensingCreate,
    DispensingResponse,
    DispensingReturn,
    MedicationCreate,
    MedicationResponse,
    PrescriptionResponse,
    StockAdjust,
    StockCreate,
    StockMovementResponse,
    StockResponse,
)
from app.services import (
    dispensing_service,
    medication_service,
    movement_service,
    stock_service,
)

router = APIRouter()


@router.post(
    "/medications",
    response_model=MedicationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_medication(
    payload: MedicationCreate,
    db: Session = Depends(get_db),
) -> MedicationResponse:
    medication = medication_service.create_medication(db, payload)
    return MedicationResponse.model_validate(medication)


@router.get("/medications", response_model=list[MedicationResponse])
def list_medications(
    include_inactive: bool = Query(False, description="Include inactive catalog entries"),
    db: Session = Depends(get_db),
) -> list[MedicationResponse]:
    return [
        MedicationResponse.model_validate(m)
        for m in medication_service.list_medications(db, include_inactive)
    ]


@router.post(
    "/stock",
    response_model=StockResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_stock(
    payload: StockCreate,
    performed_by: Optional[int] = Query(None, description="Receiving user ID"),
    db: Session = Depends(get_db),
) -> StockResponse:
    """
    Receive a batch. 422 expired_batch if the expiry date is already past.
    """
    stock = stock_service.add_stock(db, payload, performed_by=performed_by)
    return StockResponse.model_validate(stock)


# Static stock paths are declared before /stock/{medication_id}.
@router.get("/stock/low", response_model=list[StockResponse])
def get_low_stock(db: Session = Depends(get_db)) -> list[StockResponse]:
    return [StockResponse.model_validate(s) for s in stock_service.get_low_stock_alerts(db)]


@router.post("/stock/expire", response_model=list[StockMovementResponse])
def write_off_expired_stock(
    performed_by: Optional[int] = Query(None),
    db: Session = Depends(get_db),
) -> list[StockMovementResponse]:
    movements = stock_service.write_off_expired_stock(db, performed_by=performed_by)
    return [StockMovementResponse.model_validate(m) for m in movements]


@router.get("/stock/{medication_id}", response_model=list[StockResponse])
def get_stock(medication_id: int, db: Session = Depends(get_db)) -> list[StockResponse]:
    """
    Non-empty batches for a medication, earliest expiry first.
    """
    return [
        StockResponse.model_validate(s)
        for s in stock_service.get_available_stock(db, medication_id)
    ]


@router.post("/stock/{stock_id}/adjust", response_model=StockResponse)
def adjust_stock(
    stock_id: int,
    payload: StockAdjust,
    db: Session = Depends(get_db),
) -> StockResponse:
    stock = stock_service.adjust_stock(db, stock_id, payload)
    return StockResponse.model_validate(stock)


@router.post(
    "/dispense",
    response_model=DispensingResponse,
    status_code=status.HTTP_201_CREATED,
)
def dispense_medication(
    payload: DispensingCreate,
    db: Session = Depends(get_db),
) -> DispensingResponse:
    """
    Dispense from the earliest-expiring batch that alone covers the quantity.

    409 insufficient_stock if total stock is short; 409
    no_single_batch_covers if only a split across batches would cover it.
    """
    dispensing = dispensing_service.dispense_medication(db, payload)
    return DispensingResponse.model_validate(dispensing)


@router.post(
    "/dispensing/{dispensing_id}/return",
    response_model=StockMovementResponse,
    status_code=status.HTTP_201_CREATED,
)
def return_dispensing(
    dispensing_id: int,
    payload: DispensingReturn,
    db: Session = Depends(get_db),
) -> StockMovementResponse:
    movement = dispensing_service.return_dispensing(db, dispensing_id, payload)
    return StockMovementResponse.model_validate(movement)


@router.get("/dispensing-queue", response_model=list[PrescriptionResponse])
def get_dispensing_queue(db: Session = Depends(get_db)) -> list[PrescriptionResponse]:
    return [
        PrescriptionResponse.model_validate(p)
        for p in dispensing_service.get_dispensing_queue(db)
    ]


@router.get("/history/{patient_id}", response_model=list[DispensingResponse])
def get_patient_history(patient_id: int, db: Session = Depends(get_db)) -> list[DispensingResponse]:
    return [
        DispensingResponse.model_validate(d)
        for d in dispensing_service.get_patient_dispensing_history(db, patient_id)
    ]


@router.get("/movements/{medication_id}", response_model=list[StockMovementResponse])
def get_stock_movements(
    medication_id: int,
    start: Optional[datetime] = Query(None, description="Inclusive lower bound on performed_at"),
    end: Optional[datetime] = Query(None, description="Inclusive upper bound on performed_at"),
    db: Session = Depends(get_db),
) -> list[StockMovementResponse]:
    movements = movement_service.get_stock_movements(db, medication_id, start, end)
    return [StockMovementResponse.model_validate(m) for m in movements]


@router.get("/reconciliation/{medication_id}", response_model=list[BatchReconciliation])
def reconcile_stock(medication_id: int, db: Session = Depends(get_db)) -> list[BatchReconciliation]:
    return movement_service.reconcile_stock(db, medication_id)
