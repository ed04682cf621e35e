# app/api/v1/endpoints/admissions.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.admission import (
    AdmissionCreate,
    AdmissionResponse,
    DischargeSummaryCreate,
    DischargeSummaryResponse,
    TransferCreate,
    TransferResponse,
)
from app.services import (
    admission_service,
    discharge_service,
    transfer_service,
)

router = APIRouter()


@router.post(
    "/admissions",
    response_model=AdmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
def admit_patient(
    payload: AdmissionCreate,
    db: Session = Depends(get_db),
) -> AdmissionResponse:
    """
    Admit a patient into an Available bed.

    409 bed_unavailable if the bed is Occupied, under Maintenance or
    being Cleaned.
    """
    admission = admission_service.admit_patient(db, payload)
    return AdmissionResponse.model_validate(admission)


# Declared before /admissions/{admission_id} so "active" is not parsed as an id.
@router.get("/admissions/active", response_model=list[AdmissionResponse])
def list_active_admissions(db: Session = Depends(get_db)) -> list[AdmissionResponse]:
    return [
        AdmissionResponse.model_validate(a)
        for a in admission_service.list_active_admissions(db)
    ]


@router.get("/admissions/{admission_id}", response_model=AdmissionResponse)
def get_admission(admission_id: int, db: Session = Depends(get_db)) -> AdmissionResponse:
    return AdmissionResponse.model_validate(admission_service.get_admission(db, admission_id))


@router.post("/admissions/{admission_id}/discharge", response_model=AdmissionResponse)
def discharge_patient(admission_id: int, db: Session = Depends(get_db)) -> AdmissionResponse:
    """
    Discharge without a summary. Re-discharging returns the admission unchanged.
    """
    admission = admission_service.discharge_patient(db, admission_id)
    return AdmissionResponse.model_validate(admission)


@router.post(
    "/transfers",
    response_model=TransferResponse,
    status_code=status.HTTP_201_CREATED,
)
def transfer_patient(
    payload: TransferCreate,
    db: Session = Depends(get_db),
) -> TransferResponse:
    transfer = transfer_service.transfer_patient(db, payload)
    return TransferResponse.model_validate(transfer)


@router.get("/transfers", response_model=list[TransferResponse])
def list_transfers(
    admission_id: Optional[int] = Query(None, description="Filter by admission"),
    db: Session = Depends(get_db),
) -> list[TransferResponse]:
    return [
        TransferResponse.model_validate(t)
        for t in transfer_service.list_transfers(db, admission_id)
    ]


@router.post(
    "/discharge-summaries",
    response_model=DischargeSummaryResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_discharge_summary(
    payload: DischargeSummaryCreate,
    db: Session = Depends(get_db),
) -> DischargeSummaryResponse:
    """
    Record the discharge summary; the admission is discharged in the same transaction.
    """
    summary = discharge_service.create_discharge_summary(db, payload)
    return DischargeSummaryResponse.model_validate(summary)


@router.get(
    "/admissions/{admission_id}/discharge-summary",
    response_model=DischargeSummaryResponse,
)
def get_discharge_summary(
    admission_id: int,
    db: Session = Depends(get_db),
) -> DischargeSummaryResponse:
    summary = discharge_service.get_discharge_summary(db, admission_id)
    return DischargeSummaryResponse.model_validate(summary)
