# app/services/admission_service.py
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.database import atomic
from app.core.errors import (
    BedUnavailableError,
    NotFoundError,
    PatientAlreadyAdmittedError,
    ValidationError,
)
from app.models.admission import Admission, AdmissionStatus
from app.models.patient import Patient
from app.models.ward import BedStatus
from app.schemas.admission import AdmissionCreate
from app.services.bed_service import _set_bed_status, lock_bed
from app.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


def admit_patient(db: Session, payload: AdmissionCreate) -> Admission:
    """
    Admit a patient into a bed.

    Rules:
    - Bed must exist and read Available under a row lock
    - Patient must exist, be alive, and have no open admission
    - Admission insert and bed -> Occupied commit together or not at all
    """
    with atomic(db):
        bed = lock_bed(db, payload.bed_id)
        if bed.status != BedStatus.AVAILABLE:
            logger.warning(
                "Admission rejected: bed=%s status=%s patient=%s",
                bed.id,
                bed.status.value,
                payload.patient_id,
            )
            raise BedUnavailableError(
                f"Bed {bed.bed_number} is not available (status: {bed.status.value})."
            )

        patient = (
            db.query(Patient)
            .filter(Patient.id == payload.patient_id)
            .with_for_update()
            .first()
        )
        if not patient:
            raise NotFoundError("Patient not found")
        if patient.is_deceased:
            raise ValidationError("Cannot admit deceased patient.")

        open_admission = (
            db.query(Admission)
            .filter(
                Admission.patient_id == patient.id,
                Admission.status == AdmissionStatus.ADMITTED,
            )
            .first()
        )
        if open_admission:
            raise PatientAlreadyAdmittedError(
                "Patient already has an active admission. Please discharge the current admission first."
            )

        admission = Admission(
            patient_id=patient.id,
            ward_id=bed.ward_id,
            bed_id=bed.id,
            admitting_doctor_id=payload.admitting_doctor_id,
            admission_date=utc_now(),
            diagnosis=payload.diagnosis,
            notes=payload.notes,
            status=AdmissionStatus.ADMITTED,
        )
        db.add(admission)
        db.flush()  # assigns admission.id

        _set_bed_status(db, bed, BedStatus.OCCUPIED)

    logger.info(
        "Patient admitted admission=%s patient=%s bed=%s",
        admission.id,
        admission.patient_id,
        admission.bed_id,
    )
    return admission


def lock_admission(db: Session, admission_id: int) -> Admission:
    """Row-locked read; call inside the caller's atomic() block."""
    admission = (
        db.query(Admission)
        .filter(Admission.id == admission_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not admission:
        raise NotFoundError("Admission not found")
    return admission


def _close_admission(db: Session, admission: Admission, discharged_at: datetime) -> bool:
    """
    Discharge a locked admission and free its bed.

    Returns False when the admission was already discharged; that case
    is a no-op.
    """
    if admission.status == AdmissionStatus.DISCHARGED:
        return False

    bed = lock_bed(db, admission.bed_id)
    admission.status = AdmissionStatus.DISCHARGED
    admission.discharge_date = discharged_at
    _set_bed_status(db, bed, BedStatus.AVAILABLE)
    return True


def discharge_patient(db: Session, admission_id: int) -> Admission:
    """
    Close an admission and free its bed.

    Discharging an already-discharged admission succeeds without
    changing anything.
    """
    with atomic(db):
        admission = lock_admission(db, admission_id)
        changed = _close_admission(db, admission, utc_now())

    if changed:
        logger.info("Patient discharged admission=%s bed=%s", admission.id, admission.bed_id)
    else:
        logger.info("Discharge no-op; admission=%s already discharged", admission.id)
    return admission


def get_admission(db: Session, admission_id: int) -> Admission:
    admission = db.query(Admission).filter(Admission.id == admission_id).first()
    if not admission:
        raise NotFoundError("Admission not found")
    return admission


def list_admissions(
    db: Session,
    *,
    status: AdmissionStatus | None = None,
    patient_id: int | None = None,
) -> list[Admission]:
    query = db.query(Admission)
    if status is not None:
        query = query.filter(Admission.status == status)
    if patient_id is not None:
        query = query.filter(Admission.patient_id == patient_id)
    return query.order_by(Admission.admission_date.desc(), Admission.id.desc()).all()


def list_active_admissions(db: Session) -> list[Admission]:
    return list_admissions(db, status=AdmissionStatus.ADMITTED)
