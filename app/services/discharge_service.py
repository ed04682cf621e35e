# app/services/discharge_service.py
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.database import atomic
from app.core.errors import DischargeSummaryExistsError, NotFoundError
from app.models.admission import DischargeSummary
from app.schemas.admission import DischargeSummaryCreate
from app.services.admission_service import _close_admission, lock_admission
from app.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


def create_discharge_summary(db: Session, payload: DischargeSummaryCreate) -> DischargeSummary:
    """
    Record the discharge summary and discharge the admission.

    Both happen in one unit of work, so a summary never exists for a
    stay that is still Admitted. The summary carries the admission's
    discharge time; for a stay discharged earlier that is the original
    time, not now.
    """
    with atomic(db):
        admission = lock_admission(db, payload.admission_id)

        existing = (
            db.query(DischargeSummary)
            .filter(DischargeSummary.admission_id == admission.id)
            .first()
        )
        if existing:
            raise DischargeSummaryExistsError(
                "A discharge summary has already been recorded for this admission."
            )

        _close_admission(db, admission, utc_now())

        summary = DischargeSummary(
            admission_id=admission.id,
            discharge_date=admission.discharge_date,
            discharge_type=payload.discharge_type,
            chief_complaint=payload.chief_complaint,
            diagnosis=payload.diagnosis,
            treatment_summary=payload.treatment_summary,
            medications_on_discharge=payload.medications_on_discharge,
            follow_up_instructions=payload.follow_up_instructions,
            signed_by=payload.signed_by,
        )
        db.add(summary)
        db.flush()

    logger.info(
        "Discharge summary recorded summary=%s admission=%s type=%s",
        summary.id,
        summary.admission_id,
        summary.discharge_type.value,
    )
    return summary


def get_discharge_summary(db: Session, admission_id: int) -> DischargeSummary:
    summary = (
        db.query(DischargeSummary)
        .filter(DischargeSummary.admission_id == admission_id)
        .first()
    )
    if not summary:
        raise NotFoundError("Discharge summary not found")
    return summary
