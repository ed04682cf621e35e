# app/services/transfer_service.py
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.database import atomic
from app.core.errors import (
    AdmissionNotActiveError,
    BedUnavailableError,
    ValidationError,
)
from app.models.admission import AdmissionStatus, Transfer
from app.models.ward import BedStatus
from app.schemas.admission import TransferCreate
from app.services.admission_service import lock_admission
from app.services.bed_service import _set_bed_status, lock_bed
from app.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


def transfer_patient(db: Session, payload: TransferCreate) -> Transfer:
    """
    Move an admitted patient to another bed.

    One unit of work writes the Transfer row, repoints the admission,
    frees the origin bed and occupies the destination. Beds are locked
    in ascending id order so two crossing transfers cannot deadlock.
    """
    with atomic(db):
        admission = lock_admission(db, payload.admission_id)
        if admission.status != AdmissionStatus.ADMITTED:
            raise AdmissionNotActiveError(
                f"Cannot transfer admission with status {admission.status.value}."
            )
        if admission.bed_id == payload.to_bed_id:
            raise BedUnavailableError("Patient already occupies the destination bed.")

        locked = {}
        for bed_id in sorted((admission.bed_id, payload.to_bed_id)):
            locked[bed_id] = lock_bed(db, bed_id)
        origin = locked[admission.bed_id]
        destination = locked[payload.to_bed_id]

        if destination.ward_id != payload.to_ward_id:
            raise ValidationError(
                f"Bed {destination.bed_number} does not belong to ward {payload.to_ward_id}."
            )
        if destination.status != BedStatus.AVAILABLE:
            logger.warning(
                "Transfer rejected: admission=%s to_bed=%s status=%s",
                admission.id,
                destination.id,
                destination.status.value,
            )
            raise BedUnavailableError(
                f"Bed {destination.bed_number} is not available (status: {destination.status.value})."
            )

        transfer = Transfer(
            admission_id=admission.id,
            from_ward_id=admission.ward_id,
            from_bed_id=admission.bed_id,
            to_ward_id=destination.ward_id,
            to_bed_id=destination.id,
            transfer_date=utc_now(),
            reason=payload.reason,
            authorized_by=payload.authorized_by,
        )
        db.add(transfer)
        db.flush()

        admission.ward_id = destination.ward_id
        admission.bed_id = destination.id
        _set_bed_status(db, origin, BedStatus.AVAILABLE)
        _set_bed_status(db, destination, BedStatus.OCCUPIED)

    logger.info(
        "Patient transferred admission=%s bed %s -> %s transfer=%s",
        transfer.admission_id,
        transfer.from_bed_id,
        transfer.to_bed_id,
        transfer.id,
    )
    return transfer


def list_transfers(db: Session, admission_id: int | None = None) -> list[Transfer]:
    query = db.query(Transfer)
    if admission_id is not None:
        query = query.filter(Transfer.admission_id == admission_id)
    return query.order_by(Transfer.transfer_date.desc(), Transfer.id.desc()).all()
