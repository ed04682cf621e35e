# app/services/medication_service.py
import logging

from sqlalchemy.orm import Session

from app.core.database import atomic
from app.core.errors import NotFoundError
from app.models.medication import Medication
from app.schemas.pharmacy import MedicationCreate

logger = logging.getLogger(__name__)


def create_medication(db: Session, payload: MedicationCreate) -> Medication:
    medication = Medication(**payload.model_dump())
    with atomic(db):
        db.add(medication)
        db.flush()
    logger.info("Medication created id=%s name=%s", medication.id, medication.name)
    return medication


def list_medications(db: Session, include_inactive: bool = False) -> list[Medication]:
    query = db.query(Medication)
    if not include_inactive:
        query = query.filter(Medication.is_active.is_(True))
    return query.order_by(Medication.name.asc()).all()


def get_medication(db: Session, medication_id: int) -> Medication:
    medication = db.query(Medication).filter(Medication.id == medication_id).first()
    if not medication:
        raise NotFoundError("Medication not found")
    return medication
