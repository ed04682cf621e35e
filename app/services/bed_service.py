# app/services/bed_service.py
"""
Wards, rooms and beds.

Bed.status is the single source of truth for occupancy. Only the ADT
workflows (admission, transfer, discharge) change it, through
_set_bed_status(); nothing here exposes a public status mutation.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.database import atomic
from app.core.errors import NotFoundError, ValidationError
from app.models.ward import Bed, BedStatus, Room, Ward
from app.schemas.ward import BedCreate, RoomCreate, WardCreate

logger = logging.getLogger(__name__)


def _flush_unique(db: Session, message: str) -> None:
    """
    Flush a new registry row. A concurrent insert can pass the duplicate
    check above it; the unique constraint then rejects the flush.
    """
    try:
        db.flush()
    except IntegrityError as exc:
        logger.warning("Registry insert rejected by unique constraint: %s", message)
        raise ValidationError(message) from exc


def create_ward(db: Session, payload: WardCreate) -> Ward:
    with atomic(db):
        existing = db.query(Ward).filter(Ward.name == payload.name).first()
        if existing:
            raise ValidationError(f"Ward '{payload.name}' already exists.")

        ward = Ward(
            name=payload.name,
            ward_type=payload.ward_type,
            floor=payload.floor,
            description=payload.description,
        )
        db.add(ward)
        _flush_unique(db, f"Ward '{payload.name}' already exists.")

    logger.info("Ward created id=%s name=%s", ward.id, ward.name)
    return ward


def list_wards(db: Session) -> list[Ward]:
    return (
        db.query(Ward)
        .options(selectinload(Ward.rooms).selectinload(Room.beds))
        .order_by(Ward.name.asc())
        .all()
    )


def get_ward(db: Session, ward_id: int) -> Ward:
    ward = (
        db.query(Ward)
        .options(selectinload(Ward.rooms).selectinload(Room.beds))
        .filter(Ward.id == ward_id)
        .first()
    )
    if not ward:
        raise NotFoundError("Ward not found")
    return ward


def create_room(db: Session, payload: RoomCreate) -> Room:
    with atomic(db):
        ward = db.query(Ward).filter(Ward.id == payload.ward_id).first()
        if not ward:
            raise NotFoundError("Ward not found")

        duplicate = (
            db.query(Room)
            .filter(Room.ward_id == ward.id, Room.room_number == payload.room_number)
            .first()
        )
        if duplicate:
            raise ValidationError(
                f"Room '{payload.room_number}' already exists in ward '{ward.name}'."
            )

        room = Room(
            ward_id=ward.id,
            room_number=payload.room_number,
            room_type=payload.room_type,
        )
        db.add(room)
        _flush_unique(
            db, f"Room '{payload.room_number}' already exists in ward '{ward.name}'."
        )

    logger.info("Room created id=%s ward=%s number=%s", room.id, room.ward_id, room.room_number)
    return room


def create_bed(db: Session, payload: BedCreate) -> Bed:
    with atomic(db):
        room = db.query(Room).filter(Room.id == payload.room_id).first()
        if not room:
            raise NotFoundError("Room not found")

        duplicate = db.query(Bed).filter(Bed.bed_number == payload.bed_number).first()
        if duplicate:
            raise ValidationError(f"Bed '{payload.bed_number}' already exists.")

        bed = Bed(
            room_id=room.id,
            ward_id=room.ward_id,
            bed_number=payload.bed_number,
            status=BedStatus.AVAILABLE,
        )
        db.add(bed)
        _flush_unique(db, f"Bed '{payload.bed_number}' already exists.")

    logger.info("Bed created id=%s number=%s room=%s", bed.id, bed.bed_number, bed.room_id)
    return bed


def list_beds(db: Session, status: BedStatus | None = None) -> list[Bed]:
    query = db.query(Bed)
    if status is not None:
        query = query.filter(Bed.status == status)
    return query.order_by(Bed.bed_number.asc()).all()


def get_bed(db: Session, bed_id: int) -> Bed:
    bed = db.query(Bed).filter(Bed.id == bed_id).first()
    if not bed:
        raise NotFoundError("Bed not found")
    return bed


def lock_bed(db: Session, bed_id: int) -> Bed:
    """
    Read a bed under a row lock (SELECT ... FOR UPDATE).

    Must be called inside the caller's atomic() block so the lock is held
    until that unit of work commits or rolls back.
    """
    bed = (
        db.query(Bed)
        .filter(Bed.id == bed_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not bed:
        raise NotFoundError("Bed not found")
    return bed


def _set_bed_status(db: Session, bed: Bed, status: BedStatus) -> None:
    """
    Internal: ADT workflows only. Caller holds the bed's row lock.
    """
    previous = bed.status
    bed.status = status
    db.flush()
    logger.debug("Bed status id=%s %s -> %s", bed.id, previous.value, status.value)
