# app/api/v1/endpoints/wards.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.ward import BedStatus
from app.schemas.ward import (
    BedCreate,
    BedResponse,
    RoomCreate,
    RoomResponse,
    WardCreate,
    WardResponse,
)
from app.services import bed_service

router = APIRouter()


@router.post(
    "/wards",
    response_model=WardResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_ward(
    payload: WardCreate,
    db: Session = Depends(get_db),
) -> WardResponse:
    ward = bed_service.create_ward(db, payload)
    return WardResponse.model_validate(ward)


@router.get("/wards", response_model=list[WardResponse])
def list_wards(db: Session = Depends(get_db)) -> list[WardResponse]:
    """
    List wards with their rooms and beds.
    """
    return [WardResponse.model_validate(w) for w in bed_service.list_wards(db)]


@router.get("/wards/{ward_id}", response_model=WardResponse)
def get_ward(ward_id: int, db: Session = Depends(get_db)) -> WardResponse:
    return WardResponse.model_validate(bed_service.get_ward(db, ward_id))


@router.post(
    "/rooms",
    response_model=RoomResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_room(
    payload: RoomCreate,
    db: Session = Depends(get_db),
) -> RoomResponse:
    room = bed_service.create_room(db, payload)
    return RoomResponse.model_validate(room)


@router.post(
    "/beds",
    response_model=BedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_bed(
    payload: BedCreate,
    db: Session = Depends(get_db),
) -> BedResponse:
    """
    Create a bed in a room. New beds always start Available.
    """
    bed = bed_service.create_bed(db, payload)
    return BedResponse.model_validate(bed)


@router.get("/beds", response_model=list[BedResponse])
def list_beds(
    status: Optional[BedStatus] = Query(
        None, description="Filter by status (Available, Occupied, Maintenance, Cleaning)"
    ),
    db: Session = Depends(get_db),
) -> list[BedResponse]:
    return [BedResponse.model_validate(b) for b in bed_service.list_beds(db, status)]
