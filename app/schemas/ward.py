# app/schemas/ward.py
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, StringConstraints, field_validator

from app.models.ward import BedStatus

NameStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=100),
]

CodeStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=20),
]

OptStr50 = (
    Annotated[
        str,
        StringConstraints(strip_whitespace=True, max_length=50),
    ]
    | None
)


class WardCreate(BaseModel):
    name: NameStr
    ward_type: OptStr50 = None
    floor: OptStr50 = None
    description: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("ward_type", "floor", "description", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class RoomCreate(BaseModel):
    ward_id: int
    room_number: CodeStr
    room_type: OptStr50 = None

    model_config = ConfigDict(extra="forbid")


class BedCreate(BaseModel):
    """Beds are always created Available; status is not accepted here."""

    room_id: int
    bed_number: CodeStr

    model_config = ConfigDict(extra="forbid")


class BedResponse(BaseModel):
    id: int
    room_id: int
    ward_id: int
    bed_number: str
    status: BedStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoomResponse(BaseModel):
    id: int
    ward_id: int
    room_number: str
    room_type: str | None
    created_at: datetime
    beds: list[BedResponse] = []

    model_config = ConfigDict(from_attributes=True)


class WardResponse(BaseModel):
    id: int
    name: str
    ward_type: str | None
    floor: str | None
    description: str | None
    is_active: bool
    created_at: datetime
    rooms: list[RoomResponse] = []

    model_config = ConfigDict(from_attributes=True)
