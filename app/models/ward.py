# app/models/ward.py
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.utils.datetime_utils import utc_now


class BedStatus(str, PyEnum):
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"
    MAINTENANCE = "Maintenance"
    CLEANING = "Cleaning"


BED_STATUS_ENUM = Enum(
    BedStatus,
    name="bed_status_enum",
    values_callable=lambda members: [m.value for m in members],
)


class Ward(Base):
    __tablename__ = "wards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    ward_type: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        doc="e.g., ICU, General, Maternity, Pediatric",
    )
    floor: Mapped[str | None] = mapped_column(String(20), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    rooms: Mapped[list["Room"]] = relationship(
        "Room",
        back_populates="ward",
        order_by="Room.room_number",
    )


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("ward_id", "room_number", name="uq_rooms_ward_room_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    ward_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("wards.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    room_number: Mapped[str] = mapped_column(String(20), nullable=False)
    room_type: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        doc="e.g., Private, Semi-private, General",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    ward: Mapped["Ward"] = relationship("Ward", back_populates="rooms")
    beds: Mapped[list["Bed"]] = relationship(
        "Bed",
        back_populates="room",
        order_by="Bed.bed_number",
    )


class Bed(Base):
    """
    A single bed. `status` is the only thing consulted when deciding
    whether the bed can take a patient.
    """

    __tablename__ = "beds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    room_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("rooms.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    ward_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("wards.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        doc="Copied from the room at creation so transfers can check ward ownership",
    )
    bed_number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)

    status: Mapped[BedStatus] = mapped_column(
        BED_STATUS_ENUM,
        nullable=False,
        default=BedStatus.AVAILABLE,
        server_default=text("'Available'"),
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
    )

    room: Mapped["Room"] = relationship("Room", back_populates="beds")
