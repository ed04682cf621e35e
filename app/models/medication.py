# app/models/medication.py
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.utils.datetime_utils import utc_now


class Medication(Base):
    """
    Drug catalog entry. Read-mostly reference data; stock is tracked per
    batch in PharmacyStock.
    """

    __tablename__ = "medications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    generic_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    form: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        doc="e.g., tablet, capsule, syrup, injection",
    )
    strength: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        doc='e.g., "500mg", "10mg/ml"',
    )
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    category: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        index=True,
        doc="e.g., antibiotic, analgesic",
    )

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
