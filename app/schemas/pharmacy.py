# app/schemas/pharmacy.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
)

from app.models.pharmacy import DispensingStatus, MovementType
from app.models.prescription import PrescriptionStatus

NameStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]

BatchStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=100),
]

OptStr100 = (
    Annotated[
        str,
        StringConstraints(strip_whitespace=True, max_length=100),
    ]
    | None
)


class MedicationCreate(BaseModel):
    name: NameStr
    generic_name: OptStr100 = None
    form: OptStr100 = None
    strength: OptStr100 = None
    unit: OptStr100 = None
    category: OptStr100 = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("generic_name", "form", "strength", "unit", "category", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class MedicationResponse(BaseModel):
    id: int
    name: str
    generic_name: str | None
    form: str | None
    strength: str | None
    unit: str | None
    category: str | None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StockCreate(BaseModel):
    """
    A received batch.

    Quantity is validated as positive by the service as well, so callers
    that bypass this schema get the same rule.
    """

    medication_id: int
    quantity: int = Field(gt=0)
    batch_number: BatchStr
    expiry_date: date
    location: OptStr100 = None
    cost_price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    selling_price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    reorder_level: int | None = Field(default=None, ge=0)
    notes: str | None = None

    model_config = ConfigDict(extra="forbid")


class StockAdjust(BaseModel):
    quantity_delta: int
    reason: str = Field(min_length=1)
    performed_by: int | None = None

    model_config = ConfigDict(extra="forbid")


class StockResponse(BaseModel):
    id: int
    medication_id: int
    quantity: int
    batch_number: str
    expiry_date: date
    location: str | None
    cost_price: Decimal | None
    selling_price: Decimal | None
    reorder_level: int
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DispensingCreate(BaseModel):
    prescription_id: int
    patient_id: int
    medication_id: int
    quantity: int = Field(gt=0)
    dispensed_by: int | None = None
    instructions: str | None = None
    notes: str | None = None

    model_config = ConfigDict(extra="forbid")


class DispensingReturn(BaseModel):
    quantity: int = Field(gt=0)
    reason: str | None = None
    performed_by: int | None = None

    model_config = ConfigDict(extra="forbid")


class DispensingResponse(BaseModel):
    id: int
    prescription_id: int
    patient_id: int
    medication_id: int
    stock_id: int
    quantity_dispensed: int
    batch_number: str
    dispensed_by: int | None
    dispensed_at: datetime
    instructions: str | None
    notes: str | None
    status: DispensingStatus

    model_config = ConfigDict(from_attributes=True)


class StockMovementResponse(BaseModel):
    id: int
    movement_type: MovementType
    medication_id: int
    stock_id: int | None
    quantity: int
    batch_number: str
    reference: str | None
    reason: str | None
    performed_by: int | None
    performed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PrescriptionResponse(BaseModel):
    id: int
    patient_id: int
    medication_id: int
    prescriber_id: int | None
    dosage: str
    frequency: str
    duration_days: int | None
    quantity: int | None
    status: PrescriptionStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BatchReconciliation(BaseModel):
    medication_id: int
    batch_number: str
    ledger_quantity: int
    on_hand_quantity: int
    balanced: bool
