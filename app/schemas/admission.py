# app/schemas/admission.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.admission import AdmissionStatus, DischargeType


class AdmissionCreate(BaseModel):
    patient_id: int
    bed_id: int
    diagnosis: str | None = None
    admitting_doctor_id: int | None = None
    notes: str | None = Field(default=None, max_length=1000)


class AdmissionResponse(BaseModel):
    id: int
    patient_id: int
    ward_id: int
    bed_id: int
    admitting_doctor_id: int | None
    admission_date: datetime
    discharge_date: datetime | None
    diagnosis: str | None
    notes: str | None
    status: AdmissionStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransferCreate(BaseModel):
    admission_id: int
    to_ward_id: int
    to_bed_id: int
    reason: str | None = None
    authorized_by: int


class TransferResponse(BaseModel):
    id: int
    admission_id: int
    from_ward_id: int
    from_bed_id: int
    to_ward_id: int
    to_bed_id: int
    transfer_date: datetime
    reason: str | None
    authorized_by: int

    model_config = ConfigDict(from_attributes=True)


class DischargeSummaryCreate(BaseModel):
    admission_id: int
    discharge_type: DischargeType = DischargeType.REGULAR
    chief_complaint: str | None = None
    diagnosis: str = Field(min_length=1)  # Required for discharge
    treatment_summary: str | None = None
    medications_on_discharge: str | None = None
    follow_up_instructions: str | None = None
    signed_by: int


class DischargeSummaryResponse(BaseModel):
    id: int
    admission_id: int
    discharge_date: datetime
    discharge_type: DischargeType
    chief_complaint: str | None
    diagnosis: str
    treatment_summary: str | None
    medications_on_discharge: str | None
    follow_up_instructions: str | None
    signed_by: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
