"""Pydantic schemas for inspection endpoints."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from inspection_engine.inspections.models import ItemStatus, PhotoType, ProcessType


class InspectionCreate(BaseModel):
    inspection_date: date
    process_type: ProcessType
    model: str = Field(..., min_length=1, max_length=100)
    model_id: Optional[str] = None
    serial_number: str = Field(..., min_length=1, max_length=50)
    horimeter: int = Field(..., ge=0, le=999999)
    freight_responsible: Optional[str] = Field(None, max_length=200)


class InspectionUpdate(BaseModel):
    inspection_date: Optional[date] = None
    process_type: Optional[ProcessType] = None
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    model_id: Optional[str] = None
    serial_number: Optional[str] = Field(None, min_length=1, max_length=50)
    horimeter: Optional[int] = Field(None, ge=0, le=999999)
    freight_responsible: Optional[str] = Field(None, max_length=200)
    general_observations: Optional[str] = Field(None, max_length=2000)
    has_fault_codes: Optional[bool] = None
    fault_codes_description: Optional[str] = Field(None, max_length=1000)
    codes_corrected: Optional[bool] = None


class InspectionResponse(BaseModel):
    id: str
    inspection_date: date
    process_type: str
    model: str
    model_id: Optional[str]
    serial_number: str
    horimeter: int
    freight_responsible: Optional[str]
    status: str

    entry_signature: Optional[str]
    entry_technician_id: Optional[str]
    entry_technician_name: Optional[str]
    entry_signature_date: Optional[datetime]
    exit_signature: Optional[str]
    exit_technician_id: Optional[str]
    exit_technician_name: Optional[str]
    exit_signature_date: Optional[datetime]
    driver_signature: Optional[str]
    driver_name: Optional[str]
    driver_signature_date: Optional[datetime]
    driver_documents_url: Optional[str]

    general_observations: Optional[str]
    has_fault_codes: bool
    fault_codes_description: Optional[str]
    codes_corrected: bool

    approved_by: Optional[str]
    approved_at: Optional[datetime]
    approval_observations: Optional[str]

    created_by: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InspectionSummary(BaseModel):
    """List view without the signature payloads."""
    id: str
    inspection_date: date
    process_type: str
    model: str
    serial_number: str
    horimeter: int
    status: str
    created_by: str
    created_at: datetime

    model_config = {"from_attributes": True}


class InspectionListResponse(BaseModel):
    items: list[InspectionSummary]
    total: int
    offset: int
    limit: int


class ChecklistItemSchema(BaseModel):
    category: str = Field(..., min_length=1, max_length=100)
    item_description: str = Field(..., min_length=1, max_length=500)
    entry_status: Optional[ItemStatus] = None
    exit_status: Optional[ItemStatus] = None
    problem_description: Optional[str] = Field(None, max_length=1000)

    model_config = {"from_attributes": True}


class ChecklistResponse(BaseModel):
    inspection_id: str
    persisted: bool
    visible_columns: list[str]
    items: list[ChecklistItemSchema]


class ChecklistSaveRequest(BaseModel):
    items: list[ChecklistItemSchema]


class SignatureRequest(BaseModel):
    signature: str = Field(..., min_length=1)
    signer_name: Optional[str] = Field(None, max_length=200)
    technician_id: Optional[str] = Field(None, max_length=50)


class ReviewRequest(BaseModel):
    observations: str = Field("", max_length=2000)


class FinalizeResponse(BaseModel):
    inspection: InspectionResponse
    notifications_sent: int
    notifications_failed: int


class PhotoResponse(BaseModel):
    id: str
    inspection_id: str
    photo_type: PhotoType
    photo_url: str
    media_type: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CatalogCategory(BaseModel):
    key: str
    name: str
    items: list[str]
