"""Pydantic schemas for catalog endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class MachineModelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    line: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    internal_code: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = Field(None, max_length=500)
    technical_sheet_url: Optional[str] = Field(None, max_length=500)
    source_url: Optional[str] = Field(None, max_length=500)
    gallery_images: list[str] = []


class MachineModelUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    line: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    internal_code: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = Field(None, max_length=500)
    technical_sheet_url: Optional[str] = Field(None, max_length=500)
    source_url: Optional[str] = Field(None, max_length=500)
    gallery_images: Optional[list[str]] = None


class MachineModelResponse(BaseModel):
    id: str
    name: str
    line: str
    category: str
    description: Optional[str]
    internal_code: Optional[str]
    image_url: Optional[str]
    technical_sheet_url: Optional[str]
    source_url: Optional[str]
    gallery_images: list[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class TechnicianCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    user_id: Optional[str] = None


class TechnicianUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    user_id: Optional[str] = None


class TechnicianResponse(BaseModel):
    id: str
    name: str
    user_id: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class DriverCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    cpf: Optional[str] = Field(None, max_length=14)
    phone: Optional[str] = Field(None, max_length=30)
    company: Optional[str] = Field(None, max_length=200)
    active: bool = True


class DriverUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    cpf: Optional[str] = Field(None, max_length=14)
    phone: Optional[str] = Field(None, max_length=30)
    company: Optional[str] = Field(None, max_length=200)
    active: Optional[bool] = None


class DriverResponse(BaseModel):
    id: str
    name: str
    cpf: Optional[str]
    phone: Optional[str]
    company: Optional[str]
    active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
