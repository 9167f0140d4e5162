"""Pydantic schemas for delivery endpoints."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from inspection_engine.deliveries.models import DeliveryStatus


class DeliveryUpdate(BaseModel):
    driver_id: Optional[str] = None
    agency: Optional[str] = Field(None, max_length=200)
    agency_cnpj: Optional[str] = Field(None, max_length=18)
    delivery_address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, min_length=2, max_length=2)
    invoice_number: Optional[str] = Field(None, max_length=50)
    invoice_series: Optional[str] = Field(None, max_length=10)
    nfe_key: Optional[str] = Field(None, max_length=44)
    carrier: Optional[str] = Field(None, max_length=200)
    vehicle_plate: Optional[str] = Field(None, max_length=10)
    departed_at: Optional[datetime] = None
    expected_delivery_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    receiver_name: Optional[str] = Field(None, max_length=200)
    receiver_role: Optional[str] = Field(None, max_length=100)
    receiver_document: Optional[str] = Field(None, max_length=50)
    receiver_signature: Optional[str] = None
    status: Optional[DeliveryStatus] = None
    notes: Optional[str] = Field(None, max_length=2000)


class DeliveryResponse(BaseModel):
    id: str
    inspection_id: str
    driver_id: Optional[str]
    agency: Optional[str]
    agency_cnpj: Optional[str]
    delivery_address: Optional[str]
    city: Optional[str]
    state: Optional[str]
    invoice_number: Optional[str]
    invoice_series: Optional[str]
    nfe_key: Optional[str]
    carrier: Optional[str]
    vehicle_plate: Optional[str]
    departed_at: Optional[datetime]
    expected_delivery_at: Optional[datetime]
    delivered_at: Optional[datetime]
    receiver_name: Optional[str]
    receiver_role: Optional[str]
    receiver_document: Optional[str]
    receiver_signature: Optional[str]
    status: str
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DeliveryListItem(BaseModel):
    id: str
    inspection_id: str
    model: str
    serial_number: str
    inspection_date: date
    agency: Optional[str]
    city: Optional[str]
    state: Optional[str]
    status: str
    expected_delivery_at: Optional[datetime]
    delivered_at: Optional[datetime]


class DeliveryKPIResponse(BaseModel):
    total: int
    by_status: dict[str, int]
    average_delivery_days: int
    on_time: int
    late: int
    by_state: dict[str, int]


class DeliveryDashboardResponse(BaseModel):
    kpis: DeliveryKPIResponse
    deliveries: list[DeliveryListItem]
