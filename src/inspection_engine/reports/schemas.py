"""Pydantic schemas for report endpoints."""

from pydantic import BaseModel


class StatusCountsResponse(BaseModel):
    total: int
    em_andamento: int
    finalizada: int
    aprovada: int
    reprovada: int
    approval_rate: float
    approval_rate_display: str


class TechnicianStatsResponse(StatusCountsResponse):
    technician_id: str
    technician_name: str


class MonthlyStatsResponse(StatusCountsResponse):
    month: str


class InspectionReportResponse(BaseModel):
    period_days: int
    totals: StatusCountsResponse
    average_completion_hours: int
    technicians: list[TechnicianStatsResponse]
    months: list[MonthlyStatsResponse]
