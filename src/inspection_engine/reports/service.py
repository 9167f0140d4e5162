"""Reporting service — fetches records and hands them to the pure aggregators."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from inspection_engine.auth.policy import Action, require
from inspection_engine.deliveries.kpis import DeliveryKPIs, compute_kpis
from inspection_engine.reports.aggregator import (
    InspectionReport,
    build_inspection_report,
    period_start,
)


class ReportService:
    """Supervisor dashboards."""

    def __init__(self, inspection_service, auth_service, delivery_service):
        self.inspections = inspection_service
        self.auth = auth_service
        self.deliveries = delivery_service

    async def inspection_report(
        self, session: AsyncSession, ctx: Any, days: int = 30
    ) -> InspectionReport:
        require(ctx, Action.REPORTS_VIEW)
        since = period_start(days)
        inspections = await self.inspections.list_since(session, since)
        names = await self.auth.names_by_id(session, {i.created_by for i in inspections})
        return build_inspection_report(inspections, names, period_days=days)

    async def delivery_report(
        self, session: AsyncSession, ctx: Any
    ) -> tuple[DeliveryKPIs, list[tuple[Any, Any]]]:
        require(ctx, Action.REPORTS_VIEW)
        rows = await self.deliveries.list_deliveries(session, ctx)
        return compute_kpis(d for d, _ in rows), rows
