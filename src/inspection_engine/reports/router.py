"""Reports API router — supervisors and admins only."""

from fastapi import APIRouter, Depends, Query

from inspection_engine.auth.policy import Action
from inspection_engine.common.security import RequestContext, require_action
from inspection_engine.deliveries.schemas import (
    DeliveryDashboardResponse,
    DeliveryKPIResponse,
    DeliveryListItem,
)
from inspection_engine.reports.schemas import (
    InspectionReportResponse,
    MonthlyStatsResponse,
    StatusCountsResponse,
    TechnicianStatsResponse,
)

router = APIRouter(prefix="/reports", tags=["reports"])


def _get_service():
    from inspection_engine.deps import get_report_service
    return get_report_service()


def _get_db():
    from inspection_engine.deps import get_db
    return get_db()


def _counts(stats) -> dict:
    return {
        "total": stats.total,
        "em_andamento": stats.em_andamento,
        "finalizada": stats.finalizada,
        "aprovada": stats.aprovada,
        "reprovada": stats.reprovada,
        "approval_rate": stats.approval_rate,
        "approval_rate_display": stats.approval_rate_display,
    }


@router.get("/inspections", response_model=InspectionReportResponse)
async def inspection_report(
    days: int = Query(30),
    ctx: RequestContext = Depends(require_action(Action.REPORTS_VIEW)),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        report = await svc.inspection_report(session, ctx, days=days)
    return InspectionReportResponse(
        period_days=report.period_days,
        totals=StatusCountsResponse(**_counts(report.totals)),
        average_completion_hours=report.average_completion_hours,
        technicians=[
            TechnicianStatsResponse(
                technician_id=t.technician_id,
                technician_name=t.technician_name,
                **_counts(t),
            )
            for t in report.technicians
        ],
        months=[MonthlyStatsResponse(month=m.month, **_counts(m)) for m in report.months],
    )


@router.get("/deliveries", response_model=DeliveryDashboardResponse)
async def delivery_report(
    ctx: RequestContext = Depends(require_action(Action.REPORTS_VIEW)),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        kpis, rows = await svc.delivery_report(session, ctx)
        deliveries = [
            DeliveryListItem(
                id=d.id,
                inspection_id=d.inspection_id,
                model=i.model,
                serial_number=i.serial_number,
                inspection_date=i.inspection_date,
                agency=d.agency,
                city=d.city,
                state=d.state,
                status=d.status,
                expected_delivery_at=d.expected_delivery_at,
                delivered_at=d.delivered_at,
            )
            for d, i in rows
        ]
    return DeliveryDashboardResponse(
        kpis=DeliveryKPIResponse(
            total=kpis.total,
            by_status=kpis.by_status,
            average_delivery_days=kpis.average_delivery_days,
            on_time=kpis.on_time,
            late=kpis.late,
            by_state=kpis.by_state,
        ),
        deliveries=deliveries,
    )
