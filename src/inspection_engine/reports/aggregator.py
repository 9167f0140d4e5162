"""Read-only inspection rollups.

Everything here works on already-fetched records; the service layer decides
which inspections fall in the reporting window.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping, Optional

from inspection_engine.common.exceptions import ValidationError
from inspection_engine.common.models import as_utc, utcnow
from inspection_engine.inspections.models import InspectionStatus

PERIODS = (7, 30, 90, 365)
UNKNOWN_TECHNICIAN = "Desconhecido"

_COMPLETED = frozenset({
    InspectionStatus.FINALIZED.value,
    InspectionStatus.APPROVED.value,
    InspectionStatus.REJECTED.value,
})


def check_period(days: int) -> int:
    if days not in PERIODS:
        raise ValidationError(
            f"Unsupported period {days}; choose one of {', '.join(map(str, PERIODS))}"
        )
    return days


def period_start(days: int, now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) - timedelta(days=check_period(days))


def approval_rate(approved: int, rejected: int) -> float:
    reviewed = approved + rejected
    return (approved / reviewed) * 100 if reviewed else 0.0


def format_rate(approved: int, rejected: int) -> str:
    if approved + rejected == 0:
        return "-"
    return f"{approval_rate(approved, rejected):.1f}%"


@dataclass
class StatusCounts:
    total: int = 0
    em_andamento: int = 0
    finalizada: int = 0
    aprovada: int = 0
    reprovada: int = 0

    def add(self, status: str) -> None:
        self.total += 1
        if hasattr(self, status):
            setattr(self, status, getattr(self, status) + 1)

    @property
    def approval_rate(self) -> float:
        return approval_rate(self.aprovada, self.reprovada)

    @property
    def approval_rate_display(self) -> str:
        return format_rate(self.aprovada, self.reprovada)


@dataclass
class TechnicianStats(StatusCounts):
    technician_id: str = ""
    technician_name: str = UNKNOWN_TECHNICIAN


@dataclass
class MonthlyStats(StatusCounts):
    month: str = ""


@dataclass
class InspectionReport:
    period_days: int
    totals: StatusCounts
    average_completion_hours: int
    technicians: list[TechnicianStats] = field(default_factory=list)
    months: list[MonthlyStats] = field(default_factory=list)


def average_completion_hours(inspections: Iterable[Any]) -> int:
    """Mean of (updated_at - created_at) over completed inspections, rounded to hours."""
    spans = [
        (as_utc(i.updated_at) - as_utc(i.created_at)).total_seconds()
        for i in inspections
        if i.status in _COMPLETED
    ]
    if not spans:
        return 0
    return round(sum(spans) / len(spans) / 3600)


def build_inspection_report(
    inspections: Iterable[Any],
    names: Mapping[str, str],
    period_days: int = 30,
) -> InspectionReport:
    """Aggregate inspections into totals, per-technician and per-month stats.

    ``names`` maps ``created_by`` user ids to display names.
    """
    check_period(period_days)
    inspections = list(inspections)
    totals = StatusCounts()
    technicians: dict[str, TechnicianStats] = {}
    months: dict[str, MonthlyStats] = {}

    for inspection in inspections:
        totals.add(inspection.status)

        tech_id = inspection.created_by
        if tech_id not in technicians:
            technicians[tech_id] = TechnicianStats(
                technician_id=tech_id,
                technician_name=names.get(tech_id) or UNKNOWN_TECHNICIAN,
            )
        technicians[tech_id].add(inspection.status)

        month = as_utc(inspection.created_at).strftime("%Y-%m")
        if month not in months:
            months[month] = MonthlyStats(month=month)
        months[month].add(inspection.status)

    return InspectionReport(
        period_days=period_days,
        totals=totals,
        average_completion_hours=average_completion_hours(inspections),
        technicians=sorted(technicians.values(), key=lambda t: t.total, reverse=True),
        months=sorted(months.values(), key=lambda m: m.month, reverse=True),
    )
