"""Delivery dashboard indicators computed from fetched deliveries."""

from dataclasses import dataclass, field
from typing import Any, Iterable

from inspection_engine.common.models import as_utc
from inspection_engine.deliveries.models import DeliveryStatus

UNKNOWN_STATE = "Não informado"


@dataclass
class DeliveryKPIs:
    total: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    average_delivery_days: int = 0
    on_time: int = 0
    late: int = 0
    by_state: dict[str, int] = field(default_factory=dict)


def compute_kpis(deliveries: Iterable[Any]) -> DeliveryKPIs:
    """Aggregate delivery records.

    Average delivery time counts whole days from departure to actual
    delivery, over deliveries that have both. A delivery is on time when it
    arrived no later than its expected timestamp.
    """
    deliveries = list(deliveries)
    kpis = DeliveryKPIs(
        total=len(deliveries),
        by_status={s.value: 0 for s in DeliveryStatus},
    )

    day_spans = []
    for d in deliveries:
        kpis.by_status[d.status] = kpis.by_status.get(d.status, 0) + 1
        state = d.state or UNKNOWN_STATE
        kpis.by_state[state] = kpis.by_state.get(state, 0) + 1

        delivered = as_utc(d.delivered_at)
        if delivered is None:
            continue
        departed = as_utc(d.departed_at)
        if departed is not None:
            day_spans.append((delivered - departed).days)
        expected = as_utc(d.expected_delivery_at)
        if expected is not None:
            if delivered <= expected:
                kpis.on_time += 1
            else:
                kpis.late += 1

    if day_spans:
        kpis.average_delivery_days = round(sum(day_spans) / len(day_spans))
    kpis.by_state = dict(sorted(kpis.by_state.items(), key=lambda kv: (-kv[1], kv[0])))
    return kpis
