"""Inspection-Engine: equipment inspection checklists with supervisor approval."""

from inspection_engine.auth.policy import Action, Role, can_approve, is_allowed
from inspection_engine.inspections.checklist import (
    ChecklistItem,
    materialize,
    update_item,
    visible_columns,
)
from inspection_engine.inspections.lifecycle import approve, finalize, reject
from inspection_engine.reports.aggregator import build_inspection_report

__all__ = [
    "Action",
    "Role",
    "can_approve",
    "is_allowed",
    "ChecklistItem",
    "materialize",
    "update_item",
    "visible_columns",
    "approve",
    "finalize",
    "reject",
    "build_inspection_report",
]
__version__ = "0.1.0"
