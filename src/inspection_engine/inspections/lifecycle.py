"""Inspection status machine.

Pure functions over any object exposing the inspection attributes (the ORM
model in production, simple namespaces in tests). They mutate the object in
place and never touch the database; the service layer persists the result.

    em_andamento -> finalizada -> aprovada
                              \\-> reprovada
"""

from datetime import datetime
from typing import Any, Iterable, Optional

from inspection_engine.auth.policy import can_approve
from inspection_engine.common.exceptions import (
    AuthorizationError,
    InspectionLockedError,
    InvalidTransitionError,
    PreconditionError,
    ValidationError,
)
from inspection_engine.common.models import utcnow
from inspection_engine.inspections.checklist import (
    ENTRY_PROCESSES,
    EXIT_PROCESSES,
    items_needing_description,
)
from inspection_engine.inspections.models import InspectionStatus, ProcessType

MAX_OBSERVATIONS_LENGTH = 2000
SIGNATURE_PREFIX = "data:image/"
SIGNATURE_KINDS = ("entry", "exit", "driver")

TRANSITIONS: dict[InspectionStatus, frozenset[InspectionStatus]] = {
    InspectionStatus.IN_PROGRESS: frozenset({InspectionStatus.FINALIZED}),
    InspectionStatus.FINALIZED: frozenset({
        InspectionStatus.APPROVED,
        InspectionStatus.REJECTED,
    }),
    InspectionStatus.APPROVED: frozenset(),
    InspectionStatus.REJECTED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    try:
        return InspectionStatus(target) in TRANSITIONS[InspectionStatus(current)]
    except ValueError:
        return False


def check_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot move inspection from '{current}' to '{target}'"
        )


def required_signatures(process_type: str) -> tuple[str, ...]:
    """Signature kinds that must be present before finalizing."""
    ptype = ProcessType(process_type)
    if ptype in ENTRY_PROCESSES:
        return ("entry",)
    if ptype in EXIT_PROCESSES:
        return ("exit",)
    return ("entry", "exit")


def missing_signatures(inspection: Any) -> list[str]:
    return [
        kind
        for kind in required_signatures(inspection.process_type)
        if not getattr(inspection, f"{kind}_signature", None)
    ]


def is_editable(inspection: Any) -> bool:
    return inspection.status == InspectionStatus.IN_PROGRESS.value


def ensure_editable(inspection: Any) -> None:
    if not is_editable(inspection):
        raise InspectionLockedError(
            f"Inspection is '{inspection.status}' and can no longer be edited"
        )


def validate_signature(data_url: str, max_chars: int) -> str:
    if not data_url or not data_url.startswith(SIGNATURE_PREFIX):
        raise ValidationError("Signature must be a data:image/ URL")
    if len(data_url) >= max_chars:
        raise ValidationError("Signature is too large")
    return data_url


def sign(
    inspection: Any,
    kind: str,
    data_url: str,
    signer_name: str,
    technician_id: Optional[str] = None,
    max_chars: int = 700000,
    now: Optional[datetime] = None,
) -> None:
    """Attach an entry, exit or driver signature to an editable inspection."""
    if kind not in SIGNATURE_KINDS:
        raise ValidationError(f"Unknown signature kind '{kind}'")
    ensure_editable(inspection)
    validate_signature(data_url, max_chars)
    signer_name = (signer_name or "").strip()
    if not signer_name:
        raise ValidationError("Signer name is required")
    signed_at = now or utcnow()
    setattr(inspection, f"{kind}_signature", data_url)
    setattr(inspection, f"{kind}_signature_date", signed_at)
    if kind == "driver":
        inspection.driver_name = signer_name
    else:
        setattr(inspection, f"{kind}_technician_name", signer_name)
        setattr(inspection, f"{kind}_technician_id", technician_id)


def finalize(inspection: Any, items: Optional[Iterable[Any]] = None) -> None:
    """Close data entry. Status is left unchanged when a guard fails.

    Two guards apply, in order: the signatures the process type requires,
    then, when ``items`` is given, every item marked ``B`` (needs repair)
    must carry a problem description. The second rule is deliberate: a
    finalized report is read-only, so a ``B`` without its description could
    never be completed afterwards. Pass ``items=None`` to check signatures
    only.
    """
    check_transition(inspection.status, InspectionStatus.FINALIZED.value)
    missing = missing_signatures(inspection)
    if missing:
        raise PreconditionError(
            "Missing required signatures: " + ", ".join(missing)
        )
    if items is not None:
        flagged = items_needing_description(items)
        if flagged:
            names = ", ".join(i.item_description for i in flagged[:3])
            raise PreconditionError(
                f"{len(flagged)} item(s) marked B need a problem description: {names}"
            )
    inspection.status = InspectionStatus.FINALIZED.value


def _review(
    inspection: Any,
    ctx: Any,
    target: InspectionStatus,
    observations: str,
    now: Optional[datetime],
) -> None:
    if not can_approve(ctx):
        raise AuthorizationError("Only supervisors and admins can review inspections")
    check_transition(inspection.status, target.value)
    text = (observations or "").strip()
    if target is InspectionStatus.REJECTED and not text:
        raise ValidationError("Rejection requires observations")
    if len(text) > MAX_OBSERVATIONS_LENGTH:
        raise ValidationError("Observations are too long")
    inspection.status = target.value
    inspection.approved_by = ctx.user_id
    inspection.approved_at = now or utcnow()
    inspection.approval_observations = text or None


def approve(
    inspection: Any, ctx: Any, observations: str = "", now: Optional[datetime] = None
) -> None:
    _review(inspection, ctx, InspectionStatus.APPROVED, observations, now)


def reject(
    inspection: Any, ctx: Any, observations: str, now: Optional[datetime] = None
) -> None:
    _review(inspection, ctx, InspectionStatus.REJECTED, observations, now)
