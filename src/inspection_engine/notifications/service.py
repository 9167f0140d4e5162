"""Reviewer notifications sent when an inspection is finalized."""

import asyncio
import logging
from typing import Any, Iterable

from inspection_engine.common.config import InspectionSettings
from inspection_engine.notifications.email import EmailSender

logger = logging.getLogger(__name__)

MAX_LISTED_ITEMS = 10

STATUS_LABELS = {
    "A": "Conforme",
    "B": "Necessita reparo",
    "C": "Não se aplica",
}


def build_finalized_message(
    inspection: Any, items: list[Any], app_url: str = ""
) -> tuple[str, str]:
    """Subject and plain-text body for a finalized inspection."""
    subject = f"Inspeção finalizada: {inspection.model} / {inspection.serial_number}"
    lines = [
        "Uma inspeção foi finalizada e aguarda sua revisão.",
        "",
        f"Modelo: {inspection.model}",
        f"Nº de série: {inspection.serial_number}",
        f"Horímetro: {inspection.horimeter}h",
        f"Data: {inspection.inspection_date.strftime('%d/%m/%Y')}",
        f"Processo: {inspection.process_type}",
    ]
    if items:
        lines += ["", "Itens inspecionados:"]
        for item in items[:MAX_LISTED_ITEMS]:
            status = item.entry_status or item.exit_status
            lines.append(f"- {item.item_description}: {STATUS_LABELS.get(status, 'N/A')}")
            if item.problem_description:
                lines.append(f"  Obs: {item.problem_description}")
        if len(items) > MAX_LISTED_ITEMS:
            lines.append(f"... e mais {len(items) - MAX_LISTED_ITEMS} itens")
    if inspection.general_observations:
        lines += ["", "Observações gerais:", inspection.general_observations]
    if inspection.has_fault_codes and inspection.fault_codes_description:
        lines += ["", "Códigos de falha detectados:", inspection.fault_codes_description]
    if app_url:
        lines += ["", f"{app_url.rstrip('/')}/inspecao/{inspection.id}"]
    return subject, "\n".join(lines)


class NotificationService:
    """Fans out finalization emails to reviewers."""

    def __init__(self, settings: InspectionSettings, email_sender: EmailSender | None = None):
        self.settings = settings
        self.email_sender = email_sender or EmailSender(
            provider=settings.email_provider,
            api_key=settings.email_api_key,
            from_email=settings.email_from,
            from_name=settings.email_from_name,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.settings.notify_email_domain)

    async def notify_inspection_finalized(
        self,
        recipients: Iterable[tuple[str, str]],
        inspection: Any,
        items: list[Any],
    ) -> dict[str, int]:
        """Email every recipient; returns counts of sent and failed deliveries."""
        recipients = list(recipients)
        if not self.enabled or not recipients:
            logger.info("No reviewers to notify for inspection %s", inspection.id)
            return {"sent": 0, "failed": 0}

        subject, body = build_finalized_message(inspection, items, self.settings.app_url)
        results = await asyncio.gather(
            *(self.email_sender.send(email, subject, body) for email, _name in recipients),
            return_exceptions=True,
        )
        sent = sum(1 for r in results if r is True)
        failed = len(results) - sent
        for (email, _name), result in zip(recipients, results):
            if isinstance(result, Exception):
                logger.warning("Notification to %s raised %r", email, result)
        logger.info(
            "Finalization of inspection %s notified: %d sent, %d failed",
            inspection.id, sent, failed,
        )
        return {"sent": sent, "failed": failed}
