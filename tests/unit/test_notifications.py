"""Tests for finalization emails."""

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from inspection_engine.common.config import InspectionSettings
from inspection_engine.inspections.checklist import ChecklistItem, materialize
from inspection_engine.notifications.email import EmailSender
from inspection_engine.notifications.service import (
    NotificationService,
    build_finalized_message,
)


def make_settings(**overrides) -> InspectionSettings:
    defaults = {"secret_key": "test-secret", "db_url": "sqlite+aiosqlite://"}
    defaults.update(overrides)
    return InspectionSettings(**defaults)


def make_inspection(**overrides):
    fields = {
        "id": "insp-1",
        "model": "FL936F",
        "serial_number": "ABC123456",
        "horimeter": 500,
        "inspection_date": date(2026, 5, 10),
        "process_type": "instalacao_entrada_target",
        "general_observations": None,
        "has_fault_codes": False,
        "fault_codes_description": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestEmailSender:
    async def test_no_provider_returns_false(self):
        sender = EmailSender()
        assert await sender.send("a@b.com", "Assunto", "Corpo") is False
        assert not sender.configured

    async def test_resend_accepted(self):
        sender = EmailSender(provider="resend", api_key="re_test")
        mock_response = MagicMock(status_code=200, text="")
        mock_client = AsyncMock()
        mock_client.post = AsyncMock(return_value=mock_response)
        mock_client.__aenter__.return_value = mock_client

        with patch("inspection_engine.notifications.email.httpx.AsyncClient", return_value=mock_client):
            assert await sender.send("a@b.com", "Assunto", "Corpo") is True
        payload = mock_client.post.call_args.kwargs["json"]
        assert payload["to"] == ["a@b.com"]
        assert payload["subject"] == "Assunto"

    async def test_sendgrid_error_status(self):
        sender = EmailSender(provider="sendgrid", api_key="SG.test")
        mock_response = MagicMock(status_code=401, text="unauthorized")
        mock_client = AsyncMock()
        mock_client.post = AsyncMock(return_value=mock_response)
        mock_client.__aenter__.return_value = mock_client

        with patch("inspection_engine.notifications.email.httpx.AsyncClient", return_value=mock_client):
            assert await sender.send("a@b.com", "Assunto", "Corpo") is False


class TestFinalizedMessage:
    def test_machine_details(self):
        subject, body = build_finalized_message(make_inspection(), [])
        assert "FL936F" in subject
        assert "ABC123456" in body
        assert "Horímetro: 500h" in body
        assert "10/05/2026" in body

    def test_lists_first_ten_items(self):
        items = materialize()[:12]
        _, body = build_finalized_message(make_inspection(), items)
        assert items[9].item_description in body
        assert "... e mais 2 itens" in body

    def test_problem_description_and_fault_codes(self):
        items = [ChecklistItem("motor", "Nível de óleo", entry_status="B",
                               problem_description="Vazamento no cárter")]
        inspection = make_inspection(has_fault_codes=True, fault_codes_description="E-102")
        _, body = build_finalized_message(inspection, items, app_url="https://app.example.com/")
        assert "Necessita reparo" in body
        assert "Obs: Vazamento no cárter" in body
        assert "E-102" in body
        assert "https://app.example.com/inspecao/insp-1" in body


class TestNotificationService:
    async def test_disabled_without_domain(self):
        sender = EmailSender()
        sender.send = AsyncMock(return_value=True)
        svc = NotificationService(make_settings(notify_email_domain=""), sender)
        result = await svc.notify_inspection_finalized(
            [("sup@example.com", "Sup")], make_inspection(), []
        )
        assert result == {"sent": 0, "failed": 0}
        sender.send.assert_not_called()

    async def test_counts_sent_and_failed(self):
        sender = EmailSender()
        sender.send = AsyncMock(side_effect=[True, False, RuntimeError("boom")])
        svc = NotificationService(make_settings(notify_email_domain="example.com"), sender)
        result = await svc.notify_inspection_finalized(
            [("a@example.com", "A"), ("b@example.com", "B"), ("c@example.com", "C")],
            make_inspection(),
            [],
        )
        assert result == {"sent": 1, "failed": 2}
        assert sender.send.await_count == 3
