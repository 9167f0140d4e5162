"""Tests for settings validation."""

import pytest

from inspection_engine.common.config import InspectionSettings


class TestProductionValidation:
    def test_development_warns_on_default_key(self):
        settings = InspectionSettings(environment="development")
        with pytest.warns(UserWarning):
            settings.validate_for_production()

    def test_production_rejects_default_key(self):
        settings = InspectionSettings(environment="production")
        with pytest.raises(RuntimeError, match="INSPECTION_SECRET_KEY"):
            settings.validate_for_production()

    def test_production_with_secret(self):
        settings = InspectionSettings(environment="production", secret_key="s3cr3t-value")
        settings.validate_for_production()

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("INSPECTION_NOTIFY_EMAIL_DOMAIN", "example.com")
        monkeypatch.setenv("INSPECTION_MAX_PAGE_SIZE", "20")
        settings = InspectionSettings()
        assert settings.notify_email_domain == "example.com"
        assert settings.max_page_size == 20
