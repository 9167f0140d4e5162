"""Dependency injection singletons for Inspection-Engine."""

from inspection_engine.auth.service import AuthService
from inspection_engine.catalog.service import CatalogService
from inspection_engine.common.config import get_settings
from inspection_engine.common.database import DatabaseManager
from inspection_engine.deliveries.service import DeliveryService
from inspection_engine.inspections.media import LocalFileStorage
from inspection_engine.inspections.service import InspectionService
from inspection_engine.notifications.service import NotificationService
from inspection_engine.reports.service import ReportService

_db: DatabaseManager | None = None
_auth: AuthService | None = None
_catalog: CatalogService | None = None
_inspections: InspectionService | None = None
_deliveries: DeliveryService | None = None
_notifications: NotificationService | None = None
_reports: ReportService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_auth_service() -> AuthService:
    global _auth
    if _auth is None:
        _auth = AuthService(get_settings())
    return _auth


def get_catalog_service() -> CatalogService:
    global _catalog
    if _catalog is None:
        _catalog = CatalogService()
    return _catalog


def get_notification_service() -> NotificationService:
    global _notifications
    if _notifications is None:
        _notifications = NotificationService(get_settings())
    return _notifications


def get_inspection_service() -> InspectionService:
    global _inspections
    if _inspections is None:
        settings = get_settings()
        _inspections = InspectionService(
            settings,
            storage=LocalFileStorage(settings.media_root),
            auth_service=get_auth_service(),
            notification_service=get_notification_service(),
        )
    return _inspections


def get_delivery_service() -> DeliveryService:
    global _deliveries
    if _deliveries is None:
        _deliveries = DeliveryService(get_settings())
    return _deliveries


def get_report_service() -> ReportService:
    global _reports
    if _reports is None:
        _reports = ReportService(
            get_inspection_service(),
            get_auth_service(),
            get_delivery_service(),
        )
    return _reports


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _auth, _catalog, _inspections, _deliveries, _notifications, _reports
    _db = None
    _auth = None
    _catalog = None
    _inspections = None
    _deliveries = None
    _notifications = None
    _reports = None
