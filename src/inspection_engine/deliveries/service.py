"""Government delivery tracking attached to inspections."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inspection_engine.auth.policy import Action, require
from inspection_engine.catalog.models import DriverModel
from inspection_engine.common.config import InspectionSettings
from inspection_engine.common.exceptions import NotFoundError, ValidationError
from inspection_engine.common.models import utcnow
from inspection_engine.deliveries.models import DeliveryStatus, GovernmentDeliveryModel
from inspection_engine.inspections.lifecycle import validate_signature
from inspection_engine.inspections.models import InspectionModel

logger = logging.getLogger(__name__)

_FIELDS = (
    "driver_id", "agency", "agency_cnpj", "delivery_address", "city", "state",
    "invoice_number", "invoice_series", "nfe_key", "carrier", "vehicle_plate",
    "departed_at", "expected_delivery_at", "delivered_at",
    "receiver_name", "receiver_role", "receiver_document", "receiver_signature",
    "status", "notes",
)


class DeliveryService:
    """One delivery record per inspection, created on first save."""

    def __init__(self, settings: InspectionSettings):
        self.settings = settings

    async def _get_inspection(self, session: AsyncSession, inspection_id: str) -> InspectionModel:
        inspection = await session.get(InspectionModel, inspection_id)
        if inspection is None:
            raise NotFoundError(f"Inspection '{inspection_id}' not found")
        return inspection

    async def get_by_inspection(
        self, session: AsyncSession, inspection_id: str
    ) -> GovernmentDeliveryModel | None:
        result = await session.execute(
            select(GovernmentDeliveryModel).where(
                GovernmentDeliveryModel.inspection_id == inspection_id
            )
        )
        return result.scalar_one_or_none()

    async def get_delivery(
        self, session: AsyncSession, ctx: Any, inspection_id: str
    ) -> GovernmentDeliveryModel:
        require(ctx, Action.DELIVERY_VIEW)
        await self._get_inspection(session, inspection_id)
        delivery = await self.get_by_inspection(session, inspection_id)
        if delivery is None:
            raise NotFoundError(f"Inspection '{inspection_id}' has no delivery record")
        return delivery

    async def save_delivery(
        self, session: AsyncSession, ctx: Any, inspection_id: str, **fields: Any
    ) -> GovernmentDeliveryModel:
        """Create or update the delivery record of an inspection."""
        require(ctx, Action.DELIVERY_MANAGE)
        await self._get_inspection(session, inspection_id)

        if fields.get("status") is not None:
            try:
                fields["status"] = DeliveryStatus(fields["status"]).value
            except ValueError:
                raise ValidationError(f"Unknown delivery status '{fields['status']}'")
        if fields.get("state"):
            fields["state"] = fields["state"].strip().upper()
        if fields.get("receiver_signature"):
            validate_signature(fields["receiver_signature"], self.settings.max_signature_chars)
        if fields.get("driver_id") and await session.get(DriverModel, fields["driver_id"]) is None:
            raise NotFoundError(f"Driver '{fields['driver_id']}' not found")

        delivery = await self.get_by_inspection(session, inspection_id)
        created = delivery is None
        if created:
            delivery = GovernmentDeliveryModel(
                inspection_id=inspection_id,
                status=DeliveryStatus.AWAITING_DEPARTURE.value,
            )
            session.add(delivery)
        for field in _FIELDS:
            if field in fields:
                setattr(delivery, field, fields[field])
        if delivery.status == DeliveryStatus.DELIVERED.value and delivery.delivered_at is None:
            delivery.delivered_at = utcnow()
        await session.flush()
        logger.info(
            "Delivery for inspection %s %s (status %s)",
            inspection_id, "created" if created else "updated", delivery.status,
        )
        return delivery

    async def list_deliveries(
        self, session: AsyncSession, ctx: Any
    ) -> list[tuple[GovernmentDeliveryModel, InspectionModel]]:
        require(ctx, Action.DELIVERY_VIEW)
        result = await session.execute(
            select(GovernmentDeliveryModel, InspectionModel)
            .join(InspectionModel, InspectionModel.id == GovernmentDeliveryModel.inspection_id)
            .order_by(GovernmentDeliveryModel.created_at.desc())
        )
        return [(row[0], row[1]) for row in result.all()]
