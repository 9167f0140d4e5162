"""CRUD service for machine models, technicians and drivers."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inspection_engine.auth.policy import Action, require
from inspection_engine.catalog.models import DriverModel, MachineModel, TechnicianModel
from inspection_engine.common.exceptions import ConflictError, NotFoundError

_MACHINE_FIELDS = (
    "name", "line", "category", "description", "internal_code",
    "image_url", "technical_sheet_url", "source_url", "gallery_images",
)
_TECHNICIAN_FIELDS = ("name", "user_id")
_DRIVER_FIELDS = ("name", "cpf", "phone", "company", "active")


def _apply(record: Any, fields: tuple[str, ...], updates: dict[str, Any]) -> None:
    for field in fields:
        if field in updates and updates[field] is not None:
            setattr(record, field, updates[field])


class CatalogService:
    """Reference data shared by inspections and deliveries."""

    async def _get_or_404(self, session: AsyncSession, model: type, record_id: str, label: str):
        record = await session.get(model, record_id)
        if record is None:
            raise NotFoundError(f"{label} '{record_id}' not found")
        return record

    # ── Machine models ──

    async def list_machine_models(
        self, session: AsyncSession, ctx: Any, line: str | None = None,
    ) -> list[MachineModel]:
        require(ctx, Action.CATALOG_VIEW)
        query = select(MachineModel).order_by(MachineModel.line, MachineModel.name)
        if line:
            query = query.where(MachineModel.line == line)
        result = await session.execute(query)
        return list(result.scalars().all())

    async def get_machine_model(
        self, session: AsyncSession, ctx: Any, model_id: str
    ) -> MachineModel:
        require(ctx, Action.CATALOG_VIEW)
        return await self._get_or_404(session, MachineModel, model_id, "Machine model")

    async def create_machine_model(
        self, session: AsyncSession, ctx: Any, **fields: Any
    ) -> MachineModel:
        require(ctx, Action.CATALOG_MANAGE)
        record = MachineModel(gallery_images=[])
        _apply(record, _MACHINE_FIELDS, fields)
        session.add(record)
        await session.flush()
        return record

    async def update_machine_model(
        self, session: AsyncSession, ctx: Any, model_id: str, **updates: Any
    ) -> MachineModel:
        require(ctx, Action.CATALOG_MANAGE)
        record = await self._get_or_404(session, MachineModel, model_id, "Machine model")
        _apply(record, _MACHINE_FIELDS, updates)
        await session.flush()
        return record

    async def delete_machine_model(
        self, session: AsyncSession, ctx: Any, model_id: str
    ) -> None:
        require(ctx, Action.CATALOG_MANAGE)
        record = await self._get_or_404(session, MachineModel, model_id, "Machine model")
        await session.delete(record)
        await session.flush()

    # ── Technicians ──

    async def list_technicians(self, session: AsyncSession, ctx: Any) -> list[TechnicianModel]:
        require(ctx, Action.CATALOG_VIEW)
        result = await session.execute(select(TechnicianModel).order_by(TechnicianModel.name))
        return list(result.scalars().all())

    async def get_technician(
        self, session: AsyncSession, ctx: Any, technician_id: str
    ) -> TechnicianModel:
        require(ctx, Action.CATALOG_VIEW)
        return await self._get_or_404(session, TechnicianModel, technician_id, "Technician")

    async def create_technician(
        self, session: AsyncSession, ctx: Any, technician_id: str, name: str,
        user_id: str | None = None,
    ) -> TechnicianModel:
        require(ctx, Action.CATALOG_MANAGE)
        technician_id = technician_id.strip()
        if await session.get(TechnicianModel, technician_id) is not None:
            raise ConflictError(f"Technician '{technician_id}' already exists")
        record = TechnicianModel(id=technician_id, name=name.strip(), user_id=user_id)
        session.add(record)
        await session.flush()
        return record

    async def update_technician(
        self, session: AsyncSession, ctx: Any, technician_id: str, **updates: Any
    ) -> TechnicianModel:
        require(ctx, Action.CATALOG_MANAGE)
        record = await self._get_or_404(session, TechnicianModel, technician_id, "Technician")
        _apply(record, _TECHNICIAN_FIELDS, updates)
        await session.flush()
        return record

    async def delete_technician(
        self, session: AsyncSession, ctx: Any, technician_id: str
    ) -> None:
        require(ctx, Action.CATALOG_MANAGE)
        record = await self._get_or_404(session, TechnicianModel, technician_id, "Technician")
        await session.delete(record)
        await session.flush()

    # ── Drivers ──

    async def list_drivers(
        self, session: AsyncSession, ctx: Any, active_only: bool = False,
    ) -> list[DriverModel]:
        require(ctx, Action.CATALOG_VIEW)
        query = select(DriverModel).order_by(DriverModel.name)
        if active_only:
            query = query.where(DriverModel.active.is_(True))
        result = await session.execute(query)
        return list(result.scalars().all())

    async def get_driver(self, session: AsyncSession, ctx: Any, driver_id: str) -> DriverModel:
        require(ctx, Action.CATALOG_VIEW)
        return await self._get_or_404(session, DriverModel, driver_id, "Driver")

    async def create_driver(self, session: AsyncSession, ctx: Any, **fields: Any) -> DriverModel:
        require(ctx, Action.CATALOG_MANAGE)
        record = DriverModel(active=True)
        _apply(record, _DRIVER_FIELDS, fields)
        session.add(record)
        await session.flush()
        return record

    async def update_driver(
        self, session: AsyncSession, ctx: Any, driver_id: str, **updates: Any
    ) -> DriverModel:
        require(ctx, Action.CATALOG_MANAGE)
        record = await self._get_or_404(session, DriverModel, driver_id, "Driver")
        _apply(record, _DRIVER_FIELDS, updates)
        await session.flush()
        return record

    async def delete_driver(self, session: AsyncSession, ctx: Any, driver_id: str) -> None:
        require(ctx, Action.CATALOG_MANAGE)
        record = await self._get_or_404(session, DriverModel, driver_id, "Driver")
        await session.delete(record)
        await session.flush()
