"""Inspection service — records, checklist persistence, signatures, lifecycle, media."""

import logging
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from inspection_engine.auth.policy import Action, require
from inspection_engine.catalog.models import MachineModel, TechnicianModel
from inspection_engine.common.config import InspectionSettings
from inspection_engine.common.exceptions import NotFoundError, ValidationError
from inspection_engine.common.models import generate_uuid, utcnow
from inspection_engine.inspections import checklist, lifecycle
from inspection_engine.inspections.checklist import ChecklistItem
from inspection_engine.inspections.media import (
    DOCUMENT_CONTENT_TYPES,
    DOCUMENTS_BUCKET,
    MEDIA_CONTENT_TYPES,
    PHOTOS_BUCKET,
    LocalFileStorage,
    Upload,
    document_object_name,
    photo_object_name,
    validate_batch,
    validate_upload,
)
from inspection_engine.inspections.models import (
    InspectionItemModel,
    InspectionModel,
    InspectionPhotoModel,
    InspectionStatus,
    PhotoType,
    ProcessType,
)

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = (
    "inspection_date", "process_type", "model", "model_id", "serial_number",
    "horimeter", "freight_responsible", "general_observations",
    "has_fault_codes", "fault_codes_description", "codes_corrected",
)
# Optional columns that an explicit null clears.
_CLEARABLE_FIELDS = frozenset({
    "model_id", "freight_responsible", "general_observations", "fault_codes_description",
})


def _check_process_type(value: str) -> str:
    try:
        return ProcessType(value).value
    except ValueError:
        raise ValidationError(f"Unknown process type '{value}'")


def _check_photo_type(value: str) -> str:
    try:
        return PhotoType(value).value
    except ValueError:
        raise ValidationError(f"Unknown photo type '{value}'")


_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _upsert_insert(session: AsyncSession):
    """Dialect-specific INSERT construct that supports ON CONFLICT."""
    dialect = session.get_bind().dialect.name
    try:
        return _UPSERT_INSERTS[dialect]
    except KeyError:
        raise RuntimeError(f"Checklist upsert is not supported on {dialect}")


def _to_checklist_item(row: InspectionItemModel) -> ChecklistItem:
    return ChecklistItem(
        category=row.category,
        item_description=row.item_description,
        entry_status=row.entry_status,
        exit_status=row.exit_status,
        problem_description=row.problem_description,
    )


class InspectionService:
    """Inspection records and their lifecycle."""

    def __init__(
        self,
        settings: InspectionSettings,
        storage: LocalFileStorage | None = None,
        auth_service=None,
        notification_service=None,
    ):
        self.settings = settings
        self.storage = storage or LocalFileStorage(settings.media_root)
        self.auth_service = auth_service
        self.notification_service = notification_service

    # ── Records ──

    async def get_by_id(
        self, session: AsyncSession, inspection_id: str
    ) -> InspectionModel | None:
        return await session.get(InspectionModel, inspection_id)

    async def get_inspection(
        self, session: AsyncSession, ctx: Any, inspection_id: str
    ) -> InspectionModel:
        require(ctx, Action.INSPECTION_VIEW)
        inspection = await self.get_by_id(session, inspection_id)
        if inspection is None:
            raise NotFoundError(f"Inspection '{inspection_id}' not found")
        return inspection

    async def _get_for(
        self, session: AsyncSession, ctx: Any, inspection_id: str, action: Action
    ) -> InspectionModel:
        inspection = await self.get_inspection(session, ctx, inspection_id)
        require(ctx, action, inspection)
        return inspection

    async def _check_model_id(self, session: AsyncSession, model_id: Optional[str]) -> None:
        if model_id and await session.get(MachineModel, model_id) is None:
            raise NotFoundError(f"Machine model '{model_id}' not found")

    async def create_inspection(
        self,
        session: AsyncSession,
        ctx: Any,
        inspection_date: date,
        process_type: str,
        model: str,
        serial_number: str,
        horimeter: int,
        model_id: Optional[str] = None,
        freight_responsible: Optional[str] = None,
    ) -> InspectionModel:
        require(ctx, Action.INSPECTION_CREATE)
        await self._check_model_id(session, model_id)
        inspection = InspectionModel(
            inspection_date=inspection_date,
            process_type=_check_process_type(process_type),
            model=model.strip(),
            model_id=model_id,
            serial_number=serial_number.strip(),
            horimeter=horimeter,
            freight_responsible=(freight_responsible or "").strip() or None,
            status=InspectionStatus.IN_PROGRESS.value,
            has_fault_codes=False,
            codes_corrected=False,
            created_by=ctx.user_id,
        )
        session.add(inspection)
        await session.flush()
        logger.info("Inspection %s created by %s", inspection.id, ctx.user_id)
        return inspection

    async def list_inspections(
        self,
        session: AsyncSession,
        ctx: Any,
        status: Optional[str] = None,
        process_type: Optional[str] = None,
        created_by: Optional[str] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[InspectionModel], int]:
        require(ctx, Action.INSPECTION_VIEW)
        query = select(InspectionModel)
        count_query = select(func.count(InspectionModel.id))
        filters = []
        if status:
            filters.append(InspectionModel.status == status)
        if process_type:
            filters.append(InspectionModel.process_type == process_type)
        if created_by:
            filters.append(InspectionModel.created_by == created_by)
        if search:
            pattern = f"%{search.strip()}%"
            filters.append(or_(
                InspectionModel.model.ilike(pattern),
                InspectionModel.serial_number.ilike(pattern),
            ))
        for condition in filters:
            query = query.where(condition)
            count_query = count_query.where(condition)

        total = (await session.execute(count_query)).scalar_one()
        query = query.order_by(InspectionModel.created_at.desc()).offset(offset).limit(limit)
        result = await session.execute(query)
        return list(result.scalars().all()), total

    async def list_since(self, session: AsyncSession, since: datetime) -> list[InspectionModel]:
        result = await session.execute(
            select(InspectionModel).where(InspectionModel.created_at >= since)
        )
        return list(result.scalars().all())

    async def update_inspection(
        self, session: AsyncSession, ctx: Any, inspection_id: str, **updates: Any
    ) -> InspectionModel:
        inspection = await self._get_for(session, ctx, inspection_id, Action.INSPECTION_EDIT)
        lifecycle.ensure_editable(inspection)
        if updates.get("process_type") is not None:
            updates["process_type"] = _check_process_type(updates["process_type"])
        if updates.get("model_id") is not None:
            await self._check_model_id(session, updates["model_id"])
        for field in ("model", "serial_number"):
            if updates.get(field) is not None:
                updates[field] = updates[field].strip()
        for field in _EDITABLE_FIELDS:
            if field not in updates:
                continue
            value = updates[field]
            if field in _CLEARABLE_FIELDS:
                if isinstance(value, str):
                    value = value.strip() or None
                setattr(inspection, field, value)
            elif value is not None:
                setattr(inspection, field, value)
        await session.flush()
        return inspection

    # ── Checklist ──

    async def _item_rows(
        self, session: AsyncSession, inspection_id: str
    ) -> list[InspectionItemModel]:
        result = await session.execute(
            select(InspectionItemModel)
            .where(InspectionItemModel.inspection_id == inspection_id)
            .execution_options(populate_existing=True)
        )
        return sorted(result.scalars().all(), key=checklist.catalog_position)

    async def get_items(
        self, session: AsyncSession, ctx: Any, inspection_id: str
    ) -> tuple[list[ChecklistItem], bool]:
        """Persisted checklist, or the blank catalog when nothing was saved yet.

        Returns (items, persisted).
        """
        await self.get_inspection(session, ctx, inspection_id)
        rows = await self._item_rows(session, inspection_id)
        if not rows:
            return checklist.materialize(), False
        return [_to_checklist_item(r) for r in rows], True

    async def save_items(
        self,
        session: AsyncSession,
        ctx: Any,
        inspection_id: str,
        items: list[ChecklistItem],
    ) -> list[ChecklistItem]:
        """Replace the inspection's checklist with ``items``.

        Rows are upserted on (inspection_id, category, item_description), then
        rows whose pair is missing from ``items`` are deleted, all inside the
        caller's transaction. Overlapping saves serialize on the upsert and
        the last one to commit wins.
        """
        inspection = await self._get_for(session, ctx, inspection_id, Action.INSPECTION_EDIT)
        lifecycle.ensure_editable(inspection)
        items = checklist.validate_items(items)

        if items:
            now = utcnow()
            insert = _upsert_insert(session)
            stmt = insert(InspectionItemModel).values([
                {
                    "id": generate_uuid(),
                    "inspection_id": inspection_id,
                    "category": item.category,
                    "item_description": item.item_description,
                    "entry_status": item.entry_status,
                    "exit_status": item.exit_status,
                    "problem_description": item.problem_description,
                    "created_at": now,
                    "updated_at": now,
                }
                for item in items
            ])
            stmt = stmt.on_conflict_do_update(
                index_elements=["inspection_id", "category", "item_description"],
                set_={
                    "entry_status": stmt.excluded.entry_status,
                    "exit_status": stmt.excluded.exit_status,
                    "problem_description": stmt.excluded.problem_description,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            await session.execute(stmt)

        submitted = {item.key for item in items}
        result = await session.execute(
            select(
                InspectionItemModel.id,
                InspectionItemModel.category,
                InspectionItemModel.item_description,
            ).where(InspectionItemModel.inspection_id == inspection_id)
        )
        stale = [row.id for row in result if (row.category, row.item_description) not in submitted]
        if stale:
            await session.execute(
                delete(InspectionItemModel)
                .where(InspectionItemModel.id.in_(stale))
                .execution_options(synchronize_session=False)
            )
        logger.info("Saved %d checklist items for inspection %s", len(items), inspection_id)
        return items

    # ── Signatures ──

    async def sign(
        self,
        session: AsyncSession,
        ctx: Any,
        inspection_id: str,
        kind: str,
        signature: str,
        signer_name: Optional[str] = None,
        technician_id: Optional[str] = None,
    ) -> InspectionModel:
        inspection = await self._get_for(session, ctx, inspection_id, Action.INSPECTION_EDIT)
        if technician_id and kind != "driver":
            technician = await session.get(TechnicianModel, technician_id)
            if technician is None:
                raise NotFoundError(f"Technician '{technician_id}' not found")
            signer_name = signer_name or technician.name
        lifecycle.sign(
            inspection, kind, signature, signer_name or "",
            technician_id=technician_id,
            max_chars=self.settings.max_signature_chars,
        )
        await session.flush()
        logger.info("Inspection %s signed (%s)", inspection.id, kind)
        return inspection

    # ── Lifecycle ──

    async def finalize(
        self, session: AsyncSession, ctx: Any, inspection_id: str
    ) -> tuple[InspectionModel, dict[str, int]]:
        """Finalize and notify reviewers. Returns (inspection, notification counts)."""
        inspection = await self._get_for(session, ctx, inspection_id, Action.INSPECTION_FINALIZE)
        rows = await self._item_rows(session, inspection_id)
        lifecycle.finalize(inspection, rows)
        await session.flush()
        logger.info("Inspection %s finalized by %s", inspection.id, ctx.user_id)

        notified = {"sent": 0, "failed": 0}
        if self.notification_service is not None and self.notification_service.enabled:
            recipients = await self.auth_service.emails_in_domain(
                session, self.settings.notify_email_domain
            )
            notified = await self.notification_service.notify_inspection_finalized(
                recipients, inspection, rows
            )
        return inspection, notified

    async def approve(
        self, session: AsyncSession, ctx: Any, inspection_id: str, observations: str = "",
    ) -> InspectionModel:
        inspection = await self.get_inspection(session, ctx, inspection_id)
        lifecycle.approve(inspection, ctx, observations)
        await session.flush()
        logger.info("Inspection %s approved by %s", inspection.id, ctx.user_id)
        return inspection

    async def reject(
        self, session: AsyncSession, ctx: Any, inspection_id: str, observations: str,
    ) -> InspectionModel:
        inspection = await self.get_inspection(session, ctx, inspection_id)
        lifecycle.reject(inspection, ctx, observations)
        await session.flush()
        logger.info("Inspection %s rejected by %s", inspection.id, ctx.user_id)
        return inspection

    # ── Photos ──

    async def list_photos(
        self, session: AsyncSession, ctx: Any, inspection_id: str,
        photo_type: Optional[str] = None,
    ) -> list[InspectionPhotoModel]:
        await self.get_inspection(session, ctx, inspection_id)
        query = select(InspectionPhotoModel).where(
            InspectionPhotoModel.inspection_id == inspection_id
        )
        if photo_type:
            query = query.where(InspectionPhotoModel.photo_type == photo_type)
        result = await session.execute(query.order_by(InspectionPhotoModel.created_at))
        return list(result.scalars().all())

    async def add_photos(
        self, db, ctx: Any, inspection_id: str, photo_type: str, uploads: list[Upload],
    ) -> list[InspectionPhotoModel]:
        """Store a batch of photos/videos.

        Every file is validated first. Each stored file is then committed in
        its own transaction, so a failure part-way keeps the earlier files.
        """
        photo_type = _check_photo_type(photo_type)
        async with db.get_session() as session:
            inspection = await self._get_for(session, ctx, inspection_id, Action.INSPECTION_EDIT)
            lifecycle.ensure_editable(inspection)
        validate_batch(uploads, MEDIA_CONTENT_TYPES, self.settings.max_media_bytes)

        stored = []
        for upload in uploads:
            path = self.storage.save(
                PHOTOS_BUCKET, photo_object_name(inspection_id, photo_type, upload), upload.data
            )
            async with db.get_session() as session:
                photo = InspectionPhotoModel(
                    inspection_id=inspection_id,
                    photo_type=photo_type,
                    photo_url=path,
                    media_type=upload.media_type,
                )
                session.add(photo)
                await session.flush()
            stored.append(photo)
        logger.info("Stored %d %s file(s) for inspection %s", len(stored), photo_type, inspection_id)
        return stored

    async def delete_photo(self, db, ctx: Any, inspection_id: str, photo_id: str) -> None:
        """Delete the row, then the stored file once the delete is committed."""
        async with db.get_session() as session:
            inspection = await self._get_for(session, ctx, inspection_id, Action.INSPECTION_EDIT)
            lifecycle.ensure_editable(inspection)
            photo = await session.get(InspectionPhotoModel, photo_id)
            if photo is None or photo.inspection_id != inspection_id:
                raise NotFoundError(f"Photo '{photo_id}' not found")
            path = photo.photo_url
            await session.delete(photo)
        self.storage.delete(path)

    # ── Driver document ──

    async def set_driver_document(
        self, db, ctx: Any, inspection_id: str, upload: Upload,
    ) -> InspectionModel:
        """Store the new document; the replaced file is removed after commit."""
        path = None
        try:
            async with db.get_session() as session:
                inspection = await self._get_for(session, ctx, inspection_id, Action.INSPECTION_EDIT)
                lifecycle.ensure_editable(inspection)
                validate_upload(upload, DOCUMENT_CONTENT_TYPES, self.settings.max_document_bytes)
                previous = inspection.driver_documents_url
                path = self.storage.save(
                    DOCUMENTS_BUCKET, document_object_name(inspection_id, upload), upload.data
                )
                inspection.driver_documents_url = path
        except Exception:
            if path:
                self.storage.delete(path)
            raise
        if previous and previous != path:
            self.storage.delete(previous)
        return inspection

    async def remove_driver_document(self, db, ctx: Any, inspection_id: str) -> InspectionModel:
        async with db.get_session() as session:
            inspection = await self._get_for(session, ctx, inspection_id, Action.INSPECTION_EDIT)
            lifecycle.ensure_editable(inspection)
            previous = inspection.driver_documents_url
            if not previous:
                raise NotFoundError("Inspection has no driver document")
            inspection.driver_documents_url = None
        self.storage.delete(previous)
        return inspection
