"""Inspection API router."""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from inspection_engine.auth.policy import Action
from inspection_engine.common.security import RequestContext, require_action
from inspection_engine.inspections import checklist
from inspection_engine.inspections.checklist import ChecklistItem
from inspection_engine.inspections.media import Upload
from inspection_engine.inspections.schemas import (
    CatalogCategory,
    ChecklistItemSchema,
    ChecklistResponse,
    ChecklistSaveRequest,
    FinalizeResponse,
    InspectionCreate,
    InspectionListResponse,
    InspectionResponse,
    InspectionSummary,
    InspectionUpdate,
    PhotoResponse,
    ReviewRequest,
    SignatureRequest,
)

router = APIRouter(prefix="/inspections", tags=["inspections"])
checklist_router = APIRouter(tags=["checklist"])

_viewer = require_action(Action.INSPECTION_VIEW)


def _get_service():
    from inspection_engine.deps import get_inspection_service
    return get_inspection_service()


def _get_db():
    from inspection_engine.deps import get_db
    return get_db()


def _checklist_response(inspection, items, persisted) -> ChecklistResponse:
    return ChecklistResponse(
        inspection_id=inspection.id,
        persisted=persisted,
        visible_columns=list(checklist.visible_columns(inspection.process_type)),
        items=[ChecklistItemSchema(**item.to_dict()) for item in items],
    )


async def _read_upload(file: UploadFile) -> Upload:
    return Upload(
        filename=file.filename or "upload",
        content_type=file.content_type or "",
        data=await file.read(),
    )


@checklist_router.get("/checklist", response_model=list[CatalogCategory])
async def get_checklist_catalog(ctx: RequestContext = Depends(_viewer)):
    return [
        CatalogCategory(key=key, name=entry["name"], items=list(entry["items"]))
        for key, entry in checklist.CATEGORIES.items()
    ]


@router.post("", response_model=InspectionResponse, status_code=201)
async def create_inspection(
    body: InspectionCreate,
    ctx: RequestContext = Depends(require_action(Action.INSPECTION_CREATE)),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        inspection = await svc.create_inspection(
            session, ctx,
            inspection_date=body.inspection_date,
            process_type=body.process_type.value,
            model=body.model,
            model_id=body.model_id,
            serial_number=body.serial_number,
            horimeter=body.horimeter,
            freight_responsible=body.freight_responsible,
        )
        return InspectionResponse.model_validate(inspection)


@router.get("", response_model=InspectionListResponse)
async def list_inspections(
    status: str | None = Query(None),
    process_type: str | None = Query(None),
    created_by: str | None = Query(None),
    search: str | None = Query(None, max_length=100),
    offset: int = Query(0, ge=0),
    limit: int | None = Query(None, ge=1),
    ctx: RequestContext = Depends(_viewer),
):
    svc = _get_service()
    db = _get_db()
    settings = svc.settings
    limit = min(limit or settings.default_page_size, settings.max_page_size)
    async with db.get_session() as session:
        inspections, total = await svc.list_inspections(
            session, ctx,
            status=status,
            process_type=process_type,
            created_by=created_by,
            search=search,
            offset=offset,
            limit=limit,
        )
        return InspectionListResponse(
            items=[InspectionSummary.model_validate(i) for i in inspections],
            total=total,
            offset=offset,
            limit=limit,
        )


@router.get("/{inspection_id}", response_model=InspectionResponse)
async def get_inspection(inspection_id: str, ctx: RequestContext = Depends(_viewer)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        inspection = await svc.get_inspection(session, ctx, inspection_id)
        return InspectionResponse.model_validate(inspection)


@router.patch("/{inspection_id}", response_model=InspectionResponse)
async def update_inspection(
    inspection_id: str,
    body: InspectionUpdate,
    ctx: RequestContext = Depends(_viewer),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        inspection = await svc.update_inspection(
            session, ctx, inspection_id, **body.model_dump(exclude_unset=True)
        )
        return InspectionResponse.model_validate(inspection)


# ── Checklist items ──


@router.get("/{inspection_id}/items", response_model=ChecklistResponse)
async def get_items(inspection_id: str, ctx: RequestContext = Depends(_viewer)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        inspection = await svc.get_inspection(session, ctx, inspection_id)
        items, persisted = await svc.get_items(session, ctx, inspection_id)
        return _checklist_response(inspection, items, persisted)


@router.put("/{inspection_id}/items", response_model=ChecklistResponse)
async def save_items(
    inspection_id: str,
    body: ChecklistSaveRequest,
    ctx: RequestContext = Depends(_viewer),
):
    svc = _get_service()
    db = _get_db()
    items = [
        ChecklistItem(
            category=i.category,
            item_description=i.item_description,
            entry_status=i.entry_status.value if i.entry_status else None,
            exit_status=i.exit_status.value if i.exit_status else None,
            problem_description=i.problem_description,
        )
        for i in body.items
    ]
    async with db.get_session() as session:
        saved = await svc.save_items(session, ctx, inspection_id, items)
        inspection = await svc.get_inspection(session, ctx, inspection_id)
        return _checklist_response(inspection, saved, True)


# ── Signatures & lifecycle ──


@router.put("/{inspection_id}/signatures/{kind}", response_model=InspectionResponse)
async def sign_inspection(
    inspection_id: str,
    kind: str,
    body: SignatureRequest,
    ctx: RequestContext = Depends(_viewer),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        inspection = await svc.sign(
            session, ctx, inspection_id, kind,
            signature=body.signature,
            signer_name=body.signer_name,
            technician_id=body.technician_id,
        )
        return InspectionResponse.model_validate(inspection)


@router.post("/{inspection_id}/finalize", response_model=FinalizeResponse)
async def finalize_inspection(
    inspection_id: str,
    ctx: RequestContext = Depends(require_action(Action.INSPECTION_FINALIZE)),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        inspection, notified = await svc.finalize(session, ctx, inspection_id)
        return FinalizeResponse(
            inspection=InspectionResponse.model_validate(inspection),
            notifications_sent=notified["sent"],
            notifications_failed=notified["failed"],
        )


@router.post("/{inspection_id}/approve", response_model=InspectionResponse)
async def approve_inspection(
    inspection_id: str,
    body: ReviewRequest | None = None,
    ctx: RequestContext = Depends(_viewer),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        inspection = await svc.approve(
            session, ctx, inspection_id, body.observations if body else ""
        )
        return InspectionResponse.model_validate(inspection)


@router.post("/{inspection_id}/reject", response_model=InspectionResponse)
async def reject_inspection(
    inspection_id: str,
    body: ReviewRequest,
    ctx: RequestContext = Depends(_viewer),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        inspection = await svc.reject(session, ctx, inspection_id, body.observations)
        return InspectionResponse.model_validate(inspection)


# ── Photos ──


@router.get("/{inspection_id}/photos", response_model=list[PhotoResponse])
async def list_photos(
    inspection_id: str,
    photo_type: str | None = Query(None),
    ctx: RequestContext = Depends(_viewer),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        photos = await svc.list_photos(session, ctx, inspection_id, photo_type=photo_type)
        return [PhotoResponse.model_validate(p) for p in photos]


@router.post("/{inspection_id}/photos", response_model=list[PhotoResponse], status_code=201)
async def upload_photos(
    inspection_id: str,
    photo_type: str = Form(...),
    files: list[UploadFile] = File(...),
    ctx: RequestContext = Depends(_viewer),
):
    svc = _get_service()
    uploads = [await _read_upload(f) for f in files]
    photos = await svc.add_photos(_get_db(), ctx, inspection_id, photo_type, uploads)
    return [PhotoResponse.model_validate(p) for p in photos]


@router.delete("/{inspection_id}/photos/{photo_id}", status_code=204)
async def delete_photo(
    inspection_id: str, photo_id: str, ctx: RequestContext = Depends(_viewer),
):
    await _get_service().delete_photo(_get_db(), ctx, inspection_id, photo_id)


# ── Driver document ──


@router.put("/{inspection_id}/driver-document", response_model=InspectionResponse)
async def upload_driver_document(
    inspection_id: str,
    file: UploadFile = File(...),
    ctx: RequestContext = Depends(_viewer),
):
    upload = await _read_upload(file)
    inspection = await _get_service().set_driver_document(_get_db(), ctx, inspection_id, upload)
    return InspectionResponse.model_validate(inspection)


@router.delete("/{inspection_id}/driver-document", response_model=InspectionResponse)
async def remove_driver_document(
    inspection_id: str, ctx: RequestContext = Depends(_viewer),
):
    inspection = await _get_service().remove_driver_document(_get_db(), ctx, inspection_id)
    return InspectionResponse.model_validate(inspection)
