"""Catalog API router — machine models, technicians and drivers."""

from fastapi import APIRouter, Depends, Query

from inspection_engine.auth.policy import Action
from inspection_engine.catalog.schemas import (
    DriverCreate,
    DriverResponse,
    DriverUpdate,
    MachineModelCreate,
    MachineModelResponse,
    MachineModelUpdate,
    TechnicianCreate,
    TechnicianResponse,
    TechnicianUpdate,
)
from inspection_engine.common.security import RequestContext, require_action

router = APIRouter(tags=["catalog"])

_viewer = require_action(Action.CATALOG_VIEW)
_manager = require_action(Action.CATALOG_MANAGE)


def _get_service():
    from inspection_engine.deps import get_catalog_service
    return get_catalog_service()


def _get_db():
    from inspection_engine.deps import get_db
    return get_db()


# ── Machine models ──


@router.get("/machine-models", response_model=list[MachineModelResponse])
async def list_machine_models(
    line: str | None = Query(None),
    ctx: RequestContext = Depends(_viewer),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        records = await svc.list_machine_models(session, ctx, line=line)
        return [MachineModelResponse.model_validate(r) for r in records]


@router.post("/machine-models", response_model=MachineModelResponse, status_code=201)
async def create_machine_model(
    body: MachineModelCreate, ctx: RequestContext = Depends(_manager),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        record = await svc.create_machine_model(session, ctx, **body.model_dump())
        return MachineModelResponse.model_validate(record)


@router.get("/machine-models/{model_id}", response_model=MachineModelResponse)
async def get_machine_model(model_id: str, ctx: RequestContext = Depends(_viewer)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        record = await svc.get_machine_model(session, ctx, model_id)
        return MachineModelResponse.model_validate(record)


@router.patch("/machine-models/{model_id}", response_model=MachineModelResponse)
async def update_machine_model(
    model_id: str, body: MachineModelUpdate, ctx: RequestContext = Depends(_manager),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        record = await svc.update_machine_model(
            session, ctx, model_id, **body.model_dump(exclude_unset=True)
        )
        return MachineModelResponse.model_validate(record)


@router.delete("/machine-models/{model_id}", status_code=204)
async def delete_machine_model(model_id: str, ctx: RequestContext = Depends(_manager)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.delete_machine_model(session, ctx, model_id)


# ── Technicians ──


@router.get("/technicians", response_model=list[TechnicianResponse])
async def list_technicians(ctx: RequestContext = Depends(_viewer)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        records = await svc.list_technicians(session, ctx)
        return [TechnicianResponse.model_validate(r) for r in records]


@router.post("/technicians", response_model=TechnicianResponse, status_code=201)
async def create_technician(body: TechnicianCreate, ctx: RequestContext = Depends(_manager)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        record = await svc.create_technician(
            session, ctx, technician_id=body.id, name=body.name, user_id=body.user_id,
        )
        return TechnicianResponse.model_validate(record)


@router.get("/technicians/{technician_id}", response_model=TechnicianResponse)
async def get_technician(technician_id: str, ctx: RequestContext = Depends(_viewer)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        record = await svc.get_technician(session, ctx, technician_id)
        return TechnicianResponse.model_validate(record)


@router.patch("/technicians/{technician_id}", response_model=TechnicianResponse)
async def update_technician(
    technician_id: str, body: TechnicianUpdate, ctx: RequestContext = Depends(_manager),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        record = await svc.update_technician(
            session, ctx, technician_id, **body.model_dump(exclude_unset=True)
        )
        return TechnicianResponse.model_validate(record)


@router.delete("/technicians/{technician_id}", status_code=204)
async def delete_technician(technician_id: str, ctx: RequestContext = Depends(_manager)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.delete_technician(session, ctx, technician_id)


# ── Drivers ──


@router.get("/drivers", response_model=list[DriverResponse])
async def list_drivers(
    active_only: bool = Query(False),
    ctx: RequestContext = Depends(_viewer),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        records = await svc.list_drivers(session, ctx, active_only=active_only)
        return [DriverResponse.model_validate(r) for r in records]


@router.post("/drivers", response_model=DriverResponse, status_code=201)
async def create_driver(body: DriverCreate, ctx: RequestContext = Depends(_manager)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        record = await svc.create_driver(session, ctx, **body.model_dump())
        return DriverResponse.model_validate(record)


@router.get("/drivers/{driver_id}", response_model=DriverResponse)
async def get_driver(driver_id: str, ctx: RequestContext = Depends(_viewer)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        record = await svc.get_driver(session, ctx, driver_id)
        return DriverResponse.model_validate(record)


@router.patch("/drivers/{driver_id}", response_model=DriverResponse)
async def update_driver(
    driver_id: str, body: DriverUpdate, ctx: RequestContext = Depends(_manager),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        record = await svc.update_driver(
            session, ctx, driver_id, **body.model_dump(exclude_unset=True)
        )
        return DriverResponse.model_validate(record)


@router.delete("/drivers/{driver_id}", status_code=204)
async def delete_driver(driver_id: str, ctx: RequestContext = Depends(_manager)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.delete_driver(session, ctx, driver_id)
