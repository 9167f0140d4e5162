"""Delivery API router — nested under inspections."""

from fastapi import APIRouter, Depends

from inspection_engine.auth.policy import Action
from inspection_engine.common.security import RequestContext, require_action
from inspection_engine.deliveries.schemas import DeliveryResponse, DeliveryUpdate

router = APIRouter(prefix="/inspections/{inspection_id}/delivery", tags=["deliveries"])


def _get_service():
    from inspection_engine.deps import get_delivery_service
    return get_delivery_service()


def _get_db():
    from inspection_engine.deps import get_db
    return get_db()


@router.get("", response_model=DeliveryResponse)
async def get_delivery(
    inspection_id: str,
    ctx: RequestContext = Depends(require_action(Action.DELIVERY_VIEW)),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        delivery = await svc.get_delivery(session, ctx, inspection_id)
        return DeliveryResponse.model_validate(delivery)


@router.put("", response_model=DeliveryResponse)
async def save_delivery(
    inspection_id: str,
    body: DeliveryUpdate,
    ctx: RequestContext = Depends(require_action(Action.DELIVERY_MANAGE)),
):
    svc = _get_service()
    db = _get_db()
    fields = body.model_dump(exclude_unset=True)
    if fields.get("status") is not None:
        fields["status"] = fields["status"].value
    async with db.get_session() as session:
        delivery = await svc.save_delivery(session, ctx, inspection_id, **fields)
        return DeliveryResponse.model_validate(delivery)
