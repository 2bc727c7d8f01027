from fastapi import APIRouter, Depends

from storefront.routers.deps import get_caller, get_item_service
from storefront.schemas import ItemCreatePayload, ItemOut, ItemUpdatePayload
from storefront.services.context import CallerContext
from storefront.services.item_service import ItemService

router = APIRouter(prefix="/items", tags=["items"])


@router.post("", response_model=ItemOut, status_code=201)
def create_item(
    payload: ItemCreatePayload,
    caller: CallerContext = Depends(get_caller),
    service: ItemService = Depends(get_item_service),
):
    return service.create_item(caller, **payload.model_dump())


@router.patch("/{item_id}", response_model=ItemOut)
def update_item(
    item_id: int,
    payload: ItemUpdatePayload,
    caller: CallerContext = Depends(get_caller),
    service: ItemService = Depends(get_item_service),
):
    return service.update_item(caller, item_id, **payload.model_dump(exclude_unset=True))


@router.delete("/{item_id}", response_model=ItemOut)
def delete_item(
    item_id: int,
    caller: CallerContext = Depends(get_caller),
    service: ItemService = Depends(get_item_service),
):
    return service.delete_item(caller, item_id)
