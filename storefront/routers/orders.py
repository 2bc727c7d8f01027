from typing import List

from fastapi import APIRouter, Depends

from storefront.routers.deps import get_caller, get_checkout_service
from storefront.schemas import CreateOrderPayload, OrderOut
from storefront.services.checkout_service import CheckoutService
from storefront.services.context import CallerContext

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: CreateOrderPayload,
    caller: CallerContext = Depends(get_caller),
    service: CheckoutService = Depends(get_checkout_service),
):
    return service.create_order(caller, payload.token)


@router.get("", response_model=List[OrderOut])
def list_orders(caller: CallerContext = Depends(get_caller), service: CheckoutService = Depends(get_checkout_service)):
    return service.list_orders(caller)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    caller: CallerContext = Depends(get_caller),
    service: CheckoutService = Depends(get_checkout_service),
):
    return service.get_order(caller, order_id)
