from typing import List

from fastapi import APIRouter, Depends, Response

from storefront.routers.deps import get_caller, get_cart_service
from storefront.schemas import AddToCartPayload, CartItemOut
from storefront.services.cart_service import CartService
from storefront.services.context import CallerContext

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=List[CartItemOut])
def list_cart(caller: CallerContext = Depends(get_caller), service: CartService = Depends(get_cart_service)):
    return service.list_cart(caller)


@router.post("", response_model=CartItemOut)
def add_to_cart(
    payload: AddToCartPayload,
    caller: CallerContext = Depends(get_caller),
    service: CartService = Depends(get_cart_service),
):
    return service.add_to_cart(caller, payload.item_id)


@router.delete("/{cart_item_id}", status_code=204)
def remove_from_cart(
    cart_item_id: int,
    caller: CallerContext = Depends(get_caller),
    service: CartService = Depends(get_cart_service),
):
    service.remove_from_cart(caller, cart_item_id)
    return Response(status_code=204)
