from typing import List

from fastapi import APIRouter, Depends

from storefront.routers.deps import get_admin_service, get_caller
from storefront.schemas import UpdatePermissionsPayload, UserOut
from storefront.services.admin_service import AdminService
from storefront.services.context import CallerContext

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=List[UserOut])
def list_users(caller: CallerContext = Depends(get_caller), service: AdminService = Depends(get_admin_service)):
    return service.list_users(caller)


@router.put("/users/{user_id}/permissions", response_model=UserOut)
def update_permissions(
    user_id: int,
    payload: UpdatePermissionsPayload,
    caller: CallerContext = Depends(get_caller),
    service: AdminService = Depends(get_admin_service),
):
    return service.update_permissions(caller, user_id, payload.permissions)
