"""
Bistro API — Menu (catalog) API
"""
from fastapi import APIRouter, Depends, status

from bistro.api.deps import get_menu_store, require_admin
from bistro.core.errors import InvalidRequest, NotFound
from bistro.core.gate import AdminCapability
from bistro.db.menu import MenuStore
from bistro.schemas.menu import (
    MenuDeleteResponse,
    MenuItemCreateRequest,
    MenuItemResponse,
    MenuItemUpdateRequest,
)

router = APIRouter(prefix="/menu", tags=["menu"])


@router.get("", response_model=list[MenuItemResponse])
async def list_menu(menu: MenuStore = Depends(get_menu_store)):
    return await menu.list_all()


@router.get("/{item_id}", response_model=MenuItemResponse)
async def get_menu_item(item_id: str, menu: MenuStore = Depends(get_menu_store)):
    item = await menu.get(item_id)
    if item is None:
        raise NotFound("Item not found")
    return item


@router.post("", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
async def add_menu_item(
    payload: MenuItemCreateRequest,
    admin: AdminCapability = Depends(require_admin),
    menu: MenuStore = Depends(get_menu_store),
):
    return await menu.create(payload.model_dump(), admin)


@router.patch("/{item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    item_id: str,
    payload: MenuItemUpdateRequest,
    admin: AdminCapability = Depends(require_admin),
    menu: MenuStore = Depends(get_menu_store),
):
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise InvalidRequest("No fields to update")
    item = await menu.update(item_id, changes, admin)
    if item is None:
        raise NotFound("Item not found")
    return item


@router.delete("/{item_id}", response_model=MenuDeleteResponse)
async def delete_menu_item(
    item_id: str,
    admin: AdminCapability = Depends(require_admin),
    menu: MenuStore = Depends(get_menu_store),
):
    return MenuDeleteResponse(deleted_count=await menu.delete(item_id, admin))
