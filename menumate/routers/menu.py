"""Menu management for authorized vendors and the public menu."""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from menumate.core.exceptions import NotFoundError
from menumate.database import get_db
from menumate.models import MenuItem, Vendor
from menumate.routers.deps import get_current_vendor
from menumate.schemas import Envelope, MenuItemCreate, MenuItemResponse, MenuItemUpdate
from menumate.services.authorization import ensure_shop_access, get_shop_or_404
from menumate.services.storage import BaseImageStorage, get_image_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Menu"])


async def _get_item(db: AsyncSession, shop_id: int, item_id: int) -> MenuItem:
    item = await db.get(MenuItem, item_id)
    if item is None or item.shop_id != shop_id:
        raise NotFoundError("Menu item not found")
    return item


@router.get("/public/shops/{shop_id}/menu", response_model=Envelope[List[MenuItemResponse]], tags=["Public"])
async def get_public_menu(
    shop_id: int,
    db: AsyncSession = Depends(get_db),
) -> Envelope[List[MenuItemResponse]]:
    """Available items of a shop."""
    await get_shop_or_404(db, shop_id)
    items = (
        await db.scalars(
            select(MenuItem)
            .where(MenuItem.shop_id == shop_id, MenuItem.is_available.is_(True))
            .order_by(MenuItem.category, MenuItem.name)
        )
    ).all()
    return Envelope(count=len(items), data=[MenuItemResponse.model_validate(i) for i in items])


@router.get("/shops/{shop_id}/menu", response_model=Envelope[List[MenuItemResponse]])
async def list_menu(
    shop_id: int,
    vendor: Vendor = Depends(get_current_vendor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[List[MenuItemResponse]]:
    """Every item of a shop, including unavailable ones."""
    await ensure_shop_access(db, shop_id, vendor)
    items = (
        await db.scalars(select(MenuItem).where(MenuItem.shop_id == shop_id).order_by(MenuItem.id))
    ).all()
    return Envelope(count=len(items), data=[MenuItemResponse.model_validate(i) for i in items])


@router.post("/shops/{shop_id}/menu", response_model=Envelope[MenuItemResponse], status_code=201)
async def create_menu_item(
    shop_id: int,
    payload: MenuItemCreate,
    vendor: Vendor = Depends(get_current_vendor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[MenuItemResponse]:
    await ensure_shop_access(db, shop_id, vendor)

    item = MenuItem(shop_id=shop_id, **payload.model_dump())
    db.add(item)
    await db.commit()
    await db.refresh(item)

    logger.info(f"Menu item #{item.id} added to shop #{shop_id}")
    return Envelope(message="Menu item created successfully.", data=MenuItemResponse.model_validate(item))


@router.put("/shops/{shop_id}/menu/{item_id}", response_model=Envelope[MenuItemResponse])
async def update_menu_item(
    shop_id: int,
    item_id: int,
    payload: MenuItemUpdate,
    vendor: Vendor = Depends(get_current_vendor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[MenuItemResponse]:
    await ensure_shop_access(db, shop_id, vendor)
    item = await _get_item(db, shop_id, item_id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(item, field, value)
    await db.commit()
    await db.refresh(item)

    return Envelope(message="Menu item updated successfully.", data=MenuItemResponse.model_validate(item))


@router.delete("/shops/{shop_id}/menu/{item_id}", response_model=Envelope[None])
async def delete_menu_item(
    shop_id: int,
    item_id: int,
    vendor: Vendor = Depends(get_current_vendor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[None]:
    await ensure_shop_access(db, shop_id, vendor)
    item = await _get_item(db, shop_id, item_id)

    await db.delete(item)
    await db.commit()

    logger.info(f"Menu item #{item_id} removed from shop #{shop_id}")
    return Envelope(message="Menu item deleted successfully.")


@router.post("/shops/{shop_id}/menu/{item_id}/image", response_model=Envelope[MenuItemResponse])
async def upload_menu_image(
    shop_id: int,
    item_id: int,
    image: UploadFile = File(...),
    vendor: Vendor = Depends(get_current_vendor),
    db: AsyncSession = Depends(get_db),
    storage: BaseImageStorage = Depends(get_image_storage),
) -> Envelope[MenuItemResponse]:
    """Attach an image to a menu item. Upload failures are reported as 400."""
    await ensure_shop_access(db, shop_id, vendor)
    item = await _get_item(db, shop_id, item_id)

    data = await storage.read_upload(image)
    item.image_url = await storage.store(image.filename, image.content_type, data)
    await db.commit()
    await db.refresh(item)

    return Envelope(message="Image uploaded successfully.", data=MenuItemResponse.model_validate(item))
