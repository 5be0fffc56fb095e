"""Shop creation and listing for vendors, plus the public shop view."""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from menumate.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from menumate.database import get_db
from menumate.models import FoodCourt, Shop, Vendor
from menumate.routers.deps import get_current_vendor
from menumate.schemas import Envelope, ShopCreate, ShopResponse
from menumate.services.authorization import (
    Admin,
    FoodCourtManager,
    actor_for,
    get_shop_or_404,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Shops"])


@router.post("/vendor/shops", response_model=Envelope[ShopResponse], status_code=201)
async def create_shop(
    payload: ShopCreate,
    vendor: Vendor = Depends(get_current_vendor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[ShopResponse]:
    """
    Create a shop.

    - Admins may create any shop for any owner.
    - Managers may only create shops inside their own food court.
    - Owners create standalone shops they own.
    """
    actor = actor_for(vendor)
    owner_id = payload.owner_id or vendor.id
    food_court_id = payload.food_court_id

    if isinstance(actor, Admin):
        pass
    elif isinstance(actor, FoodCourtManager):
        if food_court_id is None:
            food_court_id = actor.food_court_id
        if food_court_id != actor.food_court_id:
            raise AuthorizationError("Managers can only create shops in their own food court.")
    else:
        if food_court_id is not None:
            raise AuthorizationError("Only the Admin or Food Court Manager can add food court shops.")
        if owner_id != vendor.id:
            raise AuthorizationError("You can only create shops you own.")

    if owner_id != vendor.id and await db.get(Vendor, owner_id) is None:
        raise ValidationError("Owner not found")
    if food_court_id is not None and await db.get(FoodCourt, food_court_id) is None:
        raise NotFoundError("Food court not found")

    shop = Shop(
        name=payload.name,
        description=payload.description,
        owner_id=owner_id,
        food_court_id=food_court_id,
    )
    db.add(shop)
    await db.commit()
    await db.refresh(shop)

    logger.info(f"Shop #{shop.id} created by vendor #{vendor.id}")
    return Envelope(message="Shop created successfully.", data=ShopResponse.model_validate(shop))


@router.get("/vendor/shops", response_model=Envelope[List[ShopResponse]])
async def list_managed_shops(
    vendor: Vendor = Depends(get_current_vendor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[List[ShopResponse]]:
    """Shops the caller may manage."""
    actor = actor_for(vendor)
    query = select(Shop).order_by(Shop.id)

    owned_standalone = and_(Shop.food_court_id.is_(None), Shop.owner_id == vendor.id)
    if isinstance(actor, FoodCourtManager):
        query = query.where(or_(Shop.food_court_id == actor.food_court_id, owned_standalone))
    elif not isinstance(actor, Admin):
        query = query.where(owned_standalone)

    shops = (await db.scalars(query)).all()
    return Envelope(count=len(shops), data=[ShopResponse.model_validate(s) for s in shops])


@router.get("/public/shops/{shop_id}", response_model=Envelope[ShopResponse])
async def get_public_shop(
    shop_id: int,
    db: AsyncSession = Depends(get_db),
) -> Envelope[ShopResponse]:
    shop = await get_shop_or_404(db, shop_id)
    return Envelope(data=ShopResponse.model_validate(shop))
