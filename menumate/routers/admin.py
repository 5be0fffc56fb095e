"""Platform administration: food courts and their managers."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from menumate.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from menumate.database import get_db
from menumate.models import FoodCourt, Vendor, VendorRole
from menumate.routers.deps import get_current_vendor
from menumate.schemas import (
    Envelope,
    FoodCourtCreate,
    FoodCourtResponse,
    ManagerAssign,
    VendorResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


async def require_admin(vendor: Vendor = Depends(get_current_vendor)) -> Vendor:
    if vendor.role != VendorRole.ADMIN:
        raise AuthorizationError("Admin access required.")
    return vendor


@router.post("/food-courts", response_model=Envelope[FoodCourtResponse], status_code=201)
async def create_food_court(
    payload: FoodCourtCreate,
    admin: Vendor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Envelope[FoodCourtResponse]:
    food_court = FoodCourt(name=payload.name, location=payload.location)
    db.add(food_court)
    await db.commit()
    await db.refresh(food_court)

    logger.info(f"Food court #{food_court.id} created by admin #{admin.id}")
    return Envelope(
        message="Food court created successfully.",
        data=FoodCourtResponse.model_validate(food_court),
    )


@router.put("/food-courts/{food_court_id}/manager", response_model=Envelope[VendorResponse])
async def assign_manager(
    food_court_id: int,
    payload: ManagerAssign,
    admin: Vendor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Envelope[VendorResponse]:
    """Make a vendor the manager of a food court."""
    food_court = await db.get(FoodCourt, food_court_id)
    if food_court is None:
        raise NotFoundError("Food court not found")

    vendor = await db.get(Vendor, payload.vendor_id)
    if vendor is None:
        raise NotFoundError("Vendor not found")
    if vendor.role == VendorRole.ADMIN:
        raise ConflictError("An admin cannot be assigned as a food court manager.")

    vendor.role = VendorRole.MANAGER
    vendor.manages_food_court_id = food_court.id
    await db.commit()
    await db.refresh(vendor)

    logger.info(f"Vendor #{vendor.id} now manages food court #{food_court.id}")
    return Envelope(
        message="Manager assigned successfully.",
        data=VendorResponse.model_validate(vendor),
    )
