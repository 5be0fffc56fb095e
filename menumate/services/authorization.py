"""
Shop Authorization Policy

Decides whether a vendor may manage a shop's sub-resources (tables, menu,
orders, images). Precedence, first match wins:

    1. Platform admin              -> allowed
    2. Shop belongs to a food court -> allowed only for that court's manager
    3. Standalone shop              -> allowed only for its owner

``authorize`` is pure and needs no database; ``ensure_shop_access`` is the
async wrapper used by the routers.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Union

from sqlalchemy.ext.asyncio import AsyncSession

from menumate.core.exceptions import AuthorizationError, NotFoundError
from menumate.models import Shop, Vendor, VendorRole

logger = logging.getLogger(__name__)

GENERIC_DENIAL = "You do not have permission to manage this shop."
FOOD_COURT_DENIAL = "Only the Admin or Food Court Manager can manage this shop."
ANALYTICS_DENIAL = "Access denied."


# =============================================================================
# ACTORS
# =============================================================================

@dataclass(frozen=True)
class Admin:
    vendor_id: int


@dataclass(frozen=True)
class FoodCourtManager:
    vendor_id: int
    food_court_id: int


@dataclass(frozen=True)
class ShopOwner:
    vendor_id: int


Actor = Union[Admin, FoodCourtManager, ShopOwner]


def actor_for(vendor: Vendor) -> Actor:
    """Derive the acting variant from a vendor row."""
    if vendor.role == VendorRole.ADMIN:
        return Admin(vendor_id=vendor.id)
    if vendor.manages_food_court_id is not None:
        return FoodCourtManager(vendor_id=vendor.id, food_court_id=vendor.manages_food_court_id)
    return ShopOwner(vendor_id=vendor.id)


# =============================================================================
# DECISIONS
# =============================================================================

@dataclass(frozen=True)
class Allowed:
    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Denied:
    reason: str

    def __bool__(self) -> bool:
        return False


Decision = Union[Allowed, Denied]


class ShopLike(Protocol):
    owner_id: int
    food_court_id: Optional[int]


def authorize(actor: Actor, shop: ShopLike) -> Decision:
    """Apply the three-tier shop policy."""
    if isinstance(actor, Admin):
        return Allowed()

    if shop.food_court_id is not None:
        if isinstance(actor, FoodCourtManager) and actor.food_court_id == shop.food_court_id:
            return Allowed()
        return Denied(FOOD_COURT_DENIAL)

    if actor.vendor_id == shop.owner_id:
        return Allowed()
    return Denied(GENERIC_DENIAL)


def authorize_analytics(actor: Actor, shop: ShopLike, allow_delegated: bool = False) -> Decision:
    """
    Analytics policy.

    Owner-only unless ``allow_delegated`` is set, in which case the full
    shop policy applies.
    """
    if allow_delegated:
        decision = authorize(actor, shop)
        if decision:
            return decision
        # The owner of a food court shop still sees their own numbers
    if actor.vendor_id == shop.owner_id:
        return Allowed()
    return Denied(ANALYTICS_DENIAL)


# =============================================================================
# DATABASE-BACKED CHECKS
# =============================================================================

async def get_shop_or_404(db: AsyncSession, shop_id: int) -> Shop:
    shop = await db.get(Shop, shop_id)
    if shop is None:
        raise NotFoundError("Shop not found")
    return shop


async def ensure_shop_access(db: AsyncSession, shop_id: int, vendor: Vendor) -> Shop:
    """
    Load a shop and check that ``vendor`` may manage it.

    Raises:
        NotFoundError: the shop does not exist
        AuthorizationError: the policy denied access

    Returns:
        The shop row
    """
    shop = await get_shop_or_404(db, shop_id)
    decision = authorize(actor_for(vendor), shop)
    if not decision:
        logger.info(f"Vendor #{vendor.id} denied on shop #{shop_id}: {decision.reason}")
        raise AuthorizationError(decision.reason)
    return shop
