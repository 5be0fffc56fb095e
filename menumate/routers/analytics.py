"""Vendor dashboard analytics."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from menumate.core.config import Settings, get_settings
from menumate.core.exceptions import AuthorizationError
from menumate.database import get_db, get_session_factory
from menumate.models import Vendor
from menumate.routers.deps import get_current_vendor
from menumate.schemas import AnalyticsReport, Envelope
from menumate.services.analytics import build_shop_report
from menumate.services.authorization import actor_for, authorize_analytics, get_shop_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vendor", tags=["Analytics"])


@router.get("/shops/{shop_id}/analytics", response_model=Envelope[AnalyticsReport])
async def get_shop_analytics(
    shop_id: int,
    duration: str = Query("day", description="day | week | month | 3month | 6month | all"),
    vendor: Vendor = Depends(get_current_vendor),
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    settings: Settings = Depends(get_settings),
) -> Envelope[AnalyticsReport]:
    """
    Dashboard snapshot of a shop over ``duration``.

    Only the shop owner may read it unless
    ``ANALYTICS_ALLOW_DELEGATED_ACCESS`` is enabled.
    """
    shop = await get_shop_or_404(db, shop_id)
    decision = authorize_analytics(
        actor_for(vendor),
        shop,
        allow_delegated=settings.analytics_allow_delegated_access,
    )
    if not decision:
        raise AuthorizationError(decision.reason)

    report = await build_shop_report(session_factory, shop.id, duration)
    return Envelope(data=report)
