"""
API routers, one per resource.

All JSON routes live under /api; the WebSocket endpoint is /ws.
"""

from fastapi import APIRouter

from menumate.routers.admin import router as admin_router
from menumate.routers.analytics import router as analytics_router
from menumate.routers.auth import router as auth_router
from menumate.routers.menu import router as menu_router
from menumate.routers.orders import router as orders_router
from menumate.routers.realtime import router as realtime_router
from menumate.routers.reviews import router as reviews_router
from menumate.routers.shops import router as shops_router
from menumate.routers.tables import router as tables_router

router = APIRouter()

router.include_router(auth_router)
router.include_router(admin_router)
router.include_router(shops_router)
router.include_router(tables_router)
router.include_router(menu_router)
# Reviews before orders: both live under /api/orders/{order_id}
router.include_router(reviews_router)
router.include_router(orders_router)
router.include_router(analytics_router)
router.include_router(realtime_router)

__all__ = ["router"]
