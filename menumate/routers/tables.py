"""Table / QR code management and the public QR landing lookup."""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from menumate.core.exceptions import ConflictError, NotFoundError, ValidationError
from menumate.database import get_db
from menumate.models import MenuItem, ShopTable, Vendor
from menumate.routers.deps import get_current_vendor
from menumate.schemas import (
    Envelope,
    MenuItemResponse,
    ShopResponse,
    TableCreateRequest,
    TableLanding,
    TableResponse,
)
from menumate.services.authorization import ensure_shop_access, get_shop_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Tables"])


@router.post(
    "/shops/{shop_id}/tables",
    response_model=Envelope[List[TableResponse]],
    status_code=201,
)
async def create_tables(
    shop_id: int,
    payload: TableCreateRequest,
    vendor: Vendor = Depends(get_current_vendor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[List[TableResponse]]:
    """
    Create one table or a batch of tables for a shop.

    Body is either ``{tableNumber, qrIdentifier}`` or
    ``{tableNumbers: [{tableNumber, qrIdentifier}, ...]}``. A batch is
    inserted in a single transaction.
    """
    await ensure_shop_access(db, shop_id, vendor)

    items = payload.to_items()
    if not items:
        raise ValidationError("A tableNumber and qrIdentifier are required.")

    tables = [
        ShopTable(shop_id=shop_id, table_number=item.table_number, qr_identifier=item.qr_identifier)
        for item in items
    ]
    db.add_all(tables)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("A table with this QR identifier already exists for this shop.")

    logger.info(f"{len(tables)} table(s) created for shop #{shop_id} by vendor #{vendor.id}")
    return Envelope(
        message=f"{len(tables)} QR code(s) created successfully.",
        count=len(tables),
        data=[TableResponse.model_validate(t) for t in tables],
    )


@router.get("/shops/{shop_id}/tables", response_model=Envelope[List[TableResponse]])
async def list_tables(
    shop_id: int,
    vendor: Vendor = Depends(get_current_vendor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[List[TableResponse]]:
    await ensure_shop_access(db, shop_id, vendor)

    tables = (
        await db.scalars(
            select(ShopTable).where(ShopTable.shop_id == shop_id).order_by(ShopTable.id)
        )
    ).all()
    return Envelope(count=len(tables), data=[TableResponse.model_validate(t) for t in tables])


@router.delete("/shops/{shop_id}/tables/{qr_identifier}", response_model=Envelope[None])
async def delete_table(
    shop_id: int,
    qr_identifier: str,
    vendor: Vendor = Depends(get_current_vendor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[None]:
    """
    Delete a table by its QR identifier.

    Succeeds even when nothing matched; ``count`` reports how many rows
    were removed.
    """
    await ensure_shop_access(db, shop_id, vendor)

    result = await db.execute(
        delete(ShopTable).where(
            ShopTable.shop_id == shop_id,
            ShopTable.qr_identifier == qr_identifier,
        )
    )
    await db.commit()

    logger.info(f"Deleted {result.rowcount} table(s) '{qr_identifier}' from shop #{shop_id}")
    return Envelope(message="Table deleted successfully", count=result.rowcount)


@router.get(
    "/public/shops/{shop_id}/tables/{qr_identifier}",
    response_model=Envelope[TableLanding],
    tags=["Public"],
)
async def scan_table(
    shop_id: int,
    qr_identifier: str,
    db: AsyncSession = Depends(get_db),
) -> Envelope[TableLanding]:
    """Resolve a scanned QR code to its table, shop and available menu."""
    shop = await get_shop_or_404(db, shop_id)

    table = await db.scalar(
        select(ShopTable).where(
            ShopTable.shop_id == shop_id,
            ShopTable.qr_identifier == qr_identifier,
        )
    )
    if table is None:
        raise NotFoundError("Table not found")

    menu = (
        await db.scalars(
            select(MenuItem)
            .where(MenuItem.shop_id == shop_id, MenuItem.is_available.is_(True))
            .order_by(MenuItem.category, MenuItem.name)
        )
    ).all()

    return Envelope(
        data=TableLanding(
            table=TableResponse.model_validate(table),
            shop=ShopResponse.model_validate(shop),
            menu=[MenuItemResponse.model_validate(m) for m in menu],
        )
    )
