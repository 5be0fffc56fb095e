"""Registration and login for customers and vendors."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from menumate.core.exceptions import AuthenticationError, ConflictError
from menumate.core.security import USER_TOKEN, VENDOR_TOKEN, create_access_token, pwd_context
from menumate.database import get_db
from menumate.models import User, Vendor, VendorRole
from menumate.schemas import (
    Envelope,
    LoginRequest,
    UserRegister,
    UserResponse,
    UserSession,
    VendorRegister,
    VendorResponse,
    VendorSession,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Identity"])


@router.post("/register/user", response_model=Envelope[UserResponse], status_code=201)
async def register_user(
    payload: UserRegister,
    db: AsyncSession = Depends(get_db),
) -> Envelope[UserResponse]:
    """Create a customer account."""
    existing = await db.scalar(select(User.id).where(User.email == payload.email))
    if existing:
        raise ConflictError("Email already registered")

    user = User(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        password_hash=pwd_context.hash(payload.password),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already registered")
    await db.refresh(user)

    logger.info(f"User #{user.id} registered")
    return Envelope(message="Registration successful", data=UserResponse.model_validate(user))


@router.post("/register/vendor", response_model=Envelope[VendorResponse], status_code=201)
async def register_vendor(
    payload: VendorRegister,
    db: AsyncSession = Depends(get_db),
) -> Envelope[VendorResponse]:
    """Create a shop owner account. Managers and admins are promoted by an admin."""
    existing = await db.scalar(select(Vendor.id).where(Vendor.email == payload.email))
    if existing:
        raise ConflictError("Email already registered")

    vendor = Vendor(
        name=payload.name,
        email=payload.email,
        password_hash=pwd_context.hash(payload.password),
        role=VendorRole.OWNER,
    )
    db.add(vendor)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already registered")
    await db.refresh(vendor)

    logger.info(f"Vendor #{vendor.id} registered")
    return Envelope(message="Registration successful", data=VendorResponse.model_validate(vendor))


@router.post("/users/login", response_model=Envelope[UserSession])
async def login_user(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> Envelope[UserSession]:
    """Exchange credentials for a customer access token."""
    user = await db.scalar(select(User).where(User.email == payload.email))
    if not user or not pwd_context.verify(payload.password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    return Envelope(
        data=UserSession(
            token=create_access_token(USER_TOKEN, user.id),
            user=UserResponse.model_validate(user),
        )
    )


@router.post("/vendor/login", response_model=Envelope[VendorSession])
async def login_vendor(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> Envelope[VendorSession]:
    vendor = await db.scalar(select(Vendor).where(Vendor.email == payload.email))
    if not vendor or not pwd_context.verify(payload.password, vendor.password_hash):
        raise AuthenticationError("Invalid credentials")
    return Envelope(
        data=VendorSession(
            token=create_access_token(VENDOR_TOKEN, vendor.id),
            vendor=VendorResponse.model_validate(vendor),
        )
    )
