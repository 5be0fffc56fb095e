"""
Request dependencies: who is calling.

Callers send the token from ``/api/users/login`` or ``/api/vendor/login``
as ``Authorization: Bearer <token>``.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from menumate.core.exceptions import AuthenticationError
from menumate.core.security import USER_TOKEN, VENDOR_TOKEN, read_access_token
from menumate.database import get_db
from menumate.models import User, Vendor

bearer_scheme = HTTPBearer(auto_error=False)


def _account_id(kind: str, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[int]:
    if credentials is None or not credentials.credentials:
        return None
    account_id = read_access_token(kind, credentials.credentials)
    if account_id is None:
        raise AuthenticationError("Not authorized, token failed.")
    return account_id


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Customer calling the route, or None for guests."""
    user_id = _account_id(USER_TOKEN, credentials)
    if user_id is None:
        return None
    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("Not authorized, user not found.")
    return user


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    if user is None:
        raise AuthenticationError()
    return user


async def get_current_vendor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Vendor:
    vendor_id = _account_id(VENDOR_TOKEN, credentials)
    if vendor_id is None:
        raise AuthenticationError()
    vendor = await db.get(Vendor, vendor_id)
    if vendor is None:
        raise AuthenticationError("Not authorized, vendor not found.")
    return vendor
