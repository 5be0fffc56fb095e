"""
Password hashing and signed access tokens.

Tokens are ``itsdangerous`` timed signatures over ``{"id": <account id>}``.
Customer and vendor tokens are signed with different salts, so one kind
never verifies as the other.
"""

import logging
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from passlib.context import CryptContext

from menumate.core.config import get_settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

USER_TOKEN = "user"
VENDOR_TOKEN = "vendor"


def _serializer(kind: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(get_settings().secret_key, salt=f"menumate-{kind}-access")


def create_access_token(kind: str, account_id: int) -> str:
    """Sign an access token for a customer (``USER_TOKEN``) or vendor (``VENDOR_TOKEN``)."""
    return _serializer(kind).dumps({"id": account_id})


def read_access_token(kind: str, token: str) -> Optional[int]:
    """
    Account id carried by ``token``.

    Returns None when the signature is wrong, the token has expired, or
    it was issued for the other kind of account.
    """
    try:
        payload = _serializer(kind).loads(token, max_age=get_settings().token_max_age_seconds)
    except SignatureExpired:
        logger.info(f"Expired {kind} token rejected")
        return None
    except BadSignature:
        logger.info(f"Invalid {kind} token rejected")
        return None

    account_id = payload.get("id") if isinstance(payload, dict) else None
    return account_id if isinstance(account_id, int) else None
