"""FastAPI dependencies for shop identity, database sessions and metering."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import get_db
from app.core.security import decode_session_token, shop_from_session_payload, verify_proxy_signature
from app.services.usage_ledger import UsageLedger

security = HTTPBearer()


async def get_current_shop(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> str:
    """Shop domain of the admin session token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_session_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    shop_domain = shop_from_session_payload(payload)
    if not shop_domain:
        raise credentials_exception

    return shop_domain


async def get_proxy_shop(request: Request) -> str:
    """Shop domain of a storefront request relayed by the app proxy."""
    params = list(request.query_params.multi_items())
    if settings.VERIFY_PROXY_SIGNATURE and not verify_proxy_signature(
        params, request.query_params.get("signature")
    ):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid proxy signature")

    shop_domain = request.query_params.get("shop")
    if not shop_domain:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing shop")
    return shop_domain.lower()


def get_usage_ledger() -> UsageLedger:
    return UsageLedger(cycle_days=settings.BILLING_CYCLE_DAYS)


# Convenience type aliases
CurrentShop = Annotated[str, Depends(get_current_shop)]
ProxyShop = Annotated[str, Depends(get_proxy_shop)]
Ledger = Annotated[UsageLedger, Depends(get_usage_ledger)]
DB = Annotated[AsyncSession, Depends(get_db)]
