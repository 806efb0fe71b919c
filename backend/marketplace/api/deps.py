from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.db import get_db
from marketplace.core.security import decode_access_token
from marketplace.core.rbac import Role
from marketplace.models.account import Account, AccountStatus
from marketplace.models.vendor import Vendor

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_principal(
    db: AsyncSession = Depends(get_db),
    token: str = Depends(oauth2_scheme),
) -> tuple[Account, Role]:
    try:
        claims = decode_access_token(token)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    q = await db.execute(select(Account).where(Account.username == claims.username))
    account = q.scalar_one_or_none()
    if not account:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account not found")

    if account.status == AccountStatus.disabled:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    # IMPORTANT: role is authoritative in the database.
    # The JWT role claim is treated as a cache only.
    try:
        db_role = Role((account.role or "customer").strip().lower())
    except ValueError:
        db_role = Role.customer

    # If role was changed in the DB, old tokens should stop working.
    if claims.role != db_role.value:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    return account, db_role


async def require_admin(principal=Depends(get_current_principal)) -> Account:
    account, role = principal
    if role != Role.admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin only")
    return account


async def require_customer(principal=Depends(get_current_principal)) -> Account:
    account, role = principal
    if role != Role.customer:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Customers only")
    return account


async def require_vendor(
    db: AsyncSession = Depends(get_db),
    principal=Depends(get_current_principal),
) -> Vendor:
    account, role = principal
    if role != Role.vendor:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Vendors only")
    q = await db.execute(select(Vendor).where(Vendor.account_id == account.id))
    vendor = q.scalar_one_or_none()
    if not vendor:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Vendor profile not found")
    if vendor.is_suspended:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Vendor account is suspended")
    return vendor


async def get_vendor_id_for(db: AsyncSession, account: Account, role: Role) -> int | None:
    if role != Role.vendor:
        return None
    q = await db.execute(select(Vendor.id).where(Vendor.account_id == account.id))
    return q.scalar_one_or_none()
