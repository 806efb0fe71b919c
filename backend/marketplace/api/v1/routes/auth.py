from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from marketplace.core.db import get_db
from marketplace.core.security import verify_password, create_access_token
from marketplace.schemas.auth import LoginRequest, TokenResponse
from marketplace.models.account import Account, AccountStatus
from marketplace.api.deps import get_current_principal, get_vendor_id_for

router = APIRouter()

@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    q = await db.execute(select(Account).where(Account.username == payload.username))
    account = q.scalar_one_or_none()
    if not account or not verify_password(payload.password, account.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    if account.status == AccountStatus.disabled:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    role = (account.role or "customer").strip().lower()
    token = create_access_token(subject=account.username, role=role)
    return TokenResponse(access_token=token)

@router.get("/me")
async def me(db: AsyncSession = Depends(get_db), principal=Depends(get_current_principal)):
    account, role = principal
    return {
        "account_id": account.id,
        "username": account.username,
        "name": account.name,
        "role": role.value,
        "vendor_id": await get_vendor_id_for(db, account, role),
        "status": account.status.value,
    }
