# giftpay/auth.py
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from giftpay.models import Account
from giftpay.database import get_session
from giftpay.errors import Unauthorized, Forbidden
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

import os

SECRET_KEY = os.getenv("SECRET_KEY", "super-secret-key")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "10080"))
# Admin elevation is deliberately short-lived and has to be renewed.
ADMIN_TOKEN_EXPIRE_MINUTES = int(os.getenv("ADMIN_TOKEN_EXPIRE_MINUTES", "15"))
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
ADMIN_SCOPE = "admin"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/token", auto_error=False)


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def verify_admin_password(password: str) -> bool:
    """Compare against ``ADMIN_PASSWORD``; always fails when it is unset."""
    if not ADMIN_PASSWORD:
        return False
    return password == ADMIN_PASSWORD


async def authenticate_account(db: AsyncSession, username: str, password: str):
    result = await db.execute(select(Account).where(Account.username == username))
    account = result.scalar_one_or_none()
    if not account or not verify_password(password, account.password_hash):
        return None
    return account


def create_access_token(data: dict, expires_delta: timedelta | None = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def create_admin_token(account_id: int) -> str:
    return create_access_token(
        data={"sub": str(account_id), "scope": ADMIN_SCOPE},
        expires_delta=timedelta(minutes=ADMIN_TOKEN_EXPIRE_MINUTES),
    )


def _decode_token(token: str | None) -> dict:
    if not token:
        raise Unauthorized()
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise Unauthorized("Could not validate credentials")
    if not payload.get("sub"):
        raise Unauthorized("Could not validate credentials")
    return payload


async def _load_account(db: AsyncSession, payload: dict) -> Account:
    try:
        account_id = int(payload["sub"])
    except ValueError:
        raise Unauthorized("Could not validate credentials")
    result = await db.execute(select(Account).where(Account.id == account_id))
    account = result.scalar_one_or_none()
    if account is None:
        raise Unauthorized("Could not validate credentials")
    return account


async def get_current_account(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_session),
) -> Account:
    return await _load_account(db, _decode_token(token))


async def require_admin(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_session),
) -> Account:
    """Allow only elevated tokens whose account is still an admin.

    Both conditions are re-checked on every request, so revoking the
    ``is_admin`` flag takes effect immediately.
    """
    payload = _decode_token(token)
    account = await _load_account(db, payload)
    if payload.get("scope") != ADMIN_SCOPE:
        raise Forbidden("Forbidden: Admin password required")
    if not account.is_admin:
        raise Forbidden("Forbidden: Admin access required")
    return account
