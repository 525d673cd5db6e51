# giftpay/routes/auth.py
"""Authentication endpoints: login, token generation and registration."""

import logging

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from giftpay.auth import (
    create_access_token,
    authenticate_account,
    get_current_account,
    get_password_hash,
)
from giftpay.database import get_session
from giftpay.errors import Conflict, Unauthorized
from giftpay.models import Account
from giftpay.crud import create_account, get_account_by_username
from giftpay.schemas.user import AccountCreate, AccountLogin, AccountResponse, Token

logger = logging.getLogger(__name__)
router = APIRouter()


async def _login(db: AsyncSession, username: str, password: str) -> Token:
    account = await authenticate_account(db, username, password)
    if not account:
        logger.warning("Failed login for %s", username)
        raise Unauthorized("Invalid credentials")
    logger.info("Account %s logged in", account.username)
    return Token(access_token=create_access_token(data={"sub": str(account.id)}))


@router.post("/token", response_model=Token)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_session),
):
    """OAuth2 password flow used by interactive docs and external clients."""

    return await _login(db, form_data.username, form_data.password)


@router.post("/login", response_model=Token)
async def login(data: AccountLogin, db: AsyncSession = Depends(get_session)):
    """JSON-based login used by the frontend."""

    return await _login(db, data.username, data.password)


@router.post("/logout")
async def logout(current: Account = Depends(get_current_account)):
    """Tokens are stateless; clients discard theirs on logout."""

    logger.info("Account %s logged out", current.username)
    return {"message": "Logout successful"}


@router.post("/register", response_model=AccountResponse)
async def register(data: AccountCreate, db: AsyncSession = Depends(get_session)):
    """Create a regular account with a zero balance."""

    if await get_account_by_username(db, data.username):
        raise Conflict("Username already exists")
    try:
        account = await create_account(
            db,
            Account(
                username=data.username,
                password_hash=get_password_hash(data.password),
            ),
        )
    except IntegrityError:
        await db.rollback()
        raise Conflict("Username already exists")
    logger.info("Account %s registered", account.username)
    return account
