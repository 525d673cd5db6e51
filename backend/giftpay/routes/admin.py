"""Administrator endpoints: elevation, accounts, gift codes and withdrawals."""

import logging
import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from giftpay.database import get_session
from giftpay.auth import (
    get_current_account,
    require_admin,
    verify_admin_password,
    create_admin_token,
)
from giftpay.errors import Conflict, NotFound, Unauthorized
from giftpay.models import Account, GiftCode
from giftpay.schemas import (
    AccountResponse,
    AdminLogin,
    Token,
    GiftCodeCreate,
    GiftCodeRead,
    WithdrawalRequestRead,
    WithdrawalDecision,
)
from giftpay.crud import (
    get_all_accounts,
    set_account_admin,
    get_all_gift_codes,
    get_gift_code,
    create_gift_code,
    deactivate_gift_code,
    get_all_withdrawal_requests,
)
from giftpay.withdrawal import resolve_withdrawal

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=Token)
async def admin_login(
    data: AdminLogin,
    db: AsyncSession = Depends(get_session),
    current: Account = Depends(get_current_account),
):
    """Exchange the admin password for a short-lived elevated token."""

    account_id = current.id
    if not verify_admin_password(data.password):
        logger.warning("Failed admin login for account %s", account_id)
        raise Unauthorized("Invalid admin password")
    await set_account_admin(db, account_id, True)
    logger.info("Account %s elevated to admin", account_id)
    return Token(access_token=create_admin_token(account_id))


@router.get("/users", response_model=list[AccountResponse])
async def admin_list_users(
    db: AsyncSession = Depends(get_session),
    admin: Account = Depends(require_admin),
):
    return await get_all_accounts(db)


@router.get("/gift-codes", response_model=list[GiftCodeRead])
async def admin_list_gift_codes(
    db: AsyncSession = Depends(get_session),
    admin: Account = Depends(require_admin),
):
    return await get_all_gift_codes(db)


@router.post("/gift-codes", response_model=GiftCodeRead)
async def admin_create_gift_code(
    data: GiftCodeCreate,
    db: AsyncSession = Depends(get_session),
    admin: Account = Depends(require_admin),
):
    gift_code = GiftCode(
        code=data.code or uuid.uuid4().hex[:12].upper(),
        prize_amount=data.prize_amount,
        usage_limit=data.usage_limit,
        expires_at=data.expires_at,
    )
    try:
        gift_code = await create_gift_code(db, gift_code)
    except IntegrityError:
        await db.rollback()
        raise Conflict("Gift code already exists")
    logger.info(
        "Gift code %s issued: %s x%s", gift_code.code, gift_code.prize_amount, gift_code.usage_limit
    )
    return gift_code


@router.delete("/gift-codes/{gift_code_id}", response_model=GiftCodeRead)
async def admin_deactivate_gift_code(
    gift_code_id: int,
    db: AsyncSession = Depends(get_session),
    admin: Account = Depends(require_admin),
):
    """Soft-delete: the code stays on record but can no longer be redeemed."""

    gift_code = await get_gift_code(db, gift_code_id)
    if not gift_code:
        raise NotFound("Gift code not found")
    gift_code = await deactivate_gift_code(db, gift_code)
    logger.info("Gift code %s deactivated", gift_code.code)
    return gift_code


@router.get("/withdrawals", response_model=list[WithdrawalRequestRead])
async def admin_list_withdrawals(
    status: Optional[Literal["pending", "approved", "declined"]] = None,
    db: AsyncSession = Depends(get_session),
    admin: Account = Depends(require_admin),
):
    return await get_all_withdrawal_requests(db, status)


@router.patch("/withdrawals/{request_id}", response_model=WithdrawalRequestRead)
async def admin_resolve_withdrawal(
    request_id: int,
    data: WithdrawalDecision,
    db: AsyncSession = Depends(get_session),
    admin: Account = Depends(require_admin),
):
    return await resolve_withdrawal(db, request_id, data.status)
