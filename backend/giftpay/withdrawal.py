"""Withdrawal request lifecycle.

Requests start ``pending`` and are resolved exactly once by an
administrator to ``approved`` or ``declined``.  Payout itself happens
outside the system; approving a request records the decision and debits
the account in the same transaction.
"""

import logging
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession

from giftpay.crud import (
    get_account,
    get_pending_withdrawal_total,
    create_withdrawal_request,
    get_withdrawal_request,
    update_withdrawal_status,
    debit_balance,
)
from giftpay.errors import (
    NotFound,
    BelowMinimum,
    InsufficientBalance,
    InvalidPayoutAddress,
    InvalidTransition,
    ValidationError,
)
from giftpay.models import WithdrawalRequest, utcnow
from giftpay.money import MIN_WITHDRAWAL

logger = logging.getLogger(__name__)

PENDING = "pending"
APPROVED = "approved"
DECLINED = "declined"
DECISIONS = (APPROVED, DECLINED)


async def create_withdrawal(
    db: AsyncSession, account_id: int, amount: Decimal, upi_id: str
) -> WithdrawalRequest:
    """Open a ``pending`` request after checking the amount and address.

    The amount must also fit within the balance that is not already tied
    up in other pending requests.
    """
    if amount < MIN_WITHDRAWAL:
        raise BelowMinimum()
    account = await get_account(db, account_id)
    if account is None:
        raise NotFound("Account not found")
    reserved = await get_pending_withdrawal_total(db, account_id)
    if amount > account.balance - reserved:
        raise InsufficientBalance()
    if not upi_id or not upi_id.strip():
        raise InvalidPayoutAddress()

    req = WithdrawalRequest(account_id=account_id, amount=amount, upi_id=upi_id.strip())
    req = await create_withdrawal_request(db, req)
    logger.info(
        "Withdrawal request %s opened by account %s for %s", req.id, account_id, amount
    )
    return req


async def resolve_withdrawal(
    db: AsyncSession, request_id: int, decision: str
) -> WithdrawalRequest:
    """Approve or decline a pending request.

    Resolved requests are never touched again; a second decision raises
    ``InvalidTransition``.
    """
    if decision not in DECISIONS:
        raise ValidationError("Invalid status")
    req = await get_withdrawal_request(db, request_id)
    if req is None:
        raise NotFound("Withdrawal request not found")
    if req.status != PENDING:
        raise InvalidTransition()

    account_id = req.account_id
    amount = req.amount
    try:
        if not await update_withdrawal_status(db, request_id, decision, utcnow()):
            raise InvalidTransition()
        if decision == APPROVED and not await debit_balance(db, account_id, amount):
            raise InsufficientBalance()
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Withdrawal request %s %s", request_id, decision)
    return await get_withdrawal_request(db, request_id)
