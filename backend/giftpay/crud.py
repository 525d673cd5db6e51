"""Asynchronous CRUD helpers for the application's data models.

Each function in this module encapsulates a specific database operation
using SQLModel and SQLAlchemy.  Centralizing the logic keeps route
handlers light and makes behavior easier to test.

Helpers that take part in a redemption or withdrawal resolution only
``flush``; the caller owns the transaction and decides when to commit or
roll back.  Standalone writes (account creation, code creation, ...)
commit on their own.
"""

from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from sqlalchemy.orm import selectinload
from sqlalchemy import func, update
from datetime import datetime
from giftpay.models import (
    Account,
    GiftCode,
    Redemption,
    WithdrawalRequest,
    utcnow,
)


# Accounts


async def create_account(db: AsyncSession, account: Account) -> Account:
    """Persist a new account. ``password_hash`` must already be hashed."""

    db.add(account)
    await db.commit()
    await db.refresh(account)
    return account


async def get_account(db: AsyncSession, account_id: int) -> Account | None:
    """Load an account by primary key."""
    result = await db.execute(
        select(Account)
        .where(Account.id == account_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_account_by_username(db: AsyncSession, username: str) -> Account | None:
    """Return an account by username or ``None`` if not found."""
    result = await db.execute(select(Account).where(Account.username == username))
    return result.scalar_one_or_none()


async def get_all_accounts(db: AsyncSession) -> list[Account]:
    result = await db.execute(select(Account).order_by(Account.id))
    return result.scalars().all()


async def increment_balance(db: AsyncSession, account_id: int, amount: Decimal) -> bool:
    """Add ``amount`` to the stored balance in place.

    The addition happens in SQL so concurrent credits never overwrite each
    other.  ``round`` keeps the value canonical on backends without a
    native decimal type.  Returns ``False`` when the account does not exist.
    """
    result = await db.execute(
        update(Account)
        .where(Account.id == account_id)
        .values(balance=func.round(Account.balance + amount, 2))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def debit_balance(db: AsyncSession, account_id: int, amount: Decimal) -> bool:
    """Subtract ``amount`` only if the balance covers it.

    Returns ``False`` when no row was updated.
    """
    result = await db.execute(
        update(Account)
        .where(Account.id == account_id, Account.balance >= amount)
        .values(balance=func.round(Account.balance - amount, 2))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def set_account_admin(db: AsyncSession, account_id: int, is_admin: bool) -> None:
    await db.execute(
        update(Account)
        .where(Account.id == account_id)
        .values(is_admin=is_admin)
        .execution_options(synchronize_session=False)
    )
    await db.commit()


# Gift codes


async def create_gift_code(db: AsyncSession, gift_code: GiftCode) -> GiftCode:
    db.add(gift_code)
    await db.commit()
    await db.refresh(gift_code)
    return gift_code


async def get_gift_code_by_code(db: AsyncSession, code: str) -> GiftCode | None:
    result = await db.execute(
        select(GiftCode)
        .where(GiftCode.code == code)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_gift_code(db: AsyncSession, gift_code_id: int) -> GiftCode | None:
    result = await db.execute(
        select(GiftCode)
        .where(GiftCode.id == gift_code_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_all_gift_codes(db: AsyncSession) -> list[GiftCode]:
    result = await db.execute(select(GiftCode).order_by(GiftCode.created_at.desc()))
    return result.scalars().all()


async def increment_gift_code_usage(
    db: AsyncSession, gift_code_id: int, now: datetime
) -> bool:
    """Consume one use of a code if it is still redeemable at ``now``.

    The limit, active flag and expiry are re-checked by the UPDATE itself,
    so two requests racing for the last use cannot both succeed.  Returns
    ``False`` when no row was updated.
    """
    result = await db.execute(
        update(GiftCode)
        .where(
            GiftCode.id == gift_code_id,
            GiftCode.used_count < GiftCode.usage_limit,
            GiftCode.is_active == True,  # noqa: E712
            GiftCode.expires_at > now,
        )
        .values(used_count=GiftCode.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def deactivate_gift_code(db: AsyncSession, gift_code: GiftCode) -> GiftCode:
    gift_code.is_active = False
    db.add(gift_code)
    await db.commit()
    await db.refresh(gift_code)
    return gift_code


# Redemptions


async def has_redeemed(db: AsyncSession, account_id: int, gift_code_id: int) -> bool:
    result = await db.execute(
        select(Redemption.id).where(
            Redemption.account_id == account_id,
            Redemption.gift_code_id == gift_code_id,
        )
    )
    return result.first() is not None


async def create_redemption(db: AsyncSession, redemption: Redemption) -> Redemption:
    """Stage a redemption row; raises ``IntegrityError`` on a duplicate."""

    db.add(redemption)
    await db.flush()
    return redemption


async def list_redemptions_by_account(
    db: AsyncSession, account_id: int
) -> list[Redemption]:
    result = await db.execute(
        select(Redemption)
        .where(Redemption.account_id == account_id)
        .options(selectinload(Redemption.gift_code))
        .order_by(Redemption.redeemed_at.desc())
    )
    return result.scalars().all()


# Withdrawal requests


async def create_withdrawal_request(
    db: AsyncSession, req: WithdrawalRequest
) -> WithdrawalRequest:
    """Persist a pending withdrawal request."""

    db.add(req)
    await db.commit()
    await db.refresh(req)
    return req


async def get_all_withdrawal_requests(
    db: AsyncSession, status: str | None = None
) -> list[WithdrawalRequest]:
    """Return every withdrawal request, newest first, optionally by status."""
    query = select(WithdrawalRequest).order_by(WithdrawalRequest.created_at.desc())
    if status:
        query = query.where(WithdrawalRequest.status == status)
    result = await db.execute(query)
    return result.scalars().all()


async def get_withdrawal_requests_by_account(
    db: AsyncSession, account_id: int
) -> list[WithdrawalRequest]:
    """Return withdrawal requests for a specific account."""
    result = await db.execute(
        select(WithdrawalRequest)
        .where(WithdrawalRequest.account_id == account_id)
        .order_by(WithdrawalRequest.created_at.desc())
    )
    return result.scalars().all()


async def get_withdrawal_request(
    db: AsyncSession, request_id: int
) -> WithdrawalRequest | None:
    """Return a single withdrawal request by id."""
    result = await db.execute(
        select(WithdrawalRequest)
        .where(WithdrawalRequest.id == request_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_pending_withdrawal_total(db: AsyncSession, account_id: int) -> Decimal:
    """Sum of the amounts an account is still waiting to have paid out."""
    result = await db.execute(
        select(func.coalesce(func.sum(WithdrawalRequest.amount), 0)).where(
            WithdrawalRequest.account_id == account_id,
            WithdrawalRequest.status == "pending",
        )
    )
    return Decimal(str(result.scalar())).quantize(Decimal("0.01"))


async def update_withdrawal_status(
    db: AsyncSession, request_id: int, status: str, now: datetime | None = None
) -> bool:
    """Move a ``pending`` request to ``status``.

    Requests that are no longer pending are left untouched and ``False`` is
    returned.
    """
    result = await db.execute(
        update(WithdrawalRequest)
        .where(
            WithdrawalRequest.id == request_id,
            WithdrawalRequest.status == "pending",
        )
        .values(status=status, updated_at=now or utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
