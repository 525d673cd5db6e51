"""Gift-code redemption.

A redemption is one transaction that records the claim, consumes a use of
the code and credits the account.  The read-side checks give precise
error messages; the writes themselves are guarded by the unique
``(account_id, gift_code_id)`` constraint and a conditional UPDATE, so
concurrent requests cannot double-claim a code or exceed its usage limit.
"""

import logging
from datetime import datetime
from decimal import Decimal
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from giftpay.crud import (
    get_gift_code_by_code,
    get_gift_code,
    has_redeemed,
    create_redemption,
    increment_gift_code_usage,
    increment_balance,
)
from giftpay.errors import (
    NotFound,
    Inactive,
    Expired,
    LimitReached,
    AlreadyRedeemed,
)
from giftpay.models import GiftCode, Redemption, utcnow

logger = logging.getLogger(__name__)


def check_redeemable(gift_code: GiftCode, now: datetime) -> None:
    """Raise the first rule the code violates at ``now``."""
    if not gift_code.is_active:
        raise Inactive()
    if now >= gift_code.expires_at:
        raise Expired()
    if gift_code.used_count >= gift_code.usage_limit:
        raise LimitReached()


async def redeem(db: AsyncSession, account_id: int, code: str) -> Decimal:
    """Redeem ``code`` for ``account_id`` and return the prize credited."""

    now = utcnow()
    gift_code = await get_gift_code_by_code(db, code)
    if gift_code is None:
        raise NotFound("Gift code not found")
    check_redeemable(gift_code, now)
    if await has_redeemed(db, account_id, gift_code.id):
        raise AlreadyRedeemed()

    gift_code_id = gift_code.id
    prize = gift_code.prize_amount
    try:
        await create_redemption(
            db,
            Redemption(
                account_id=account_id,
                gift_code_id=gift_code_id,
                prize_amount=prize,
                redeemed_at=now,
            ),
        )
        if not await increment_gift_code_usage(db, gift_code_id, now):
            # Another request changed the code since it was read.
            await db.rollback()
            current = await get_gift_code(db, gift_code_id)
            check_redeemable(current, now)
            raise LimitReached()
        if not await increment_balance(db, account_id, prize):
            raise NotFound("Account not found")
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.info(
            "Concurrent duplicate redemption of code %s by account %s",
            gift_code_id,
            account_id,
        )
        raise AlreadyRedeemed()
    except Exception:
        await db.rollback()
        raise

    logger.info("Account %s redeemed code %s for %s", account_id, gift_code_id, prize)
    return prize
