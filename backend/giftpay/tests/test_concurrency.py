"""Concurrent redemptions must not double-claim or exceed a code's limit.

These tests use a file-backed SQLite database so every session gets its
own connection and the store, not the event loop, arbitrates the race.
"""

import asyncio
import pathlib
import sys
from datetime import timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy import func
from sqlmodel import SQLModel, select

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from giftpay.crud import create_account, create_gift_code, get_account, get_gift_code
from giftpay.errors import AlreadyRedeemed, LimitReached
from giftpay.models import Account, GiftCode, Redemption, utcnow
from giftpay.redemption import redeem
from giftpay.auth import get_password_hash

PASSWORD_HASH = get_password_hash("secret1")


async def _setup_file_db(path: pathlib.Path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine, async_sessionmaker(engine, expire_on_commit=False)


async def _attempt(TestSession, account_id: int, code: str) -> str:
    async with TestSession() as session:
        try:
            await redeem(session, account_id, code)
        except LimitReached:
            return "limit"
        except AlreadyRedeemed:
            return "duplicate"
        return "ok"


def test_limit_holds_under_concurrent_redemptions(tmp_path):
    limit, extra = 3, 4

    async def run():
        engine, TestSession = await _setup_file_db(tmp_path / "race.db")
        async with TestSession() as session:
            gift_code = await create_gift_code(
                session,
                GiftCode(
                    code="RUSH",
                    prize_amount=Decimal("2.50"),
                    usage_limit=limit,
                    expires_at=utcnow() + timedelta(hours=1),
                ),
            )
            code_id = gift_code.id
            account_ids = []
            for i in range(limit + extra):
                account = await create_account(
                    session, Account(username=f"user{i}", password_hash=PASSWORD_HASH)
                )
                account_ids.append(account.id)

        outcomes = await asyncio.gather(
            *(_attempt(TestSession, account_id, "RUSH") for account_id in account_ids)
        )
        assert outcomes.count("ok") == limit
        assert outcomes.count("limit") == extra

        async with TestSession() as session:
            gift_code = await get_gift_code(session, code_id)
            assert gift_code.used_count == limit
            result = await session.execute(
                select(func.count()).select_from(Redemption)
            )
            assert result.scalar() == limit
            credited = 0
            for account_id in account_ids:
                account = await get_account(session, account_id)
                if account.balance == Decimal("2.50"):
                    credited += 1
                else:
                    assert account.balance == Decimal("0.00")
            assert credited == limit
        await engine.dispose()

    asyncio.run(run())


def test_same_account_cannot_redeem_twice_concurrently(tmp_path):
    async def run():
        engine, TestSession = await _setup_file_db(tmp_path / "dupe.db")
        async with TestSession() as session:
            await create_gift_code(
                session,
                GiftCode(
                    code="TWICE",
                    prize_amount=Decimal("1.00"),
                    usage_limit=10,
                    expires_at=utcnow() + timedelta(hours=1),
                ),
            )
            account = await create_account(
                session, Account(username="eager", password_hash=PASSWORD_HASH)
            )
            account_id = account.id

        outcomes = await asyncio.gather(
            *(_attempt(TestSession, account_id, "TWICE") for _ in range(4))
        )
        assert outcomes.count("ok") == 1
        assert outcomes.count("duplicate") == 3

        async with TestSession() as session:
            account = await get_account(session, account_id)
            assert account.balance == Decimal("1.00")
        await engine.dispose()

    asyncio.run(run())
