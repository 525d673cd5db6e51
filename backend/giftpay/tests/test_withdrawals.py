"""Tests for the withdrawal request workflow."""

import asyncio
import pathlib
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlmodel import SQLModel

# Allow importing the giftpay package
sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

import giftpay.auth as auth
from giftpay.main import app
from giftpay.database import get_session
from giftpay.crud import create_account, get_account, increment_balance
from giftpay.errors import InvalidTransition, InsufficientBalance
from giftpay.models import Account
from giftpay.withdrawal import create_withdrawal, resolve_withdrawal

ADMIN_PASSWORD = "letmein"
PASSWORD_HASH = auth.get_password_hash("secret1")


async def _setup_test_db():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    TestSession = async_sessionmaker(engine, expire_on_commit=False)

    async def override_get_session():
        async with TestSession() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    return TestSession


async def _register_and_login(client, username: str) -> tuple[int, dict]:
    resp = await client.post(
        "/register", json={"username": username, "password": "secret1"}
    )
    assert resp.status_code == 200
    account_id = resp.json()["id"]
    resp = await client.post(
        "/login", json={"username": username, "password": "secret1"}
    )
    assert resp.status_code == 200
    return account_id, {"Authorization": f"Bearer {resp.json()['access_token']}"}


async def _elevate(client, headers: dict) -> dict:
    resp = await client.post(
        "/admin/login", headers=headers, json={"password": ADMIN_PASSWORD}
    )
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def test_withdrawal_requests_flow(monkeypatch):
    monkeypatch.setattr(auth, "ADMIN_PASSWORD", ADMIN_PASSWORD)

    async def run():
        await _setup_test_db()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            _, admin_headers = await _register_and_login(client, "boss")
            admin_headers = await _elevate(client, admin_headers)
            user_id, user_headers = await _register_and_login(client, "saver")

            # Admin issues a code worth 20.00 and the user redeems it
            expires = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()
            resp = await client.post(
                "/admin/gift-codes",
                headers=admin_headers,
                json={
                    "code": "CASH20",
                    "prize_amount": "20.00",
                    "usage_limit": 1,
                    "expires_at": expires,
                },
            )
            assert resp.status_code == 200
            resp = await client.post(
                "/redeem", headers=user_headers, json={"code": "CASH20"}
            )
            assert resp.status_code == 200
            assert resp.json()["prize_amount"] == "20.00"
            assert resp.json()["balance"] == "20.00"

            # Below the minimum
            resp = await client.post(
                "/withdraw",
                headers=user_headers,
                json={"amount": "4.99", "upi_id": "saver@upi"},
            )
            assert resp.status_code == 400
            assert resp.json()["code"] == "withdrawal_below_minimum"

            # More than the balance
            resp = await client.post(
                "/withdraw",
                headers=user_headers,
                json={"amount": "20.01", "upi_id": "saver@upi"},
            )
            assert resp.status_code == 400
            assert resp.json()["code"] == "insufficient_balance"

            # Blank payout address
            resp = await client.post(
                "/withdraw",
                headers=user_headers,
                json={"amount": "5.00", "upi_id": "   "},
            )
            assert resp.status_code == 400
            assert resp.json()["code"] == "invalid_payout_address"

            # Floats are rejected before reaching the withdrawal rules
            resp = await client.post(
                "/withdraw",
                headers=user_headers,
                json={"amount": 5.5, "upi_id": "saver@upi"},
            )
            assert resp.status_code == 400
            body = resp.json()
            assert body["code"] == "validation_error"
            assert body["errors"][0]["field"] == "amount"

            # Exactly the balance is allowed
            resp = await client.post(
                "/withdraw",
                headers=user_headers,
                json={"amount": "20.00", "upi_id": "saver@upi"},
            )
            assert resp.status_code == 200
            w1 = resp.json()
            assert w1["status"] == "pending"
            assert w1["amount"] == "20.00"
            assert w1["account_id"] == user_id

            # The pending request already covers the whole balance
            resp = await client.post(
                "/withdraw",
                headers=user_headers,
                json={"amount": "5.00", "upi_id": "saver@upi"},
            )
            assert resp.status_code == 400
            assert resp.json()["code"] == "insufficient_balance"

            resp = await client.get("/withdrawals/mine", headers=user_headers)
            assert resp.status_code == 200
            assert [r["id"] for r in resp.json()] == [w1["id"]]

            # Regular tokens cannot resolve requests
            resp = await client.patch(
                f"/admin/withdrawals/{w1['id']}",
                headers=user_headers,
                json={"status": "approved"},
            )
            assert resp.status_code == 403

            resp = await client.get(
                "/admin/withdrawals", headers=admin_headers, params={"status": "pending"}
            )
            assert resp.status_code == 200
            assert [r["id"] for r in resp.json()] == [w1["id"]]

            resp = await client.patch(
                f"/admin/withdrawals/{w1['id']}",
                headers=admin_headers,
                json={"status": "approved"},
            )
            assert resp.status_code == 200
            approved = resp.json()
            assert approved["status"] == "approved"

            resp = await client.get("/user", headers=user_headers)
            assert resp.json()["balance"] == "0.00"

            # Terminal: a later decision is refused and changes nothing
            resp = await client.patch(
                f"/admin/withdrawals/{w1['id']}",
                headers=admin_headers,
                json={"status": "declined"},
            )
            assert resp.status_code == 409
            assert resp.json()["code"] == "invalid_transition"

            resp = await client.get("/admin/withdrawals", headers=admin_headers)
            assert resp.json()[0]["status"] == "approved"
            assert resp.json()[0]["updated_at"] == approved["updated_at"]

            # Unknown request
            resp = await client.patch(
                "/admin/withdrawals/999",
                headers=admin_headers,
                json={"status": "declined"},
            )
            assert resp.status_code == 404

            # Only approved/declined are valid decisions
            resp = await client.patch(
                f"/admin/withdrawals/{w1['id']}",
                headers=admin_headers,
                json={"status": "pending"},
            )
            assert resp.status_code == 400

    asyncio.run(run())


def test_declined_request_keeps_balance_and_stays_declined():
    async def run():
        TestSession = await _setup_test_db()
        async with TestSession() as session:
            account = await create_account(
                session, Account(username="ann", password_hash=PASSWORD_HASH)
            )
            account_id = account.id
            await increment_balance(session, account_id, Decimal("12.00"))
            await session.commit()

            req = await create_withdrawal(session, account_id, Decimal("7.00"), "ann@upi")
            request_id = req.id
            req = await resolve_withdrawal(session, request_id, "declined")
            assert req.status == "declined"

            with pytest.raises(InvalidTransition):
                await resolve_withdrawal(session, request_id, "approved")
            with pytest.raises(InvalidTransition):
                await resolve_withdrawal(session, request_id, "declined")

            account = await get_account(session, account_id)
            assert account.balance == Decimal("12.00")

    asyncio.run(run())


def test_approval_never_overdraws():
    async def run():
        TestSession = await _setup_test_db()
        async with TestSession() as session:
            account = await create_account(
                session, Account(username="ben", password_hash=PASSWORD_HASH)
            )
            account_id = account.id
            await increment_balance(session, account_id, Decimal("10.00"))
            await session.commit()

            req = await create_withdrawal(session, account_id, Decimal("8.00"), "ben@upi")
            request_id = req.id

            # Balance drops out of band before the admin gets to the request
            account = await get_account(session, account_id)
            account.balance = Decimal("3.00")
            await session.commit()

            with pytest.raises(InsufficientBalance):
                await resolve_withdrawal(session, request_id, "approved")

            req = await resolve_withdrawal(session, request_id, "declined")
            assert req.status == "declined"
            account = await get_account(session, account_id)
            assert account.balance == Decimal("3.00")

    asyncio.run(run())
