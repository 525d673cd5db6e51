"""Database models used by GiftPay.

The models are defined with SQLModel (built on SQLAlchemy and Pydantic)
and represent accounts, gift codes, redemptions and withdrawal requests.
Monetary columns are ``NUMERIC(10, 2)`` and map to ``Decimal``.
"""

from typing import Optional, List
from datetime import datetime, timezone
from decimal import Decimal
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import CheckConstraint, DateTime, UniqueConstraint


def utcnow() -> datetime:
    """Server clock as a naive UTC datetime.

    Timestamp columns are plain ``DateTime`` without a time zone; every stored
    value is UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Account(SQLModel, table=True):
    """Registered user holding a redeemable balance."""

    __table_args__ = (CheckConstraint("balance >= 0", name="ck_account_balance"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True)
    password_hash: str
    balance: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    is_admin: bool = False
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())

    redemptions: List["Redemption"] = Relationship(back_populates="account")
    withdrawal_requests: List["WithdrawalRequest"] = Relationship(
        back_populates="account"
    )


class GiftCode(SQLModel, table=True):
    """Redeemable code worth ``prize_amount``, usable ``usage_limit`` times."""

    __table_args__ = (
        CheckConstraint("usage_limit > 0", name="ck_giftcode_usage_limit"),
        CheckConstraint(
            "used_count >= 0 AND used_count <= usage_limit",
            name="ck_giftcode_used_count",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(unique=True, index=True)
    prize_amount: Decimal = Field(max_digits=10, decimal_places=2)
    usage_limit: int
    used_count: int = 0
    expires_at: datetime = Field(sa_type=DateTime())
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())

    redemptions: List["Redemption"] = Relationship(back_populates="gift_code")


class Redemption(SQLModel, table=True):
    """Audit record that an account consumed a gift code.

    The unique constraint is what prevents a code from being claimed twice
    by the same account when two requests race.
    """

    __table_args__ = (
        UniqueConstraint("account_id", "gift_code_id", name="uq_redemption_account_code"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: int = Field(foreign_key="account.id", index=True)
    gift_code_id: int = Field(foreign_key="giftcode.id", index=True)
    prize_amount: Decimal = Field(max_digits=10, decimal_places=2)
    redeemed_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())

    account: Account = Relationship(back_populates="redemptions")
    gift_code: GiftCode = Relationship(back_populates="redemptions")


class WithdrawalRequest(SQLModel, table=True):
    """Cash-out request awaiting an administrator's decision."""

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: int = Field(foreign_key="account.id", index=True)
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    upi_id: str
    status: str = "pending"  # pending, approved, declined
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())

    account: Account = Relationship(back_populates="withdrawal_requests")
