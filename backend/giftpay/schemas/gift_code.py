from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from giftpay.money import parse_amount


class GiftCodeCreate(BaseModel):
    """Admin input for issuing a code.

    ``code`` may be omitted, in which case a random one is generated.
    """

    model_config = {"extra": "forbid"}

    code: Optional[str] = Field(default=None, min_length=1, max_length=64)
    prize_amount: Decimal
    usage_limit: int = Field(gt=0)
    expires_at: datetime

    @field_validator("prize_amount", mode="before")
    @classmethod
    def _parse_prize(cls, value):
        amount = parse_amount(value)
        if amount <= 0:
            raise ValueError("prize amount must be positive")
        return amount

    @field_validator("code")
    @classmethod
    def _strip_code(cls, value):
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("code must not be blank")
        return value

    @field_validator("expires_at")
    @classmethod
    def _to_naive_utc(cls, value: datetime) -> datetime:
        # Timestamps are stored as naive UTC.
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class GiftCodeRead(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    code: str
    prize_amount: Decimal
    usage_limit: int
    used_count: int
    expires_at: datetime
    is_active: bool
    created_at: datetime


class GiftCodeRedeem(BaseModel):
    model_config = {"extra": "forbid"}

    code: str = Field(min_length=1, max_length=64)

    @field_validator("code")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class RedeemResponse(BaseModel):
    message: str
    prize_amount: Decimal
    balance: Decimal


class RedemptionRead(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    gift_code_id: int
    code: str
    prize_amount: Decimal
    redeemed_at: datetime
