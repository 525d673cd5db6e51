"""Schemas for withdrawal requests and admin responses."""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from pydantic import BaseModel, Field, field_validator

from giftpay.money import parse_amount


class WithdrawalRequestCreate(BaseModel):
    model_config = {"extra": "forbid"}

    amount: Decimal
    # Free text; blank values are rejected by the withdrawal rules.
    upi_id: str = Field(max_length=255)

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value):
        return parse_amount(value)


class WithdrawalRequestRead(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    account_id: int
    amount: Decimal
    upi_id: str
    status: str
    created_at: datetime
    updated_at: datetime


class WithdrawalDecision(BaseModel):
    model_config = {"extra": "forbid"}

    status: Literal["approved", "declined"]
