# giftpay/schemas/user.py

from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field


class AccountCreate(BaseModel):
    model_config = {"extra": "forbid"}

    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=6, max_length=128)


class AccountLogin(BaseModel):
    model_config = {"extra": "forbid"}

    username: str
    password: str


class AccountResponse(BaseModel):
    """Account as exposed to clients; never includes the password hash."""

    model_config = {"from_attributes": True}

    id: int
    username: str
    balance: Decimal
    is_admin: bool
    created_at: datetime


class AdminLogin(BaseModel):
    model_config = {"extra": "forbid"}

    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
