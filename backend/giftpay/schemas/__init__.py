"""Convenience imports for all schema classes used by the API."""

from .user import (
    AccountCreate,
    AccountLogin,
    AccountResponse,
    AdminLogin,
    Token,
)
from .gift_code import (
    GiftCodeCreate,
    GiftCodeRead,
    GiftCodeRedeem,
    RedeemResponse,
    RedemptionRead,
)
from .withdrawal import (
    WithdrawalRequestCreate,
    WithdrawalRequestRead,
    WithdrawalDecision,
)

__all__ = [
    "AccountCreate",
    "AccountLogin",
    "AccountResponse",
    "AdminLogin",
    "Token",
    "GiftCodeCreate",
    "GiftCodeRead",
    "GiftCodeRedeem",
    "RedeemResponse",
    "RedemptionRead",
    "WithdrawalRequestCreate",
    "WithdrawalRequestRead",
    "WithdrawalDecision",
]
