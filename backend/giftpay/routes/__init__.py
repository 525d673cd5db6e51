"""Aggregate import for all API route modules."""

from . import (
    auth,
    users,
    redemptions,
    withdrawals,
    admin,
    config,
)

__all__ = [
    "auth",
    "users",
    "redemptions",
    "withdrawals",
    "admin",
    "config",
]
