from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from giftpay.schemas import AccountResponse
from giftpay.models import Account
from giftpay.database import get_session
from giftpay.crud import get_account
from giftpay.auth import get_current_account

router = APIRouter(tags=["users"])


@router.get("/user", response_model=AccountResponse)
async def read_current_account(
    db: AsyncSession = Depends(get_session),
    current: Account = Depends(get_current_account),
):
    """Return details for the authenticated account."""
    return await get_account(db, current.id)
