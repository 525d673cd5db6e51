from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from giftpay.database import get_session
from giftpay.auth import get_current_account
from giftpay.models import Account
from giftpay.crud import get_withdrawal_requests_by_account
from giftpay.schemas import WithdrawalRequestCreate, WithdrawalRequestRead
from giftpay.withdrawal import create_withdrawal

router = APIRouter(tags=["withdrawals"])


@router.post("/withdraw", response_model=WithdrawalRequestRead)
async def request_withdrawal(
    data: WithdrawalRequestCreate,
    db: AsyncSession = Depends(get_session),
    current: Account = Depends(get_current_account),
):
    return await create_withdrawal(db, current.id, data.amount, data.upi_id)


@router.get("/withdrawals/mine", response_model=list[WithdrawalRequestRead])
async def my_requests(
    db: AsyncSession = Depends(get_session),
    current: Account = Depends(get_current_account),
):
    return await get_withdrawal_requests_by_account(db, current.id)
