from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from giftpay.database import get_session
from giftpay.auth import get_current_account
from giftpay.models import Account
from giftpay.schemas import GiftCodeRedeem, RedeemResponse, RedemptionRead
from giftpay.crud import get_account, list_redemptions_by_account
from giftpay.redemption import redeem

router = APIRouter(tags=["redemptions"])


@router.post("/redeem", response_model=RedeemResponse)
async def redeem_route(
    data: GiftCodeRedeem,
    db: AsyncSession = Depends(get_session),
    current: Account = Depends(get_current_account),
):
    account_id = current.id
    prize = await redeem(db, account_id, data.code)
    account = await get_account(db, account_id)
    return RedeemResponse(
        message="Gift code redeemed successfully",
        prize_amount=prize,
        balance=account.balance,
    )


@router.get("/redemptions", response_model=list[RedemptionRead])
async def list_my_redemptions(
    db: AsyncSession = Depends(get_session),
    current: Account = Depends(get_current_account),
):
    redemptions = await list_redemptions_by_account(db, current.id)
    return [
        RedemptionRead(
            id=r.id,
            gift_code_id=r.gift_code_id,
            code=r.gift_code.code,
            prize_amount=r.prize_amount,
            redeemed_at=r.redeemed_at,
        )
        for r in redemptions
    ]
