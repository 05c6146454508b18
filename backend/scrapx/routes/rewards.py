"""
RECYCLE token reward routes: sellers claim one payout per sold listing
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_active_user
from ..config import settings
from ..core.logging import get_logger
from ..database import get_db
from ..enums.listing import ListingStatus, RewardStatus
from ..models.token_reward import TokenReward
from ..models.user import User
from ..schemas.reward import RewardClaimRequest, RewardResponse
from ..utils.token_rewards import RewardTransferError, normalize_wallet_address, send_reward_tokens
from .listings import get_listing_or_404

logger = get_logger(__name__)
router = APIRouter()


def _reserve_claim(db: Session, listing_id: int, user: User, wallet_address: str) -> TokenReward:
    """
    Commit a pending reward row for the listing before any tokens move.
    A failed reward is taken over in place; anything else already claims the listing.

    Raises:
        HTTPException: 409 when the listing is already paid or being claimed
    """
    claim = {
        TokenReward.user_id: user.id,
        TokenReward.wallet_address: wallet_address,
        TokenReward.amount: settings.reward_token_amount,
        TokenReward.tx_hash: None,
        TokenReward.status: RewardStatus.PENDING,
        TokenReward.updated_by: user.username,
    }
    retried = db.query(TokenReward).filter(
        TokenReward.listing_id == listing_id,
        TokenReward.status == RewardStatus.FAILED
    ).update(claim, synchronize_session=False)

    if not retried:
        db.add(TokenReward(
            listing_id=listing_id,
            user_id=user.id,
            wallet_address=wallet_address,
            amount=settings.reward_token_amount,
            status=RewardStatus.PENDING,
            created_by=user.username,
        ))

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A reward has already been claimed for this listing"
        )

    return db.query(TokenReward).filter(TokenReward.listing_id == listing_id).one()


@router.get("/config")
def get_reward_config():
    """Whether rewards are enabled, and which token and chain they use"""
    return {
        "enabled": settings.rewards_configured(),
        "token_address": settings.reward_token_address,
        "chain_id": settings.reward_chain_id,
        "amount": settings.reward_token_amount,
    }


@router.post("/claim", response_model=RewardResponse, status_code=status.HTTP_201_CREATED)
async def claim_reward(
    claim: RewardClaimRequest,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Send RECYCLE tokens to the seller's wallet for a sold listing.
    A failed transfer is recorded and may be claimed again.
    """
    if not settings.rewards_configured():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Token rewards are not configured")

    wallet_address = normalize_wallet_address(claim.wallet_address)
    listing = get_listing_or_404(db, claim.listing_id)
    if listing.seller_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the seller can claim a reward for this listing"
        )
    if listing.status != ListingStatus.SOLD:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Rewards can only be claimed for sold listings"
        )

    reward = _reserve_claim(db, listing.id, current_user, wallet_address)

    try:
        tx_hash = await run_in_threadpool(send_reward_tokens, wallet_address)
    except RewardTransferError as e:
        reward.status = RewardStatus.FAILED
        reward.tx_hash = None
        db.commit()
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Token transfer failed: {e}")

    reward.status = RewardStatus.SENT
    reward.tx_hash = tx_hash
    current_user.wallet_address = wallet_address
    try:
        db.commit()
        db.refresh(reward)
    except Exception as e:
        db.rollback()
        # The row stays pending, so the listing cannot be paid a second time
        logger.error(f"Reward for listing {listing.id} sent in {tx_hash} but not recorded: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Tokens were sent ({tx_hash}) but the reward could not be recorded"
        )

    logger.info(f"Reward for listing {listing.id} sent to {wallet_address}")
    return reward


@router.get("/mine", response_model=List[RewardResponse])
def get_my_rewards(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return db.query(TokenReward).filter(
        TokenReward.user_id == current_user.id
    ).order_by(TokenReward.created_at.desc(), TokenReward.id.desc()).all()
