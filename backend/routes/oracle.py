"""
Price feed endpoints — read the mock aggregator and push new answers.

Updating the answer is only possible on development chains, where the
feed is the locally deployed MockV3Aggregator.
"""
import logging

from fastapi import APIRouter, Depends

from contracts.mock_v3_aggregator.contract import MockV3Aggregator
from deps import get_price_feed_contract
from models import UpdateAnswerRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oracle", tags=["oracle"])


def _round(feed: MockV3Aggregator) -> dict:
    data = feed.latest_round_data()
    return {
        "address": feed.address,
        "decimals": feed.decimals(),
        "roundId": data.round_id,
        "answer": data.answer,
        "startedAt": data.started_at,
        "updatedAt": data.updated_at,
        "answeredInRound": data.answered_in_round,
    }


@router.get("/latest")
async def get_latest_round(feed: MockV3Aggregator = Depends(get_price_feed_contract)):
    """Latest round of the mock price feed."""
    return _round(feed)


@router.post("/answer")
async def update_answer(
    request: UpdateAnswerRequest,
    feed: MockV3Aggregator = Depends(get_price_feed_contract),
):
    """Start a new round with the given answer."""
    receipt = feed.update_answer(request.answer)
    logger.info(f"Price feed answer set to {request.answer} (round {feed.latest_round()})")
    return {"txHash": receipt.tx_hash, **_round(feed)}
