"""
Health check endpoint.
"""
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from chain_client import chain_client
from config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Health check — verifies the chain for the configured network is reachable."""
    try:
        chain = chain_client.chain
        return {
            "status": "healthy",
            "chain_connected": True,
            "network": settings.network,
            "chain_id": chain.chain_id,
            "block_number": chain.block_number,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "chain_connected": False,
                "network": settings.network,
                "error": str(e),
            },
        )
