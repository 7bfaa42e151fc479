"""
Contract endpoints — metadata, deployments, on-chain stats, withdraw.
"""
import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from chain.runtime import Chain
from contracts.tune_tokenize.contract import TuneTokenize
from deps import get_chain, get_token_contract, require_dev_account
from models import ContractStatsResponse, DeploymentResponse, WithdrawRequest, WithdrawResponse
from services import deploy_service, token_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contract", tags=["contract"])


@router.get("/info")
async def get_contract_info(name: str = "tune_tokenize"):
    """Get contract export status and metadata."""
    try:
        return deploy_service.get_contract_info(name)
    except Exception as e:
        logger.error(f"Contract info failed for '{name}': {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve contract info. Check server logs.")


@router.get("/list")
async def list_contracts():
    """List all available contracts."""
    try:
        return {"contracts": deploy_service.list_contracts()}
    except Exception as e:
        logger.error(f"Contract listing failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to list contracts. Check server logs.")


@router.get("/deployments", response_model=list[DeploymentResponse])
async def list_deployments(
    token: TuneTokenize = Depends(get_token_contract),
):
    """Deployments on the current network (TuneTokenize is deployed on demand)."""
    return [DeploymentResponse(**asdict(d)) for d in deploy_service.registry.all()]


@router.get("/stats", response_model=ContractStatsResponse)
async def get_contract_stats(
    chain: Chain = Depends(get_chain),
    token: TuneTokenize = Depends(get_token_contract),
):
    """On-chain TuneTokenize state: owner, balance, next token id."""
    return ContractStatsResponse(**deploy_service.get_contract_stats(chain, deploy_service.registry))


@router.post("/withdraw", response_model=WithdrawResponse)
async def withdraw(
    request: WithdrawRequest,
    chain: Chain = Depends(get_chain),
    token: TuneTokenize = Depends(get_token_contract),
):
    """Send the contract balance to its owner. Only the owner may call."""
    require_dev_account(request.sender, chain)
    return WithdrawResponse(**token_service.withdraw(token, request.sender))
