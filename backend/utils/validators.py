"""
Input validation utilities for the Tune Tokenize backend.

Provides reusable validators for Ethereum addresses and other inputs.
Every wallet parameter is checked for format and, when mixed-case,
for its EIP-55 checksum.
"""
from eth_utils import is_address, to_checksum_address
from fastapi import HTTPException, Path, Query


def validate_eth_address(address: str) -> str:
    """
    Validate an Ethereum address format and checksum.

    Args:
        address: 0x-prefixed hex address

    Returns:
        The checksummed address

    Raises:
        HTTPException(400) if the address is invalid
    """
    if not address:
        raise HTTPException(status_code=400, detail="Wallet address is required")

    if len(address) != 42 or not address.startswith("0x"):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid Ethereum address: expected 0x + 40 hex characters, got {len(address)} characters"
        )

    if not is_address(address):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid Ethereum address checksum: {address[:12]}..."
        )

    return to_checksum_address(address)


def validated_wallet(wallet: str = Path(..., description="Ethereum wallet address")) -> str:
    """FastAPI dependency for validating wallet path parameters."""
    return validate_eth_address(wallet)


def validated_wallet_query(wallet: str = Query(..., description="Ethereum wallet address")) -> str:
    """FastAPI dependency for validating wallet query parameters."""
    return validate_eth_address(wallet)
