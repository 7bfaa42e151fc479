"""
Domain enums (minimal set used for clarity in services).
"""

from enum import Enum


class TokenEventType(str, Enum):
    MINTED = "Minted"
    TRANSFER = "Transfer"
    APPROVAL = "Approval"
    APPROVAL_FOR_ALL = "ApprovalForAll"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"
