"""
Development account derivation.

Accounts are derived from a BIP-39 mnemonic along the standard Ethereum
path, so the default mnemonic yields the same addresses as a stock local
development node (account 0 is 0xf39F...2266).
"""
import logging
from typing import List

from eth_account import Account
from eth_account.signers.local import LocalAccount

logger = logging.getLogger(__name__)

DEFAULT_MNEMONIC = "test test test test test test test test test test test junk"
DERIVATION_PATH = "m/44'/60'/0'/0/{index}"

Account.enable_unaudited_hdwallet_features()


def derive_dev_accounts(mnemonic: str = DEFAULT_MNEMONIC, count: int = 10) -> List[LocalAccount]:
    """
    Derive `count` accounts from a mnemonic.

    Args:
        mnemonic: Space-separated BIP-39 phrase
        count: Number of accounts (index 0 is the default signer)

    Returns:
        List of eth_account LocalAccount objects
    """
    if count < 1:
        raise ValueError(f"count must be at least 1, got {count}")

    accounts = [
        Account.from_mnemonic(mnemonic, account_path=DERIVATION_PATH.format(index=i))
        for i in range(count)
    ]
    logger.debug(f"Derived {count} dev accounts (first: {accounts[0].address})")
    return accounts


def generate_account() -> LocalAccount:
    """Create a fresh random account."""
    return Account.create()
