"""
Tests for the token service (mint, burn, transfer, withdraw, reads).
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest

from chain.runtime import ZERO_ADDRESS
from contracts.tune_tokenize.contract import CanOnlyBeBurnedIfOwnedByMinter, NeedMoreETHSent
from exceptions import ContractRevert
from services import token_service
from tests.conftest import ONE_ETH, TOKEN_URI


class TestFormatEth:
    """Tests for format_eth()."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "wei, expected",
        [
            (0, "0"),
            (ONE_ETH, "1"),
            (ONE_ETH // 4, "0.25"),
            (1, "0.000000000000000001"),
            (100 * ONE_ETH, "100"),
            (10_000 * ONE_ETH + ONE_ETH // 2, "10000.5"),
        ],
    )
    def test_format(self, wei, expected):
        assert token_service.format_eth(wei) == expected


class TestReads:
    """Tests for price and token reads."""

    @pytest.mark.unit
    def test_price_info(self, deployed):
        info = token_service.get_price_info(deployed.token)
        assert info["price"] == 200 * 10 ** 18
        assert info["decimals"] == 18
        assert info["roundId"] == 1
        assert info["priceFeed"] == deployed.mock.address

    @pytest.mark.unit
    def test_mint_price(self, deployed):
        assert token_service.get_mint_price(deployed.token) == {"wei": ONE_ETH // 4, "eth": "0.25"}

    @pytest.mark.unit
    def test_get_token_and_balance(self, deployed):
        minted = token_service.mint(deployed.token, deployed.accounts[1], TOKEN_URI)
        info = token_service.get_token(deployed.token, minted["tokenId"])
        assert info == {
            "tokenId": minted["tokenId"],
            "owner": deployed.accounts[1],
            "minter": deployed.accounts[1],
            "tokenUri": TOKEN_URI,
        }
        assert token_service.get_balance(deployed.token, deployed.accounts[1].lower()) == {
            "wallet": deployed.accounts[1],
            "balance": 1,
        }

    @pytest.mark.unit
    def test_get_missing_token_reverts(self, deployed):
        with pytest.raises(ContractRevert):
            token_service.get_token(deployed.token, 7)


class TestMint:
    """Tests for token_service.mint()."""

    @pytest.mark.unit
    def test_defaults_to_the_mint_price(self, deployed):
        result = token_service.mint(deployed.token, deployed.accounts[1], TOKEN_URI)
        assert result["tokenId"] == 1
        assert result["paidWei"] == ONE_ETH // 4
        assert result["owner"] == deployed.accounts[1]
        assert result["blockNumber"] == deployed.chain.block_number
        assert deployed.token.balance == ONE_ETH // 4

    @pytest.mark.unit
    def test_accepts_lowercase_sender(self, deployed):
        result = token_service.mint(deployed.token, deployed.accounts[1].lower(), TOKEN_URI)
        assert result["owner"] == deployed.accounts[1]

    @pytest.mark.unit
    def test_underpayment_propagates_revert(self, deployed):
        with pytest.raises(NeedMoreETHSent):
            token_service.mint(deployed.token, deployed.accounts[1], TOKEN_URI, value_wei=1)


class TestBurnAndTransfer:
    """Tests for burn() and transfer()."""

    @pytest.mark.unit
    def test_burn_returns_remaining_balance(self, deployed):
        sender = deployed.accounts[1]
        token_service.mint(deployed.token, sender, TOKEN_URI)
        second = token_service.mint(deployed.token, sender, "second")
        result = token_service.burn(deployed.token, sender, second["tokenId"])
        assert result["balance"] == 1
        assert deployed.token.minters(second["tokenId"]) == ZERO_ADDRESS

    @pytest.mark.unit
    def test_transfer_moves_ownership(self, deployed):
        sender, to = deployed.accounts[1], deployed.accounts[2]
        minted = token_service.mint(deployed.token, sender, TOKEN_URI)
        result = token_service.transfer(deployed.token, sender, to, minted["tokenId"])
        assert result["from"] == sender
        assert result["to"] == to
        assert deployed.token.owner_of(minted["tokenId"]) == to

        with pytest.raises(CanOnlyBeBurnedIfOwnedByMinter):
            token_service.burn(deployed.token, to, minted["tokenId"])

    @pytest.mark.unit
    def test_transfer_by_stranger_reverts(self, deployed):
        minted = token_service.mint(deployed.token, deployed.accounts[1], TOKEN_URI)
        with pytest.raises(ContractRevert, match="not token owner or approved"):
            token_service.transfer(deployed.token, deployed.accounts[2], deployed.accounts[2], minted["tokenId"])


class TestWithdraw:
    """Tests for token_service.withdraw()."""

    @pytest.mark.unit
    def test_withdraw_reports_amount(self, deployed):
        token_service.mint(deployed.token, deployed.accounts[1], TOKEN_URI, value_wei=ONE_ETH)
        result = token_service.withdraw(deployed.token, deployed.deployer)
        assert result["amountWei"] == ONE_ETH
        assert result["amountEth"] == "1"
        assert result["owner"] == deployed.deployer
        assert deployed.token.balance == 0
