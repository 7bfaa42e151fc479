"""
Tests for the TuneTokenize contract on the development chain.

Tests: metadata, price feed reads, minting, burning, withdraw, rollback.
Every test starts from the same deployment (MockV3Aggregator at $200/ETH).
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest

from chain.contract import Contract, external, view
from chain.runtime import ZERO_ADDRESS
from contracts.common.erc721 import ERC721_RECEIVED
from contracts.tune_tokenize.contract import (
    CanOnlyBeBurnedIfOwnedByMinter,
    InvalidPrice,
    InvalidTokenUri,
    NeedMoreETHSent,
    NothingToWithdraw,
    TransferFailed,
    TuneTokenize,
)
from exceptions import ContractRevert
from tests.conftest import ONE_ETH, TOKEN_URI

QUARTER_ETH = ONE_ETH // 4


def _mint(deployed, sender=None, uri=TOKEN_URI, value=ONE_ETH):
    receipt = deployed.token.mint_token(uri, sender=sender or deployed.deployer, value=value)
    return receipt.events("Minted")[0].args["tokenId"]


class TestMetadata:
    """Tests for the token's ERC-721 metadata."""

    @pytest.mark.contract
    def test_name_and_symbol(self, deployed):
        assert deployed.token.name() == "Tune Tokenize"
        assert deployed.token.symbol() == "TT"

    @pytest.mark.contract
    def test_deployer_is_owner(self, deployed):
        assert deployed.token.owner() == deployed.deployer

    @pytest.mark.contract
    def test_token_ids_start_at_one(self, deployed):
        assert deployed.token.get_current_token_id() == 1

    @pytest.mark.contract
    def test_price_feed_is_the_mock(self, deployed):
        assert deployed.token.price_feed() == deployed.mock.address


class TestGetLatestPrice:
    """Tests for get_latest_price()."""

    @pytest.mark.contract
    def test_returns_the_same_value_as_the_mock(self, deployed):
        assert deployed.token.get_latest_price() == deployed.mock.latest_round_data().answer

    @pytest.mark.contract
    def test_follows_price_updates(self, deployed):
        deployed.mock.update_answer(3000 * 10 ** 18)
        assert deployed.token.get_latest_price() == 3000 * 10 ** 18


class TestGetMintPriceEth:
    """Tests for get_mint_price_eth()."""

    @pytest.mark.contract
    def test_fifty_dollars_at_two_hundred_is_a_quarter_eth(self, deployed):
        assert deployed.token.get_mint_price_eth() == QUARTER_ETH

    @pytest.mark.contract
    def test_price_drop_raises_the_fee(self, deployed):
        before = deployed.token.get_mint_price_eth()
        deployed.mock.update_answer(100 * 10 ** 18)
        assert deployed.token.get_mint_price_eth() == 2 * before

    @pytest.mark.contract
    def test_zero_answer_is_invalid(self, deployed):
        deployed.mock.update_answer(0)
        with pytest.raises(InvalidPrice):
            deployed.token.get_mint_price_eth()

    @pytest.mark.contract
    def test_negative_answer_is_invalid(self, deployed):
        deployed.mock.update_answer(-1)
        with pytest.raises(InvalidPrice):
            deployed.token.get_mint_price_eth()

    @pytest.mark.contract
    def test_minting_reverts_while_the_price_is_invalid(self, deployed):
        deployed.mock.update_answer(0)
        with pytest.raises(InvalidPrice):
            deployed.token.mint_token(TOKEN_URI, value=ONE_ETH)
        assert deployed.token.get_current_token_id() == 1


class TestMintToken:
    """Tests for mint_token()."""

    @pytest.mark.contract
    @pytest.mark.parametrize("payment", ["nothing", "below_fee", "above_fee"])
    def test_fails_if_there_is_no_token_uri(self, deployed, payment):
        price = deployed.token.get_mint_price_eth()
        value = {"nothing": 0, "below_fee": price - 1, "above_fee": ONE_ETH}[payment]
        with pytest.raises(InvalidTokenUri) as exc_info:
            deployed.token.mint_token("", value=value)
        assert exc_info.value.reason == "TuneTokenize__InvalidTokenUri"

    @pytest.mark.contract
    def test_reverts_if_payment_is_below_the_mint_fee(self, deployed):
        price = deployed.token.get_mint_price_eth()
        with pytest.raises(NeedMoreETHSent):
            deployed.token.mint_token(TOKEN_URI, value=price - 1)

    @pytest.mark.contract
    def test_exact_fee_is_accepted(self, deployed):
        price = deployed.token.get_mint_price_eth()
        deployed.token.mint_token(TOKEN_URI, value=price)
        assert deployed.token.balance_of(deployed.deployer) == 1
        assert deployed.token.balance == price

    @pytest.mark.contract
    def test_increments_the_token_id(self, deployed):
        before = deployed.token.get_current_token_id()
        _mint(deployed)
        assert deployed.token.get_current_token_id() == before + 1

    @pytest.mark.contract
    def test_emits_minted_and_sets_uri_and_minter(self, deployed):
        receipt = deployed.token.mint_token(TOKEN_URI, value=ONE_ETH)
        events = receipt.events("Minted")
        assert len(events) == 1
        assert events[0].args == {"tokenId": 1, "tokenURI": TOKEN_URI}

        token_id = events[0].args["tokenId"]
        assert deployed.token.token_uri(token_id) == TOKEN_URI
        assert deployed.token.minters(token_id) == deployed.deployer
        assert deployed.token.owner_of(token_id) == deployed.deployer

    @pytest.mark.contract
    def test_mint_emits_transfer_from_zero_before_minted(self, deployed):
        receipt = deployed.token.mint_token(TOKEN_URI, value=ONE_ETH)
        assert [log.event for log in receipt.logs] == ["Transfer", "Minted"]
        transfer = receipt.logs[0].args
        assert transfer == {"from": ZERO_ADDRESS, "to": deployed.deployer, "tokenId": 1}

    @pytest.mark.contract
    def test_newest_token_is_current_id_minus_one(self, deployed):
        _mint(deployed)
        _mint(deployed, uri="second")
        newest = deployed.token.get_current_token_id() - 1
        assert deployed.token.token_uri(newest) == "second"

    @pytest.mark.contract
    def test_excess_payment_is_retained(self, deployed):
        sender = deployed.accounts[1]
        start = deployed.chain.balance_of(sender)
        _mint(deployed, sender=sender, value=ONE_ETH)
        assert deployed.token.balance == ONE_ETH
        assert deployed.chain.balance_of(sender) == start - ONE_ETH

    @pytest.mark.contract
    def test_failed_mint_leaves_no_partial_state(self, deployed):
        sender = deployed.accounts[1]
        start = deployed.chain.balance_of(sender)
        block = deployed.chain.block_number
        with pytest.raises(NeedMoreETHSent):
            deployed.token.mint_token(TOKEN_URI, sender=sender, value=1)

        assert deployed.chain.balance_of(sender) == start
        assert deployed.token.balance == 0
        assert deployed.token.get_current_token_id() == 1
        assert deployed.token.balance_of(sender) == 0
        assert deployed.chain.block_number == block

    @pytest.mark.contract
    def test_caught_failed_mint_refunds_the_calling_contract(self, deployed):
        minter = deployed.chain.deploy(CatchingMinter, deployed.token.address)
        deployed.chain.set_balance(minter.address, ONE_ETH)

        receipt = minter.try_mint(1000)

        assert receipt.return_value is False
        assert deployed.token.balance == 0
        assert minter.balance == ONE_ETH
        assert deployed.token.get_current_token_id() == 1
        with pytest.raises(NothingToWithdraw):
            deployed.token.withdraw()

    @pytest.mark.contract
    def test_fee_follows_the_oracle(self, deployed):
        deployed.mock.update_answer(400 * 10 ** 18)
        price = deployed.token.get_mint_price_eth()
        assert price == ONE_ETH // 8
        deployed.token.mint_token(TOKEN_URI, value=price)
        assert deployed.token.balance == price

    @pytest.mark.contract
    def test_mint_to_contract_without_receiver_hook_reverts(self, deployed):
        caller = deployed.chain.deploy(MintingContract, deployed.token.address)
        deployed.chain.set_balance(caller.address, ONE_ETH)
        with pytest.raises(ContractRevert) as exc_info:
            caller.mint(TOKEN_URI, ONE_ETH)
        assert "non ERC721Receiver" in exc_info.value.reason

    @pytest.mark.contract
    def test_mint_to_receiving_contract_succeeds(self, deployed):
        receiver = deployed.chain.deploy(ReceivingContract, deployed.token.address)
        deployed.chain.set_balance(receiver.address, ONE_ETH)
        receiver.mint(TOKEN_URI, ONE_ETH)
        assert deployed.token.owner_of(1) == receiver.address
        assert deployed.token.minters(1) == receiver.address


class TestBurn:
    """Tests for burn()."""

    @pytest.mark.contract
    def test_non_minter_cannot_burn(self, deployed):
        _mint(deployed)
        token_id = deployed.token.get_current_token_id() - 1
        with pytest.raises(CanOnlyBeBurnedIfOwnedByMinter):
            deployed.token.burn(token_id, sender=deployed.accounts[1])

    @pytest.mark.contract
    def test_burn_reduces_owner_balance(self, deployed):
        _mint(deployed)
        before = deployed.token.balance_of(deployed.deployer)
        token_id = deployed.token.get_current_token_id() - 1
        deployed.token.burn(token_id)
        assert deployed.token.balance_of(deployed.deployer) == before - 1

    @pytest.mark.contract
    def test_burn_deletes_token_and_minter(self, deployed):
        token_id = _mint(deployed)
        receipt = deployed.token.burn(token_id)

        transfer = receipt.events("Transfer")[0].args
        assert transfer["to"] == ZERO_ADDRESS
        assert deployed.token.minters(token_id) == ZERO_ADDRESS
        with pytest.raises(ContractRevert, match="invalid token ID"):
            deployed.token.owner_of(token_id)
        with pytest.raises(ContractRevert, match="invalid token ID"):
            deployed.token.token_uri(token_id)

    @pytest.mark.contract
    def test_burned_ids_are_not_reused(self, deployed):
        first = _mint(deployed)
        deployed.token.burn(first)
        second = _mint(deployed)
        assert second == first + 1

    @pytest.mark.contract
    def test_burning_a_burned_token_reverts(self, deployed):
        token_id = _mint(deployed)
        deployed.token.burn(token_id)
        with pytest.raises(CanOnlyBeBurnedIfOwnedByMinter):
            deployed.token.burn(token_id)

    @pytest.mark.contract
    def test_burning_unminted_id_reverts(self, deployed):
        with pytest.raises(CanOnlyBeBurnedIfOwnedByMinter):
            deployed.token.burn(42)

    @pytest.mark.contract
    def test_transferred_token_cannot_be_burned_by_anyone(self, deployed):
        minter, holder = deployed.accounts[0], deployed.accounts[1]
        token_id = _mint(deployed, sender=minter)
        deployed.token.transfer_from(minter, holder, token_id, sender=minter)

        with pytest.raises(CanOnlyBeBurnedIfOwnedByMinter):
            deployed.token.burn(token_id, sender=minter)
        with pytest.raises(CanOnlyBeBurnedIfOwnedByMinter):
            deployed.token.burn(token_id, sender=holder)

    @pytest.mark.contract
    def test_minter_can_burn_after_token_returns(self, deployed):
        minter, holder = deployed.accounts[0], deployed.accounts[1]
        token_id = _mint(deployed, sender=minter)
        deployed.token.transfer_from(minter, holder, token_id, sender=minter)
        deployed.token.transfer_from(holder, minter, token_id, sender=holder)

        deployed.token.burn(token_id, sender=minter)
        assert deployed.token.balance_of(minter) == 0

    @pytest.mark.contract
    def test_burn_does_not_refund(self, deployed):
        token_id = _mint(deployed)
        deployed.token.burn(token_id)
        assert deployed.token.balance == ONE_ETH


class TestWithdraw:
    """Tests for withdraw()."""

    @pytest.mark.contract
    def test_reverts_if_there_is_no_balance(self, deployed):
        with pytest.raises(NothingToWithdraw):
            deployed.token.withdraw()

    @pytest.mark.contract
    def test_transfers_the_balance_to_the_owner(self, deployed):
        _mint(deployed, sender=deployed.accounts[1])
        before = deployed.chain.balance_of(deployed.deployer)
        deployed.token.withdraw(sender=deployed.deployer)
        assert deployed.chain.balance_of(deployed.deployer) == before + ONE_ETH
        assert deployed.token.balance == 0

    @pytest.mark.contract
    def test_withdraws_accumulated_fees(self, deployed):
        for account in deployed.accounts[1:4]:
            _mint(deployed, sender=account, value=QUARTER_ETH)
        before = deployed.chain.balance_of(deployed.deployer)
        deployed.token.withdraw()
        assert deployed.chain.balance_of(deployed.deployer) == before + 3 * QUARTER_ETH

    @pytest.mark.contract
    def test_non_owner_cannot_withdraw(self, deployed):
        _mint(deployed)
        with pytest.raises(ContractRevert) as exc_info:
            deployed.token.withdraw(sender=deployed.accounts[1])
        assert exc_info.value.reason == "Ownable: caller is not the owner"
        assert deployed.token.balance == ONE_ETH

    @pytest.mark.contract
    def test_new_owner_receives_withdrawals(self, deployed):
        new_owner = deployed.accounts[2]
        _mint(deployed)
        deployed.token.transfer_ownership(new_owner)
        before = deployed.chain.balance_of(new_owner)
        deployed.token.withdraw(sender=new_owner)
        assert deployed.chain.balance_of(new_owner) == before + ONE_ETH

    @pytest.mark.contract
    def test_reentrant_withdraw_is_rejected(self, deployed):
        attacker = deployed.chain.deploy(ReentrantOwner, deployed.token.address)
        _mint(deployed)
        deployed.token.transfer_ownership(attacker.address)

        with pytest.raises(TransferFailed):
            attacker.attack()

        assert deployed.token.balance == ONE_ETH
        assert deployed.chain.balance_of(attacker.address) == 0

    @pytest.mark.contract
    def test_owner_that_cannot_receive_fails_transfer(self, deployed):
        holder = deployed.chain.deploy(NonPayableOwner, deployed.token.address)
        _mint(deployed)
        deployed.token.transfer_ownership(holder.address)
        with pytest.raises(TransferFailed):
            holder.pull()
        assert deployed.token.balance == ONE_ETH


# ── Helper contracts ─────────────────────────────────────────────────


class ReentrantOwner(Contract):
    """Owner whose receive hook calls withdraw() again."""

    def __init__(self, token_address: str):
        self.token_address = token_address
        self.reentered = False

    @external
    def attack(self) -> None:
        self.chain.contract_at(self.token_address).withdraw()

    @external(payable=True)
    def receive(self) -> None:
        if not self.reentered:
            self.reentered = True
            self.chain.contract_at(self.token_address).withdraw()


class NonPayableOwner(Contract):
    """Owner without a payable receive hook."""

    def __init__(self, token_address: str):
        self.token_address = token_address

    @external
    def pull(self) -> None:
        self.chain.contract_at(self.token_address).withdraw()


class MintingContract(Contract):
    """Contract minter that does not implement on_erc721_received."""

    def __init__(self, token_address: str):
        self.token_address = token_address

    @external
    def mint(self, uri: str, value: int) -> None:
        token: TuneTokenize = self.chain.contract_at(self.token_address)
        token.mint_token(uri, value=value)


class CatchingMinter(MintingContract):
    """Contract minter that swallows a failed mint."""

    @external
    def try_mint(self, value: int) -> bool:
        token: TuneTokenize = self.chain.contract_at(self.token_address)
        try:
            token.mint_token(TOKEN_URI, value=value)
        except ContractRevert:
            return False
        return True


class ReceivingContract(MintingContract):
    """Contract minter that acknowledges ERC-721 tokens."""

    @view
    def on_erc721_received(self, operator: str, from_: str, token_id: int, data: bytes) -> int:
        return ERC721_RECEIVED
