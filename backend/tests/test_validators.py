"""
Tests for Ethereum address validation utility.

Tests: validate_eth_address, validated_wallet, validated_wallet_query
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest
from fastapi import HTTPException
from utils.validators import validate_eth_address, validated_wallet, validated_wallet_query
from tests.conftest import VALID_WALLET_1, VALID_WALLET_2, INVALID_WALLET_SHORT, INVALID_WALLET_BAD_CHECKSUM


class TestValidateEthAddress:
    """Test suite for Ethereum address validation."""

    @pytest.mark.unit
    def test_valid_address_passes(self):
        """A checksummed address returns unchanged."""
        assert validate_eth_address(VALID_WALLET_1) == VALID_WALLET_1

    @pytest.mark.unit
    def test_second_valid_address_passes(self):
        assert validate_eth_address(VALID_WALLET_2) == VALID_WALLET_2

    @pytest.mark.unit
    def test_lowercase_address_is_checksummed(self):
        """All-lowercase addresses carry no checksum and are normalized."""
        assert validate_eth_address(VALID_WALLET_1.lower()) == VALID_WALLET_1

    @pytest.mark.unit
    def test_empty_address_raises_400(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_eth_address("")
        assert exc_info.value.status_code == 400
        assert "required" in exc_info.value.detail.lower()

    @pytest.mark.unit
    def test_none_address_raises_400(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_eth_address(None)
        assert exc_info.value.status_code == 400

    @pytest.mark.unit
    def test_short_address_raises_400(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_eth_address(INVALID_WALLET_SHORT)
        assert exc_info.value.status_code == 400
        assert "40 hex characters" in exc_info.value.detail

    @pytest.mark.unit
    def test_missing_prefix_raises_400(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_eth_address("00" + VALID_WALLET_1[2:])
        assert exc_info.value.status_code == 400

    @pytest.mark.unit
    def test_bad_checksum_raises_400(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_eth_address(INVALID_WALLET_BAD_CHECKSUM)
        assert exc_info.value.status_code == 400
        assert "checksum" in exc_info.value.detail.lower()

    @pytest.mark.unit
    def test_non_hex_characters_raise_400(self):
        with pytest.raises(HTTPException):
            validate_eth_address("0x" + "g" * 40)


class TestValidatedWalletDependencies:
    """The FastAPI dependency wrappers delegate to validate_eth_address."""

    @pytest.mark.unit
    def test_path_dependency(self):
        assert validated_wallet(VALID_WALLET_2.lower()) == VALID_WALLET_2

    @pytest.mark.unit
    def test_query_dependency_rejects_invalid(self):
        with pytest.raises(HTTPException):
            validated_wallet_query(INVALID_WALLET_SHORT)
