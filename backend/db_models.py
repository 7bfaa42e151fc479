"""
SQLAlchemy ORM models for the Tune Tokenize backend.

Tables:
    deployments      — contracts deployed on the configured network
    contract_events  — raw logs indexed from TuneTokenize
    tokens           — current view of every minted token (incl. burned)
    listener_state   — last block processed by the event listener
"""
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, BigInteger, String, Boolean, DateTime, Text,
    UniqueConstraint, Index,
)

from database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DeploymentRecord(Base):
    """Contract deployments (one row per name + network + address)."""
    __tablename__ = "deployments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, index=True)
    address = Column(String(42), nullable=False)
    network = Column(String(50), nullable=False)
    chain_id = Column(Integer, nullable=False)
    tx_hash = Column(String(66), nullable=False)
    block_number = Column(BigInteger, nullable=False)
    args_json = Column(Text, nullable=True)
    deployed_at = Column(DateTime, default=utc_now)

    __table_args__ = (
        UniqueConstraint("network", "address", name="uq_deployments_network_address"),
    )


class ContractEvent(Base):
    """Logs emitted by TuneTokenize, deduplicated on (tx_hash, log_index)."""
    __tablename__ = "contract_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tx_hash = Column(String(66), nullable=False)
    log_index = Column(Integer, nullable=False)
    block_number = Column(BigInteger, nullable=False, index=True)
    contract_address = Column(String(42), nullable=False)
    event = Column(String(50), nullable=False, index=True)  # "Minted" | "Transfer" | ...
    args_json = Column(Text, nullable=False)
    detected_at = Column(DateTime, default=utc_now)

    __table_args__ = (
        UniqueConstraint("tx_hash", "log_index", name="uq_contract_events_tx_log"),
    )


class IndexedToken(Base):
    """Off-chain view of a TuneTokenize token."""
    __tablename__ = "tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contract_address = Column(String(42), nullable=False)
    token_id = Column(BigInteger, nullable=False)
    owner_wallet = Column(String(42), nullable=True, index=True)  # null once burned
    minter_wallet = Column(String(42), nullable=False, index=True)
    token_uri = Column(Text, nullable=False)
    is_burned = Column(Boolean, nullable=False, default=False)
    minted_tx = Column(String(66), nullable=False)
    minted_block = Column(BigInteger, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("contract_address", "token_id", name="uq_tokens_contract_token"),
        Index("ix_tokens_owner_burned", "owner_wallet", "is_burned"),
    )


class ListenerState(Base):
    """Single-row table holding the listener cursor."""
    __tablename__ = "listener_state"

    id = Column(Integer, primary_key=True)
    last_processed_block = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime, default=utc_now)
