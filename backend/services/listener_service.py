"""
Event Listener Service — indexes TuneTokenize logs into the database.

Each poll cycle:
    - Reads logs emitted by the deployed TuneTokenize since the last
      processed block
    - Stores every log in contract_events (deduplicated on tx hash + log index)
    - Maintains the tokens table: Minted inserts a row, Transfer moves the
      owner, a Transfer to the zero address marks the token burned
    - Persists the last processed block (survives restarts)

This runs as an asyncio background task during the FastAPI app lifespan.
"""
import asyncio
import json
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chain.runtime import ZERO_ADDRESS, Chain, LogEntry
from config import settings
from database import async_session
from domain.enums import TokenEventType

logger = logging.getLogger(__name__)

# Listener state
_listener_task: Optional[asyncio.Task] = None
_is_running: bool = False
_errors_count: int = 0
_events_indexed: int = 0

# In-memory cache of last block (DB is source of truth)
_last_processed_block: int = 0


# ════════════════════════════════════════════════════════════════════
# Persistent State
# ════════════════════════════════════════════════════════════════════


async def load_last_block(db: AsyncSession) -> int:
    """Load last processed block from DB. Returns 0 if no state exists."""
    from db_models import ListenerState

    result = await db.execute(select(ListenerState).where(ListenerState.id == 1))
    state = result.scalar_one_or_none()
    return state.last_processed_block if state else 0


async def save_last_block(db: AsyncSession, block_number: int) -> None:
    """Persist last processed block (caller commits)."""
    from db_models import ListenerState, utc_now

    result = await db.execute(select(ListenerState).where(ListenerState.id == 1))
    state = result.scalar_one_or_none()
    if state:
        state.last_processed_block = block_number
        state.updated_at = utc_now()
    else:
        db.add(ListenerState(id=1, last_processed_block=block_number))


async def reset_index(db: AsyncSession) -> None:
    """
    Drop indexed events, tokens and the cursor (caller commits).

    An in-process chain starts from genesis on every boot, so rows from a
    previous run describe blocks that no longer exist.
    """
    global _last_processed_block
    from db_models import ContractEvent, IndexedToken, ListenerState
    from sqlalchemy import delete

    for model in (ContractEvent, IndexedToken, ListenerState):
        await db.execute(delete(model))
    _last_processed_block = 0
    logger.info("Listener index reset")


# ════════════════════════════════════════════════════════════════════
# Log Handlers
# ════════════════════════════════════════════════════════════════════


async def _get_token(db: AsyncSession, contract_address: str, token_id: int):
    from db_models import IndexedToken

    result = await db.execute(
        select(IndexedToken).where(
            IndexedToken.contract_address == contract_address,
            IndexedToken.token_id == token_id,
        )
    )
    return result.scalar_one_or_none()


async def _handle_minted(db: AsyncSession, log: LogEntry, minter: Optional[str]) -> None:
    from db_models import IndexedToken

    token_id = log.args["tokenId"]
    token = await _get_token(db, log.address, token_id)
    if token is None:
        token = IndexedToken(
            contract_address=log.address,
            token_id=token_id,
            owner_wallet=minter,
            minter_wallet=minter or ZERO_ADDRESS,
            token_uri=log.args["tokenURI"],
            is_burned=False,
            minted_tx=log.tx_hash,
            minted_block=log.block_number,
        )
        db.add(token)
        await db.flush()
    else:
        token.token_uri = log.args["tokenURI"]
    logger.info(f"  Indexed mint of token #{token_id} for {(minter or '?')[:10]}...")


async def _handle_transfer(db: AsyncSession, log: LogEntry) -> None:
    token_id = log.args["tokenId"]
    token = await _get_token(db, log.address, token_id)
    if token is None:
        # Mint transfer precedes the Minted log in the same transaction
        return

    to = log.args["to"]
    if to == ZERO_ADDRESS:
        token.owner_wallet = None
        token.is_burned = True
        logger.info(f"  Indexed burn of token #{token_id}")
    else:
        token.owner_wallet = to


async def process_new_events(
    db: AsyncSession,
    chain: Chain,
    contract_address: str,
    from_block: int,
) -> int:
    """
    Index TuneTokenize logs mined in blocks >= from_block.

    Already-stored logs are skipped, so re-processing a range is harmless.
    The caller commits.

    Returns:
        Number of new logs stored
    """
    from db_models import ContractEvent

    logs: List[LogEntry] = chain.get_logs(from_block=from_block, address=contract_address)

    # The Minted log has no minter field; the mint's Transfer(0x0 -> to) carries it
    mint_owner = {
        (log.tx_hash, log.args["tokenId"]): log.args["to"]
        for log in logs
        if log.event == TokenEventType.TRANSFER and log.args["from"] == ZERO_ADDRESS
    }

    stored = 0
    for log in logs:
        existing = await db.execute(
            select(ContractEvent.id).where(
                ContractEvent.tx_hash == log.tx_hash,
                ContractEvent.log_index == log.log_index,
            )
        )
        if existing.scalar_one_or_none() is not None:
            continue

        db.add(ContractEvent(
            tx_hash=log.tx_hash,
            log_index=log.log_index,
            block_number=log.block_number,
            contract_address=log.address,
            event=log.event,
            args_json=json.dumps(log.args),
        ))

        if log.event == TokenEventType.MINTED:
            await _handle_minted(db, log, mint_owner.get((log.tx_hash, log.args["tokenId"])))
        elif log.event == TokenEventType.TRANSFER:
            await _handle_transfer(db, log)

        stored += 1

    return stored


# ════════════════════════════════════════════════════════════════════
# Main Listener Loop
# ════════════════════════════════════════════════════════════════════


async def poll_once(chain: Chain, contract_address: str) -> int:
    """Run one indexing cycle in its own session. Returns logs stored."""
    global _last_processed_block, _events_indexed

    async with async_session() as db:
        last = await load_last_block(db)
        if last > chain.block_number:
            # Chain was reset or reverted below our cursor
            logger.warning(
                f"Chain head {chain.block_number} is behind listener cursor {last}; re-indexing"
            )
            await reset_index(db)
            last = 0

        head = chain.block_number
        stored = await process_new_events(db, chain, contract_address, from_block=last + 1)
        await save_last_block(db, head)
        await db.commit()

    _last_processed_block = head
    _events_indexed += stored
    if stored > 0:
        logger.info(f"  Listener indexed {stored} new event(s) (block -> {head})")
    return stored


async def _listener_loop():
    """Poll forever as a background asyncio task."""
    global _last_processed_block, _is_running, _errors_count

    from chain_client import chain_client
    from services import deploy_service

    _is_running = True
    poll_interval = settings.listener_poll_seconds

    async with async_session() as db:
        _last_processed_block = await load_last_block(db)

    logger.info(
        f"Listener started (polling every {poll_interval}s, "
        f"resuming from block {_last_processed_block})"
    )

    while _is_running:
        try:
            await asyncio.sleep(poll_interval)

            deployment = deploy_service.registry.get("TuneTokenize")
            if deployment is None:
                continue  # nothing to index yet

            await poll_once(chain_client.chain, deployment.address)

        except asyncio.CancelledError:
            logger.info("Listener cancelled")
            break
        except Exception as e:
            _errors_count += 1
            logger.error(f"Listener cycle error: {e}")
            # Backoff on repeated errors
            if _errors_count > 5:
                backoff = min(60, poll_interval * 2)
                logger.warning(f"  Too many errors, backing off {backoff}s")
                await asyncio.sleep(backoff)

    _is_running = False
    logger.info("Listener stopped")


# ════════════════════════════════════════════════════════════════════
# Public API — Start / Stop / Status
# ════════════════════════════════════════════════════════════════════


async def start():
    """Start the listener as a background asyncio task."""
    global _listener_task, _is_running

    if _listener_task and not _listener_task.done():
        logger.warning("Listener already running")
        return

    _is_running = True
    _listener_task = asyncio.create_task(_listener_loop())
    logger.info("Listener task created")


async def stop():
    """Stop the listener gracefully."""
    global _listener_task, _is_running
    _is_running = False

    if _listener_task and not _listener_task.done():
        _listener_task.cancel()
        try:
            await _listener_task
        except asyncio.CancelledError:
            pass

    _listener_task = None
    logger.info("Listener task stopped")


def get_status() -> dict:
    """Get listener status for the /listener/status endpoint."""
    return {
        "running": _is_running,
        "lastProcessedBlock": _last_processed_block,
        "eventsIndexed": _events_indexed,
        "errorsCount": _errors_count,
        "pollIntervalSeconds": settings.listener_poll_seconds,
    }
