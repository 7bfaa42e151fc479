"""
Tune Tokenize — FastAPI Application

Oracle-priced NFT minting on an EVM development chain: deploys the
MockV3Aggregator + TuneTokenize pair, exposes mint/burn/withdraw over
HTTP, and indexes contract events into SQLite.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from domain.errors import ContractRevertedError
from domain.responses import error_response
from exceptions import (
    ChainConnectionError,
    ChainError,
    ContractRevert,
    InsufficientBalanceError,
    UnknownContractError,
)
from routes import accounts, contracts, health, nft, oracle

# ── Logging ─────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────

async def _bootstrap_development_chain():
    """Deploy contracts on the fresh in-process chain and reset the index."""
    from chain_client import chain_client
    from database import async_session
    from services import deploy_service, listener_service

    async with async_session() as db:
        await listener_service.reset_index(db)
        if settings.auto_deploy:
            deploy_service.ensure_deployed(chain_client.chain, deploy_service.registry)
            added = await deploy_service.save_deployments(db, deploy_service.registry)
            logger.info(f"Recorded {added} deployment(s) for '{settings.network}'")
        await db.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create DB tables, deploy, start listener. Shutdown: stop listener."""
    # Ensure data/ directory exists for SQLite
    os.makedirs("data", exist_ok=True)

    # Validate settings before starting
    settings.validate_network_settings()

    from database import init_db
    await init_db()
    logger.info("Database initialized")

    if settings.is_development_chain:
        await _bootstrap_development_chain()

    # Start the event listener
    try:
        from services import listener_service
        await listener_service.start()
        logger.info("Event listener started")
    except Exception as e:
        logger.warning(f"Listener failed to start (non-fatal): {e}")

    yield  # app runs here

    # Stop listener on shutdown
    from services import listener_service
    await listener_service.stop()

    logger.info("Shutting down")


# ── App Factory ─────────────────────────────────────────────────────

app = FastAPI(
    title="Tune Tokenize API",
    description="USD-priced music NFTs minted against a Chainlink-style price feed",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routes ──────────────────────────────────────────────────────────

app.include_router(health.router)
app.include_router(contracts.router)
app.include_router(nft.router)
app.include_router(oracle.router)
app.include_router(accounts.router)


# ── Listener Status Endpoint ───────────────────────────────────────

@app.get("/listener/status", tags=["listener"])
async def get_listener_status():
    """Get the current status of the event listener."""
    from services import listener_service
    return listener_service.get_status()


# ── Exception Handlers ──────────────────────────────────────────────


@app.exception_handler(ContractRevert)
async def contract_revert_handler(request, exc: ContractRevert):
    """Reverted transactions are client errors; the reason is returned verbatim."""
    err = ContractRevertedError(exc.reason, exc.tx_hash)
    return JSONResponse(
        status_code=err.status_code,
        content=error_response("contract_reverted", err.message, err.details),
    )


@app.exception_handler(ChainError)
async def chain_error_handler(request, exc: ChainError):
    if isinstance(exc, InsufficientBalanceError):
        status_code, code = 400, "insufficient_balance"
    elif isinstance(exc, UnknownContractError):
        status_code, code = 404, "unknown_contract"
    elif isinstance(exc, ChainConnectionError):
        status_code, code = 503, "chain_unavailable"
    else:
        status_code, code = 502, "blockchain"
    logger.warning(f"Chain error on {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content=error_response(code, str(exc)))


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """
    Catch-all for unhandled exceptions.

    Never return raw exception details to clients.
    The full traceback is logged server-side for debugging.
    """
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_response("internal_server_error", "Internal server error"),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """
    Standardize HTTPException responses for frontend consumers.

    Keeps the original HTTP status code, but wraps the payload.
    """
    # DomainError (a subclass of HTTPException) carries structured error info
    if hasattr(exc, "message") and hasattr(exc, "details"):
        error_code = exc.__class__.__name__.replace("Error", "").lower()
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(error_code, exc.message, exc.details),
        )

    # Regular HTTPException
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response("http_error", message, detail if not isinstance(detail, str) else None),
    )


# ── Entrypoint ──────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
