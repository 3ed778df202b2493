"""Cascade slot FastAPI application."""
import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from bonanza.config import settings
from bonanza.config_hash import get_config_hash
from bonanza.errors import ErrorCode, GameError
from bonanza.free_spins import advance_session
from bonanza.logic.engine import BonanzaEngine
from bonanza.logic.models import FreeSpinsState, SpinResult
from bonanza.middleware import ErrorHandlerMiddleware, PlayerIdMiddleware
from bonanza.protocol import (
    FreeSpinsInfo,
    InitResponse,
    SpinOutcome,
    SpinRequest,
    SpinResponse,
)
from bonanza.redis_service import redis_service
from bonanza.telemetry import SpinProcessedEvent, SpinRejectedEvent, telemetry_service
from bonanza.validators import validate_bet, validate_buy_feature


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage Redis connection lifecycle."""
    await redis_service.connect()
    yield
    await redis_service.close()


app = FastAPI(
    title="Bonanza RGS",
    version="0.1.0",
    description="Remote Game Server for a cascading scatter-pays slot",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(ErrorHandlerMiddleware)
app.add_middleware(PlayerIdMiddleware)

# Game engine instance
engine = BonanzaEngine()


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    return exc.to_response()


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/init")
async def init(request: Request) -> dict:
    """
    GET /init.

    Returns configuration and the player's unfinished free-spin session, if any.
    """
    player_id = request.state.player_id
    state = await redis_service.get_free_spins(player_id)

    restore_state = None
    if state is not None and state.spins_remaining > 0:
        restore_state = FreeSpinsInfo.from_state(state)

    return InitResponse(restoreState=restore_state).model_dump()


async def _store_session(player_id: str, state: FreeSpinsState | None) -> None:
    """Persist an ongoing session, or clear a finished / absent one."""
    if state is not None and state.spins_remaining > 0:
        await redis_service.save_free_spins(player_id, state)
    else:
        await redis_service.clear_free_spins(player_id)


def _log_transition(
    player_id: str,
    previous: FreeSpinsState | None,
    current: FreeSpinsState | None,
    result: SpinResult,
) -> None:
    in_session = previous is not None and previous.spins_remaining > 0
    if result.triggered_free_spins and not in_session:
        logger.info(
            "Player %s triggered %d free spins with locked bet %d",
            player_id,
            result.free_spins_awarded,
            result.total_bet,
        )
    elif result.triggered_free_spins:
        logger.info(
            "Player %s retriggered +%d free spins", player_id, result.free_spins_awarded
        )
    if in_session and current is not None and current.spins_remaining == 0:
        logger.info(
            "Player %s free spins ended, session total %d", player_id, current.total_win
        )


def _emit_processed(
    player_id: str, round_id: str, mode: str, result: SpinResult, lock_acquire_ms: float
) -> None:
    telemetry_service.emit_spin_processed(
        SpinProcessedEvent(
            player_id=player_id,
            round_id=round_id,
            mode=mode,
            bet_amount=result.total_bet,
            total_win=result.total_win,
            tumbles=len(result.tumbles),
            cascade_capped=result.cascade_capped,
            free_spins_awarded=result.free_spins_awarded,
            config_hash=get_config_hash(),
            lock_acquire_ms=lock_acquire_ms,
        )
    )


def _emit_rejected(player_id: str, error: GameError, lock_start: float) -> None:
    if error.code == ErrorCode.ROUND_IN_PROGRESS:
        telemetry_service.emit_spin_rejected(
            SpinRejectedEvent(
                player_id=player_id,
                reason=error.code.value,
                lock_acquire_ms=(time.monotonic() - lock_start) * 1000,
            )
        )


@app.post("/spin")
async def spin(request: Request, body: SpinRequest) -> dict:
    """
    POST /spin.

    Implements:
    - Bet validation
    - Per-player locking (ROUND_IN_PROGRESS on concurrent spin)
    - Free-spin continuation with the locked bet
    - Session persistence and telemetry
    """
    player_id = request.state.player_id
    bet = validate_bet(body.betAmount)

    lock_start = time.monotonic()
    try:
        async with redis_service.player_lock(player_id) as lock_metrics:
            state = await redis_service.get_free_spins(player_id)
            in_session = state is not None and state.spins_remaining > 0

            # During free spins the triggering bet is used and nothing is charged
            if in_session:
                bet = state.locked_bet
            cost = 0 if in_session else bet

            result = engine.resolve_spin(bet, is_free_spin=in_session)

            next_state = advance_session(state, result)
            _log_transition(player_id, state, next_state, result)
            await _store_session(player_id, next_state)

            round_id = str(uuid.uuid4())
            _emit_processed(
                player_id,
                round_id,
                "free_spins" if in_session else "base",
                result,
                lock_metrics.acquire_ms,
            )

            return SpinResponse(
                roundId=round_id,
                cost=cost,
                outcome=SpinOutcome.from_result(result),
                freeSpins=FreeSpinsInfo.from_state(next_state),
            ).model_dump()

    except GameError as e:
        _emit_rejected(player_id, e, lock_start)
        raise


@app.post("/buy-feature")
async def buy_feature(request: Request, body: SpinRequest) -> dict:
    """
    POST /buy-feature.

    Charges bet x buy_feature_cost_multiplier and plays a forced-scatter
    spin that always opens a free-spin session.
    """
    player_id = request.state.player_id
    bet = validate_bet(body.betAmount)

    lock_start = time.monotonic()
    try:
        async with redis_service.player_lock(player_id) as lock_metrics:
            state = await redis_service.get_free_spins(player_id)
            validate_buy_feature(state is not None and state.spins_remaining > 0)

            cost = bet * settings.buy_feature_cost_multiplier
            result = engine.resolve_spin(bet, is_buy_feature=True)

            next_state = advance_session(None, result)
            logger.info(
                "Player %s bought %d free spins for %d (bet %d)",
                player_id,
                result.free_spins_awarded,
                cost,
                bet,
            )
            await _store_session(player_id, next_state)

            round_id = str(uuid.uuid4())
            _emit_processed(player_id, round_id, "buy", result, lock_metrics.acquire_ms)

            return SpinResponse(
                roundId=round_id,
                cost=cost,
                outcome=SpinOutcome.from_result(result),
                freeSpins=FreeSpinsInfo.from_state(next_state),
            ).model_dump()

    except GameError as e:
        _emit_rejected(player_id, e, lock_start)
        raise
