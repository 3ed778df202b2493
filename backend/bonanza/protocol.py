"""Protocol models for the HTTP surface."""
from typing import Any

from pydantic import BaseModel, Field

from bonanza.config import settings
from bonanza.logic.models import BombData, Cluster, FreeSpinsState, SpinResult, TumbleResult


# === Request Models ===


class SpinRequest(BaseModel):
    """POST /spin and POST /buy-feature request body."""

    # Any JSON value; validate_bet rejects strings and booleans
    betAmount: Any = Field(..., description="Whole number within bet bounds")


# === Response Models ===


class Configuration(BaseModel):
    """Configuration object in /init response."""

    currency: str = "SAT"
    minBet: int = settings.min_bet
    maxBet: int = settings.max_bet
    enableBuyFeature: bool = settings.enable_buy_feature
    buyFeatureCostMultiplier: int = settings.buy_feature_cost_multiplier


class FreeSpinsInfo(BaseModel):
    """Free-spin session as seen by the client."""

    active: bool = False
    spinsRemaining: int = 0
    lockedBet: int = 0
    totalWin: int = 0

    @classmethod
    def from_state(cls, state: FreeSpinsState | None) -> "FreeSpinsInfo":
        if state is None:
            return cls()
        return cls(
            active=state.spins_remaining > 0,
            spinsRemaining=state.spins_remaining,
            lockedBet=state.locked_bet,
            totalWin=state.total_win,
        )


class InitResponse(BaseModel):
    """GET /init response."""

    protocolVersion: str = settings.protocol_version
    configuration: Configuration = Field(default_factory=Configuration)
    restoreState: FreeSpinsInfo | None = None


class PositionPayload(BaseModel):
    row: int
    col: int


class ClusterPayload(BaseModel):
    symbol: str
    positions: list[PositionPayload]
    payout: float


class BombPayload(BaseModel):
    position: PositionPayload
    multiplier: int


class TumblePayload(BaseModel):
    grid: list[list[str]]
    clusters: list[ClusterPayload]
    winAmount: int
    bombs: list[BombPayload]


class SpinOutcome(BaseModel):
    """Spin record in protocol (camelCase) form."""

    initialGrid: list[list[str]]
    initialBombs: list[BombPayload]
    tumbles: list[TumblePayload]
    finalBombs: list[BombPayload]
    totalWin: int
    totalBet: int
    scatterCount: int
    scatterPayout: int
    triggeredFreeSpins: bool
    freeSpinsAwarded: int
    bombMultiplierTotal: int | None = None
    cascadeWin: int
    cascadeCapped: bool

    @classmethod
    def from_result(cls, result: SpinResult) -> "SpinOutcome":
        return cls(
            initialGrid=_grid(result.initial_grid),
            initialBombs=[_bomb(b) for b in result.initial_bombs],
            tumbles=[_tumble(t) for t in result.tumbles],
            finalBombs=[_bomb(b) for b in result.final_bombs],
            totalWin=result.total_win,
            totalBet=result.total_bet,
            scatterCount=result.scatter_count,
            scatterPayout=result.scatter_payout,
            triggeredFreeSpins=result.triggered_free_spins,
            freeSpinsAwarded=result.free_spins_awarded,
            bombMultiplierTotal=result.bomb_multiplier_total,
            cascadeWin=result.cascade_win,
            cascadeCapped=result.cascade_capped,
        )


class SpinResponse(BaseModel):
    """POST /spin and POST /buy-feature response."""

    protocolVersion: str = settings.protocol_version
    roundId: str
    cost: int
    outcome: SpinOutcome
    freeSpins: FreeSpinsInfo = Field(default_factory=FreeSpinsInfo)


def _grid(grid) -> list[list[str]]:
    return [[symbol.value for symbol in row] for row in grid]


def _bomb(bomb: BombData) -> BombPayload:
    return BombPayload(
        position=PositionPayload(row=bomb.position.row, col=bomb.position.col),
        multiplier=bomb.multiplier,
    )


def _cluster(cluster: Cluster) -> ClusterPayload:
    return ClusterPayload(
        symbol=cluster.symbol.value,
        positions=[PositionPayload(row=p.row, col=p.col) for p in cluster.positions],
        payout=cluster.payout,
    )


def _tumble(tumble: TumbleResult) -> TumblePayload:
    return TumblePayload(
        grid=_grid(tumble.grid),
        clusters=[_cluster(c) for c in tumble.clusters],
        winAmount=tumble.win_amount,
        bombs=[_bomb(b) for b in tumble.bombs],
    )
