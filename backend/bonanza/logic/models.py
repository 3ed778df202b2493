"""Spin record models and free-spin session state."""
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Symbol(str, Enum):
    """Slot symbols, paying symbols ordered low value to high value."""
    BANANA = "banana"
    GRAPES = "grapes"
    WATERMELON = "watermelon"
    PLUM = "plum"
    APPLE = "apple"
    BLUE_CANDY = "blue_candy"
    GREEN_CANDY = "green_candy"
    PURPLE_CANDY = "purple_candy"
    HEART_CANDY = "heart_candy"
    SCATTER = "scatter"
    BOMB = "bomb"  # free spins only


# grid[row][col], ROWS x COLS
Grid = list[list[Symbol]]


def copy_grid(grid: Grid) -> Grid:
    """Return an independent snapshot of a grid."""
    return [list(row) for row in grid]


class Position(BaseModel):
    """Cell coordinate. Hashable, compared by value."""
    model_config = ConfigDict(frozen=True)

    row: int
    col: int


class Cluster(BaseModel):
    """All cells of one paying symbol that together reach the minimum count."""
    model_config = ConfigDict(frozen=True)

    symbol: Symbol
    positions: list[Position]
    payout: float  # multiple of bet


class BombData(BaseModel):
    """A bomb cell and its multiplier."""
    model_config = ConfigDict(frozen=True)

    position: Position
    multiplier: int


class TumbleResult(BaseModel):
    """
    One cascade step.

    clusters and win_amount describe the grid before removal; grid and
    bombs describe the grid after gravity and refill.
    """
    model_config = ConfigDict(frozen=True)

    grid: Grid
    clusters: list[Cluster]
    win_amount: int
    bombs: list[BombData] = Field(default_factory=list)


class SpinResult(BaseModel):
    """Complete record of one resolved spin."""
    model_config = ConfigDict(frozen=True)

    initial_grid: Grid
    initial_bombs: list[BombData] = Field(default_factory=list)
    tumbles: list[TumbleResult] = Field(default_factory=list)
    final_bombs: list[BombData] = Field(default_factory=list)
    total_win: int = 0
    total_bet: int
    scatter_count: int = 0
    scatter_payout: int = 0
    triggered_free_spins: bool = False
    free_spins_awarded: int = 0
    bomb_multiplier_total: int | None = None  # free spins only

    # Cascade win before bomb multipliers and scatter pay
    cascade_win: int = 0
    cascade_capped: bool = False


class FreeSpinsState(BaseModel):
    """
    Persisted free-spin session for one player.

    Tracks:
    - spins left in the session
    - the bet locked in when the session was triggered
    - running total won across the session
    """
    spins_remaining: int = 0
    locked_bet: int = 0
    total_win: int = 0
