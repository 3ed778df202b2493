"""Tumble engine: remove wins, drop symbols, refill, repeat."""
import logging
import math
from dataclasses import dataclass, field

from bonanza.logic.evaluator import BombLocator, count_scatters, find_clusters
from bonanza.logic.grid import GridGenerator
from bonanza.logic.models import (
    BombData,
    Cluster,
    Grid,
    Position,
    Symbol,
    TumbleResult,
    copy_grid,
)
from bonanza.logic.paytable import COLS, MAX_TUMBLES, ROWS


logger = logging.getLogger(__name__)


@dataclass
class CascadeOutcome:
    """Where a cascade settled and what it paid."""

    grid: Grid
    tumbles: list[TumbleResult] = field(default_factory=list)
    cascade_win: int = 0
    max_scatter_count: int = 0
    known_bombs: dict[Position, int] = field(default_factory=dict)
    capped: bool = False


def _remember(bombs: list[BombData]) -> dict[Position, int]:
    """Multipliers keyed by cell for the bombs currently on the grid."""
    return {bomb.position: bomb.multiplier for bomb in bombs}


class CascadeResolver:
    """
    Runs the tumble loop for one spin.

    Each step:
    - find clusters on the current grid (none -> settled)
    - pay bet x sum of cluster pays, floored
    - clear clustered cells, let each column fall, refill from the top
    - record the post-refill grid with the pre-removal clusters
    Stops unconditionally after MAX_TUMBLES steps.
    """

    def __init__(self, generator: GridGenerator, bomb_locator: BombLocator):
        self.generator = generator
        self.bomb_locator = bomb_locator

    def resolve(
        self,
        grid: Grid,
        bet_amount: int,
        free_spins: bool = False,
        known_bombs: dict[Position, int] | None = None,
    ) -> CascadeOutcome:
        """
        Tumble `grid` until it settles or the step cap is reached.

        known_bombs seeds multiplier continuity (the initial grid's bombs).
        It is rebuilt from every located bomb set, so a bomb keeps its value
        only while a bomb stays in the same cell.
        """
        outcome = CascadeOutcome(
            grid=copy_grid(grid),
            known_bombs=dict(known_bombs or {}),
            max_scatter_count=count_scatters(grid),
        )

        for _ in range(MAX_TUMBLES):
            clusters = find_clusters(outcome.grid)
            if not clusters:
                break

            step_win = math.floor(bet_amount * sum(cluster.payout for cluster in clusters))
            outcome.cascade_win += step_win

            if free_spins:
                before = self.bomb_locator.locate(outcome.grid, outcome.known_bombs)
                outcome.known_bombs = _remember(before)

            outcome.grid = self._tumble(outcome.grid, clusters, free_spins)

            after: list[BombData] = []
            if free_spins:
                after = self.bomb_locator.locate(outcome.grid, outcome.known_bombs)
                outcome.known_bombs = _remember(after)

            outcome.tumbles.append(
                TumbleResult(
                    grid=copy_grid(outcome.grid),
                    clusters=clusters,
                    win_amount=step_win,
                    bombs=after,
                )
            )
            outcome.max_scatter_count = max(
                outcome.max_scatter_count, count_scatters(outcome.grid)
            )
        else:
            outcome.capped = bool(find_clusters(outcome.grid))
            if outcome.capped:
                logger.warning(
                    "Cascade cap reached after %d tumbles (bet=%d, free_spins=%s, win=%d)",
                    MAX_TUMBLES,
                    bet_amount,
                    free_spins,
                    outcome.cascade_win,
                )

        return outcome

    def _tumble(self, grid: Grid, clusters: list[Cluster], free_spins: bool) -> Grid:
        """
        Clear clustered cells and apply gravity.

        Survivors in each column slide to the bottom keeping their order;
        the cells left above them are refilled bottom-up with fresh draws.
        """
        cleared: list[list[Symbol | None]] = copy_grid(grid)
        for cluster in clusters:
            for pos in cluster.positions:
                cleared[pos.row][pos.col] = None

        new_grid = copy_grid(grid)
        for col in range(COLS):
            survivors = [
                cleared[row][col]
                for row in range(ROWS - 1, -1, -1)
                if cleared[row][col] is not None
            ]
            for depth, row in enumerate(range(ROWS - 1, -1, -1)):
                if depth < len(survivors):
                    new_grid[row][col] = survivors[depth]
                else:
                    new_grid[row][col] = self.generator.draw_symbol(free_spins)

        return new_grid
