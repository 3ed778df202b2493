"""Win evaluation: clusters, scatters and bomb multipliers."""
import math
from collections.abc import Mapping
from dataclasses import dataclass

from bonanza.logic.models import BombData, Cluster, Grid, Position, Symbol
from bonanza.logic.paytable import (
    BOMB_MULTIPLIER_WEIGHTS,
    FREE_SPINS_AWARDED,
    FREE_SPINS_RETRIGGER,
    FREE_SPINS_RETRIGGER_AMOUNT,
    FREE_SPINS_TRIGGER,
    MIN_CLUSTER_SIZE,
    PAYTABLE,
    SCATTER_PAYOUTS,
)
from bonanza.logic.rng import RandomSource, weighted_choice


NON_PAYING = (Symbol.SCATTER, Symbol.BOMB)


@dataclass(frozen=True)
class ScatterOutcome:
    """Scatter pay and free-spin award for a spin's scatter count."""

    payout: int
    triggered: bool
    awarded: int


def cluster_payout(symbol: Symbol, size: int) -> float:
    """Pay (multiple of bet) for `size` of `symbol`, by 8-9 / 10-11 / 12+ bucket."""
    pays_8, pays_10, pays_12 = PAYTABLE[symbol]
    if size >= 12:
        return pays_12
    if size >= 10:
        return pays_10
    return pays_8


def find_clusters(grid: Grid) -> list[Cluster]:
    """
    Find every paying symbol with at least MIN_CLUSTER_SIZE cells.

    Scatter pays: cells need not touch, so at most one cluster per symbol.
    Scatters and bombs never form clusters.
    """
    by_symbol: dict[Symbol, list[Position]] = {}
    for row, cells in enumerate(grid):
        for col, symbol in enumerate(cells):
            if symbol in NON_PAYING:
                continue
            by_symbol.setdefault(symbol, []).append(Position(row=row, col=col))

    return [
        Cluster(symbol=symbol, positions=positions, payout=cluster_payout(symbol, len(positions)))
        for symbol, positions in by_symbol.items()
        if len(positions) >= MIN_CLUSTER_SIZE
    ]


def count_scatters(grid: Grid) -> int:
    """Count scatter cells on the grid."""
    return sum(1 for cells in grid for symbol in cells if symbol == Symbol.SCATTER)


def scatter_payout_multiplier(count: int) -> int:
    """Scatter pay (multiple of bet) for a scatter count: 4, 5, 6+."""
    for minimum, multiplier in SCATTER_PAYOUTS.items():
        if count >= minimum:
            return multiplier
    return 0


def evaluate_scatters(count: int, bet_amount: int, free_spins: bool) -> ScatterOutcome:
    """
    Resolve scatter pay and free-spin awards.

    Base game: 4+ scatters trigger FREE_SPINS_AWARDED spins.
    Free spins: 3+ scatters retrigger FREE_SPINS_RETRIGGER_AMOUNT more.
    Scatter pay is added regardless of mode or cluster wins.
    """
    payout = math.floor(bet_amount * scatter_payout_multiplier(count))

    if not free_spins and count >= FREE_SPINS_TRIGGER:
        return ScatterOutcome(payout=payout, triggered=True, awarded=FREE_SPINS_AWARDED)
    if free_spins and count >= FREE_SPINS_RETRIGGER:
        return ScatterOutcome(payout=payout, triggered=True, awarded=FREE_SPINS_RETRIGGER_AMOUNT)
    return ScatterOutcome(payout=payout, triggered=False, awarded=0)


class BombLocator:
    """Finds bombs on a grid and assigns their multipliers."""

    def __init__(self, rng: RandomSource):
        self.rng = rng

    def draw_multiplier(self) -> int:
        """Draw a fresh bomb multiplier."""
        return weighted_choice(self.rng, BOMB_MULTIPLIER_WEIGHTS)

    def locate(
        self, grid: Grid, known: Mapping[Position, int] | None = None
    ) -> list[BombData]:
        """
        Scan the grid for bombs in row-major order.

        A bomb in a cell that `known` already maps keeps that multiplier;
        a bomb in any other cell gets a fresh draw.
        """
        known = known or {}
        bombs: list[BombData] = []
        for row, cells in enumerate(grid):
            for col, symbol in enumerate(cells):
                if symbol != Symbol.BOMB:
                    continue
                pos = Position(row=row, col=col)
                multiplier = known.get(pos)
                if multiplier is None:
                    multiplier = self.draw_multiplier()
                bombs.append(BombData(position=pos, multiplier=multiplier))
        return bombs


def apply_bomb_multipliers(
    cascade_win: int, bombs: list[BombData]
) -> tuple[int, int | None]:
    """
    Apply final-grid bomb multipliers to the cascade win, once per spin.

    Multipliers are summed, then multiply the win. With no win or no bombs
    the win is unchanged and no multiplier is reported.

    Returns (win, multiplier_total or None).
    """
    if not bombs or cascade_win <= 0:
        return cascade_win, None
    multiplier_total = sum(bomb.multiplier for bomb in bombs)
    return math.floor(cascade_win * multiplier_total), multiplier_total
