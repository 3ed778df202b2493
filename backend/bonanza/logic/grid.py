"""Weighted grid generation."""
from bonanza.logic.models import Grid, Position, Symbol
from bonanza.logic.paytable import (
    BUY_FEATURE_FILL_WEIGHTS,
    BUY_FEATURE_SCATTERS,
    COLS,
    ROWS,
    weights_for,
)
from bonanza.logic.rng import RandomSource, weighted_choice


class GridGenerator:
    """Draws symbols and grids from the mode's weight table."""

    def __init__(self, rng: RandomSource):
        self.rng = rng

    def draw_symbol(self, free_spins: bool = False) -> Symbol:
        """Draw one symbol. Bombs are only possible in free spins."""
        return weighted_choice(self.rng, weights_for(free_spins))

    def generate(self, free_spins: bool = False) -> Grid:
        """Generate a full grid, one independent draw per cell, row by row."""
        return [
            [self.draw_symbol(free_spins) for _ in range(COLS)]
            for _ in range(ROWS)
        ]

    def generate_forced_scatters(self) -> Grid:
        """
        Generate a grid for a purchased bonus.

        Exactly BUY_FEATURE_SCATTERS cells hold a scatter, chosen as the head
        of a Fisher-Yates shuffle of all positions. Other cells are drawn
        from the base table without scatters.
        """
        grid = [
            [weighted_choice(self.rng, BUY_FEATURE_FILL_WEIGHTS) for _ in range(COLS)]
            for _ in range(ROWS)
        ]

        positions = [Position(row=row, col=col) for row in range(ROWS) for col in range(COLS)]
        for i in range(len(positions) - 1, 0, -1):
            j = self.rng.next_int(i + 1)
            positions[i], positions[j] = positions[j], positions[i]

        for pos in positions[:BUY_FEATURE_SCATTERS]:
            grid[pos.row][pos.col] = Symbol.SCATTER

        return grid
