"""Spin resolution engine for the cascade slot."""
from bonanza.logic.cascade import CascadeResolver
from bonanza.logic.evaluator import BombLocator, apply_bomb_multipliers, evaluate_scatters
from bonanza.logic.grid import GridGenerator
from bonanza.logic.models import SpinResult, copy_grid
from bonanza.logic.rng import RandomSource, SecureRandom
from bonanza.validators import validate_bet


class BonanzaEngine:
    """
    Resolves one spin into a complete, immutable record.

    Implements:
    - Weighted grid generation (base, free spins, forced-scatter buy)
    - Scatter-pay cluster detection and tumbling
    - Free-spin trigger / retrigger from the highest scatter count seen
    - Bomb multipliers applied once, from the settled grid

    Holds no state between calls beyond its random source.
    """

    def __init__(self, rng: RandomSource | None = None):
        self.rng = rng or SecureRandom()
        self.generator = GridGenerator(self.rng)
        self.bomb_locator = BombLocator(self.rng)
        self.cascade = CascadeResolver(self.generator, self.bomb_locator)

    def resolve_spin(
        self,
        bet_amount: int,
        is_free_spin: bool = False,
        is_buy_feature: bool = False,
    ) -> SpinResult:
        """
        Execute a spin and return its record.

        Args:
            bet_amount: Integer bet in [min_bet, max_bet]
            is_free_spin: Spin is part of an active free-spin session
            is_buy_feature: Spin enters free spins by purchase; always
                resolved as a base-game spin on a forced-scatter grid

        Returns:
            SpinResult with grids, tumbles, wins and feature transitions

        Raises:
            GameError(INVALID_BET) for a bet outside the allowed range
        """
        bet = validate_bet(bet_amount)
        free_spins = is_free_spin and not is_buy_feature

        # 1) Generate grid
        if is_buy_feature:
            grid = self.generator.generate_forced_scatters()
        else:
            grid = self.generator.generate(free_spins)

        # 2) Bombs on the opening grid seed multiplier continuity
        initial_bombs = self.bomb_locator.locate(grid) if free_spins else []

        # 3) Tumble to completion
        outcome = self.cascade.resolve(
            grid,
            bet,
            free_spins=free_spins,
            known_bombs={bomb.position: bomb.multiplier for bomb in initial_bombs},
        )

        # 4) Scatters count at their peak across every grid of the spin
        scatter = evaluate_scatters(outcome.max_scatter_count, bet, free_spins)

        # 5) Bomb multipliers from the settled grid, applied once
        final_bombs = (
            self.bomb_locator.locate(outcome.grid, outcome.known_bombs) if free_spins else []
        )
        multiplied_win, bomb_multiplier_total = apply_bomb_multipliers(
            outcome.cascade_win, final_bombs
        )

        return SpinResult(
            initial_grid=copy_grid(grid),
            initial_bombs=initial_bombs,
            tumbles=outcome.tumbles,
            final_bombs=final_bombs,
            total_win=multiplied_win + scatter.payout,
            total_bet=bet,
            scatter_count=outcome.max_scatter_count,
            scatter_payout=scatter.payout,
            triggered_free_spins=scatter.triggered,
            free_spins_awarded=scatter.awarded,
            bomb_multiplier_total=bomb_multiplier_total,
            cascade_win=outcome.cascade_win,
            cascade_capped=outcome.capped,
        )
