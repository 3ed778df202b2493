"""Grid geometry, symbol weights and pay tables."""
from bonanza.logic.models import Symbol


# Grid dimensions
ROWS = 5
COLS = 6

# Scatter pays: this many of one paying symbol anywhere on the grid wins
MIN_CLUSTER_SIZE = 8

# Safety bound on cascade steps per spin
MAX_TUMBLES = 20

# Free spins
FREE_SPINS_TRIGGER = 4
FREE_SPINS_AWARDED = 10
FREE_SPINS_RETRIGGER = 3
FREE_SPINS_RETRIGGER_AMOUNT = 5

# Scatters placed on a bought grid
BUY_FEATURE_SCATTERS = 4

# Draw weights, base game (higher = more common)
BASE_WEIGHTS: dict[Symbol, int] = {
    Symbol.BANANA: 26,
    Symbol.GRAPES: 23,
    Symbol.WATERMELON: 20,
    Symbol.PLUM: 18,
    Symbol.APPLE: 15,
    Symbol.BLUE_CANDY: 13,
    Symbol.GREEN_CANDY: 10,
    Symbol.PURPLE_CANDY: 8,
    Symbol.HEART_CANDY: 6,
    Symbol.SCATTER: 2,
}

# Draw weights, free spins: bombs join the reel set
FREE_SPINS_WEIGHTS: dict[Symbol, int] = {
    **BASE_WEIGHTS,
    Symbol.BOMB: 9,
}

# Non-forced cells of a bought grid never hold a scatter
BUY_FEATURE_FILL_WEIGHTS: dict[Symbol, int] = {
    symbol: weight
    for symbol, weight in BASE_WEIGHTS.items()
    if symbol is not Symbol.SCATTER
}

# Cluster pays as multiples of bet for 8-9 / 10-11 / 12+ symbols
PAYTABLE: dict[Symbol, tuple[float, float, float]] = {
    Symbol.HEART_CANDY: (10, 25, 50),
    Symbol.PURPLE_CANDY: (2.5, 10, 25),
    Symbol.GREEN_CANDY: (2, 5, 15),
    Symbol.BLUE_CANDY: (1.5, 2, 12),
    Symbol.APPLE: (1, 1.5, 10),
    Symbol.PLUM: (0.8, 1.2, 8),
    Symbol.WATERMELON: (0.5, 1, 5),
    Symbol.GRAPES: (0.4, 0.9, 4),
    Symbol.BANANA: (0.25, 0.75, 2),
}

# Scatter pays as multiples of bet, keyed by minimum count (checked high to low)
SCATTER_PAYOUTS: dict[int, int] = {
    6: 100,
    5: 5,
    4: 3,
}

# Bomb multiplier -> draw weight. Low values dominate.
BOMB_MULTIPLIER_WEIGHTS: dict[int, int] = {
    2: 40,
    3: 35,
    4: 32,
    5: 30,
    6: 28,
    8: 35,
    10: 32,
    12: 28,
    15: 25,
    20: 18,
    25: 14,
    30: 10,
    40: 8,
    50: 6,
    60: 4,
    80: 3,
    100: 3,
}


def weights_for(free_spins: bool) -> dict[Symbol, int]:
    """Weight table for the current mode."""
    return FREE_SPINS_WEIGHTS if free_spins else BASE_WEIGHTS
