"""Config hash computation.

This module provides a shared config_hash function used by:
- scripts/simulate_rtp.py (simulation report)
- telemetry (spin_processed event)

The hash covers every table that moves RTP, so two runs with the same
hash played the same math.
"""
import hashlib
import json

from bonanza.config import settings
from bonanza.logic import paytable


def get_config_hash() -> str:
    """
    Generate hash of the current game math.

    Returns 16-char hex hash of config snapshot.
    """
    config_snapshot = {
        "min_bet": settings.min_bet,
        "max_bet": settings.max_bet,
        "buy_feature_cost_multiplier": settings.buy_feature_cost_multiplier,
        "grid": [paytable.ROWS, paytable.COLS],
        "min_cluster_size": paytable.MIN_CLUSTER_SIZE,
        "max_tumbles": paytable.MAX_TUMBLES,
        "base_weights": {s.value: w for s, w in paytable.BASE_WEIGHTS.items()},
        "free_spins_weights": {s.value: w for s, w in paytable.FREE_SPINS_WEIGHTS.items()},
        "paytable": {s.value: list(p) for s, p in paytable.PAYTABLE.items()},
        "scatter_payouts": {str(c): m for c, m in paytable.SCATTER_PAYOUTS.items()},
        "bomb_multipliers": {str(m): w for m, w in paytable.BOMB_MULTIPLIER_WEIGHTS.items()},
        "free_spins": [
            paytable.FREE_SPINS_TRIGGER,
            paytable.FREE_SPINS_AWARDED,
            paytable.FREE_SPINS_RETRIGGER,
            paytable.FREE_SPINS_RETRIGGER_AMOUNT,
        ],
    }
    canonical = json.dumps(config_snapshot, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()[:16]
