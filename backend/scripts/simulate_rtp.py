#!/usr/bin/env python3
"""
RTP simulation for the cascade slot.

Plays headless rounds with a seeded source. A round is one paid spin (base)
or one purchase (buy); any free-spin session it opens is played to the end
and counted in the same round.

Usage:
    python -m scripts.simulate_rtp --mode base --rounds 100000 --seed RTP_2025
    python -m scripts.simulate_rtp --mode buy --rounds 20000 --seed RTP_2025 --out out/rtp_buy.csv
"""
import argparse
import csv
import hashlib
import logging
import sys
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from bonanza.config import settings
from bonanza.config_hash import get_config_hash
from bonanza.free_spins import advance_session
from bonanza.logic.engine import BonanzaEngine
from bonanza.logic.models import SpinResult
from bonanza.logic.rng import SeededRandom


logger = logging.getLogger(__name__)


@dataclass
class SimulationStats:
    """Statistics accumulated during simulation."""
    total_wagered: int = 0
    total_won: int = 0
    rounds: int = 0
    wins: int = 0
    spins: int = 0
    free_spins_played: int = 0
    bonus_entries: int = 0
    retriggers: int = 0
    cascade_cap_hits: int = 0
    max_round_win: int = 0
    bomb_multiplier_hits: int = 0
    bomb_multiplier_sum: int = 0
    session_wins: list[int] = field(default_factory=list)
    cluster_counts: Counter = field(default_factory=Counter)

    def record_spin(self, result: SpinResult) -> None:
        """Fold one spin's record into the totals."""
        self.spins += 1
        if result.cascade_capped:
            self.cascade_cap_hits += 1
        if result.bomb_multiplier_total is not None:
            self.bomb_multiplier_hits += 1
            self.bomb_multiplier_sum += result.bomb_multiplier_total
        for tumble in result.tumbles:
            for cluster in tumble.clusters:
                self.cluster_counts[cluster.symbol.value] += 1

    @property
    def rtp(self) -> float:
        return (self.total_won / self.total_wagered * 100) if self.total_wagered else 0.0

    @property
    def hit_freq(self) -> float:
        return (self.wins / self.rounds * 100) if self.rounds else 0.0

    @property
    def bonus_entry_rate(self) -> float:
        return (self.bonus_entries / self.rounds * 100) if self.rounds else 0.0

    @property
    def avg_bomb_multiplier(self) -> float:
        return (self.bomb_multiplier_sum / self.bomb_multiplier_hits) if self.bomb_multiplier_hits else 0.0


def seed_to_int(seed_str: str) -> int:
    """Convert string seed to integer deterministically."""
    return int(hashlib.sha256(seed_str.encode()).hexdigest(), 16) % (2**31)


def get_timestamp_iso() -> str:
    """Get ISO 8601 UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def play_round(
    engine: BonanzaEngine, stats: SimulationStats, bet_amount: int, buy: bool
) -> int:
    """Play one paid spin or purchase plus any free spins it opens. Returns round win."""
    result = engine.resolve_spin(bet_amount, is_buy_feature=buy)
    stats.record_spin(result)
    round_win = result.total_win

    state = advance_session(None, result)
    if state is None:
        return round_win
    stats.bonus_entries += 1

    session_win = 0
    while state.spins_remaining > 0:
        result = engine.resolve_spin(state.locked_bet, is_free_spin=True)
        stats.record_spin(result)
        stats.free_spins_played += 1
        if result.triggered_free_spins:
            stats.retriggers += 1
        session_win += result.total_win
        state = advance_session(state, result)

    stats.session_wins.append(session_win)
    return round_win + session_win


def run_simulation(
    mode: str,
    rounds: int,
    seed_str: str,
    bet_amount: int = 10,
    verbose: bool = False,
) -> SimulationStats:
    """
    Run headless simulation.

    Args:
        mode: 'base' or 'buy'
        rounds: Number of rounds to simulate
        seed_str: Seed string for reproducibility
        bet_amount: Bet per round
        verbose: Print progress

    Returns:
        SimulationStats with aggregated results
    """
    engine = BonanzaEngine(rng=SeededRandom(seed=seed_to_int(seed_str)))
    buy = mode == "buy"
    cost = bet_amount * settings.buy_feature_cost_multiplier if buy else bet_amount

    stats = SimulationStats()
    progress_interval = max(1, rounds // 100)

    for round_index in range(rounds):
        if verbose and round_index % progress_interval == 0:
            print(f"\rProgress: {round_index / rounds * 100:.1f}%", end="", flush=True)

        round_win = play_round(engine, stats, bet_amount, buy)
        stats.total_wagered += cost
        stats.total_won += round_win
        stats.rounds += 1
        if round_win > 0:
            stats.wins += 1
        stats.max_round_win = max(stats.max_round_win, round_win)

    if verbose:
        print("\rProgress: 100.0%")

    return stats


def write_csv(mode: str, seed_str: str, bet_amount: int, stats: SimulationStats, output_path: str) -> None:
    """Write a one-row summary CSV."""
    row = {
        "timestamp": get_timestamp_iso(),
        "config_hash": get_config_hash(),
        "mode": mode,
        "rounds": stats.rounds,
        "seed": seed_str,
        "bet_amount": bet_amount,
        "rtp": f"{stats.rtp:.4f}",
        "hit_freq": f"{stats.hit_freq:.4f}",
        "bonus_entry_rate": f"{stats.bonus_entry_rate:.4f}",
        "retriggers": stats.retriggers,
        "free_spins_played": stats.free_spins_played,
        "avg_bomb_multiplier": f"{stats.avg_bomb_multiplier:.2f}",
        "max_round_win_x": f"{stats.max_round_win / bet_amount:.2f}",
        "cascade_cap_hits": stats.cascade_cap_hits,
    }

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=row.keys())
        writer.writeheader()
        writer.writerow(row)

    logger.info("CSV written to %s", output_path)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Cascade slot RTP simulation")
    parser.add_argument("--mode", choices=["base", "buy"], required=True, help="Simulation mode")
    parser.add_argument("--rounds", type=int, required=True, help="Number of rounds to simulate")
    parser.add_argument("--seed", type=str, required=True, help="Seed string for reproducibility")
    parser.add_argument("--bet", type=int, default=10, help="Bet per round")
    parser.add_argument("--out", type=str, default=None, help="Optional output CSV path")
    parser.add_argument("--verbose", action="store_true", help="Show progress")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print(f"Running simulation: mode={args.mode}, rounds={args.rounds}, seed={args.seed}")
    print(f"Config hash: {get_config_hash()}")

    stats = run_simulation(
        mode=args.mode,
        rounds=args.rounds,
        seed_str=args.seed,
        bet_amount=args.bet,
        verbose=args.verbose,
    )

    if args.out:
        write_csv(args.mode, args.seed, args.bet, stats, args.out)

    print("\nSummary:")
    print(f"  Rounds: {stats.rounds} ({stats.spins} spins, {stats.free_spins_played} free)")
    print(f"  Total wagered: {stats.total_wagered}")
    print(f"  Total won: {stats.total_won}")
    print(f"  RTP: {stats.rtp:.4f}%")
    print(f"  Hit frequency: {stats.hit_freq:.4f}%")
    print(f"  Bonus entries: {stats.bonus_entries} ({stats.bonus_entry_rate:.4f}%)")
    print(f"  Retriggers: {stats.retriggers}")
    if stats.session_wins:
        avg_session = sum(stats.session_wins) / len(stats.session_wins)
        print(f"  Avg free-spin session win: {avg_session / args.bet:.2f}x")
    print(f"  Avg bomb multiplier (when applied): {stats.avg_bomb_multiplier:.2f}x")
    print(f"  Max round win: {stats.max_round_win / args.bet:.2f}x")
    print(f"  Cascade cap hits: {stats.cascade_cap_hits}")
    for symbol, count in stats.cluster_counts.most_common():
        print(f"    {symbol}: {count} clusters")

    return 0


if __name__ == "__main__":
    sys.exit(main())
