"""Free-spin session transitions, applied after each resolved spin."""
from bonanza.logic.models import FreeSpinsState, SpinResult


def advance_session(
    state: FreeSpinsState | None, result: SpinResult
) -> FreeSpinsState | None:
    """
    Apply one resolved spin to a player's free-spin session.

    - No session, spin triggered: open a session with the awarded spins,
      locking the spin's bet. The triggering spin's win is not part of
      the session total.
    - Session active: consume one spin, add any retrigger award, and add
      the spin's win to the running total.
    - Anything else: no session.

    A returned state with spins_remaining == 0 is a session that just
    ended; callers report it and then clear it.
    """
    if state is None or state.spins_remaining <= 0:
        if result.triggered_free_spins:
            return FreeSpinsState(
                spins_remaining=result.free_spins_awarded,
                locked_bet=result.total_bet,
                total_win=0,
            )
        return None

    spins_remaining = state.spins_remaining - 1
    if result.triggered_free_spins:
        spins_remaining += result.free_spins_awarded

    return FreeSpinsState(
        spins_remaining=spins_remaining,
        locked_bet=state.locked_bet,
        total_win=state.total_win + result.total_win,
    )
