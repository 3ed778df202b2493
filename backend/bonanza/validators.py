"""Request validators."""
from bonanza.config import settings
from bonanza.errors import ErrorCode, GameError


def validate_bet(bet_amount: object) -> int:
    """
    Validate a bet amount and return it as an int.

    Raises INVALID_BET unless bet_amount is a whole number within
    [settings.min_bet, settings.max_bet]. Integral floats (10.0) are
    accepted; booleans and fractional values are not.
    """
    if isinstance(bet_amount, bool) or not isinstance(bet_amount, (int, float)):
        raise GameError(
            ErrorCode.INVALID_BET,
            f"Bet must be an integer between {settings.min_bet} and {settings.max_bet}.",
        )
    if isinstance(bet_amount, float) and not bet_amount.is_integer():
        raise GameError(
            ErrorCode.INVALID_BET,
            f"Bet must be an integer, got {bet_amount}.",
        )

    bet = int(bet_amount)
    if bet < settings.min_bet or bet > settings.max_bet:
        raise GameError(
            ErrorCode.INVALID_BET,
            f"Bet amount {bet} out of range. "
            f"Allowed: {settings.min_bet}..{settings.max_bet}",
        )
    return bet


def validate_buy_feature(free_spins_active: bool) -> None:
    """
    Validate a buy-feature purchase.

    Raises FEATURE_DISABLED if buying is switched off and FREE_SPINS_ACTIVE
    if the player is already inside a free-spin session.
    """
    if not settings.enable_buy_feature:
        raise GameError(
            ErrorCode.FEATURE_DISABLED,
            "Buy Feature is disabled.",
        )

    if free_spins_active:
        raise GameError(
            ErrorCode.FREE_SPINS_ACTIVE,
            "Cannot buy free spins while a free-spin session is active.",
        )
