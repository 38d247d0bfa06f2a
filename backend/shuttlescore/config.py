import logging
import os

logger = logging.getLogger(__name__)

SCORE_CAPS = {15: 21, 21: 30, 30: 30}
DEFAULT_CAP = 30


def _parse_positive_int(env_var: str, default: int) -> int:
    raw_value = os.getenv(env_var)
    if raw_value is None or not raw_value.strip():
        return default

    try:
        value = int(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid integer (got %r); defaulting to %d",
            env_var,
            raw_value,
            default,
        )
        return default

    if value <= 0:
        logger.warning("%s must be positive; defaulting to %d", env_var, default)
        return default

    return value


SCORING_SYSTEM = _parse_positive_int("SHUTTLESCORE_SCORING_SYSTEM", 21)
DEFAULT_BEST_OF = _parse_positive_int("SHUTTLESCORE_BEST_OF", 3)


def max_point(scoring_system: int) -> int:
    """Return the hard cap for a game played to ``scoring_system`` points.

    15-point games cap at 21 and 21-point games at 30. Every other target
    caps at 30, or at the target itself when it is higher.
    """
    cap = SCORE_CAPS.get(scoring_system)
    if cap is not None:
        return cap
    return max(scoring_system, DEFAULT_CAP)
