from typing import Callable, TypeVar

from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)

S = TypeVar("S")
R = TypeVar("R")


def optimistic(
    snapshot: Callable[[], S],
    apply: Callable[[], None],
    remote: Callable[[], R],
    restore: Callable[[S], None],
) -> R:
    """
    Apply a change locally before the remote call confirms it.
    On failure the snapshot is restored and the error re-raised.
    """
    saved = snapshot()
    apply()
    try:
        return remote()
    except Exception as e:
        logger.warning(f"Optimistic update rolled back: {e}")
        restore(saved)
        raise
