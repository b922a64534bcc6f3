"""
Random question selection with a cooldown on recently drawn questions.
"""
import logging
import math
import random
from collections import deque
from typing import List, Optional, Set

from .exceptions import ExhaustedPool, InvalidConfiguration

logger = logging.getLogger(__name__)


class CooldownSelector:
    """
    Draws question indices uniformly from [0, pool_size), skipping the most
    recently drawn floor(pool_size * cooldown_fraction) indices.
    """

    def __init__(self, pool_size: int, cooldown_fraction: float, rng: Optional[random.Random] = None):
        """
        Initialize the selector.

        Args:
            pool_size: Number of questions in the pool
            cooldown_fraction: Fraction of the pool kept out of rotation after a draw
            rng: Random source, seed it for reproducible draws

        Raises:
            InvalidConfiguration: If the pool size or cooldown fraction is unusable
        """
        if isinstance(pool_size, bool) or not isinstance(pool_size, int) or pool_size <= 0:
            raise InvalidConfiguration(f"Question pool size must be a positive integer, got {pool_size!r}")

        if isinstance(cooldown_fraction, bool) or not isinstance(cooldown_fraction, (int, float)):
            raise InvalidConfiguration(
                f"Cooldown fraction must be a number, got {type(cooldown_fraction).__name__}"
            )
        if not 0 <= cooldown_fraction < 1:
            raise InvalidConfiguration(f"Cooldown fraction must be in [0, 1), got {cooldown_fraction}")

        capacity = math.floor(pool_size * cooldown_fraction)
        # At least two indices must stay eligible, otherwise draws are forced.
        if capacity > 0 and capacity >= pool_size - 1:
            raise InvalidConfiguration(
                f"Cooldown of {capacity} questions leaves no random choice in a pool of {pool_size}; "
                f"lower the cooldown fraction or add questions"
            )

        self._pool_size = pool_size
        self._cooldown_fraction = cooldown_fraction
        self._capacity = capacity
        self._history: deque = deque()
        self._on_cooldown: Set[int] = set()
        self._rng = rng or random.Random()

        logger.info(
            f"Question selector created: pool size {pool_size}, "
            f"{capacity} questions on cooldown after each draw"
        )

    def draw(self) -> int:
        """
        Draw the next question index.

        Returns:
            An index that is not among the recently drawn ones

        Raises:
            ExhaustedPool: If every index is on cooldown
        """
        eligible = [index for index in range(self._pool_size) if index not in self._on_cooldown]
        if not eligible:
            raise ExhaustedPool(
                f"All {self._pool_size} questions are on cooldown (capacity {self._capacity})"
            )

        chosen = self._rng.choice(eligible)

        self._history.append(chosen)
        self._on_cooldown.add(chosen)
        if len(self._history) > self._capacity:
            evicted = self._history.popleft()
            self._on_cooldown.discard(evicted)
            logger.debug(f"Question {evicted} left the cooldown window")

        logger.debug(f"Drew question {chosen}; on cooldown: {list(self._history)}")
        return chosen

    @property
    def pool_size(self) -> int:
        """Number of questions in the pool."""
        return self._pool_size

    @property
    def capacity(self) -> int:
        """Number of recently drawn indices kept out of rotation."""
        return self._capacity

    @property
    def recent(self) -> List[int]:
        """Indices currently on cooldown, oldest first."""
        return list(self._history)
