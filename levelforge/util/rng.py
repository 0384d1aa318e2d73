"""Deterministic random number generation with isolated streams.

Every generation call builds its own RNGProvider from the level seed and
hands it to each synthesizer phase. Each subsystem (room layout, cave
automata, entity placement, ...) draws from its own named stream derived from
that seed. This ensures that:

1. A level is fully reproducible from (config, seed)
2. Changes to one phase's random consumption don't cascade to others
3. Concurrent generations never share random state

Usage:
    provider = RNGProvider(master_seed=42)
    _rng = provider.get("map.dungeon")
    room_count = _rng.randint(5, 11)

Domain naming convention (hierarchical):
    - "level.scaffold", "level.identity"
    - "map.dungeon", "map.cave", "map.forest", "map.town", "map.castle"
    - "postprocess.decor"
"""

from __future__ import annotations

import zlib
from collections.abc import Sequence
from random import Random
from typing import TYPE_CHECKING, TypeAlias, TypeVar

if TYPE_CHECKING:
    from levelforge.types import RandomSeed

T = TypeVar("T")


class RNGStream:
    """Proxy that delegates to the Random instance for a domain.

    The underlying Random is created lazily by the provider on first use, so
    handing out a stream costs nothing until it is drawn from.
    """

    def __init__(self, provider: RNGProvider, domain: str) -> None:
        self._provider = provider
        self._domain = domain

    @property
    def domain(self) -> str:
        return self._domain

    def _rng(self) -> Random:
        """Get the current underlying RNG."""
        return self._provider._get_raw(self._domain)

    # -------------------------------------------------------------------------
    # Random method proxies
    # -------------------------------------------------------------------------

    def random(self) -> float:
        """Return random float in [0.0, 1.0)."""
        return self._rng().random()

    def randint(self, a: int, b: int) -> int:
        """Return random integer N such that a <= N <= b."""
        return self._rng().randint(a, b)

    def randrange(self, start: int, stop: int | None = None, step: int = 1) -> int:
        """Return randomly selected element from range(start, stop, step)."""
        return self._rng().randrange(start, stop, step)

    def choice(self, seq: Sequence[T]) -> T:
        """Return random element from non-empty sequence."""
        return self._rng().choice(seq)

    def shuffle(self, x: list) -> None:
        """Shuffle list x in place."""
        self._rng().shuffle(x)

    def sample(self, population: Sequence[T], k: int) -> list[T]:
        """Return k unique elements from population."""
        return self._rng().sample(population, k)

    def uniform(self, a: float, b: float) -> float:
        """Return random float N such that a <= N <= b."""
        return self._rng().uniform(a, b)

    def getrandbits(self, k: int) -> int:
        """Return an integer with k random bits."""
        return self._rng().getrandbits(k)

    def chance(self, probability: float) -> bool:
        """Return True with the given probability."""
        return self._rng().random() < probability


# Type alias for functions that accept either Random or RNGStream.
# Use this in type hints: `def foo(rng: RNG) -> int:`
RNG: TypeAlias = Random | RNGStream


class RNGProvider:
    """Provides isolated RNG streams for the phases of one generation run.

    Each domain gets its own Random instance derived deterministically
    from the master seed. Domains are identified by string names.
    """

    def __init__(self, master_seed: RandomSeed = None) -> None:
        self._master_seed = master_seed
        self._streams: dict[str, Random] = {}
        self._proxies: dict[str, RNGStream] = {}

    @property
    def master_seed(self) -> RandomSeed:
        return self._master_seed

    def get(self, domain: str) -> RNGStream:
        """Get an RNG stream for the named domain.

        Repeated calls with the same domain return the same proxy.

        Args:
            domain: Hierarchical name like "map.cave" or "level.scaffold"

        Returns:
            An RNGStream proxy with the same interface as Random
        """
        if domain not in self._proxies:
            self._proxies[domain] = RNGStream(self, domain)
        return self._proxies[domain]

    def _get_raw(self, domain: str) -> Random:
        """Get the raw Random instance for a domain (internal use)."""
        if domain not in self._streams:
            if self._master_seed is None:
                # No seed: use system entropy for non-deterministic behavior
                self._streams[domain] = Random()
            else:
                # Use crc32 instead of hash() - hash() is randomized per Python
                # session via PYTHONHASHSEED, which would break cross-session
                # determinism
                derived_seed = zlib.crc32(f"{self._master_seed}:{domain}".encode())
                self._streams[domain] = Random(derived_seed)
        return self._streams[domain]
