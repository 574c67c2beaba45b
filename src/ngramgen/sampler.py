"""Seeded token sampling with temperature and top-k"""

import random
from typing import Mapping, Optional

from ngramgen.errors import DeadEnd, InvalidTemperatureError

MASK64 = (1 << 64) - 1
GOLDEN_GAMMA = 0x9E3779B97F4A7C15


class SeededRandom:
    """
    SplitMix64 pseudo-random generator.

    The algorithm is pinned so that a seed reproduces the same token stream
    on any platform or reimplementation; it is recorded in artifact metadata
    as "splitmix64". ``random()`` uses the top 53 bits of each output.

    Example:
        rng = SeededRandom(42)
        rng.random()  # 0.7415...
    """

    def __init__(self, seed: int):
        self.seed = seed
        self._state = seed & MASK64

    @classmethod
    def from_entropy(cls) -> "SeededRandom":
        """Generator with a fresh, unpredictable seed (exposed as ``.seed``)."""
        return cls(random.SystemRandom().getrandbits(63))

    def next_uint64(self) -> int:
        self._state = (self._state + GOLDEN_GAMMA) & MASK64
        z = self._state
        z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & MASK64
        z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & MASK64
        return z ^ (z >> 31)

    def random(self) -> float:
        """Uniform float in [0.0, 1.0)."""
        return (self.next_uint64() >> 11) * (1.0 / (1 << 53))


def rank_candidates(scores: Mapping[int, float], top_k: int = 0) -> list[tuple[int, float]]:
    """Positive-score candidates, best first, ties by ascending token id.

    Keeps the first ``top_k`` entries (all when ``top_k <= 0``).
    """
    ranked = sorted(((token, score) for token, score in scores.items() if score > 0), key=lambda x: (-x[1], x[0]))
    if top_k > 0:
        ranked = ranked[:top_k]
    return ranked


def sample(
    scores: Mapping[int, float], temperature: float = 1.0, top_k: int = 0, rng: Optional[SeededRandom] = None
) -> int:
    """
    Choose one token id from a score distribution.

    Steps:
    1. Reject temperature <= 0
    2. Rank by score (descending, ties by token id) and keep the top k
    3. Raise each score to the power 1/temperature
    4. Normalize and invert the cumulative sum at a uniform draw

    Identical (scores, temperature, top_k, seed, call order) always yield the
    identical token.

    Args:
        scores: Token id -> non-negative score
        temperature: Sharpness; 1.0 leaves scores unchanged, smaller values
            approach arg-max
        top_k: Number of best candidates to keep (<= 0 keeps all)
        rng: Seeded generator (a fresh unseeded one if omitted)

    Returns:
        Chosen token id

    Raises:
        InvalidTemperatureError: If temperature <= 0
        DeadEnd: If there are no candidates with a positive score
    """
    if not temperature > 0:
        raise InvalidTemperatureError(temperature)

    ranked = rank_candidates(scores, top_k)
    if not ranked:
        raise DeadEnd("No next-token candidates")

    if rng is None:
        rng = SeededRandom.from_entropy()

    # Scale by the best score first so large exponents cannot overflow
    best = ranked[0][1]
    exponent = 1.0 / temperature
    weights = [(score / best) ** exponent for _, score in ranked]
    total = sum(weights)

    target = rng.random() * total
    cumulative = 0.0
    for (token, _), weight in zip(ranked, weights):
        cumulative += weight
        if target < cumulative:
            return token
    return ranked[-1][0]
