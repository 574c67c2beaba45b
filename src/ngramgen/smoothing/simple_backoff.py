"""Simple count-weighted backoff"""

from typing import Sequence

from ngramgen.artifact import Artifact, Context
from ngramgen.smoothing.base import SmoothingMethod


class SimpleBackoffSmoother(SmoothingMethod):
    """Count-weighted backoff with a single blend weight.

    For the longest observed context, each next token scores
    ``(1 - backoff_weight) * count`` plus ``backoff_weight`` times its score
    one order down. Unobserved contexts back off to the next order with no
    blending. Order 1 scores are the raw unigram counts.

    The blend is a heuristic over counts, not a probability distribution.
    """

    name = "simple_backoff"
    DEFAULT_BACKOFF_WEIGHT = 0.4

    def __init__(self, max_order: int, verbose: bool = False, backoff_weight: float = DEFAULT_BACKOFF_WEIGHT):
        super().__init__(max_order, verbose)
        if not 0.0 <= backoff_weight <= 1.0:
            raise ValueError(f"Backoff weight {backoff_weight} out of range [0.0, 1.0]")
        self.backoff_weight = backoff_weight

    @classmethod
    def requires_continuations(cls) -> bool:
        return False

    def score(self, context_ids: Sequence[int], artifact: Artifact) -> dict[int, float]:
        return self._score(self.trailing_context(context_ids, artifact), artifact)

    def _score(self, context: Context, artifact: Artifact) -> dict[int, float]:
        # Pure backoff past unobserved contexts
        while context and not artifact.next_token_counts(context):
            context = context[1:]

        counts = artifact.next_token_counts(context)
        if not context:
            return {token: float(count) for token, count in counts.items()}

        weight_high = 1.0 - self.backoff_weight
        scores = {token: weight_high * count for token, count in counts.items()}
        for token, lower in self._score(context[1:], artifact).items():
            scores[token] = scores.get(token, 0.0) + self.backoff_weight * lower
        return scores
