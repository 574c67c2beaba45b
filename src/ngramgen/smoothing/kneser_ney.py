"""Kneser-Ney smoothing"""

from typing import Sequence

from ngramgen.artifact import Artifact, Context
from ngramgen.smoothing.base import SmoothingMethod


def uniform_scores(vocab_size: int) -> dict[int, float]:
    """Uniform distribution over every valid token id."""
    prob = 1.0 / vocab_size
    return dict.fromkeys(range(vocab_size), prob)


def continuation_scores(context: Context, artifact: Artifact, discount: float) -> dict[int, float]:
    """Lower-order Kneser-Ney distribution built from continuation counts.

    A token's weight is the number of distinct tokens that precede
    ``(*context, token)``, not how often it occurred. Discounted continuation
    mass is interpolated with the next shorter context, bottoming out in the
    uniform distribution. Contexts without continuation data hand their full
    mass to the shorter context.
    """
    if context:
        lower = continuation_scores(context[1:], artifact, discount)
    else:
        lower = uniform_scores(artifact.vocab_size)

    continuations = artifact.continuation_counts(context)
    if not continuations:
        return lower

    total = sum(continuations.values())
    leftover = discount * len(continuations) / total

    scores = {token: leftover * prob for token, prob in lower.items()}
    for token, count in continuations.items():
        scores[token] = scores.get(token, 0.0) + max(count - discount, 0.0) / total
    return scores


def discounted_scores(context: Context, artifact: Artifact, discount: float) -> dict[int, float]:
    """Highest-order Kneser-Ney distribution built from raw counts.

    Each observed next token gets ``max(c - D, 0) / total``; the leftover mass
    ``D * distinct / total`` is spread according to the continuation
    distribution of the shortened context. An unobserved context falls
    straight through to that continuation distribution.
    """
    counts = artifact.next_token_counts(context)
    if context:
        lower = continuation_scores(context[1:], artifact, discount)
    else:
        lower = uniform_scores(artifact.vocab_size)

    if not counts:
        return lower

    total = sum(counts.values())
    leftover = discount * artifact.num_distinct_next(context) / total

    scores = {token: leftover * prob for token, prob in lower.items()}
    for token, count in counts.items():
        scores[token] = scores.get(token, 0.0) + max(count - discount, 0.0) / total
    return scores


class KneserNeySmoother(SmoothingMethod):
    """Interpolated Kneser-Ney smoothing with absolute discounting.

    Kneser-Ney uses:
    - Absolute discounting: subtract D from every observed count
    - Continuation counts: lower orders score a token by how many distinct
      contexts it completes rather than by raw frequency
    - Interpolation: the discounted mass is redistributed through the lower
      orders, ending in a uniform distribution over the vocabulary

    Every valid token id receives a positive score and the scores sum to 1.
    Requires an artifact trained with smoothing_method="kneser_ney".
    """

    name = "kneser_ney"
    DEFAULT_DISCOUNT = 0.75

    def __init__(self, max_order: int, verbose: bool = False, discount: float = DEFAULT_DISCOUNT):
        super().__init__(max_order, verbose)
        if not 0.0 < discount < 1.0:
            raise ValueError(f"Discount {discount} out of range (0.0, 1.0)")
        self.discount = discount

    @classmethod
    def requires_continuations(cls) -> bool:
        return True

    def score(self, context_ids: Sequence[int], artifact: Artifact) -> dict[int, float]:
        if not artifact.has_continuations:
            raise ValueError(
                "Kneser-Ney smoothing needs continuation counts; "
                "train the artifact with smoothing_method='kneser_ney'"
            )
        return discounted_scores(self.trailing_context(context_ids, artifact), artifact, self.discount)
