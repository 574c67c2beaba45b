"""Base class for smoothing methods"""

from abc import ABC, abstractmethod
from typing import Sequence

from ngramgen.artifact import Artifact


class SmoothingMethod(ABC):
    """Base class for next-token scoring strategies.

    Smoothing turns the sparse count tables of an Artifact into a score for
    every plausible next token, falling back to shorter contexts when the
    longer ones were never observed. Implementations hold configuration only,
    never per-request state, so one instance can serve concurrent requests.
    """

    name = "base"

    def __init__(self, max_order: int, verbose: bool = False):
        self.max_order = max_order
        self.verbose = verbose

    @abstractmethod
    def score(self, context_ids: Sequence[int], artifact: Artifact) -> dict[int, float]:
        """Score candidate next tokens.

        Args:
            context_ids: Preceding token ids, oldest first. Only the last
                ``max_order - 1`` are used.
            artifact: Trained count tables

        Returns:
            Mapping of token id -> non-negative score (not necessarily normalized)
        """
        pass

    @classmethod
    @abstractmethod
    def requires_continuations(cls) -> bool:
        """Whether this method needs Kneser-Ney continuation tables."""
        pass

    def trailing_context(self, context_ids: Sequence[int], artifact: Artifact) -> tuple[int, ...]:
        """Last ``order - 1`` ids of the context (fewer if the context is shorter)."""
        order = min(self.max_order, artifact.order)
        if order <= 1:
            return ()
        return tuple(context_ids[-(order - 1) :])
