"""Smoothing methods for n-gram generation

This module provides the strategies that turn count tables into next-token scores:
- Simple backoff: count-weighted blend of the longest observed context with lower orders
- Kneser-Ney: absolute discounting with continuation counts
"""

from typing import Optional

from ngramgen.smoothing.base import SmoothingMethod
from ngramgen.smoothing.kneser_ney import KneserNeySmoother, continuation_scores, discounted_scores
from ngramgen.smoothing.simple_backoff import SimpleBackoffSmoother

__all__ = [
    "SMOOTHING_ALIASES",
    "SMOOTHING_METHODS",
    "KneserNeySmoother",
    "SimpleBackoffSmoother",
    "SmoothingMethod",
    "canonical_method",
    "continuation_scores",
    "create_smoother",
    "discounted_scores",
]

SMOOTHING_METHODS = {
    "simple_backoff": SimpleBackoffSmoother,
    "kneser_ney": KneserNeySmoother,
}

SMOOTHING_ALIASES = {
    "simple": "simple_backoff",
    "backoff": "simple_backoff",
    "kneser-ney": "kneser_ney",
    "kn": "kneser_ney",
}


def canonical_method(method: str) -> str:
    """Resolve a smoothing method name or alias.

    Raises:
        ValueError: If the name is not a known method
    """
    name = SMOOTHING_ALIASES.get(method, method)
    if name not in SMOOTHING_METHODS:
        raise ValueError(f"Unknown smoothing method: {method}")
    return name


def create_smoother(
    method: str,
    max_order: int,
    verbose: bool = False,
    backoff_weight: Optional[float] = None,
    discount: Optional[float] = None,
) -> SmoothingMethod:
    """Factory function to create appropriate smoother.

    Args:
        method: Smoothing method name ('simple_backoff', 'kneser_ney' or an alias)
        max_order: Maximum n-gram order
        verbose: Verbose output
        backoff_weight: Lower-order blend weight for simple backoff (None for default)
        discount: Absolute discount for Kneser-Ney (None for default)

    Returns:
        Appropriate SmoothingMethod instance

    Examples:
        >>> smoother = create_smoother("kneser_ney", max_order=3)
        >>> smoother = create_smoother("simple", max_order=5, backoff_weight=0.3)
    """
    method = canonical_method(method)

    if method == "simple_backoff":
        if backoff_weight is None:
            backoff_weight = SimpleBackoffSmoother.DEFAULT_BACKOFF_WEIGHT
        return SimpleBackoffSmoother(max_order, verbose, backoff_weight=backoff_weight)

    if discount is None:
        discount = KneserNeySmoother.DEFAULT_DISCOUNT
    return KneserNeySmoother(max_order, verbose, discount=discount)
