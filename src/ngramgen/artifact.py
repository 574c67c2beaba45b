"""Trained n-gram count tables bundled with vocabulary and metadata"""

from types import MappingProxyType
from typing import Any, Mapping, Optional

from ngramgen.errors import UnknownTokenIdError

FORMAT_VERSION = 1
RNG_ALGORITHM = "splitmix64"

Context = tuple[int, ...]
CountTable = Mapping[Context, Mapping[int, int]]

_EMPTY: Mapping[int, int] = MappingProxyType({})


def _freeze_table(table: Mapping[Context, Mapping[int, int]]) -> CountTable:
    return MappingProxyType({tuple(ctx): MappingProxyType(dict(nexts)) for ctx, nexts in table.items()})


class Artifact:
    """
    Read-only result of training: count tables for every order from 1 up to
    ``order``, optional Kneser-Ney continuation tables, vocabulary and metadata.

    Tables are keyed by order (1 = unigram). A context key is a tuple of the
    ``order - 1`` preceding token ids; unigrams use ``()``.

    Kneser-Ney tables:
        distinct_next[k][ctx]    -- number of distinct tokens seen after ctx
        continuations[k][ctx][w] -- number of distinct tokens v such that
                                    (v, *ctx, w) was seen at order k + 1

    Once constructed nothing can be changed, so one artifact can back any
    number of concurrent generation calls.
    """

    def __init__(
        self,
        order: int,
        vocab_size: int,
        counts: Mapping[int, Mapping[Context, Mapping[int, int]]],
        metadata: Optional[Mapping[str, Any]] = None,
        vocabulary: Optional[Mapping[str, int]] = None,
        distinct_next: Optional[Mapping[int, Mapping[Context, int]]] = None,
        continuations: Optional[Mapping[int, Mapping[Context, Mapping[int, int]]]] = None,
    ):
        if order < 1:
            raise ValueError(f"Order must be >= 1, got {order}")
        if vocab_size < 1:
            raise ValueError(f"Vocabulary size must be >= 1, got {vocab_size}")

        self._order = order
        self._vocab_size = vocab_size
        self._counts = MappingProxyType({k: _freeze_table(counts.get(k, {})) for k in range(1, order + 1)})
        self._metadata = MappingProxyType(dict(metadata or {}))
        self._vocabulary = MappingProxyType(dict(vocabulary or {}))

        if continuations is None:
            self._distinct_next = None
            self._continuations = None
        else:
            if distinct_next is None:
                distinct_next = {k: {ctx: len(nexts) for ctx, nexts in self._counts[k].items()} for k in self._counts}
            self._distinct_next = MappingProxyType(
                {
                    k: MappingProxyType({tuple(ctx): n for ctx, n in distinct_next.get(k, {}).items()})
                    for k in range(1, order + 1)
                }
            )
            self._continuations = MappingProxyType(
                {k: _freeze_table(continuations.get(k, {})) for k in range(1, order)}
            )

    # ========================
    # Properties
    # ========================

    @property
    def order(self) -> int:
        return self._order

    @property
    def vocab_size(self) -> int:
        return self._vocab_size

    @property
    def counts(self) -> Mapping[int, CountTable]:
        return self._counts

    @property
    def metadata(self) -> Mapping[str, Any]:
        return self._metadata

    @property
    def vocabulary(self) -> Mapping[str, int]:
        return self._vocabulary

    @property
    def distinct_next(self) -> Optional[Mapping[int, Mapping[Context, int]]]:
        return self._distinct_next

    @property
    def continuations(self) -> Optional[Mapping[int, CountTable]]:
        return self._continuations

    @property
    def has_continuations(self) -> bool:
        return self._continuations is not None

    # ========================
    # Lookups
    # ========================

    def validate_token_id(self, token_id: int, where: str = "") -> None:
        """Raise UnknownTokenIdError unless 0 <= token_id < vocab_size."""
        if not isinstance(token_id, int) or not 0 <= token_id < self._vocab_size:
            raise UnknownTokenIdError(token_id, self._vocab_size, where=where)

    def next_token_counts(self, context: Context) -> Mapping[int, int]:
        """Raw counts of tokens seen after ``context`` (order = len(context) + 1)."""
        k = len(context) + 1
        if k > self._order:
            return _EMPTY
        return self._counts[k].get(tuple(context), _EMPTY)

    def count(self, context: Context, token_id: int) -> int:
        return self.next_token_counts(context).get(token_id, 0)

    def total_count(self, context: Context) -> int:
        return sum(self.next_token_counts(context).values())

    def num_distinct_next(self, context: Context) -> int:
        k = len(context) + 1
        if self._distinct_next is not None and k <= self._order:
            return self._distinct_next[k].get(tuple(context), 0)
        return len(self.next_token_counts(context))

    def continuation_counts(self, context: Context) -> Mapping[int, int]:
        """Distinct-left-context counts for tokens following ``context``."""
        k = len(context) + 1
        if self._continuations is None or k >= self._order:
            return _EMPTY
        return self._continuations[k].get(tuple(context), _EMPTY)

    def ngram_counts(self) -> dict[int, int]:
        """Number of distinct n-grams stored at each order."""
        return {k: sum(len(nexts) for nexts in table.values()) for k, table in self._counts.items()}

    def __repr__(self) -> str:
        counts = ", ".join(f"{k}-grams={n}" for k, n in self.ngram_counts().items())
        return f"Artifact(order={self._order}, vocab_size={self._vocab_size}, {counts})"
