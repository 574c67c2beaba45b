#!/usr/bin/env python

import sys
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from ngramgen.artifact import FORMAT_VERSION, RNG_ALGORITHM, Artifact
from ngramgen.errors import EmptyCorpusError, UnknownTokenIdError
from ngramgen.smoothing import SMOOTHING_METHODS, canonical_method
from ngramgen.tokenizer import Tokenizer


class NgramTrainer:
    """
    Counts n-grams of every order from 1 up to ``max_order`` in one pass over a
    token id sequence and packages them as an immutable Artifact.

    For each position i and each order k that fits, the window
    ``ids[i-k+1 : i+1]`` increments ``counts[k][ids[i-k+1:i]][ids[i]]``, so
    all lower orders needed for backoff are available without a second pass.

    With Kneser-Ney smoothing the trainer also records:
    - the set of distinct next tokens for every context
    - for every lower-order (context, next) pair, the set of distinct tokens
      that precede it at the next order up
    Both are reduced to integer counts when training finishes.

    Example:
        tokenizer = WhitespaceTokenizer.from_corpus(text)
        trainer = NgramTrainer(max_order=3, smoothing_method="kneser_ney")
        artifact = trainer.train_text(text, tokenizer)
        write_artifact_file(artifact, "model.json")
    """

    def __init__(self, max_order: int = 3, smoothing_method: str = "kneser_ney", verbose: bool = False):
        if max_order < 1:
            raise ValueError(f"max_order must be >= 1, got {max_order}")

        self.max_order = max_order
        self.smoothing_method = canonical_method(smoothing_method)
        self.verbose = verbose
        self.logfile = sys.stderr

    @property
    def track_continuations(self) -> bool:
        return SMOOTHING_METHODS[self.smoothing_method].requires_continuations()

    def train(
        self,
        token_ids: Sequence[int],
        vocab_size: Optional[int] = None,
        tokenizer_name: str = "unknown",
        vocabulary: Optional[dict[str, int]] = None,
        tokenizer_config: Optional[dict[str, Any]] = None,
    ) -> Artifact:
        """
        Build count tables for every order from a token id sequence.

        Args:
            token_ids: Training corpus as token ids (not modified)
            vocab_size: Size of the id space; defaults to max(token_ids) + 1
            tokenizer_name: Identifier of the tokenizer that produced the ids
            vocabulary: Optional token text -> id mapping stored with the model
            tokenizer_config: Tokenizer settings (case folding, normalization) stored
                so the tokenizer can be rebuilt on load

        Returns:
            Trained Artifact

        Raises:
            EmptyCorpusError: If token_ids is empty
            UnknownTokenIdError: If an id is negative or >= vocab_size
        """
        if len(token_ids) == 0:
            raise EmptyCorpusError("Cannot train on an empty corpus (no token ids)")

        if vocab_size is None:
            vocab_size = max(token_ids) + 1

        for position, token_id in enumerate(token_ids):
            if not isinstance(token_id, int) or not 0 <= token_id < vocab_size:
                raise UnknownTokenIdError(token_id, vocab_size, where=f"training corpus at position {position}")

        if self.verbose:
            print(
                f"Training {self.max_order}-gram counts on {len(token_ids)} tokens "
                f"(vocabulary {vocab_size}, {self.smoothing_method})",
                file=self.logfile,
            )

        counts = {k: defaultdict(lambda: defaultdict(int)) for k in range(1, self.max_order + 1)}
        track = self.track_continuations
        next_sets: dict[int, Any] = {k: defaultdict(set) for k in range(1, self.max_order + 1)}
        left_sets: dict[int, Any] = {k: defaultdict(lambda: defaultdict(set)) for k in range(1, self.max_order)}

        ids = tuple(token_ids)
        for i, token_id in enumerate(ids):
            for k in range(1, min(self.max_order, i + 1) + 1):
                context = ids[i - k + 1 : i]
                counts[k][context][token_id] += 1

                if track:
                    next_sets[k][context].add(token_id)
                    if k > 1:
                        # (v, *suffix, w) observed at order k: v is a new left context of (suffix, w)
                        left_sets[k - 1][context[1:]][token_id].add(context[0])

        distinct_next = None
        continuations = None
        if track:
            distinct_next = {k: {ctx: len(nexts) for ctx, nexts in table.items()} for k, table in next_sets.items()}
            continuations = {
                k: {ctx: {w: len(lefts) for w, lefts in nexts.items()} for ctx, nexts in table.items()}
                for k, table in left_sets.items()
            }

        metadata = {
            "order": self.max_order,
            "total_tokens": len(ids),
            "trained_at": datetime.now(timezone.utc).isoformat(),
            "tokenizer": tokenizer_name,
            "tokenizer_config": dict(tokenizer_config or {}),
            "smoothing_method": self.smoothing_method,
            "rng": RNG_ALGORITHM,
            "format_version": FORMAT_VERSION,
        }

        artifact = Artifact(
            order=self.max_order,
            vocab_size=vocab_size,
            counts=counts,
            metadata=metadata,
            vocabulary=vocabulary,
            distinct_next=distinct_next,
            continuations=continuations,
        )

        if self.verbose:
            for k, n in artifact.ngram_counts().items():
                print(f"  {k}-grams: {n:>10,}", file=self.logfile)

        return artifact

    def train_text(self, text: str, tokenizer: Tokenizer) -> Artifact:
        """Tokenize ``text`` and train on the resulting ids."""
        if self.verbose:
            print(f"Tokenizing corpus ({len(text)} characters) with {tokenizer.name}", file=self.logfile)

        token_ids = tokenizer.encode(text)
        return self.train(
            token_ids,
            vocab_size=tokenizer.vocab_size(),
            tokenizer_name=tokenizer.name,
            vocabulary=tokenizer.vocabulary,
            tokenizer_config=tokenizer.config,
        )

    def train_files(self, paths: list[str], tokenizer: Tokenizer) -> Artifact:
        """Concatenate corpus files (newline separated) and train on them."""
        texts = []
        for path in paths:
            if self.verbose:
                print(f"Reading corpus file: {path}", file=self.logfile)
            with open(path, encoding="utf-8") as f:
                texts.append(f.read())
        return self.train_text("\n".join(texts), tokenizer)
