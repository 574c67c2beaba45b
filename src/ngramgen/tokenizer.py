"""Tokenizer boundary for the n-gram core

The core never segments text itself. Anything implementing :class:`Tokenizer`
can feed the trainer and the generation loop; :class:`WhitespaceTokenizer` is
the reference implementation used by the command-line tool.
"""

import unicodedata as ud
from abc import ABC, abstractmethod
from typing import Any, Optional

from ngramgen.errors import UnknownTokenError, UnknownTokenIdError

DEFAULT_UNK_TOKEN = "<unk>"


def normalize_unicode(text: str) -> str:
    """Apply Unicode NFC normalization to text."""
    return ud.normalize("NFC", text)


def normalize_case(text: str, case: Optional[str] = None) -> str:
    """Normalize text case ('lower', 'upper' or None to leave unchanged)."""
    if case == "lower":
        return text.lower()
    elif case == "upper":
        return text.upper()
    return text


class Tokenizer(ABC):
    """Maps text to dense integer token ids and back.

    Ids must be dense and contiguous starting at 0.
    """

    name = "tokenizer"

    @abstractmethod
    def encode(self, text: str) -> list[int]:
        """Convert text into a list of token ids."""
        pass

    @abstractmethod
    def decode(self, ids: list[int]) -> str:
        """Convert token ids back into text."""
        pass

    @abstractmethod
    def vocab_size(self) -> int:
        """Number of ids this tokenizer can produce."""
        pass

    @property
    def vocabulary(self) -> dict[str, int]:
        """Token text -> id mapping (empty when the tokenizer is opaque)."""
        return {}

    @property
    def config(self) -> dict[str, Any]:
        """Settings needed to rebuild an equivalent tokenizer from its vocabulary."""
        return {}


class WhitespaceTokenizer(Tokenizer):
    """Splits text on whitespace and assigns one id per distinct word.

    Example:
        tokenizer = WhitespaceTokenizer.from_corpus("the cat sat on the mat")
        ids = tokenizer.encode("the cat")
        tokenizer.decode(ids)  # "the cat"

    Unknown words map to ``unk_token`` when it is part of the vocabulary;
    otherwise encoding them raises UnknownTokenError.
    """

    name = "whitespace"

    def __init__(
        self,
        vocabulary: dict[str, int],
        unk_token: Optional[str] = DEFAULT_UNK_TOKEN,
        unicode_norm: bool = True,
        case: Optional[str] = None,
    ):
        if case not in (None, "lower", "upper"):
            raise ValueError(f"case must be 'lower', 'upper' or None, got {case!r}")

        ids = sorted(vocabulary.values())
        if ids != list(range(len(ids))):
            raise ValueError("Vocabulary ids must be dense and contiguous starting at 0")

        self._vocab = dict(vocabulary)
        self._words = [""] * len(ids)
        for word, token_id in self._vocab.items():
            self._words[token_id] = word

        self.unk_token = unk_token if unk_token in self._vocab else None
        self.unicode_norm = unicode_norm
        self.case = case

    @classmethod
    def from_corpus(
        cls,
        text: str,
        unk_token: Optional[str] = DEFAULT_UNK_TOKEN,
        unicode_norm: bool = True,
        case: Optional[str] = None,
    ) -> "WhitespaceTokenizer":
        """Build a vocabulary from a corpus, ids assigned in first-seen order.

        The unknown token, when enabled, always receives id 0.
        """
        vocabulary: dict[str, int] = {}
        if unk_token is not None:
            vocabulary[unk_token] = 0

        for word in cls._split(text, unicode_norm, case):
            if word not in vocabulary:
                vocabulary[word] = len(vocabulary)

        return cls(vocabulary, unk_token=unk_token, unicode_norm=unicode_norm, case=case)

    @staticmethod
    def _split(text: str, unicode_norm: bool, case: Optional[str]) -> list[str]:
        if unicode_norm:
            text = normalize_unicode(text)
        return normalize_case(text, case).split()

    @property
    def vocabulary(self) -> dict[str, int]:
        return dict(self._vocab)

    @property
    def config(self) -> dict[str, Any]:
        return {"unk_token": self.unk_token, "unicode_norm": self.unicode_norm, "case": self.case}

    def vocab_size(self) -> int:
        return len(self._words)

    def encode(self, text: str) -> list[int]:
        ids = []
        for word in self._split(text, self.unicode_norm, self.case):
            token_id = self._vocab.get(word)
            if token_id is None:
                if self.unk_token is None:
                    raise UnknownTokenError(word)
                token_id = self._vocab[self.unk_token]
            ids.append(token_id)
        return ids

    def decode(self, ids: list[int]) -> str:
        words = []
        for token_id in ids:
            if not 0 <= token_id < len(self._words):
                raise UnknownTokenIdError(token_id, len(self._words), where="decode")
            words.append(self._words[token_id])
        return " ".join(words)

    def __repr__(self) -> str:
        return f"WhitespaceTokenizer(vocab_size={self.vocab_size()}, unk_token={self.unk_token!r})"
