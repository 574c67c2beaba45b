"""Tests for the whitespace tokenizer"""

import pytest

from ngramgen import Tokenizer, UnknownTokenError, UnknownTokenIdError, WhitespaceTokenizer
from ngramgen.tokenizer import normalize_case, normalize_unicode


class TestFromCorpus:
    """Test vocabulary construction"""

    def test_first_seen_order(self):
        tokenizer = WhitespaceTokenizer.from_corpus("the cat sat on the mat")
        assert tokenizer.vocabulary == {"<unk>": 0, "the": 1, "cat": 2, "sat": 3, "on": 4, "mat": 5}
        assert tokenizer.vocab_size() == 6

    def test_without_unk(self):
        tokenizer = WhitespaceTokenizer.from_corpus("b a b", unk_token=None)
        assert tokenizer.vocabulary == {"b": 0, "a": 1}
        assert tokenizer.unk_token is None

    def test_case_folding(self):
        tokenizer = WhitespaceTokenizer.from_corpus("The the THE", case="lower")
        assert tokenizer.vocab_size() == 2
        assert tokenizer.encode("tHe") == [1]

    def test_is_tokenizer(self):
        tokenizer = WhitespaceTokenizer.from_corpus("x")
        assert isinstance(tokenizer, Tokenizer)
        assert tokenizer.name == "whitespace"


class TestEncodeDecode:
    """Test id mapping"""

    @pytest.fixture
    def tokenizer(self):
        return WhitespaceTokenizer.from_corpus("public static void main")

    def test_encode(self, tokenizer):
        assert tokenizer.encode("public  static\nvoid") == [1, 2, 3]

    def test_encode_empty(self, tokenizer):
        assert tokenizer.encode("") == []
        assert tokenizer.encode("   ") == []

    def test_unknown_maps_to_unk(self, tokenizer):
        assert tokenizer.encode("public int") == [1, 0]

    def test_unknown_without_unk(self):
        tokenizer = WhitespaceTokenizer({"a": 0}, unk_token=None)
        with pytest.raises(UnknownTokenError, match="'b' is not in the vocabulary"):
            tokenizer.encode("a b")

    def test_decode(self, tokenizer):
        assert tokenizer.decode([1, 2, 3, 4]) == "public static void main"
        assert tokenizer.decode([]) == ""

    def test_decode_invalid_id(self, tokenizer):
        with pytest.raises(UnknownTokenIdError, match="Unknown token id 10"):
            tokenizer.decode([1, 10])
        with pytest.raises(UnknownTokenIdError):
            tokenizer.decode([-1])

    def test_unicode_normalization(self):
        tokenizer = WhitespaceTokenizer.from_corpus("caf\u00e9", unk_token=None)
        assert tokenizer.encode("cafe\u0301") == [0]

    def test_vocabulary_is_a_copy(self, tokenizer):
        vocab = tokenizer.vocabulary
        vocab["extra"] = 99
        assert "extra" not in tokenizer.vocabulary


class TestValidation:
    """Test vocabulary checks"""

    def test_ids_must_be_dense(self):
        with pytest.raises(ValueError, match="dense"):
            WhitespaceTokenizer({"a": 0, "b": 2})

    def test_ids_must_start_at_zero(self):
        with pytest.raises(ValueError, match="dense"):
            WhitespaceTokenizer({"a": 1, "b": 2})

    def test_invalid_case(self):
        with pytest.raises(ValueError, match="case must be"):
            WhitespaceTokenizer({"a": 0}, case="title")

    def test_unk_dropped_when_missing(self):
        tokenizer = WhitespaceTokenizer({"a": 0})
        assert tokenizer.unk_token is None


class TestNormalization:
    """Test text normalization helpers"""

    def test_nfc(self):
        assert normalize_unicode("e\u0301") == "\u00e9"

    def test_case(self):
        assert normalize_case("MiXed", "lower") == "mixed"
        assert normalize_case("MiXed", "upper") == "MIXED"
        assert normalize_case("MiXed") == "MiXed"
