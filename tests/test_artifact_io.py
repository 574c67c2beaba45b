"""Tests for JSON artifact reading, writing and validation"""

import io
import json

import pytest

from ngramgen import (
    ArtifactCorruptError,
    NgramTrainer,
    WhitespaceTokenizer,
    artifact_from_dict,
    artifact_to_dict,
    load_artifact_file,
    read_artifact,
    write_artifact,
    write_artifact_file,
)


@pytest.fixture
def artifact():
    tokenizer = WhitespaceTokenizer({"A": 0, "B": 1, "C": 2, "D": 3}, unk_token=None)
    return NgramTrainer(max_order=3).train_text("A B C A B D", tokenizer)


@pytest.fixture
def data(artifact):
    """Plain JSON document for an artifact, safe to mutate."""
    return json.loads(json.dumps(artifact_to_dict(artifact)))


class TestWrite:
    """Test artifact serialization"""

    def test_layout(self, data):
        assert data["format_version"] == 1
        assert data["order"] == 3
        assert data["vocab_size"] == 4
        assert data["vocabulary"] == {"A": 0, "B": 1, "C": 2, "D": 3}
        assert set(data["counts"]) == {"1", "2", "3"}
        assert data["counts"]["1"] == [[[], [[0, 2], [1, 2], [2, 1], [3, 1]]]]
        assert data["counts"]["3"][0] == [[0, 1], [[2, 1], [3, 1]]]
        assert set(data["continuations"]) == {"1", "2"}

    def test_metadata(self, data):
        assert data["metadata"]["rng"] == "splitmix64"
        assert data["metadata"]["smoothing_method"] == "kneser_ney"
        assert data["metadata"]["order"] == 3

    def test_simple_backoff_omits_continuations(self):
        artifact = NgramTrainer(max_order=2, smoothing_method="simple").train([0, 1, 0])
        data = artifact_to_dict(artifact)
        assert "continuations" not in data
        assert "distinct_next" not in data

    def test_write_to_handle(self, artifact):
        buf = io.StringIO()
        write_artifact(artifact, buf)
        assert buf.getvalue().endswith("\n")
        assert json.loads(buf.getvalue())["order"] == 3

    def test_byte_stable(self, artifact, tmp_path):
        first = tmp_path / "first.json"
        second = tmp_path / "second.json"
        write_artifact_file(artifact, str(first))
        write_artifact_file(load_artifact_file(str(first)), str(second))
        assert first.read_bytes() == second.read_bytes()


class TestRead:
    """Test loading valid artifacts"""

    def test_round_trip(self, artifact, data):
        loaded = artifact_from_dict(data)
        assert loaded.order == artifact.order
        assert loaded.vocab_size == artifact.vocab_size
        assert loaded.ngram_counts() == artifact.ngram_counts()
        assert dict(loaded.continuation_counts((1,))) == {2: 1, 3: 1}
        assert loaded.num_distinct_next((0, 1)) == 2
        assert artifact_to_dict(loaded) == artifact_to_dict(artifact)

    def test_read_from_handle(self, artifact):
        buf = io.StringIO()
        write_artifact(artifact, buf)
        buf.seek(0)
        loaded = read_artifact(buf)
        assert dict(loaded.next_token_counts((0, 1))) == {2: 1, 3: 1}

    def test_verbose_load(self, artifact, tmp_path, capsys):
        path = tmp_path / "model.json"
        write_artifact_file(artifact, str(path))
        load_artifact_file(str(path), verbose=True)
        captured = capsys.readouterr()
        assert "Loaded 3-gram artifact" in captured.err

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_artifact_file(str(tmp_path / "missing.json"))


class TestCorruption:
    """Every structural violation is an ArtifactCorruptError"""

    def test_invalid_json(self):
        with pytest.raises(ArtifactCorruptError, match="not valid JSON"):
            read_artifact(io.StringIO("{not json"))

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "binary.json"
        path.write_bytes(b'{"format_version": 1, "order": \xff\xfe}')
        with pytest.raises(ArtifactCorruptError, match="not valid UTF-8"):
            load_artifact_file(str(path))

    def test_deeply_nested_json(self):
        with pytest.raises(ArtifactCorruptError):
            read_artifact(io.StringIO("[" * 100000 + "]" * 100000))

    def test_not_an_object(self):
        with pytest.raises(ArtifactCorruptError, match="JSON object"):
            artifact_from_dict([1, 2, 3])

    def test_missing_field(self, data):
        del data["counts"]
        with pytest.raises(ArtifactCorruptError, match="Missing required field 'counts'"):
            artifact_from_dict(data)

    def test_unsupported_version(self, data):
        data["format_version"] = 99
        with pytest.raises(ArtifactCorruptError, match="Unsupported format version"):
            artifact_from_dict(data)

    def test_negative_count(self, data):
        data["counts"]["1"][0][1][0][1] = -1
        with pytest.raises(ArtifactCorruptError, match="positive integer"):
            artifact_from_dict(data)

    def test_zero_count(self, data):
        data["counts"]["2"][0][1][0][1] = 0
        with pytest.raises(ArtifactCorruptError, match="positive integer"):
            artifact_from_dict(data)

    def test_boolean_count(self, data):
        data["counts"]["1"][0][1][0][1] = True
        with pytest.raises(ArtifactCorruptError):
            artifact_from_dict(data)

    def test_metadata_order_mismatch(self, data):
        data["metadata"]["order"] = 5
        with pytest.raises(ArtifactCorruptError, match="does not match"):
            artifact_from_dict(data)

    def test_order_key_out_of_range(self, data):
        data["counts"]["4"] = []
        with pytest.raises(ArtifactCorruptError, match="order 4"):
            artifact_from_dict(data)

    def test_missing_order(self, data):
        del data["counts"]["2"]
        with pytest.raises(ArtifactCorruptError, match="every order"):
            artifact_from_dict(data)

    def test_wrong_context_length(self, data):
        data["counts"]["2"][0][0] = [0, 1]
        with pytest.raises(ArtifactCorruptError, match="expected 1"):
            artifact_from_dict(data)

    def test_token_out_of_range(self, data):
        data["counts"]["1"][0][1][0][0] = 99
        with pytest.raises(ArtifactCorruptError, match="invalid token id 99"):
            artifact_from_dict(data)

    def test_context_token_out_of_range(self, data):
        data["counts"]["3"][0][0] = [0, 42]
        with pytest.raises(ArtifactCorruptError, match="in context"):
            artifact_from_dict(data)

    def test_duplicate_token(self, data):
        data["counts"]["1"][0][1].append([0, 5])
        with pytest.raises(ArtifactCorruptError, match="duplicate token"):
            artifact_from_dict(data)

    def test_empty_unigrams(self, data):
        data["counts"]["1"] = []
        with pytest.raises(ArtifactCorruptError, match="Unigram table is empty"):
            artifact_from_dict(data)

    def test_vocabulary_size_mismatch(self, data):
        data["vocabulary"]["E"] = 4
        with pytest.raises(ArtifactCorruptError, match="Vocabulary ids"):
            artifact_from_dict(data)

    def test_distinct_next_disagrees(self, data):
        data["distinct_next"]["1"][0][1] = 7
        with pytest.raises(ArtifactCorruptError, match="disagrees"):
            artifact_from_dict(data)

    def test_distinct_next_empty(self, data):
        data["distinct_next"] = {}
        with pytest.raises(ArtifactCorruptError, match="distinct_next"):
            artifact_from_dict(data)

    def test_distinct_next_missing_context(self, data):
        data["distinct_next"]["2"].pop()
        with pytest.raises(ArtifactCorruptError, match="does not cover"):
            artifact_from_dict(data)

    def test_continuation_count_disagrees(self, data):
        data["continuations"]["1"][0][1][0][1] = 2
        with pytest.raises(ArtifactCorruptError, match="'continuations' order 1 disagrees"):
            artifact_from_dict(data)

    def test_continuation_for_unobserved_ngram(self, data):
        data["continuations"]["2"].append([[3], [[0, 1]]])
        with pytest.raises(ArtifactCorruptError, match="'continuations' order 2 disagrees"):
            artifact_from_dict(data)

    def test_continuations_missing(self, data):
        data["continuations"] = {}
        with pytest.raises(ArtifactCorruptError, match="continuations"):
            artifact_from_dict(data)

    def test_continuations_without_distinct_next(self, data):
        del data["distinct_next"]
        with pytest.raises(ArtifactCorruptError, match="without 'distinct_next'"):
            artifact_from_dict(data)

    def test_continuations_at_top_order(self, data):
        data["continuations"]["3"] = []
        with pytest.raises(ArtifactCorruptError, match="continuations"):
            artifact_from_dict(data)

    def test_corrupt_error_is_value_error(self, data):
        data["order"] = 0
        with pytest.raises(ValueError):
            artifact_from_dict(data)

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"format_version": 1, "order": 2}')
        with pytest.raises(ArtifactCorruptError):
            load_artifact_file(str(path))
