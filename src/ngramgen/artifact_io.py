"""JSON artifact I/O for n-gram models"""

import json
import sys
from typing import Any, TextIO

from ngramgen.artifact import FORMAT_VERSION, Artifact
from ngramgen.errors import ArtifactCorruptError


def _encode_table(table) -> list:
    return [
        [list(ctx), [[token, count] for token, count in sorted(nexts.items())]] for ctx, nexts in sorted(table.items())
    ]


def artifact_to_dict(artifact: Artifact) -> dict:
    """Plain JSON-ready representation of an artifact, sorted for stable output."""
    data: dict[str, Any] = {
        "format_version": FORMAT_VERSION,
        "order": artifact.order,
        "vocab_size": artifact.vocab_size,
        "metadata": dict(artifact.metadata),
        "vocabulary": dict(sorted(artifact.vocabulary.items(), key=lambda x: x[1])),
        "counts": {str(k): _encode_table(table) for k, table in artifact.counts.items()},
    }

    if artifact.has_continuations:
        data["distinct_next"] = {
            str(k): [[list(ctx), n] for ctx, n in sorted(table.items())] for k, table in artifact.distinct_next.items()
        }
        data["continuations"] = {str(k): _encode_table(table) for k, table in artifact.continuations.items()}

    return data


def write_artifact(artifact: Artifact, outfile: TextIO, verbose: bool = False) -> None:
    """Write artifact as JSON to an open file handle."""
    if verbose:
        print("Writing artifact", file=sys.stderr)
    json.dump(artifact_to_dict(artifact), outfile, separators=(",", ":"))
    outfile.write("\n")


def write_artifact_file(artifact: Artifact, out_path: str, verbose: bool = False) -> None:
    """Write artifact as JSON to ``out_path``."""
    with open(out_path, "w", encoding="utf-8") as outfile:
        write_artifact(artifact, outfile, verbose=verbose)
    if verbose:
        print(f"Wrote artifact to {out_path}", file=sys.stderr)


# ========================
# Loading and validation
# ========================


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ArtifactCorruptError(message)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_order_keys(section: Any, name: str, valid_orders: range) -> dict[int, Any]:
    _require(isinstance(section, dict), f"'{name}' must be an object keyed by order")
    parsed = {}
    for key, value in section.items():
        try:
            k = int(key)
        except ValueError as e:
            raise ArtifactCorruptError(f"'{name}' has non-integer order key '{key}'") from e
        _require(
            k in valid_orders,
            f"'{name}' order {k} does not match model order (expected {valid_orders.start}..{valid_orders.stop - 1})",
        )
        parsed[k] = value
    return parsed


def _parse_context(raw: Any, k: int, vocab_size: int, name: str) -> tuple[int, ...]:
    _require(isinstance(raw, list), f"'{name}' order {k}: context must be a list")
    _require(len(raw) == k - 1, f"'{name}' order {k}: context {raw} has length {len(raw)}, expected {k - 1}")
    for token in raw:
        _require(
            _is_int(token) and 0 <= token < vocab_size, f"'{name}' order {k}: invalid token id {token!r} in context"
        )
    return tuple(raw)


def _parse_table(entries: Any, k: int, vocab_size: int, name: str) -> dict:
    _require(isinstance(entries, list), f"'{name}' order {k} must be a list of [context, entries]")
    table = {}
    for entry in entries:
        _require(isinstance(entry, list) and len(entry) == 2, f"'{name}' order {k}: malformed entry {entry!r}")
        context = _parse_context(entry[0], k, vocab_size, name)
        _require(context not in table, f"'{name}' order {k}: duplicate context {list(context)}")
        _require(isinstance(entry[1], list) and entry[1], f"'{name}' order {k}: context {list(context)} has no entries")

        nexts = {}
        for pair in entry[1]:
            _require(isinstance(pair, list) and len(pair) == 2, f"'{name}' order {k}: malformed pair {pair!r}")
            token, count = pair
            _require(_is_int(token) and 0 <= token < vocab_size, f"'{name}' order {k}: invalid token id {token!r}")
            _require(_is_int(count) and count >= 1, f"'{name}' order {k}: count {count!r} must be a positive integer")
            _require(token not in nexts, f"'{name}' order {k}: duplicate token {token}")
            nexts[token] = count
        table[context] = nexts
    return table


def _expected_continuations(counts: dict, order: int) -> dict:
    """Continuation counts implied by the count tables: distinct left neighbours per k-gram."""
    lefts: dict = {k: {} for k in range(1, order)}
    for k in range(2, order + 1):
        for context, nexts in counts[k].items():
            suffix = lefts[k - 1].setdefault(context[1:], {})
            for token in nexts:
                suffix.setdefault(token, set()).add(context[0])
    return {
        k: {ctx: {w: len(vs) for w, vs in nexts.items()} for ctx, nexts in table.items()} for k, table in lefts.items()
    }


def artifact_from_dict(data: Any) -> Artifact:
    """Validate a decoded JSON document and build an Artifact from it.

    Raises:
        ArtifactCorruptError: On any structural violation; nothing is partially built
    """
    _require(isinstance(data, dict), "Artifact must be a JSON object")

    for key in ("format_version", "order", "vocab_size", "metadata", "counts"):
        _require(key in data, f"Missing required field '{key}'")

    _require(
        data["format_version"] == FORMAT_VERSION,
        f"Unsupported format version {data['format_version']!r} (expected {FORMAT_VERSION})",
    )

    order = data["order"]
    vocab_size = data["vocab_size"]
    _require(_is_int(order) and order >= 1, f"Order must be a positive integer, got {order!r}")
    _require(_is_int(vocab_size) and vocab_size >= 1, f"Vocabulary size must be a positive integer, got {vocab_size!r}")

    metadata = data["metadata"]
    _require(isinstance(metadata, dict), "'metadata' must be an object")
    if "order" in metadata:
        _require(metadata["order"] == order, f"Metadata order {metadata['order']!r} does not match order {order}")

    vocabulary = data.get("vocabulary") or {}
    _require(isinstance(vocabulary, dict), "'vocabulary' must be an object")
    if vocabulary:
        ids = sorted(vocabulary.values()) if all(_is_int(v) for v in vocabulary.values()) else None
        _require(ids == list(range(vocab_size)), "Vocabulary ids must be dense, contiguous and match vocab_size")

    raw_counts = _parse_order_keys(data["counts"], "counts", range(1, order + 1))
    _require(set(raw_counts) == set(range(1, order + 1)), f"'counts' must contain every order 1..{order}")
    counts = {k: _parse_table(entries, k, vocab_size, "counts") for k, entries in raw_counts.items()}
    _require(bool(counts[1]), "Unigram table is empty")

    distinct_next = None
    continuations = None
    if "continuations" in data:
        _require("distinct_next" in data, "'continuations' present without 'distinct_next'")

        raw_distinct = _parse_order_keys(data["distinct_next"], "distinct_next", range(1, order + 1))
        distinct_next = {}
        for k, entries in raw_distinct.items():
            _require(isinstance(entries, list), f"'distinct_next' order {k} must be a list")
            table = {}
            for entry in entries:
                _require(isinstance(entry, list) and len(entry) == 2, f"'distinct_next' order {k}: malformed entry")
                context = _parse_context(entry[0], k, vocab_size, "distinct_next")
                n = entry[1]
                _require(
                    _is_int(n) and context in counts[k] and n == len(counts[k][context]),
                    f"'distinct_next' order {k}: context {list(context)} count {n!r} disagrees with count table",
                )
                table[context] = n
            _require(
                set(table) == set(counts[k]),
                f"'distinct_next' order {k} does not cover the same contexts as the count table",
            )
            distinct_next[k] = table
        _require(set(distinct_next) == set(range(1, order + 1)), f"'distinct_next' must contain every order 1..{order}")

        raw_cont = _parse_order_keys(data["continuations"], "continuations", range(1, order))
        continuations = {k: _parse_table(entries, k, vocab_size, "continuations") for k, entries in raw_cont.items()}
        expected = _expected_continuations(counts, order)
        for k in range(1, order):
            _require(
                continuations.get(k, {}) == expected[k],
                f"'continuations' order {k} disagrees with the order {k + 1} count table",
            )

    return Artifact(
        order=order,
        vocab_size=vocab_size,
        counts=counts,
        metadata=metadata,
        vocabulary=vocabulary,
        distinct_next=distinct_next,
        continuations=continuations,
    )


def read_artifact(infile: TextIO) -> Artifact:
    """Read and validate an artifact from an open file handle."""
    try:
        data = json.load(infile)
    except json.JSONDecodeError as e:
        raise ArtifactCorruptError(f"Artifact is not valid JSON: {e}") from e
    except UnicodeDecodeError as e:
        raise ArtifactCorruptError(f"Artifact is not valid UTF-8: {e}") from e
    except RecursionError as e:
        raise ArtifactCorruptError("Artifact JSON is nested too deeply") from e
    return artifact_from_dict(data)


def load_artifact_file(path: str, verbose: bool = False) -> Artifact:
    """Load an artifact from ``path``.

    Raises:
        ArtifactCorruptError: If the file fails validation
        OSError: If the file cannot be read
    """
    if verbose:
        print(f"Loading artifact from: {path}", file=sys.stderr)

    with open(path, encoding="utf-8") as f:
        artifact = read_artifact(f)

    if verbose:
        print(f"Loaded {artifact.order}-gram artifact", file=sys.stderr)
        print(f"Vocabulary size: {artifact.vocab_size}", file=sys.stderr)
        print(f"N-gram counts: {artifact.ngram_counts()}", file=sys.stderr)

    return artifact
