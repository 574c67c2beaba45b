#!/usr/bin/env python

import sys
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from ngramgen.artifact import Artifact
from ngramgen.artifact_io import load_artifact_file, write_artifact_file
from ngramgen.errors import DeadEnd, InvalidTemperatureError
from ngramgen.presets import get_preset
from ngramgen.sampler import SeededRandom, sample
from ngramgen.smoothing import canonical_method, create_smoother
from ngramgen.tokenizer import Tokenizer, WhitespaceTokenizer

FINISH_LENGTH = "length"
FINISH_STOP = "stop"
FINISH_DEAD_END = "dead_end"

# WhitespaceTokenizer keywords restored from artifact metadata
TOKENIZER_SETTINGS = ("unk_token", "unicode_norm", "case")


@dataclass
class GenerateRequest:
    """Parameters of one generation call.

    Calls are reproducible only when ``seed`` is given: the same request
    against the same artifact then yields byte-identical output.
    """

    prompt: str
    max_tokens: int = 20
    temperature: float = 1.0
    top_k: int = 0
    seed: Optional[int] = None
    stop_sequences: Sequence[str] = field(default_factory=tuple)

    @classmethod
    def from_preset(cls, prompt: str, preset_name: str, **overrides) -> "GenerateRequest":
        """Request using a preset's temperature and top-k, with overrides applied."""
        config = get_preset(preset_name)
        params = {"temperature": config["temperature"], "top_k": config["top_k"]}
        params.update(overrides)
        return cls(prompt=prompt, **params)


@dataclass
class Usage:
    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class GenerateResponse:
    """Result of one generation call.

    ``generated_text`` is the prompt exactly as given followed by the decoded
    continuation, so the prompt renders the same whether or not tokens were
    added. Unknown prompt words keep their original spelling.
    """

    generated_text: str
    usage: Usage
    latency_ms: int
    model: str
    finish_reason: str = FINISH_LENGTH
    seed: Optional[int] = None
    reproducible: bool = False

    def to_dict(self) -> dict:
        """Wire representation for service and CLI layers."""
        return {
            "generatedText": self.generated_text,
            "usage": {
                "inputTokens": self.usage.input_tokens,
                "outputTokens": self.usage.output_tokens,
                "totalTokens": self.usage.total_tokens,
            },
            "latencyMs": self.latency_ms,
            "modelIdentifier": self.model,
            "finishReason": self.finish_reason,
            "seed": self.seed,
            "reproducible": self.reproducible,
        }


class NgramModel:
    """
    Generates text from a trained Artifact.

    Each step takes the trailing ``order - 1`` tokens as context, scores the
    candidates with the configured smoothing method and samples one token.
    Generation stops when ``max_tokens`` tokens were added, when the decoded
    text ends with a stop sequence, or when no candidate remains (a natural
    stop, not an error).

    The model holds no per-request state; one instance can serve concurrent
    ``generate`` calls.

    Example:
        model = NgramModel.load("model.json")
        response = model.generate(GenerateRequest("public static", max_tokens=5, seed=42))
        print(response.generated_text)
    """

    def __init__(
        self,
        artifact: Artifact,
        tokenizer: Tokenizer,
        smoothing_method: Optional[str] = None,
        backoff_weight: Optional[float] = None,
        discount: Optional[float] = None,
        model_name: Optional[str] = None,
        verbose: bool = False,
    ):
        if smoothing_method is None:
            smoothing_method = artifact.metadata.get("smoothing_method", "kneser_ney")
        smoothing_method = canonical_method(smoothing_method)

        self.artifact = artifact
        self.tokenizer = tokenizer
        self.smoothing_method = smoothing_method
        self.verbose = verbose
        self.logfile = sys.stderr

        self.smoother = create_smoother(
            method=smoothing_method,
            max_order=artifact.order,
            verbose=verbose,
            backoff_weight=backoff_weight,
            discount=discount,
        )

        if self.smoother.requires_continuations() and not artifact.has_continuations:
            raise ValueError(
                f"Smoothing method '{smoothing_method}' needs continuation counts; "
                "the artifact was trained without them"
            )

        self.model_name = model_name or f"{artifact.order}gram-{smoothing_method}"

    @classmethod
    def load(cls, path: str, tokenizer: Optional[Tokenizer] = None, verbose: bool = False, **kwargs) -> "NgramModel":
        """
        Load a model from a saved artifact.

        Without an explicit tokenizer, a WhitespaceTokenizer is rebuilt from
        the vocabulary stored in the artifact.

        Raises:
            ArtifactCorruptError: If the artifact fails validation
            ValueError: If no tokenizer is given and the artifact has no vocabulary
        """
        artifact = load_artifact_file(path, verbose=verbose)

        if tokenizer is None:
            if not artifact.vocabulary:
                raise ValueError(f"Artifact {path} has no vocabulary; pass a tokenizer explicitly")
            config = artifact.metadata.get("tokenizer_config") or {}
            settings = {key: config[key] for key in TOKENIZER_SETTINGS if key in config}
            tokenizer = WhitespaceTokenizer(dict(artifact.vocabulary), **settings)
            if verbose:
                print(f"Using whitespace tokenizer ({tokenizer.vocab_size()} words)", file=sys.stderr)

        return cls(artifact, tokenizer, verbose=verbose, **kwargs)

    def save(self, path: str) -> None:
        write_artifact_file(self.artifact, path, verbose=self.verbose)

    # ========================
    # Generation
    # ========================

    def _context(self, sequence: Sequence[int]) -> list[int]:
        if self.artifact.order <= 1:
            return []
        return list(sequence[-(self.artifact.order - 1) :])

    def _should_stop(self, sequence: list[int], stop_sequences: Sequence[str]) -> bool:
        text = self.tokenizer.decode(sequence)
        return any(stop and text.endswith(stop) for stop in stop_sequences)

    def _render(self, prompt: str, prompt_ids: list[int], sequence: list[int]) -> str:
        if len(sequence) == len(prompt_ids):
            return prompt
        decoded = self.tokenizer.decode(sequence)
        decoded_prompt = self.tokenizer.decode(prompt_ids)
        if not decoded.startswith(decoded_prompt):
            return decoded
        return prompt + decoded[len(decoded_prompt) :]

    def generate(self, request: GenerateRequest) -> GenerateResponse:
        """
        Run one generation request.

        Returns:
            GenerateResponse; ``generated_text`` is the prompt followed by the
            generated continuation (the prompt unchanged if nothing was added)

        Raises:
            InvalidTemperatureError: If temperature <= 0
            UnknownTokenIdError: If the prompt encodes to an id outside the vocabulary
            ValueError: If max_tokens is negative
        """
        start_time = time.perf_counter()

        if not request.temperature > 0:
            raise InvalidTemperatureError(request.temperature)
        if request.max_tokens < 0:
            raise ValueError(f"max_tokens must be >= 0, got {request.max_tokens}")

        prompt_ids = self.tokenizer.encode(request.prompt)
        for token_id in prompt_ids:
            self.artifact.validate_token_id(token_id, where="prompt")

        if request.seed is None:
            rng = SeededRandom.from_entropy()
        else:
            rng = SeededRandom(request.seed)

        sequence = list(prompt_ids)
        finish_reason = FINISH_LENGTH

        for _ in range(request.max_tokens):
            scores = self.smoother.score(self._context(sequence), self.artifact)
            try:
                token_id = sample(scores, request.temperature, request.top_k, rng)
            except DeadEnd:
                finish_reason = FINISH_DEAD_END
                break

            sequence.append(token_id)

            if request.stop_sequences and self._should_stop(sequence, request.stop_sequences):
                finish_reason = FINISH_STOP
                break

        output_tokens = len(sequence) - len(prompt_ids)
        generated_text = self._render(request.prompt, prompt_ids, sequence)

        latency_ms = int((time.perf_counter() - start_time) * 1000)

        if self.verbose:
            print(
                f"Generated {output_tokens} tokens in {latency_ms}ms ({finish_reason}, seed {rng.seed})",
                file=self.logfile,
            )

        return GenerateResponse(
            generated_text=generated_text,
            usage=Usage(input_tokens=len(prompt_ids), output_tokens=output_tokens),
            latency_ms=latency_ms,
            model=self.model_name,
            finish_reason=finish_reason,
            seed=rng.seed,
            reproducible=request.seed is not None,
        )

    def next_token_distribution(self, context_ids: Sequence[int]) -> dict[int, float]:
        """Normalized next-token probabilities for a context of token ids.

        Raises:
            UnknownTokenIdError: If the context contains an invalid id
        """
        for token_id in context_ids:
            self.artifact.validate_token_id(token_id, where="context")

        scores = self.smoother.score(self._context(context_ids), self.artifact)
        total = sum(score for score in scores.values() if score > 0)
        if total <= 0:
            return {}
        return {token: score / total for token, score in scores.items() if score > 0}

    # ========================
    # Statistics
    # ========================

    def get_statistics(self) -> dict[str, Any]:
        """
        Get model statistics.

        Returns:
            Dictionary with model statistics:
            {
                "model": str,
                "order": int,
                "smoothing": str,
                "vocab_size": int,
                "ngram_counts": {order: count, ...},
                "training": {"tokens": int, "trained_at": str, "tokenizer": str}
            }
        """
        metadata = self.artifact.metadata
        return {
            "model": self.model_name,
            "order": self.artifact.order,
            "smoothing": self.smoothing_method,
            "vocab_size": self.artifact.vocab_size,
            "ngram_counts": self.artifact.ngram_counts(),
            "training": {
                "tokens": metadata.get("total_tokens", 0),
                "trained_at": metadata.get("trained_at", "unknown"),
                "tokenizer": metadata.get("tokenizer", "unknown"),
            },
        }

    def print_statistics(self) -> None:
        stats = self.get_statistics()

        print("\nModel Statistics")
        print("=" * 50)
        print(f"Model:      {stats['model']}")
        print(f"Order:      {stats['order']}")
        print(f"Smoothing:  {stats['smoothing']}")
        print(f"Vocabulary: {stats['vocab_size']:,} tokens")
        print()
        print("N-gram counts:")
        for order in sorted(stats["ngram_counts"].keys()):
            print(f"  {order}-grams: {stats['ngram_counts'][order]:>12,}")
        print()
        print("Training:")
        print(f"  Tokens:     {stats['training']['tokens']:>10,}")
        print(f"  Tokenizer:  {stats['training']['tokenizer']}")
        print(f"  Trained at: {stats['training']['trained_at']}")

    def __repr__(self) -> str:
        return f"NgramModel({self.model_name}, vocab_size={self.artifact.vocab_size})"
