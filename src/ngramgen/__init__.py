"""ngramgen - Train n-gram language models and generate text from them

This package counts n-grams of every order from a tokenized corpus, scores
next tokens with simple backoff or Kneser-Ney smoothing, and samples
continuations with seeded, temperature- and top-k-controlled sampling.

Library Usage:
    from ngramgen import GenerateRequest, NgramModel, NgramTrainer, WhitespaceTokenizer

    tokenizer = WhitespaceTokenizer.from_corpus(text)
    artifact = NgramTrainer(max_order=3).train_text(text, tokenizer)
    model = NgramModel(artifact, tokenizer)
    model.save("model.json")

    response = model.generate(GenerateRequest("the cat", max_tokens=10, seed=42))
    print(response.generated_text)

Command Line Usage:
    ngramgen train corpus.txt -o model.json -m 5 -s kneser_ney
    ngramgen generate model.json -p "the cat" --seed 42
    ngramgen compare corpus.txt --orders 3,5 --eval test.txt
"""

from ngramgen.artifact import Artifact
from ngramgen.artifact_io import (
    artifact_from_dict,
    artifact_to_dict,
    load_artifact_file,
    read_artifact,
    write_artifact,
    write_artifact_file,
)
from ngramgen.comparison import ModelComparison, compare_smoothing_methods, plot_comparison, print_comparison
from ngramgen.errors import (
    ArtifactCorruptError,
    DeadEnd,
    EmptyCorpusError,
    InvalidTemperatureError,
    NgramError,
    UnknownTokenError,
    UnknownTokenIdError,
)
from ngramgen.model import GenerateRequest, GenerateResponse, NgramModel, Usage
from ngramgen.presets import get_preset, list_presets, print_presets
from ngramgen.sampler import SeededRandom, sample
from ngramgen.smoothing import KneserNeySmoother, SimpleBackoffSmoother, SmoothingMethod, create_smoother
from ngramgen.tokenizer import Tokenizer, WhitespaceTokenizer
from ngramgen.trainer import NgramTrainer
from ngramgen.utils import parse_order_spec

__version__ = "0.1.0"
__all__ = [
    "Artifact",
    "ArtifactCorruptError",
    "DeadEnd",
    "EmptyCorpusError",
    "GenerateRequest",
    "GenerateResponse",
    "InvalidTemperatureError",
    "KneserNeySmoother",
    "ModelComparison",
    "NgramError",
    "NgramModel",
    "NgramTrainer",
    "SeededRandom",
    "SimpleBackoffSmoother",
    "SmoothingMethod",
    "Tokenizer",
    "UnknownTokenError",
    "UnknownTokenIdError",
    "Usage",
    "WhitespaceTokenizer",
    "artifact_from_dict",
    "artifact_to_dict",
    "compare_smoothing_methods",
    "create_smoother",
    "get_preset",
    "list_presets",
    "load_artifact_file",
    "parse_order_spec",
    "plot_comparison",
    "print_comparison",
    "print_presets",
    "read_artifact",
    "sample",
    "write_artifact",
    "write_artifact_file",
]
