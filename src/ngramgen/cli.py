#!/usr/bin/env python

"""Command-line interface for ngramgen"""

import argparse
import json
import sys

from ngramgen.comparison import ModelComparison, plot_comparison, print_comparison
from ngramgen.errors import NgramError
from ngramgen.model import GenerateRequest, NgramModel
from ngramgen.presets import get_preset, print_presets
from ngramgen.smoothing import SMOOTHING_ALIASES, SMOOTHING_METHODS
from ngramgen.tokenizer import DEFAULT_UNK_TOKEN, WhitespaceTokenizer
from ngramgen.trainer import NgramTrainer
from ngramgen.utils import parse_order_spec, parse_stop_sequence

SMOOTHING_CHOICES = sorted(SMOOTHING_METHODS) + sorted(SMOOTHING_ALIASES)


def _create_parser():
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="ngramgen",
        description="Train n-gram language models and generate text (simple backoff, Kneser-Ney)",
        epilog="Example: ngramgen train corpus.txt -o model.json && ngramgen generate model.json -p 'the cat'",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    train = subparsers.add_parser("train", help="train an artifact from corpus files")
    train.add_argument("files", nargs="+", help="input text files")
    train.add_argument("-o", "--output", type=str, required=True, help="artifact output file (JSON)")
    train.add_argument("-m", "--max-order", type=int, default=3, help="n-gram order (default: 3)")
    train.add_argument(
        "-s",
        "--smoothing-method",
        type=str,
        default="kneser_ney",
        choices=SMOOTHING_CHOICES,
        help="smoothing the artifact is prepared for (default: kneser_ney)",
    )
    train.add_argument("--unk", type=str, default=DEFAULT_UNK_TOKEN, help="unknown-word token (default: <unk>)")
    train.add_argument("--no-unk", dest="unk", action="store_const", const=None, help="reject unknown words")
    train.add_argument("-c", "--case", type=str, choices=["lower", "upper"], help="case fold the corpus")
    train.add_argument("--preset", type=str, help="use preset order and smoothing (overrides -m and -s)")
    train.add_argument("-v", "--verbose", action="store_true", help="verbose output to stderr")

    generate = subparsers.add_parser("generate", help="generate text from a trained artifact")
    generate.add_argument("artifact", help="artifact file produced by 'train'")
    generate.add_argument("-p", "--prompt", type=str, required=True, help="prompt text")
    generate.add_argument("--max-tokens", type=int, default=20, help="maximum tokens to add (default: 20)")
    generate.add_argument("-T", "--temperature", type=float, help="sampling temperature (default: 1.0)")
    generate.add_argument("-k", "--top-k", type=int, help="keep the k best candidates (default: all)")
    generate.add_argument("--seed", type=int, help="random seed for reproducible output")
    generate.add_argument(
        "--stop", type=str, action="append", default=[], help="stop sequence, backslash escapes allowed (repeatable)"
    )
    generate.add_argument("--preset", type=str, help="use preset temperature and top-k")
    generate.add_argument("-s", "--smoothing-method", type=str, choices=SMOOTHING_CHOICES, help="override smoothing")
    generate.add_argument("--backoff-weight", type=float, help="lower-order weight for simple backoff")
    generate.add_argument("--discount", type=float, help="absolute discount for Kneser-Ney")
    generate.add_argument("--json", action="store_true", help="print the full response as JSON")
    generate.add_argument("-v", "--verbose", action="store_true", help="verbose output to stderr")

    stats = subparsers.add_parser("stats", help="show artifact statistics")
    stats.add_argument("artifact", help="artifact file")

    compare = subparsers.add_parser("compare", help="compare orders and smoothing methods on a corpus")
    compare.add_argument("corpus", help="training corpus file")
    compare.add_argument("--orders", type=str, default="3", help="orders to train (e.g., '3,5' or '2-4')")
    compare.add_argument(
        "-s", "--smoothing-methods", type=str, default="simple_backoff,kneser_ney", help="comma-separated methods"
    )
    compare.add_argument("--eval", type=str, metavar="TEST_FILE", help="held-out text for perplexity")
    compare.add_argument("--prompt", type=str, help="prompt for diversity and speed measurements")
    compare.add_argument("--plot", type=str, metavar="FILE", help="save comparison charts (needs matplotlib)")
    compare.add_argument("-v", "--verbose", action="store_true", help="verbose output to stderr")

    subparsers.add_parser("presets", help="list available presets")

    return parser


def _handle_train(args):
    """Handle 'train': tokenize corpus files and write an artifact."""
    if args.preset:
        config = get_preset(args.preset)
        args.max_order = config["recommended_order"]
        args.smoothing_method = config["smoothing_method"]
        if args.verbose:
            print(f"Using preset: {args.preset}", file=sys.stderr)
            print(f"  Order: {args.max_order}, Smoothing: {args.smoothing_method}", file=sys.stderr)

    texts = []
    for path in args.files:
        with open(path, encoding="utf-8") as f:
            texts.append(f.read())
    corpus = "\n".join(texts)

    tokenizer = WhitespaceTokenizer.from_corpus(corpus, unk_token=args.unk, case=args.case)
    if args.verbose:
        print(f"Vocabulary: {tokenizer.vocab_size()} tokens", file=sys.stderr)

    trainer = NgramTrainer(max_order=args.max_order, smoothing_method=args.smoothing_method, verbose=args.verbose)
    model = NgramModel(trainer.train_text(corpus, tokenizer), tokenizer, verbose=args.verbose)
    model.save(args.output)

    if args.verbose:
        print(f"Wrote {model.model_name} artifact to {args.output}", file=sys.stderr)


def _handle_generate(args):
    """Handle 'generate': load an artifact and run one request."""
    model = NgramModel.load(
        args.artifact,
        verbose=args.verbose,
        smoothing_method=args.smoothing_method,
        backoff_weight=args.backoff_weight,
        discount=args.discount,
    )

    overrides = {
        "max_tokens": args.max_tokens,
        "seed": args.seed,
        "stop_sequences": [parse_stop_sequence(s) for s in args.stop],
    }
    if args.temperature is not None:
        overrides["temperature"] = args.temperature
    if args.top_k is not None:
        overrides["top_k"] = args.top_k

    if args.preset:
        request = GenerateRequest.from_preset(args.prompt, args.preset, **overrides)
    else:
        request = GenerateRequest(prompt=args.prompt, **overrides)

    response = model.generate(request)

    if args.json:
        print(json.dumps(response.to_dict(), indent=2))
        return

    print(response.generated_text)
    if args.verbose:
        usage = response.usage
        print(
            f"Usage: {usage.input_tokens} in, {usage.output_tokens} out, {usage.total_tokens} total "
            f"({response.latency_ms}ms, {response.finish_reason}, seed {response.seed})",
            file=sys.stderr,
        )


def _handle_stats(args):
    NgramModel.load(args.artifact).print_statistics()


def _handle_compare(args):
    """Handle 'compare': train several configurations and report metrics."""
    orders = parse_order_spec(args.orders)
    methods = [m.strip() for m in args.smoothing_methods.split(",") if m.strip()]

    with open(args.corpus, encoding="utf-8") as f:
        corpus = f.read()

    test_text = None
    if args.eval:
        with open(args.eval, encoding="utf-8") as f:
            test_text = f.read()

    comparison = ModelComparison(corpus, verbose=args.verbose)
    comparison.train_orders(orders, methods)
    results = comparison.evaluate(test_text=test_text, prompt=args.prompt)

    if args.plot:
        plot_comparison(results, output_file=args.plot)
    else:
        print_comparison(results)


def main() -> None:
    """Main entry point for the ngramgen command-line tool"""
    parser = _create_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "presets":
        print_presets()
        return

    handlers = {
        "train": _handle_train,
        "generate": _handle_generate,
        "stats": _handle_stats,
        "compare": _handle_compare,
    }

    try:
        handlers[args.command](args)
    except (NgramError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
