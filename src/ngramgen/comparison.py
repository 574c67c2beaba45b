"""Model comparison utilities: completion accuracy, perplexity, diversity and speed."""

import math
import sys
import time
from typing import Iterable, Optional, Sequence

from ngramgen.artifact import Artifact
from ngramgen.model import GenerateRequest, NgramModel
from ngramgen.sampler import rank_candidates
from ngramgen.smoothing import canonical_method
from ngramgen.tokenizer import Tokenizer, WhitespaceTokenizer
from ngramgen.trainer import NgramTrainer

# Probability used for tokens a distribution does not cover
MIN_PROBABILITY = 1e-10


class ModelComparison:
    """
    Train several n-gram configurations on one corpus and compare them.

    Artifacts are trained once per order (with continuation counts) and shared
    between smoothing methods, so adding a simple-backoff and a Kneser-Ney
    model of the same order costs a single training pass.

    Example:
        comparison = ModelComparison(corpus_text)
        comparison.add_model("trigram", order=3, smoothing_method="simple_backoff")
        comparison.add_model("5gram-kn", order=5, smoothing_method="kneser_ney")

        results = comparison.evaluate(
            test_text=held_out,
            test_cases=[("public static", ["void"])],
            prompt="public class",
        )
        print_comparison(results)
    """

    def __init__(self, corpus_text: str, tokenizer: Optional[Tokenizer] = None, verbose: bool = False):
        if tokenizer is None:
            tokenizer = WhitespaceTokenizer.from_corpus(corpus_text)

        self.corpus_text = corpus_text
        self.tokenizer = tokenizer
        self.verbose = verbose
        self.models: dict[str, NgramModel] = {}
        self.training_times: dict[int, float] = {}
        self.evaluations: dict[str, dict] = {}
        self._artifacts: dict[int, Artifact] = {}

    def _artifact(self, order: int) -> Artifact:
        if order not in self._artifacts:
            if self.verbose:
                print(f"Training {order}-gram artifact...", file=sys.stderr)
            start_time = time.perf_counter()
            trainer = NgramTrainer(max_order=order, smoothing_method="kneser_ney")
            self._artifacts[order] = trainer.train_text(self.corpus_text, self.tokenizer)
            self.training_times[order] = time.perf_counter() - start_time
        return self._artifacts[order]

    def add_model(self, name: str, order: int, smoothing_method: str = "kneser_ney", **model_kwargs) -> NgramModel:
        """Train (or reuse) the artifact for ``order`` and register a model under ``name``."""
        model = NgramModel(
            self._artifact(order),
            self.tokenizer,
            smoothing_method=canonical_method(smoothing_method),
            model_name=name,
            **model_kwargs,
        )
        self.models[name] = model
        return model

    def train_orders(
        self, orders: Iterable[int], smoothing_methods: Sequence[str] = ("simple_backoff", "kneser_ney")
    ) -> dict[str, NgramModel]:
        """Register one model per (order, smoothing method) pair, named like '3gram-kneser_ney'."""
        for order in orders:
            for method in smoothing_methods:
                method = canonical_method(method)
                self.add_model(f"{order}gram-{method}", order, method)
        return self.models

    def list_models(self) -> list[str]:
        return list(self.models.keys())

    def _get_model(self, name: str) -> NgramModel:
        if name not in self.models:
            raise ValueError(f"Unknown model: '{name}'. Available: {', '.join(self.models) or 'none'}")
        return self.models[name]

    # ========================
    # Metrics
    # ========================

    def top_k_accuracy(self, name: str, test_cases: Sequence[tuple[str, Iterable[str]]], k: int = 1) -> float:
        """
        Fraction of prompts whose top-k next-token candidates include an expected token.

        Args:
            name: Registered model name
            test_cases: (prompt, expected next tokens) pairs
            k: Number of candidates to consider

        Returns:
            Accuracy in [0.0, 1.0]
        """
        if not test_cases:
            raise ValueError("No test cases given")

        model = self._get_model(name)
        correct = 0
        for prompt, expected in test_cases:
            expected = set(expected)
            distribution = model.next_token_distribution(self.tokenizer.encode(prompt))
            candidates = [self.tokenizer.decode([token]) for token, _ in rank_candidates(distribution, k)]
            if expected.intersection(candidates):
                correct += 1

        return correct / len(test_cases)

    def perplexity(self, name: str, text: str) -> dict:
        """
        Perplexity of a model on held-out text.

        Returns:
            {"perplexity": float, "cross_entropy": float (bits per token), "num_tokens": int}
        """
        model = self._get_model(name)
        ids = self.tokenizer.encode(text)
        if not ids:
            raise ValueError("No tokens found in test text")

        context_len = model.artifact.order - 1
        total_log_prob = 0.0
        for i, token in enumerate(ids):
            context = ids[max(0, i - context_len) : i] if context_len else []
            prob = model.next_token_distribution(context).get(token, 0.0)
            total_log_prob += math.log2(max(prob, MIN_PROBABILITY))

        cross_entropy = -total_log_prob / len(ids)
        return {"perplexity": math.pow(2, cross_entropy), "cross_entropy": cross_entropy, "num_tokens": len(ids)}

    def diversity(
        self,
        name: str,
        prompt: str,
        num_samples: int = 10,
        max_tokens: int = 5,
        temperature: float = 0.8,
        top_k: int = 10,
    ) -> dict:
        """Number of distinct outputs across seeds 0..num_samples-1."""
        model = self._get_model(name)
        outputs = set()
        for seed in range(num_samples):
            request = GenerateRequest(prompt, max_tokens=max_tokens, temperature=temperature, top_k=top_k, seed=seed)
            outputs.add(model.generate(request).generated_text)

        return {"unique": len(outputs), "samples": num_samples, "ratio": len(outputs) / num_samples}

    def speed(self, name: str, prompt: str, iterations: int = 20, max_tokens: int = 10) -> float:
        """Mean wall-clock milliseconds per generate() call."""
        model = self._get_model(name)
        request = GenerateRequest(prompt, max_tokens=max_tokens, temperature=0.8, top_k=10, seed=42)

        start_time = time.perf_counter()
        for _ in range(iterations):
            model.generate(request)
        return (time.perf_counter() - start_time) * 1000 / iterations

    def evaluate(
        self,
        test_text: Optional[str] = None,
        test_cases: Optional[Sequence[tuple[str, Iterable[str]]]] = None,
        prompt: Optional[str] = None,
        k: int = 3,
        iterations: int = 20,
    ) -> dict[str, dict]:
        """
        Evaluate every registered model.

        Each metric is computed only when its input is given: perplexity needs
        ``test_text``, accuracy needs ``test_cases``, diversity and speed need
        ``prompt``.

        Returns:
            Dictionary mapping model name -> metrics
        """
        if not self.models:
            raise ValueError("No models to evaluate. Call add_model() or train_orders() first.")

        for name, model in self.models.items():
            if self.verbose:
                print(f"Evaluating {name}...", file=sys.stderr)

            metrics = {
                "order": model.artifact.order,
                "smoothing_method": model.smoothing_method,
                "training_time_seconds": self.training_times.get(model.artifact.order, 0.0),
            }
            if test_text:
                metrics.update(self.perplexity(name, test_text))
            if test_cases:
                metrics["top_k"] = k
                metrics["top_k_accuracy"] = self.top_k_accuracy(name, test_cases, k=k)
            if prompt:
                metrics["diversity"] = self.diversity(name, prompt)["ratio"]
                metrics["ms_per_generation"] = self.speed(name, prompt, iterations=iterations)

            self.evaluations[name] = metrics

        return self.evaluations


def compare_smoothing_methods(
    corpus_text: str,
    test_text: str,
    methods: Optional[list[str]] = None,
    order: int = 3,
    verbose: bool = False,
) -> dict[str, dict]:
    """
    Compare smoothing methods at one order by perplexity on held-out text.

    Example:
        results = compare_smoothing_methods(train_text, test_text, order=5)
        for method, metrics in results.items():
            print(f"{method}: PPL={metrics['perplexity']:.1f}")
    """
    if methods is None:
        methods = ["simple_backoff", "kneser_ney"]

    comparison = ModelComparison(corpus_text, verbose=verbose)
    for method in methods:
        comparison.add_model(canonical_method(method), order, method)
    return comparison.evaluate(test_text=test_text)


def print_comparison(results: dict[str, dict], title: str = "Model Comparison") -> None:
    """Print a table of evaluation results, best perplexity first when available."""
    print(f"\n{title}")
    print("=" * 80)
    print(f"{'Model':<24} {'Order':>5} {'PPL':>10} {'Top-k acc':>10} {'Diversity':>10} {'ms/gen':>8}")
    print("-" * 80)

    def sort_key(item):
        return item[1].get("perplexity", math.inf), item[0]

    for name, metrics in sorted(results.items(), key=sort_key):
        ppl = f"{metrics['perplexity']:.1f}" if "perplexity" in metrics else "-"
        acc = f"{metrics['top_k_accuracy'] * 100:.1f}%" if "top_k_accuracy" in metrics else "-"
        div = f"{metrics['diversity'] * 100:.0f}%" if "diversity" in metrics else "-"
        speed = f"{metrics['ms_per_generation']:.2f}" if "ms_per_generation" in metrics else "-"
        print(f"{name:<24} {metrics['order']:>5} {ppl:>10} {acc:>10} {div:>10} {speed:>8}")

    with_ppl = {name: m for name, m in results.items() if "perplexity" in m}
    if with_ppl:
        best = min(with_ppl, key=lambda name: with_ppl[name]["perplexity"])
        print()
        print(f"Best perplexity: {best} ({with_ppl[best]['perplexity']:.1f})")


def plot_comparison(results: dict[str, dict], use_matplotlib: bool = True, output_file: Optional[str] = None) -> None:
    """
    Visualize comparison results with optional matplotlib bar charts.

    Matplotlib is not required - falls back to the text table.

    Args:
        results: Results from ModelComparison.evaluate()
        use_matplotlib: Try to use matplotlib if installed (default: True)
        output_file: Optional path to save the figure (e.g., "comparison.png")
    """
    print_comparison(results)

    if not use_matplotlib or not results:
        return

    try:
        import matplotlib.pyplot as plt
    except ImportError:
        print()
        print("Note: matplotlib not installed. Install with:")
        print("  pip install matplotlib")
        print("Showing text summary only.")
        return

    metric_names = [
        ("perplexity", "Perplexity (lower is better)"),
        ("top_k_accuracy", "Top-k accuracy"),
        ("diversity", "Diversity (unique outputs)"),
        ("ms_per_generation", "Milliseconds per generation"),
    ]
    panels = [(key, label) for key, label in metric_names if any(key in m for m in results.values())]
    if not panels:
        return

    names = list(results.keys())
    fig, axes = plt.subplots(1, len(panels), figsize=(5 * len(panels), 4), squeeze=False)

    for ax, (key, label) in zip(axes[0], panels):
        values = [results[name].get(key, 0.0) for name in names]
        ax.bar(range(len(names)), values, color="steelblue")
        ax.set_xticks(range(len(names)))
        ax.set_xticklabels(names, rotation=45, ha="right", fontsize=8)
        ax.set_title(label, fontsize=11, fontweight="bold")
        ax.grid(axis="y", alpha=0.3)

    fig.tight_layout()

    if output_file:
        fig.savefig(output_file, dpi=150, bbox_inches="tight")
        print()
        print(f"Plot saved to: {output_file}")
    plt.close(fig)
