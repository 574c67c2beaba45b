"""Tests for model comparison utilities"""

import math

import pytest

from ngramgen import ModelComparison, compare_smoothing_methods, plot_comparison, print_comparison

CORPUS = """the cat sat on the mat
the dog sat on the log
the cat saw the dog
the dog chased the cat around the mat
"""

HELD_OUT = "the cat sat on the log"


@pytest.fixture
def comparison():
    comparison = ModelComparison(CORPUS)
    comparison.train_orders([2, 3])
    return comparison


class TestModelRegistration:
    """Test adding and training models"""

    def test_add_model(self):
        comparison = ModelComparison(CORPUS)
        model = comparison.add_model("tri", order=3, smoothing_method="simple")
        assert comparison.list_models() == ["tri"]
        assert model.smoothing_method == "simple_backoff"
        assert model.model_name == "tri"

    def test_train_orders(self, comparison):
        assert comparison.list_models() == [
            "2gram-simple_backoff",
            "2gram-kneser_ney",
            "3gram-simple_backoff",
            "3gram-kneser_ney",
        ]
        assert set(comparison.training_times) == {2, 3}

    def test_artifact_shared_per_order(self, comparison):
        simple = comparison.models["3gram-simple_backoff"]
        kn = comparison.models["3gram-kneser_ney"]
        assert simple.artifact is kn.artifact
        assert simple.artifact.order == 3

    def test_unknown_model(self, comparison):
        with pytest.raises(ValueError, match="Unknown model: 'nope'"):
            comparison.perplexity("nope", HELD_OUT)


class TestMetrics:
    """Test individual metrics"""

    def test_perplexity(self, comparison):
        result = comparison.perplexity("3gram-kneser_ney", HELD_OUT)
        assert result["num_tokens"] == 6
        assert math.isfinite(result["perplexity"])
        assert result["perplexity"] >= 1.0
        assert result["perplexity"] == pytest.approx(2 ** result["cross_entropy"])

    def test_perplexity_beats_uniform_on_training_text(self, comparison):
        vocab_size = comparison.tokenizer.vocab_size()
        result = comparison.perplexity("3gram-kneser_ney", CORPUS)
        assert result["perplexity"] < vocab_size

    def test_perplexity_empty_text(self, comparison):
        with pytest.raises(ValueError, match="No tokens"):
            comparison.perplexity("3gram-kneser_ney", "   ")

    def test_top_k_accuracy(self, comparison):
        cases = [("the cat", ["sat", "saw"]), ("sat on", ["the"])]
        assert comparison.top_k_accuracy("3gram-kneser_ney", cases, k=3) == 1.0

    def test_top_k_accuracy_miss(self, comparison):
        assert comparison.top_k_accuracy("3gram-kneser_ney", [("the cat", ["log"])], k=1) == 0.0

    def test_top_k_accuracy_requires_cases(self, comparison):
        with pytest.raises(ValueError, match="No test cases"):
            comparison.top_k_accuracy("3gram-kneser_ney", [])

    def test_diversity(self, comparison):
        result = comparison.diversity("2gram-kneser_ney", "the", num_samples=8, max_tokens=4)
        assert result["samples"] == 8
        assert 1 <= result["unique"] <= 8
        assert result["ratio"] == result["unique"] / 8

    def test_diversity_is_deterministic(self, comparison):
        first = comparison.diversity("3gram-simple_backoff", "the dog", num_samples=5)
        second = comparison.diversity("3gram-simple_backoff", "the dog", num_samples=5)
        assert first == second

    def test_speed(self, comparison):
        assert comparison.speed("3gram-kneser_ney", "the cat", iterations=3) >= 0.0


class TestEvaluate:
    """Test evaluating all registered models"""

    def test_requires_models(self):
        with pytest.raises(ValueError, match="No models to evaluate"):
            ModelComparison(CORPUS).evaluate(test_text=HELD_OUT)

    def test_perplexity_only(self, comparison):
        results = comparison.evaluate(test_text=HELD_OUT)
        assert set(results) == set(comparison.list_models())
        for metrics in results.values():
            assert "perplexity" in metrics
            assert "diversity" not in metrics
            assert "top_k_accuracy" not in metrics

    def test_all_metrics(self, comparison):
        results = comparison.evaluate(
            test_text=HELD_OUT, test_cases=[("the cat", ["sat"])], prompt="the", k=2, iterations=2
        )
        metrics = results["3gram-kneser_ney"]
        assert metrics["order"] == 3
        assert metrics["smoothing_method"] == "kneser_ney"
        assert metrics["top_k"] == 2
        assert 0.0 <= metrics["top_k_accuracy"] <= 1.0
        assert 0.0 < metrics["diversity"] <= 1.0
        assert metrics["ms_per_generation"] >= 0.0

    def test_compare_smoothing_methods(self):
        results = compare_smoothing_methods(CORPUS, HELD_OUT, order=2)
        assert set(results) == {"simple_backoff", "kneser_ney"}
        assert all(metrics["order"] == 2 for metrics in results.values())


class TestReporting:
    """Test printing and plotting results"""

    def test_print_comparison(self, comparison, capsys):
        print_comparison(comparison.evaluate(test_text=HELD_OUT), title="Orders")
        captured = capsys.readouterr()
        assert "Orders" in captured.out
        assert "3gram-kneser_ney" in captured.out
        assert "Best perplexity" in captured.out

    def test_plot_text_only(self, comparison, capsys):
        plot_comparison(comparison.evaluate(test_text=HELD_OUT), use_matplotlib=False)
        captured = capsys.readouterr()
        assert "Model Comparison" in captured.out
        assert "Plot saved" not in captured.out

    def test_plot_to_file(self, comparison, tmp_path, capsys):
        matplotlib = pytest.importorskip("matplotlib")
        matplotlib.use("Agg")

        output = tmp_path / "comparison.png"
        plot_comparison(comparison.evaluate(test_text=HELD_OUT), output_file=str(output))
        assert output.exists()
        assert "Plot saved to" in capsys.readouterr().out
