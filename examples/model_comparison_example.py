#!/usr/bin/env python
"""
Example: Compare n-gram orders and smoothing methods with ModelComparison.

This demonstrates how to:
1. Train several orders on one corpus (one training pass per order)
2. Score simple backoff against Kneser-Ney on held-out text
3. Check next-token accuracy on hand-written completions
4. Measure output diversity and generation speed
5. Generate reproducible text from the best model

Usage:
    python examples/model_comparison_example.py [corpus.txt] [test.txt]
"""

import sys

from ngramgen import GenerateRequest, ModelComparison, print_comparison

SAMPLE_CORPUS = """public static void main ( String [ ] args ) {
public static int max ( int a , int b ) {
public void run ( ) {
private static final int SIZE = 10 ;
public static void log ( String message ) {
"""

SAMPLE_TEST = """public static void run ( String [ ] args ) {
private static final int MAX = 20 ;
"""

if len(sys.argv) > 1:
    with open(sys.argv[1], encoding="utf-8") as f:
        CORPUS = f.read()
    if len(sys.argv) > 2:
        with open(sys.argv[2], encoding="utf-8") as f:
            TEST = f.read()
    else:
        TEST = CORPUS
else:
    CORPUS = SAMPLE_CORPUS
    TEST = SAMPLE_TEST


def main():
    print("=" * 70)
    print("Model Comparison Example")
    print("=" * 70)

    comparison = ModelComparison(CORPUS, verbose=True)

    print("\n>>> Training models...")
    models = comparison.train_orders([2, 3, 4])
    print(f"Registered {len(models)} models: {', '.join(comparison.list_models())}")

    print("\n>>> Evaluating models...")
    results = comparison.evaluate(
        test_text=TEST,
        test_cases=[("public static", ["void", "int"]), ("String [", ["]"])],
        prompt="public static",
        k=3,
        iterations=10,
    )
    print_comparison(results)

    best = min(results, key=lambda name: results[name]["perplexity"])
    print(f"\n>>> Generating with {best}...")
    model = comparison.models[best]
    for seed in (1, 2, 3):
        response = model.generate(GenerateRequest("public static", max_tokens=8, temperature=0.8, seed=seed))
        print(f"  seed {seed}: {response.generated_text}")

    print("\n" + "=" * 70)
    print("Complete!")
    print("=" * 70)


if __name__ == "__main__":
    main()
