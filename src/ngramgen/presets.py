"""Preset configurations for common generation styles."""

PRESETS = {
    "precise": {
        "description": "Near-deterministic completion of familiar patterns",
        "smoothing_method": "kneser_ney",
        "recommended_order": 5,
        "temperature": 0.3,
        "top_k": 3,
        "use_case": "Code completion where the most likely continuation is wanted",
    },
    "balanced": {
        "description": "Balanced configuration for general use",
        "smoothing_method": "kneser_ney",
        "recommended_order": 3,
        "temperature": 0.8,
        "top_k": 10,
        "use_case": "General-purpose text generation",
    },
    "creative": {
        "description": "Diverse output from the full candidate set",
        "smoothing_method": "kneser_ney",
        "recommended_order": 3,
        "temperature": 1.2,
        "top_k": 0,
        "use_case": "Brainstorming or sampling varied continuations",
    },
    "fast": {
        "description": "Short context with simple backoff",
        "smoothing_method": "simple_backoff",
        "recommended_order": 3,
        "temperature": 1.0,
        "top_k": 10,
        "use_case": "Small artifacts and quick experiments",
    },
}


def get_preset(preset_name: str) -> dict:
    """
    Get preset configuration by name.

    Args:
        preset_name: Name of preset

    Returns:
        Dictionary with preset configuration

    Raises:
        ValueError: If preset_name is unknown

    Example:
        config = get_preset("precise")
        print(config["temperature"])  # 0.3
    """
    if preset_name not in PRESETS:
        available = ", ".join(sorted(PRESETS.keys()))
        raise ValueError(f"Unknown preset: '{preset_name}'. Available: {available}")

    return PRESETS[preset_name].copy()


def list_presets() -> list[str]:
    """Sorted list of preset names."""
    return sorted(PRESETS.keys())


def print_presets() -> None:
    """Print formatted table of all available presets."""
    print("\nAvailable Presets")
    print("=" * 80)
    print()

    for name in sorted(PRESETS.keys()):
        config = PRESETS[name]
        print(f"Preset: {name}")
        print("-" * 80)
        print(f"  Description:  {config['description']}")
        print(f"  Smoothing:    {config['smoothing_method']}")
        print(f"  Order:        {config['recommended_order']}")
        print(f"  Temperature:  {config['temperature']}")
        print(f"  Top-k:        {config['top_k'] if config['top_k'] > 0 else 'all'}")
        print(f"  Use case:     {config['use_case']}")
        print()
