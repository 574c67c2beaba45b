"""Small parsing helpers shared by the CLI and comparison tools."""


def parse_order_spec(spec: str) -> list[int]:
    """
    Parse an n-gram order specification into a sorted list of orders.

    Supports single orders ("3"), lists ("2,3,5"), inclusive ranges ("1-4")
    and any mix of them ("1-3,5").

    Args:
        spec: Order specification string

    Returns:
        Sorted list of unique orders, each >= 1

    Raises:
        ValueError: If the specification is empty or malformed, or names an order < 1

    Examples:
        >>> parse_order_spec("1-3,5")
        [1, 2, 3, 5]
        >>> parse_order_spec("5,3")
        [3, 5]
    """
    if not spec or not spec.strip():
        raise ValueError("Order specification cannot be empty")

    orders = set()
    for part in (p.strip() for p in spec.split(",")):
        if not part:
            continue

        bounds = part.split("-")
        if len(bounds) > 2 or not all(b.strip() for b in bounds):
            raise ValueError(f"Invalid order specification: '{part}'")

        try:
            low, high = int(bounds[0]), int(bounds[-1])
        except ValueError as e:
            raise ValueError(f"Invalid order specification: '{part}' (must be integers)") from e

        if low > high:
            raise ValueError(f"Invalid range: {low}-{high} (start must be <= end)")
        if low < 1:
            raise ValueError(f"Order must be >= 1, got {low}")

        orders.update(range(low, high + 1))

    if not orders:
        raise ValueError("No orders found in specification")

    return sorted(orders)


def parse_stop_sequence(text: str) -> str:
    """Interpret backslash escapes (such as a literal backslash-n) in a stop sequence."""
    return text.encode("latin-1", "backslashreplace").decode("unicode_escape")
