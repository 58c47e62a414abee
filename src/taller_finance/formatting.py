"""Display helpers for pesos and percentages (es-AR conventions)."""

from decimal import ROUND_HALF_UP, Decimal


def format_currency(amount: Decimal, symbol: str = "$") -> str:
    """Format whole pesos with dot thousands separators, e.g. ``-$ 1.234``."""
    rounded = amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    digits = f"{abs(rounded):,.0f}".replace(",", ".")
    return f"{sign}{symbol} {digits}"


def format_percent(value: Decimal, places: int = 1) -> str:
    """Format a percentage with a decimal comma, e.g. ``-400,0%``."""
    quantum = Decimal(1).scaleb(-places)
    rounded = value.quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{rounded:.{places}f}".replace(".", ",") + "%"
