from datetime import date


def format_currency(cents: int) -> str:
    """Render cents as Brazilian reais, e.g. ``R$ 1.234,56``."""
    sign = "-" if cents < 0 else ""
    grouped = f"{abs(cents) / 100:,.2f}"
    grouped = grouped.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {grouped}"


def format_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def format_percent(value: float) -> str:
    return f"{value:.0f}%"
