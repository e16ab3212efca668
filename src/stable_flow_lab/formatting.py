"""Human-readable number formatting for dashboard tables and chart labels."""

from __future__ import annotations

from datetime import UTC, datetime

_SUFFIXES = ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K"))


def format_number(value: float, decimals: int = 2) -> str:
    """Compact ``1.23B`` style rendering."""

    for threshold, suffix in _SUFFIXES:
        if value >= threshold:
            return f"{value / threshold:.{decimals}f}{suffix}"
    return f"{value:.{decimals}f}"


def format_currency(value: float, decimals: int = 2) -> str:
    return f"${format_number(value, decimals)}"


def format_percentage(value: float, decimals: int = 2) -> str:
    """Signed percentage, e.g. ``+1.50%``."""

    prefix = "+" if value > 0 else ""
    return f"{prefix}{value:.{decimals}f}%"


def format_percent(value: float, decimals: int = 2) -> str:
    return f"{value:.{decimals}f}%"


def format_full_number(value: float) -> str:
    return f"{value:,.0f}"


def format_address(address: str, chars: int = 4) -> str:
    """Shorten ``0xabcdef...1234`` style identifiers."""

    if not address or len(address) < chars * 2 + 2:
        return address
    return f"{address[:chars + 2]}...{address[-chars:]}"


def format_tx_hash(tx_hash: str, chars: int = 6) -> str:
    if not tx_hash or len(tx_hash) < chars * 2:
        return tx_hash
    return f"{tx_hash[:chars]}...{tx_hash[-chars:]}"


def format_relative_time(timestamp: datetime, now: datetime | None = None) -> str:
    seconds = int(((now or datetime.now(tz=UTC)) - timestamp).total_seconds())
    minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400
    if days > 0:
        return f"{days}d ago"
    if hours > 0:
        return f"{hours}h ago"
    if minutes > 0:
        return f"{minutes}m ago"
    return "Just now"


__all__ = [
    "format_address",
    "format_currency",
    "format_full_number",
    "format_number",
    "format_percent",
    "format_percentage",
    "format_relative_time",
    "format_tx_hash",
]
