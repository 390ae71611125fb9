"""Display formatters. Token amounts stay integers until they reach these functions."""

from __future__ import annotations


def format_units(value: int, decimals: int) -> str:
    """Exact decimal rendering of an integer amount, e.g. (1000000, 8) -> '0.01'."""
    if decimals <= 0:
        return str(value)
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{frac_str or '0'}"


def parse_units(value: str, decimals: int) -> int:
    """Inverse of format_units, without going through float."""
    text = str(value).strip()
    whole, _, frac = text.partition(".")
    if len(frac) > decimals:
        raise ValueError(f"{text} has more than {decimals} decimals")
    if not (whole or frac) or not (whole or "0").isdigit() or (frac and not frac.isdigit()):
        raise ValueError(f"Invalid token amount: {value!r}")
    return int(whole or "0") * 10**decimals + int(frac.ljust(decimals, "0") or "0")


def fmt6(value: int, decimals: int) -> str:
    return f"{float(format_units(value, decimals)):.6f}"


def fmt_pct(value: float, decimals: int = 2) -> str:
    """Format a percentage value. Expects value already in % (e.g. 5.25 -> '5.25%')."""
    return f"{value:.{decimals}f}%"


def fmt_tokens(value: int, decimals: int, symbol: str = "") -> str:
    """Format token amounts with human-readable suffixes (K/M/B)."""
    suffix = f" {symbol}" if symbol else ""
    amount = float(format_units(value, decimals))
    abs_val = abs(amount)
    if abs_val >= 1_000_000_000:
        return f"{amount / 1_000_000_000:,.2f}B{suffix}"
    if abs_val >= 1_000_000:
        return f"{amount / 1_000_000:,.2f}M{suffix}"
    if abs_val >= 1_000:
        return f"{amount / 1_000:,.2f}K{suffix}"
    return f"{format_units(value, decimals)}{suffix}"
