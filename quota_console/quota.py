"""
Quota unit conversion.
Quota is stored as integer units; QUOTA_PER_UNIT units make one display dollar.
"""
from quota_console.constants import QUOTA_PER_UNIT


def quota_to_amount(quota) -> float:
    return (quota or 0) / QUOTA_PER_UNIT


def format_quota(quota, digits: int = 6) -> str:
    """
    Dollar amount of a quota value without the currency sign.

    Trailing zeros are trimmed but at least two decimals are kept:
    100 -> "0.0002", 500000 -> "1.00".
    """
    text = f"{quota_to_amount(quota):.{digits}f}"
    if digits <= 2:
        return text
    whole, _, frac = text.partition(".")
    frac = frac.rstrip("0")
    if len(frac) < 2:
        frac = frac.ljust(2, "0")
    return f"{whole}.{frac}"


def render_quota(quota, digits: int = 6) -> str:
    return "$" + format_quota(quota, digits)
