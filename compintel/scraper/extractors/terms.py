"""Small text patterns shared by the coupon and discount extractors."""

from __future__ import annotations

import re

_DATE = (
    r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}"
    r"|(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\.?\s+\d{1,2}(?:st|nd|rd|th)?(?:,?\s+\d{4})?"
)
_EXPIRY = re.compile(
    rf"\b(?:expires?|ends?|valid\s+(?:until|through|thru)|until|through|by)\s*:?\s*(?:on\s+)?({_DATE})",
    re.IGNORECASE,
)
_BARE_DATE = re.compile(rf"\b({_DATE})\b", re.IGNORECASE)

_CONDITIONS = re.compile(
    r"\b(?:minimum|min\.|on\s+orders?\s+(?:over|above)|orders?\s+(?:over|above)|"
    r"valid\s+(?:on|for)|new\s+customers?|first\s+(?:order|month|year|purchase)|"
    r"terms|conditions|excludes?|when\s+you)\b[^.!]{0,60}",
    re.IGNORECASE,
)

_PERCENT = re.compile(r"(\d{1,3})\s*%")
_CURRENCY_AMOUNT = re.compile(r"[$€£]\s?(\d+(?:\.\d{2})?)")


def find_expiry(text: str) -> str | None:
    """Date following an expiry keyword, else the first bare date in *text*."""
    match = _EXPIRY.search(text) or _BARE_DATE.search(text)
    return match.group(1).strip() if match else None


def find_conditions(text: str) -> str | None:
    match = _CONDITIONS.search(text)
    return " ".join(match.group(0).split()) if match else None


def discount_value(text: str) -> str:
    """``"20%"`` / ``"$10"`` style value mentioned in *text*, or ``"see details"``."""
    percent = _PERCENT.search(text)
    if percent:
        return f"{percent.group(1)}%"
    amount = _CURRENCY_AMOUNT.search(text)
    if amount:
        return amount.group(0).replace(" ", "")
    return "see details"


def has_discount_value(text: str) -> bool:
    return bool(_PERCENT.search(text) or _CURRENCY_AMOUNT.search(text))
