from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

CENT = Decimal("0.01")


def money(amount: Decimal | int | float | None) -> float:
    """Round to cents for JSON output."""
    if amount is None:
        return 0.0
    return float(Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP))


def format_currency(amount: Decimal | int | float | None) -> str:
    """pt-BR currency, e.g. R$ 1.234,56 and -R$ 12,00."""
    if amount is None:
        return ""
    value = Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    integer, _, cents = f"{abs(value):.2f}".partition(".")
    groups = []
    while len(integer) > 3:
        groups.insert(0, integer[-3:])
        integer = integer[:-3]
    groups.insert(0, integer)
    return f"{sign}R$ {'.'.join(groups)},{cents}"


def format_date(day: Optional[date], today: Optional[date] = None) -> str:
    if day is None:
        return ""
    today = today or date.today()
    diff = (today - day).days
    if diff == 0:
        return "Hoje"
    if diff == 1:
        return "Ontem"
    return day.strftime("%d/%m/%Y")


def balance_tone(balance: Decimal) -> str:
    if balance > 0:
        return "positive"
    if balance < 0:
        return "negative"
    return "neutral"


def balance_icon(balance: Decimal) -> str:
    return {"positive": "↗", "negative": "↘", "neutral": "→"}[balance_tone(balance)]
