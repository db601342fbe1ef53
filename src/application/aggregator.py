from __future__ import annotations

from collections import defaultdict
from typing import Callable, Iterable, Literal, Optional

from domain.models import DailyTransaction, Totals, TransactionType

GroupBy = Literal["date", "category", "client"]

UNKNOWN_KEY = "unknown"

CATEGORY_COLORS = [
    "#FF6384", "#36A2EB", "#FFCE56", "#4BC0C0", "#9966FF",
    "#FF9F40", "#8AC926", "#1982C4", "#6A4C93", "#F94144",
]


def _date_key(txn: DailyTransaction) -> Optional[str]:
    return txn.date.isoformat() if txn.date else None


def _category_key(txn: DailyTransaction) -> Optional[str]:
    if txn.category_id:
        return txn.category_id
    return txn.category.id if txn.category and txn.category.id else None


def _client_key(txn: DailyTransaction) -> Optional[str]:
    return txn.client_id or None


_KEY_FUNCS: dict[str, Callable[[DailyTransaction], Optional[str]]] = {
    "date": _date_key,
    "category": _category_key,
    "client": _client_key,
}


def aggregate(transactions: Iterable[DailyTransaction], group_by: GroupBy) -> dict[str, Totals]:
    """
    Sum income and expense per group.

    Keys are the grouping field's natural string form (ISO date, category id,
    client id). Rows missing the field land in the "unknown" bucket.
    """
    try:
        key_func = _KEY_FUNCS[group_by]
    except KeyError:
        raise ValueError(f"Unsupported group_by: {group_by!r}") from None

    groups: dict[str, Totals] = defaultdict(Totals)
    for txn in transactions:
        groups[key_func(txn) or UNKNOWN_KEY].add(txn)
    return {key: groups[key] for key in sorted(groups)}


def totals(transactions: Iterable[DailyTransaction]) -> Totals:
    result = Totals()
    for txn in transactions:
        result.add(txn)
    return result


def category_spending(transactions: Iterable[DailyTransaction]) -> list[dict]:
    """Expense per category, largest first, each with a stable chart colour."""
    names: dict[str, str] = {}
    spent: dict[str, Totals] = defaultdict(Totals)
    for txn in transactions:
        if txn.type != TransactionType.EXPENSE:
            continue
        key = _category_key(txn) or UNKNOWN_KEY
        spent[key].add(txn)
        if txn.category and txn.category.name:
            names[key] = txn.category.name

    ordered = sorted(spent.items(), key=lambda item: (-item[1].expense, item[0]))
    return [
        {
            "category_id": key,
            "category_name": names.get(key, "Sem categoria"),
            "amount": group.expense,
            "color": CATEGORY_COLORS[index % len(CATEGORY_COLORS)],
        }
        for index, (key, group) in enumerate(ordered)
    ]


def monthly_balance(transactions: Iterable[DailyTransaction]) -> list[dict]:
    groups: dict[str, Totals] = defaultdict(Totals)
    for txn in transactions:
        if txn.date is None:
            continue
        groups[f"{txn.date.year:04d}-{txn.date.month:02d}"].add(txn)
    return [
        {"month": month, "income": group.income, "expense": group.expense, "balance": group.balance}
        for month, group in sorted(groups.items())
    ]
