from __future__ import annotations

from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Sequence

from domain.models import DailyAllowanceStatus, DailyTransaction, MonthlyBudget, Totals

TransactionsByDate = Mapping[date, Sequence[DailyTransaction]]


def group_by_date(transactions: Iterable[DailyTransaction]) -> "OrderedDict[date, list[DailyTransaction]]":
    """Bucket transactions by calendar day, oldest first. Undated rows are dropped."""
    buckets: dict[date, list[DailyTransaction]] = {}
    for txn in transactions:
        if txn.date is None:
            continue
        buckets.setdefault(txn.date, []).append(txn)
    return OrderedDict(sorted(buckets.items()))


def _day_totals(transactions_by_date: TransactionsByDate, day: date) -> Totals:
    totals = Totals()
    for txn in transactions_by_date.get(day, ()):
        totals.add(txn)
    return totals


def _resolve_start(budget: MonthlyBudget, tracking_start: Optional[date]) -> date:
    # The carryover chain never leaves the budget's month: each month has its own record.
    if tracking_start is None or tracking_start < budget.first_day:
        return budget.first_day
    return tracking_start


def daily_status_series(
    budget: MonthlyBudget,
    transactions_by_date: TransactionsByDate,
    through: Optional[date] = None,
    tracking_start: Optional[date] = None,
) -> list[DailyAllowanceStatus]:
    """
    Walk every calendar day from the first tracked day to `through` (inclusive).

    Each day receives the month's flat daily budget plus the previous day's
    remaining balance; empty days still carry the balance forward. Balances
    are never clamped, so an overspend shows up as a negative carryover.
    """
    end = through or budget.last_day
    if not budget.covers(end):
        raise ValueError(f"{end.isoformat()} is outside budget month {budget.year}-{budget.month:02d}")

    start = _resolve_start(budget, tracking_start)
    daily_budget = budget.daily_budget
    previous = Decimal("0")
    series: list[DailyAllowanceStatus] = []

    day = start
    while day <= end:
        totals = _day_totals(transactions_by_date, day)
        adjusted = daily_budget + previous
        remaining = adjusted + totals.income - totals.expense
        series.append(
            DailyAllowanceStatus(
                date=day,
                daily_budget=daily_budget,
                previous_day_balance=previous,
                adjusted_daily_budget=adjusted,
                today_spent=totals.expense,
                today_income=totals.income,
                remaining_balance=remaining,
                budget=budget,
            )
        )
        previous = remaining
        day += timedelta(days=1)
    return series


def compute_daily_status(
    budget: MonthlyBudget,
    transactions_by_date: TransactionsByDate,
    target_date: date,
    tracking_start: Optional[date] = None,
) -> DailyAllowanceStatus:
    if tracking_start is not None and target_date < tracking_start:
        raise ValueError("target_date must not precede tracking_start")
    series = daily_status_series(budget, transactions_by_date, through=target_date, tracking_start=tracking_start)
    return series[-1]
