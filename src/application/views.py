from __future__ import annotations

from datetime import date
from typing import Optional

from application.formatting import balance_icon, balance_tone, format_currency, format_date, money
from domain.models import DailyAllowanceStatus, DailyTransaction, MonthlyBudget, Totals
from domain.schemas import BudgetOut, DailyStatusOut, GroupTotalsOut, TotalsOut, TransactionOut


def budget_out(budget: MonthlyBudget) -> BudgetOut:
    return BudgetOut(
        id=budget.id,
        client_id=budget.client_id,
        year=budget.year,
        month=budget.month,
        monthly_salary=money(budget.monthly_salary),
        budget_amount=money(budget.budget_amount),
        is_percentage=budget.is_percentage,
        days_in_month=budget.days_in_month,
        effective_budget=money(budget.effective_budget),
        daily_budget=money(budget.daily_budget),
    )


def status_out(status: DailyAllowanceStatus) -> DailyStatusOut:
    return DailyStatusOut(
        date=status.date,
        daily_budget=money(status.daily_budget),
        previous_day_balance=money(status.previous_day_balance),
        adjusted_daily_budget=money(status.adjusted_daily_budget),
        today_spent=money(status.today_spent),
        today_income=money(status.today_income),
        remaining_balance=money(status.remaining_balance),
        balance_tone=balance_tone(status.remaining_balance),
        balance_icon=balance_icon(status.remaining_balance),
        monthly_budget=budget_out(status.budget),
    )


def transaction_out(txn: DailyTransaction, today: Optional[date] = None) -> TransactionOut:
    return TransactionOut(
        id=txn.id,
        description=txn.description,
        amount=money(txn.amount),
        type=txn.type,
        date=txn.date,
        date_label=format_date(txn.date, today),
        amount_label=format_currency(txn.amount),
        category_id=txn.category_id,
        category_name=txn.category.name if txn.category else None,
        client_id=txn.client_id,
        client_name=txn.client_name,
    )


def totals_out(totals: Totals) -> TotalsOut:
    return TotalsOut(income=money(totals.income), expense=money(totals.expense), balance=money(totals.balance))


def groups_out(groups: dict[str, Totals]) -> list[GroupTotalsOut]:
    return [GroupTotalsOut(key=key, income=money(t.income), expense=money(t.expense)) for key, t in groups.items()]
