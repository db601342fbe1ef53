from __future__ import annotations

import logging
import time
from datetime import date
from typing import Optional

from application.daily_allowance import compute_daily_status, daily_status_series, group_by_date
from domain.errors import BudgetNotConfigured
from domain.models import DailyAllowanceStatus, DailyTransaction, MonthlyBudget
from infrastructure.services import DailyTransactionService, MonthlyBudgetService

logger = logging.getLogger(__name__)


class DailyStatusService:
    """Fetches a client's month from the API and runs the allowance calculator over it."""

    def __init__(self, budgets: MonthlyBudgetService, transactions: DailyTransactionService):
        self._budgets = budgets
        self._transactions = transactions

    def budget_for(self, client_id: str, day: date) -> MonthlyBudget:
        budget = self._budgets.find_for_month(client_id, day.year, day.month)
        if budget is None:
            raise BudgetNotConfigured(client_id, day.year, day.month)
        return budget

    def month_transactions(self, client_id: str, budget: MonthlyBudget, through: date) -> list[DailyTransaction]:
        rows = self._transactions.iter_date_range(budget.first_day, through, client_id=client_id)
        # The date-range endpoint treats clientId as optional; keep only this client's rows.
        return [txn for txn in rows if txn.client_id == client_id]

    def status_for(
        self,
        client_id: str,
        target_date: Optional[date] = None,
        tracking_start: Optional[date] = None,
    ) -> DailyAllowanceStatus:
        target_date = target_date or date.today()
        t0 = time.perf_counter()
        budget = self.budget_for(client_id, target_date)
        transactions = self.month_transactions(client_id, budget, target_date)
        status = compute_daily_status(budget, group_by_date(transactions), target_date, tracking_start=tracking_start)
        logger.info(
            "Daily status client_id=%s date=%s transactions=%d remaining=%s in %.2fs",
            client_id,
            target_date.isoformat(),
            len(transactions),
            status.remaining_balance,
            time.perf_counter() - t0,
        )
        return status

    def series_for(self, client_id: str, through: Optional[date] = None) -> list[DailyAllowanceStatus]:
        through = through or date.today()
        budget = self.budget_for(client_id, through)
        transactions = self.month_transactions(client_id, budget, through)
        return daily_status_series(budget, group_by_date(transactions), through=through)
