from __future__ import annotations

import logging
import time
from datetime import date
from typing import Optional

from application import aggregator
from application.daily_status import DailyStatusService
from application.formatting import money
from application.views import status_out, totals_out, transaction_out
from domain.errors import BudgetNotConfigured
from domain.models import Client, DailyTransaction
from domain.schemas import (
    AdminDashboardOut,
    AnalyticsOut,
    CategorySpendingOut,
    ClientDashboardOut,
    DailyTrendOut,
    MonthlyBalanceOut,
)
from infrastructure.services import ClientService, DailyTransactionService

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5
CLIENT_PAGE_SIZE = 100


def _most_recent(transactions: list[DailyTransaction], limit: int = RECENT_LIMIT) -> list[DailyTransaction]:
    return sorted(transactions, key=lambda t: t.date or date.min, reverse=True)[:limit]


class DashboardService:
    def __init__(
        self,
        clients: ClientService,
        transactions: DailyTransactionService,
        daily_status: DailyStatusService,
    ):
        self._clients = clients
        self._transactions = transactions
        self._daily_status = daily_status

    def client_dashboard(self, client_id: str, today: Optional[date] = None) -> ClientDashboardOut:
        today = today or date.today()
        t0 = time.perf_counter()
        transactions = list(self._transactions.iter_for_client(client_id))
        totals = aggregator.totals(transactions)

        daily_status = None
        try:
            daily_status = status_out(self._daily_status.status_for(client_id, today))
        except BudgetNotConfigured:
            logger.info("No budget configured client_id=%s month=%04d-%02d", client_id, today.year, today.month)

        logger.info("Client dashboard client_id=%s transactions=%d in %.2fs", client_id, len(transactions), time.perf_counter() - t0)
        return ClientDashboardOut(
            total_transactions=len(transactions),
            total_income=money(totals.income),
            total_expense=money(totals.expense),
            recent_activities=[transaction_out(t, today) for t in _most_recent(transactions)],
            daily_status=daily_status,
            budget_configured=daily_status is not None,
        )

    def _all_clients(self) -> list[Client]:
        clients: list[Client] = []
        page = 1
        while True:
            rows, pagination = self._clients.list_clients(page=page, limit=CLIENT_PAGE_SIZE)
            clients.extend(rows)
            if page >= pagination.total_pages or not rows:
                return clients
            page += 1

    def admin_dashboard(self, today: Optional[date] = None) -> AdminDashboardOut:
        clients = self._all_clients()
        transactions = self._transactions.list_all()
        active = [c for c in clients if c.is_active or c.status == "active"]
        return AdminDashboardOut(
            total_clients=len(clients),
            active_clients=len(active),
            total_transactions=len(transactions),
            totals=totals_out(aggregator.totals(transactions)),
            recent_activity=[transaction_out(t, today) for t in _most_recent(transactions)],
        )

    def analytics(self, client_id: str, today: Optional[date] = None) -> AnalyticsOut:
        today = today or date.today()
        transactions = list(self._transactions.iter_for_client(client_id))

        spending = [
            CategorySpendingOut(
                category_id=row["category_id"],
                category_name=row["category_name"],
                amount=money(row["amount"]),
                color=row["color"],
            )
            for row in aggregator.category_spending(transactions)
        ]
        monthly = [
            MonthlyBalanceOut(
                month=row["month"],
                income=money(row["income"]),
                expense=money(row["expense"]),
                balance=money(row["balance"]),
            )
            for row in aggregator.monthly_balance(transactions)
        ]
        return AnalyticsOut(
            category_spending=spending,
            daily_spending_trend=self._daily_trend(client_id, transactions, today),
            monthly_balance=monthly,
        )

    def _daily_trend(self, client_id: str, transactions: list[DailyTransaction], today: date) -> list[DailyTrendOut]:
        try:
            series = self._daily_status.series_for(client_id, today)
        except BudgetNotConfigured:
            # Without a budget there is no allowance; fall back to the month's net cash flow per day.
            month = [t for t in transactions if t.date and t.date.year == today.year and t.date.month == today.month]
            return [
                DailyTrendOut(
                    date=date.fromisoformat(key),
                    income=money(group.income),
                    expense=money(group.expense),
                    balance=money(group.balance),
                )
                for key, group in aggregator.aggregate(month, "date").items()
            ]
        return [
            DailyTrendOut(
                date=status.date,
                income=money(status.today_income),
                expense=money(status.today_spent),
                balance=money(status.remaining_balance),
            )
            for status in series
        ]
