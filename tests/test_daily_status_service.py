from __future__ import annotations

import unittest
from datetime import date
from decimal import Decimal

from _fakes import FakeApi, page, txn_row
from application.context import AppContext
from domain.errors import BudgetNotConfigured, CategoryInUse
from infrastructure.session import SessionContext

JUNE_BUDGET = {
    "id": "b6",
    "clientId": "c1",
    "year": 2024,
    "month": 6,
    "monthlySalary": "3000",
    "budgetAmount": "30",
    "isPercentage": True,
}

JUNE_ROWS = [
    txn_row("t1", "2024-06-02", "10.00"),
    txn_row("t2", "2024-06-03", "80.00"),
    # Another client's row leaking through the optional clientId filter.
    txn_row("x1", "2024-06-02", "999.00", client_id="c2"),
]


def _ctx(routes: dict) -> tuple[AppContext, FakeApi]:
    api = FakeApi(routes)
    return AppContext(SessionContext(), api), api


class DailyStatusServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ctx, self.api = _ctx({
            ("GET", "/monthly-budgets/clients/c1"): [JUNE_BUDGET],
            ("GET", "/daily-transactions/date-range"): page(JUNE_ROWS),
        })

    def test_status_follows_carryover_chain(self) -> None:
        status = self.ctx.daily_status.status_for("c1", date(2024, 6, 3))

        self.assertEqual(status.daily_budget, Decimal("30"))
        self.assertEqual(status.previous_day_balance, Decimal("50"))
        self.assertEqual(status.adjusted_daily_budget, Decimal("80"))
        self.assertEqual(status.today_spent, Decimal("80"))
        self.assertEqual(status.remaining_balance, Decimal("0"))

    def test_fetches_from_month_start_through_target(self) -> None:
        self.ctx.daily_status.status_for("c1", date(2024, 6, 3))
        params = [arg for method, path, arg in self.api.calls if path == "/daily-transactions/date-range"][0]
        self.assertEqual((params["startDate"], params["endDate"]), ("2024-06-01", "2024-06-03"))

    def test_rows_without_client_are_left_out(self) -> None:
        orphan = txn_row("o1", "2024-06-01", "25.00")
        orphan["clientId"] = None
        ctx, _ = _ctx({
            ("GET", "/monthly-budgets/clients/c1"): [JUNE_BUDGET],
            ("GET", "/daily-transactions/date-range"): page([orphan]),
        })
        status = ctx.daily_status.status_for("c1", date(2024, 6, 1))
        self.assertEqual(status.today_spent, Decimal("0"))

    def test_missing_budget_raises(self) -> None:
        with self.assertRaises(BudgetNotConfigured) as ctx:
            self.ctx.daily_status.status_for("c1", date(2024, 7, 1))
        self.assertEqual((ctx.exception.year, ctx.exception.month), (2024, 7))
        self.assertFalse(self.api.called("GET", "/daily-transactions/date-range"))

    def test_series_runs_through_requested_day(self) -> None:
        series = self.ctx.daily_status.series_for("c1", date(2024, 6, 4))
        self.assertEqual([s.date.day for s in series], [1, 2, 3, 4])
        self.assertEqual(series[-1].remaining_balance, Decimal("30"))


class DashboardServiceTests(unittest.TestCase):
    def test_client_dashboard_without_budget_is_neutral(self) -> None:
        ctx, _ = _ctx({
            ("GET", "/daily-transactions/client/c1"): page([
                txn_row("t1", "2024-06-02", "10.00"),
                txn_row("t2", "2024-06-05", "200.00", type="income"),
            ]),
            ("GET", "/monthly-budgets/clients/c1"): [],
        })
        dashboard = ctx.dashboard.client_dashboard("c1", today=date(2024, 6, 5))

        self.assertFalse(dashboard.budget_configured)
        self.assertIsNone(dashboard.daily_status)
        self.assertEqual(dashboard.total_transactions, 2)
        self.assertEqual((dashboard.total_income, dashboard.total_expense), (200.0, 10.0))
        self.assertEqual(dashboard.recent_activities[0].id, "t2")
        self.assertEqual(dashboard.recent_activities[0].date_label, "Hoje")

    def test_client_dashboard_with_budget_includes_status(self) -> None:
        ctx, _ = _ctx({
            ("GET", "/daily-transactions/client/c1"): page(JUNE_ROWS[:2]),
            ("GET", "/monthly-budgets/clients/c1"): [JUNE_BUDGET],
            ("GET", "/daily-transactions/date-range"): page(JUNE_ROWS),
        })
        dashboard = ctx.dashboard.client_dashboard("c1", today=date(2024, 6, 2))

        self.assertTrue(dashboard.budget_configured)
        self.assertEqual(dashboard.daily_status.remaining_balance, 50.0)
        self.assertEqual(dashboard.daily_status.balance_tone, "positive")

    def test_admin_dashboard_counts_active_clients(self) -> None:
        ctx, _ = _ctx({
            ("GET", "/clients"): {
                "clients": [
                    {"id": "c1", "name": "Ana", "email": "a@b.com", "isActive": True},
                    {"id": "c2", "name": "Bia", "email": "b@b.com", "status": "active"},
                    {"id": "c3", "name": "Caio", "email": "c@b.com", "isActive": False},
                ],
                "pagination": {"page": 1, "limit": 100, "total": 3, "totalPages": 1},
            },
            ("GET", "/daily-transactions"): JUNE_ROWS,
        })
        dashboard = ctx.dashboard.admin_dashboard(today=date(2024, 6, 10))

        self.assertEqual((dashboard.total_clients, dashboard.active_clients), (3, 2))
        self.assertEqual(dashboard.total_transactions, 3)
        self.assertEqual(dashboard.totals.expense, 1089.0)

    def test_analytics_uses_allowance_series_for_trend(self) -> None:
        ctx, _ = _ctx({
            ("GET", "/daily-transactions/client/c1"): page(JUNE_ROWS[:2]),
            ("GET", "/monthly-budgets/clients/c1"): [JUNE_BUDGET],
            ("GET", "/daily-transactions/date-range"): page(JUNE_ROWS),
        })
        analytics = ctx.dashboard.analytics("c1", today=date(2024, 6, 3))

        self.assertEqual([row.balance for row in analytics.daily_spending_trend], [30.0, 50.0, 0.0])
        self.assertEqual(analytics.category_spending[0].amount, 90.0)
        self.assertEqual(analytics.monthly_balance[0].month, "2024-06")


class CategoryGuardTests(unittest.TestCase):
    def test_delete_blocked_while_referenced(self) -> None:
        ctx, api = _ctx({("GET", "/daily-transactions"): page(JUNE_ROWS)})
        with self.assertRaises(CategoryInUse) as raised:
            ctx.category_guard.delete("cat_food")

        self.assertEqual(raised.exception.transaction_count, 3)
        self.assertFalse(api.called("DELETE", "/categories/cat_food"))

    def test_reference_on_later_page_blocks_delete(self) -> None:
        pages = {
            1: [txn_row("t1", "2024-06-02", "10.00", category_id="cat_food")],
            2: [txn_row("t2", "2024-06-03", "900.00", category_id="cat_rent", category_name="Moradia")],
        }

        def _all(params: dict) -> dict:
            return {"transactions": pages[params["page"]], "pagination": {"page": params["page"], "totalPages": 2}}

        ctx, api = _ctx({("GET", "/daily-transactions"): _all, ("DELETE", "/categories/cat_rent"): None})
        with self.assertRaises(CategoryInUse):
            ctx.category_guard.delete("cat_rent")
        self.assertFalse(api.called("DELETE", "/categories/cat_rent"))

    def test_unreferenced_category_is_deleted(self) -> None:
        ctx, api = _ctx({
            ("GET", "/daily-transactions"): page(JUNE_ROWS),
            ("DELETE", "/categories/cat_rent"): None,
        })
        ctx.category_guard.delete("cat_rent")
        self.assertTrue(api.called("DELETE", "/categories/cat_rent"))


if __name__ == "__main__":
    unittest.main()
