from __future__ import annotations

from datetime import date
from typing import Any, Optional

from domain.models import DailyAllowanceStatus, MonthlyBudget
from domain.schemas import BudgetAmountUpdate, MonthlyBudgetUpdate, SalaryUpdate
from infrastructure.api_client import ApiClient
from infrastructure.normalize import parse_budget, parse_decimal


class MonthlyBudgetService:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    def _parse_list(self, rows: Any) -> list[MonthlyBudget]:
        return [parse_budget(row) for row in rows or [] if isinstance(row, dict)]

    def list_all(self) -> list[MonthlyBudget]:
        return self._parse_list(self._api.get("/monthly-budgets"))

    def list_for_client(self, client_id: str) -> list[MonthlyBudget]:
        return self._parse_list(self._api.get(f"/monthly-budgets/clients/{client_id}"))

    def find_for_month(self, client_id: str, year: int, month: int) -> Optional[MonthlyBudget]:
        for budget in self.list_for_client(client_id):
            if budget.year == year and budget.month == month:
                return budget
        return None

    def get(self, budget_id: str) -> MonthlyBudget:
        return parse_budget(self._api.get(f"/monthly-budgets/{budget_id}"))

    def get_or_create(self, client_id: str, year: int, month: int) -> MonthlyBudget:
        return parse_budget(self._api.get(f"/monthly-budgets/clients/{client_id}/year/{year}/month/{month}"))

    def update_salary(self, budget_id: str, update: SalaryUpdate) -> MonthlyBudget:
        payload = update.model_dump(by_alias=True, mode="json")
        return parse_budget(self._api.patch(f"/monthly-budgets/{budget_id}/salary", payload))

    def update_budget_amount(self, budget_id: str, update: BudgetAmountUpdate) -> MonthlyBudget:
        payload = update.model_dump(by_alias=True, mode="json")
        return parse_budget(self._api.patch(f"/monthly-budgets/{budget_id}/budget", payload))

    def update(self, budget_id: str, update: MonthlyBudgetUpdate) -> MonthlyBudget:
        payload = update.model_dump(by_alias=True, mode="json", exclude_none=True)
        return parse_budget(self._api.put(f"/monthly-budgets/{budget_id}", payload))

    def delete(self, budget_id: str) -> dict[str, Any]:
        return self._api.delete(f"/monthly-budgets/{budget_id}") or {"success": True}

    def current_daily_status(self, on: Optional[date] = None) -> Optional[DailyAllowanceStatus]:
        """The server's own computation, kept for comparison with the local calculator."""
        params = {"date": on.isoformat()} if on else None
        payload = self._api.get("/monthly-budgets/daily-status", params) or {}
        budget_row = payload.get("monthlyBudget")
        if not isinstance(budget_row, dict):
            return None
        budget = parse_budget(budget_row)
        daily_budget = parse_decimal(payload.get("dailyBudget"), default=budget.daily_budget)
        previous = parse_decimal(payload.get("previousDayBalance"))
        return DailyAllowanceStatus(
            date=on or date.today(),
            daily_budget=daily_budget,
            previous_day_balance=previous,
            adjusted_daily_budget=parse_decimal(payload.get("adjustedDailyBudget"), default=daily_budget + previous),
            today_spent=parse_decimal(payload.get("todaySpent")),
            today_income=parse_decimal(payload.get("todayIncome")),
            remaining_balance=parse_decimal(payload.get("remainingBalance")),
            budget=budget,
        )
