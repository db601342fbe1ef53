from infrastructure.services.auth import AuthService
from infrastructure.services.categories import CategoryService
from infrastructure.services.clients import ClientService
from infrastructure.services.daily_transactions import DailyTransactionService
from infrastructure.services.monthly_budgets import MonthlyBudgetService
from infrastructure.services.users import UserService

__all__ = [
    "AuthService",
    "CategoryService",
    "ClientService",
    "DailyTransactionService",
    "MonthlyBudgetService",
    "UserService",
]
