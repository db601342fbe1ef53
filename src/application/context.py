from __future__ import annotations

import logging

from application.categories import CategoryGuard
from application.daily_status import DailyStatusService
from application.dashboard import DashboardService
from infrastructure.api_client import ApiClient
from infrastructure.config import Settings
from infrastructure.services import (
    AuthService,
    CategoryService,
    ClientService,
    DailyTransactionService,
    MonthlyBudgetService,
    UserService,
)
from infrastructure.session import SessionContext

logger = logging.getLogger(__name__)


class AppContext:
    """Wires one session to the API client and every service that talks through it."""

    def __init__(self, session: SessionContext, api: ApiClient):
        self.session = session
        self.api = api
        self.auth = AuthService(api, session)
        self.clients = ClientService(api)
        self.categories = CategoryService(api)
        self.transactions = DailyTransactionService(api)
        self.budgets = MonthlyBudgetService(api)
        self.users = UserService(api)
        self.daily_status = DailyStatusService(self.budgets, self.transactions)
        self.dashboard = DashboardService(self.clients, self.transactions, self.daily_status)
        self.category_guard = CategoryGuard(self.categories, self.transactions)

    @classmethod
    def from_settings(cls, settings: Settings, session: SessionContext) -> "AppContext":
        logger.info("Building app context api_url=%s", settings.api_url)
        return cls(session=session, api=ApiClient(session, settings))
