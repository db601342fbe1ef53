from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from domain.models import MaritalStatus, RoleType, TransactionType


class CamelModel(BaseModel):
    """Wire models use camelCase on the outside, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- inbound forms ----

class LoginRequest(CamelModel):
    email: str
    password: str


class RegisterRequest(CamelModel):
    name: str
    email: str
    password: str
    confirm_password: str
    role: RoleType = RoleType.CLIENT


class ChangePasswordRequest(CamelModel):
    current_password: str = ""
    new_password: str = ""
    confirm_password: str = ""


class ClientForm(CamelModel):
    name: str = ""
    email: str = ""
    cpf: str = ""
    phone: Optional[str] = None
    address: Optional[str] = None
    birthday: Optional[dt.date] = None
    age: Optional[int] = None
    salary: Optional[Decimal] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    complement: Optional[str] = None
    marital_status: MaritalStatus = MaritalStatus.SINGLE
    is_active: bool = True


class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class CategoryForm(CamelModel):
    name: str = ""
    description: str = ""


class TransactionForm(CamelModel):
    description: str = ""
    amount: Decimal = Decimal("0")
    type: TransactionType = TransactionType.EXPENSE
    category_id: str = ""
    date: Optional[dt.date] = None

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip():
            text = value.strip()
            for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
                try:
                    return dt.datetime.strptime(text, fmt).date()
                except ValueError:
                    continue
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SalaryUpdate(CamelModel):
    monthly_salary: Decimal = Field(ge=0)


class BudgetAmountUpdate(CamelModel):
    budget_amount: Decimal = Field(ge=0)
    is_percentage: bool = False

    @model_validator(mode="after")
    def validate_percentage(self) -> "BudgetAmountUpdate":
        if self.is_percentage and self.budget_amount > 100:
            raise ValueError("budgetAmount must be between 0 and 100 when isPercentage is true")
        return self


class MonthlyBudgetUpdate(CamelModel):
    monthly_salary: Optional[Decimal] = Field(default=None, ge=0)
    budget_amount: Optional[Decimal] = Field(default=None, ge=0)
    is_percentage: Optional[bool] = None

    @model_validator(mode="after")
    def validate_percentage(self) -> "MonthlyBudgetUpdate":
        if self.is_percentage and self.budget_amount is not None and self.budget_amount > 100:
            raise ValueError("budgetAmount must be between 0 and 100 when isPercentage is true")
        return self


class RegistrationSetting(CamelModel):
    allow_registration: bool


class TransactionFilters(CamelModel):
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    type: Optional[TransactionType] = None

    @model_validator(mode="after")
    def validate_order(self) -> "TransactionFilters":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must be <= endDate")
        return self


# ---- upstream payloads ----

class AuthResponse(CamelModel):
    message: str = ""
    token: str = ""
    refresh_token: str = ""
    type: Literal["client", "admin"]
    user: Optional[Dict[str, Any]] = None
    client: Optional[Dict[str, Any]] = None


class Pagination(CamelModel):
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = 1


# ---- outbound views ----

class TotalsOut(CamelModel):
    income: float = 0.0
    expense: float = 0.0
    balance: float = 0.0


class BudgetOut(CamelModel):
    id: str
    client_id: str
    year: int
    month: int
    monthly_salary: float
    budget_amount: float
    is_percentage: bool
    days_in_month: int
    effective_budget: float
    daily_budget: float


class DailyStatusOut(CamelModel):
    configured: bool = True
    date: dt.date
    daily_budget: float
    previous_day_balance: float
    adjusted_daily_budget: float
    today_spent: float
    today_income: float
    remaining_balance: float
    balance_tone: Literal["positive", "negative", "neutral"]
    balance_icon: str
    monthly_budget: BudgetOut


class TransactionOut(CamelModel):
    id: str
    description: str
    amount: float
    type: TransactionType
    date: Optional[dt.date] = None
    date_label: str = ""
    amount_label: str = ""
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None


class CategorySpendingOut(CamelModel):
    category_id: str
    category_name: str
    amount: float
    color: str


class DailyTrendOut(CamelModel):
    date: dt.date
    income: float
    expense: float
    balance: float


class MonthlyBalanceOut(CamelModel):
    month: str
    income: float
    expense: float
    balance: float


class GroupTotalsOut(CamelModel):
    key: str
    income: float
    expense: float


class ClientDashboardOut(CamelModel):
    total_transactions: int
    total_income: float
    total_expense: float
    recent_activities: List[TransactionOut] = Field(default_factory=list)
    daily_status: Optional[DailyStatusOut] = None
    budget_configured: bool = True


class AdminDashboardOut(CamelModel):
    total_clients: int
    active_clients: int
    total_transactions: int
    totals: TotalsOut
    recent_activity: List[TransactionOut] = Field(default_factory=list)


class AnalyticsOut(CamelModel):
    category_spending: List[CategorySpendingOut] = Field(default_factory=list)
    daily_spending_trend: List[DailyTrendOut] = Field(default_factory=list)
    monthly_balance: List[MonthlyBalanceOut] = Field(default_factory=list)
