from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Optional, Union


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class AuthType(str, Enum):
    CLIENT = "client"
    ADMIN = "admin"


class RoleType(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    CLIENT = "client"


class MaritalStatus(str, Enum):
    SINGLE = "single"
    MARRIED = "married"
    DIVORCED = "divorced"
    WIDOWED = "widowed"
    OTHER = "other"


@dataclass
class Category:
    id: str
    name: str
    description: str = ""


@dataclass
class Client:
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    cpf: Optional[str] = None
    status: Optional[str] = None
    is_active: Optional[bool] = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class AdminUser:
    id: str
    name: str
    email: str
    role: RoleType = RoleType.ADMIN


@dataclass(frozen=True)
class ClientPrincipal:
    data: Client
    kind: Literal["client"] = "client"


@dataclass(frozen=True)
class AdminPrincipal:
    data: AdminUser
    kind: Literal["admin"] = "admin"


Principal = Union[ClientPrincipal, AdminPrincipal]


@dataclass
class MonthlyBudget:
    id: str
    client_id: str
    year: int
    month: int
    monthly_salary: Decimal = Decimal("0")
    budget_amount: Decimal = Decimal("0")
    is_percentage: bool = False

    @property
    def days_in_month(self) -> int:
        return monthrange(self.year, self.month)[1]

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, self.days_in_month)

    @property
    def effective_budget(self) -> Decimal:
        if self.is_percentage:
            return self.monthly_salary * self.budget_amount / Decimal(100)
        return self.budget_amount

    @property
    def daily_budget(self) -> Decimal:
        return self.effective_budget / Decimal(self.days_in_month)

    def covers(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month


@dataclass
class DailyTransaction:
    id: str
    description: str
    amount: Decimal
    type: TransactionType
    date: Optional[date] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    category_id: Optional[str] = None
    category: Optional[Category] = None
    remaining_balance_after_transaction: Optional[Decimal] = None

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME


@dataclass(frozen=True)
class DailyAllowanceStatus:
    date: date
    daily_budget: Decimal
    previous_day_balance: Decimal
    adjusted_daily_budget: Decimal
    today_spent: Decimal
    today_income: Decimal
    remaining_balance: Decimal
    budget: MonthlyBudget


@dataclass
class Totals:
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense

    def add(self, txn: DailyTransaction) -> None:
        if txn.is_income:
            self.income += txn.amount
        else:
            self.expense += txn.amount
