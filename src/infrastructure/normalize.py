from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from domain.models import (
    AdminUser,
    Category,
    Client,
    DailyTransaction,
    MonthlyBudget,
    RoleType,
    TransactionType,
)

_CLIENT_FIELDS = {"id", "name", "email", "phone", "address", "cpf", "status", "isActive"}


def parse_decimal(raw: Any, default: Optional[Decimal] = Decimal("0")) -> Optional[Decimal]:
    if raw is None or raw == "":
        return default
    try:
        return Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return default


def parse_date(raw: Any) -> Optional[date]:
    """Accepts dates, ISO dates and ISO datetimes (the API sends `2024-05-01T00:00:00.000Z`)."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    text = str(raw).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.strptime(text, "%d/%m/%Y").date()
    except ValueError:
        return None


def parse_category(row: dict[str, Any]) -> Category:
    return Category(
        id=str(row.get("id") or ""),
        name=str(row.get("name") or ""),
        description=str(row.get("description") or ""),
    )


def parse_client(row: dict[str, Any]) -> Client:
    is_active = row.get("isActive")
    return Client(
        id=str(row.get("id") or ""),
        name=str(row.get("name") or ""),
        email=str(row.get("email") or ""),
        phone=row.get("phone") or None,
        address=row.get("address") or None,
        cpf=row.get("cpf") or None,
        status=row.get("status") or None,
        is_active=bool(is_active) if is_active is not None else None,
        extra={k: v for k, v in row.items() if k not in _CLIENT_FIELDS},
    )


def parse_admin(row: dict[str, Any]) -> AdminUser:
    try:
        role = RoleType(str(row.get("role") or RoleType.ADMIN.value))
    except ValueError:
        role = RoleType.ADMIN
    return AdminUser(
        id=str(row.get("id") or ""),
        name=str(row.get("name") or ""),
        email=str(row.get("email") or ""),
        role=role,
    )


def parse_transaction(row: dict[str, Any]) -> DailyTransaction:
    raw_type = str(row.get("type") or TransactionType.EXPENSE.value).lower()
    txn_type = TransactionType.INCOME if raw_type == TransactionType.INCOME.value else TransactionType.EXPENSE

    category_row = row.get("category")
    category = parse_category(category_row) if isinstance(category_row, dict) else None
    category_id = row.get("categoryId") or (category.id if category else None)

    client_row = row.get("client") if isinstance(row.get("client"), dict) else {}
    client_id = row.get("clientId") or client_row.get("id")
    client_name = row.get("clientName") or client_row.get("name")

    return DailyTransaction(
        id=str(row.get("id") or ""),
        description=str(row.get("description") or ""),
        # Amounts are stored positive; the type carries the sign.
        amount=abs(parse_decimal(row.get("amount"))),
        type=txn_type,
        date=parse_date(row.get("date") or row.get("createdAt")),
        client_id=str(client_id) if client_id else None,
        client_name=str(client_name) if client_name else None,
        category_id=str(category_id) if category_id else None,
        category=category,
        remaining_balance_after_transaction=parse_decimal(row.get("remainingBalanceAfterTransaction"), default=None),
    )


def parse_budget(row: dict[str, Any]) -> MonthlyBudget:
    client_row = row.get("client") if isinstance(row.get("client"), dict) else {}
    return MonthlyBudget(
        id=str(row.get("id") or ""),
        client_id=str(row.get("clientId") or client_row.get("id") or ""),
        year=int(row["year"]),
        month=int(row["month"]),
        monthly_salary=parse_decimal(row.get("monthlySalary")),
        budget_amount=parse_decimal(row.get("budgetAmount")),
        is_percentage=bool(row.get("isPercentage")),
    )


def client_to_payload(client: Client) -> dict[str, Any]:
    payload: dict[str, Any] = dict(client.extra)
    payload.update({"id": client.id, "name": client.name, "email": client.email})
    for key, value in (("phone", client.phone), ("address", client.address), ("cpf", client.cpf),
                       ("status", client.status), ("isActive", client.is_active)):
        if value is not None:
            payload[key] = value
    return payload


def admin_to_payload(admin: AdminUser) -> dict[str, Any]:
    return {"id": admin.id, "name": admin.name, "email": admin.email, "role": admin.role.value}
