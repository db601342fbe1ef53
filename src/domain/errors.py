from __future__ import annotations


class FinanceAppError(RuntimeError):
    pass


class AuthenticationFailed(FinanceAppError):
    """Bad credentials on login; shown inline on the login form."""


class SessionExpired(FinanceAppError):
    """The API rejected our token. The session must be cleared and the user sent to login."""


class NotAuthenticated(FinanceAppError):
    pass


class PermissionDenied(FinanceAppError):
    pass


class ApiError(FinanceAppError):
    def __init__(self, status: int, message: str, payload: object | None = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.payload = payload


class NetworkError(FinanceAppError):
    pass


class FormValidationError(FinanceAppError):
    def __init__(self, errors: dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors


class BudgetNotConfigured(FinanceAppError):
    def __init__(self, client_id: str, year: int, month: int):
        super().__init__(f"No monthly budget configured for client {client_id} in {year}-{month:02d}")
        self.client_id = client_id
        self.year = year
        self.month = month


class CategoryInUse(FinanceAppError):
    def __init__(self, category_id: str, transaction_count: int):
        super().__init__(
            f"Category {category_id} is referenced by {transaction_count} transaction(s) and cannot be deleted"
        )
        self.category_id = category_id
        self.transaction_count = transaction_count
