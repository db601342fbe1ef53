from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from application import aggregator
from application.context import AppContext
from application.validation import (
    validate_category,
    validate_client_form,
    validate_password_change,
    validate_registration,
    validate_transaction,
)
from application.views import budget_out, groups_out, status_out, totals_out, transaction_out
from domain.errors import (
    ApiError,
    AuthenticationFailed,
    BudgetNotConfigured,
    CategoryInUse,
    FormValidationError,
    NetworkError,
    NotAuthenticated,
    PermissionDenied,
    SessionExpired,
)
from domain.models import AdminPrincipal, ClientPrincipal, TransactionType
from domain.schemas import (
    BudgetAmountUpdate,
    CategoryForm,
    ChangePasswordRequest,
    ClientForm,
    LoginRequest,
    MonthlyBudgetUpdate,
    ProfileUpdate,
    RegisterRequest,
    RegistrationSetting,
    SalaryUpdate,
    TransactionFilters,
    TransactionForm,
)
from infrastructure.normalize import admin_to_payload, client_to_payload
from interface.cli import build_context

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json")


def _no_budget(exc: BudgetNotConfigured) -> dict[str, Any]:
    return {"configured": False, "year": exc.year, "month": exc.month}


def get_ctx(request: Request) -> AppContext:
    return request.app.state.ctx


def require_session(ctx: AppContext = Depends(get_ctx)) -> AppContext:
    if not ctx.session.is_authenticated:
        raise NotAuthenticated("Login required")
    return ctx


def require_client(ctx: AppContext = Depends(require_session)) -> ClientPrincipal:
    principal = ctx.session.principal
    if not isinstance(principal, ClientPrincipal):
        raise PermissionDenied("Client access only")
    return principal


def require_admin(ctx: AppContext = Depends(require_session)) -> AdminPrincipal:
    principal = ctx.session.principal
    if not isinstance(principal, AdminPrincipal):
        raise PermissionDenied("Admin access only")
    return principal


def _require_own_budget(ctx: AppContext, principal: ClientPrincipal, budget_id: str) -> None:
    if ctx.budgets.get(budget_id).client_id != principal.data.id:
        logger.warning("Client %s tried to edit budget_id=%s", principal.data.id, budget_id)
        raise PermissionDenied("Budget belongs to another client")


def _session_view(ctx: AppContext) -> dict[str, Any]:
    principal = ctx.session.principal
    profile = None
    if isinstance(principal, AdminPrincipal):
        profile = admin_to_payload(principal.data)
    elif isinstance(principal, ClientPrincipal):
        profile = client_to_payload(principal.data)
    return {
        "authenticated": ctx.session.is_authenticated,
        "kind": principal.kind if principal else None,
        "profile": profile,
        "allowRegistration": ctx.session.allow_registration,
    }


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SessionExpired)
    def session_expired(request: Request, exc: SessionExpired) -> JSONResponse:
        # The one place an expired token is handled: drop the session, send the user to login.
        request.app.state.ctx.session.clear()
        return JSONResponse(status_code=401, content={"error": "session_expired", "redirect": LOGIN_PATH})

    @app.exception_handler(NotAuthenticated)
    def not_authenticated(request: Request, exc: NotAuthenticated) -> JSONResponse:
        return JSONResponse(status_code=401, content={"error": "not_authenticated", "redirect": LOGIN_PATH})

    @app.exception_handler(PermissionDenied)
    def permission_denied(request: Request, exc: PermissionDenied) -> JSONResponse:
        return JSONResponse(status_code=403, content={"error": "forbidden", "message": str(exc)})

    @app.exception_handler(AuthenticationFailed)
    def authentication_failed(request: Request, exc: AuthenticationFailed) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "invalid_credentials", "message": str(exc)})

    @app.exception_handler(FormValidationError)
    def form_invalid(request: Request, exc: FormValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"error": "validation", "fields": exc.errors})

    @app.exception_handler(ValidationError)
    def model_invalid(request: Request, exc: ValidationError) -> JSONResponse:
        fields = {".".join(str(p) for p in err["loc"]) or "form": err["msg"] for err in exc.errors(include_url=False)}
        return JSONResponse(status_code=422, content={"error": "validation", "fields": fields})

    @app.exception_handler(CategoryInUse)
    def category_in_use(request: Request, exc: CategoryInUse) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"error": "category_in_use", "message": str(exc), "transactionCount": exc.transaction_count},
        )

    @app.exception_handler(BudgetNotConfigured)
    def budget_missing(request: Request, exc: BudgetNotConfigured) -> JSONResponse:
        return JSONResponse(status_code=200, content=_no_budget(exc))

    @app.exception_handler(ApiError)
    def upstream_error(request: Request, exc: ApiError) -> JSONResponse:
        status = exc.status if 400 <= exc.status < 500 else 502
        return JSONResponse(
            status_code=status,
            content={"error": "upstream", "status": exc.status, "notification": exc.message},
        )

    @app.exception_handler(NetworkError)
    def network_error(request: Request, exc: NetworkError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"error": "network", "notification": str(exc)})


def create_app(ctx: AppContext) -> FastAPI:
    app = FastAPI(title="FreeApp Finance API")
    app.state.ctx = ctx
    _install_error_handlers(app)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    # ---- session ----

    @app.get("/session")
    def session(ctx: AppContext = Depends(get_ctx)) -> dict[str, Any]:
        return _session_view(ctx)

    @app.post("/session/login")
    def login(credentials: LoginRequest, ctx: AppContext = Depends(get_ctx)) -> dict[str, Any]:
        ctx.auth.login(credentials)
        return _session_view(ctx)

    @app.post("/session/logout")
    def logout(ctx: AppContext = Depends(get_ctx)) -> dict[str, Any]:
        ctx.auth.logout()
        return _session_view(ctx)

    @app.post("/session/register")
    def register(form: RegisterRequest, ctx: AppContext = Depends(get_ctx)) -> JSONResponse:
        if not ctx.session.allow_registration and not ctx.session.is_authenticated:
            return JSONResponse(status_code=403, content={"error": "registration_disabled", "redirect": LOGIN_PATH})
        validate_registration(form)
        result = ctx.auth.register(form)
        return JSONResponse(status_code=201, content={"message": result.get("message", ""), "redirect": LOGIN_PATH})

    @app.post("/session/change-password")
    def change_password(form: ChangePasswordRequest, ctx: AppContext = Depends(require_session)) -> dict[str, Any]:
        validate_password_change(form)
        principal = ctx.session.principal
        if isinstance(principal, AdminPrincipal):
            ctx.users.change_password(principal.data.id, form)
        else:
            ctx.auth.change_password(principal.data.email, form)
        return {"success": True}

    @app.put("/session/profile")
    def update_profile(update: ProfileUpdate, ctx: AppContext = Depends(require_session)) -> dict[str, Any]:
        principal = ctx.session.principal
        if isinstance(principal, ClientPrincipal):
            ctx.session.replace_principal(ClientPrincipal(data=ctx.clients.update_own_profile(update)))
        else:
            ctx.session.replace_principal(AdminPrincipal(data=ctx.users.update_user(principal.data.id, update)))
        return _session_view(ctx)

    # ---- client ----

    @app.get("/client/dashboard")
    def client_dashboard(
        principal: ClientPrincipal = Depends(require_client),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        return _dump(ctx.dashboard.client_dashboard(principal.data.id))

    @app.get("/client/daily-status")
    def client_daily_status(
        on: Optional[date] = Query(default=None, alias="date"),
        upstream: bool = False,
        principal: ClientPrincipal = Depends(require_client),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        if upstream:
            remote = ctx.budgets.current_daily_status(on)
            if remote is None:
                day = on or date.today()
                return {"configured": False, "year": day.year, "month": day.month}
            return _dump(status_out(remote))
        try:
            return _dump(status_out(ctx.daily_status.status_for(principal.data.id, on)))
        except BudgetNotConfigured as exc:
            return _no_budget(exc)

    @app.get("/client/transactions")
    def client_transactions(
        page: int = Query(default=1, ge=1),
        limit: int = Query(default=10, ge=1, le=100),
        start_date: Optional[date] = Query(default=None, alias="startDate"),
        end_date: Optional[date] = Query(default=None, alias="endDate"),
        txn_type: Optional[TransactionType] = Query(default=None, alias="type"),
        principal: ClientPrincipal = Depends(require_client),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        filters = TransactionFilters(start_date=start_date, end_date=end_date, type=txn_type)
        transactions, pagination = ctx.transactions.list_for_client(
            principal.data.id, page, limit, filters.start_date, filters.end_date, filters.type
        )
        return {
            "transactions": [_dump(transaction_out(t)) for t in transactions],
            "pagination": _dump(pagination),
            "summary": _dump(totals_out(aggregator.totals(transactions))),
        }

    @app.post("/client/transactions", status_code=201)
    def create_transaction(
        form: TransactionForm,
        principal: ClientPrincipal = Depends(require_client),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        validate_transaction(form)
        return _dump(transaction_out(ctx.transactions.create(form, client_id=principal.data.id)))

    @app.get("/client/analytics")
    def client_analytics(
        principal: ClientPrincipal = Depends(require_client),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        return _dump(ctx.dashboard.analytics(principal.data.id))

    @app.get("/client/categories")
    def client_categories(
        principal: ClientPrincipal = Depends(require_client),
        ctx: AppContext = Depends(get_ctx),
    ) -> list[dict[str, Any]]:
        return [{"id": c.id, "name": c.name, "description": c.description} for c in ctx.categories.list()]

    @app.get("/client/budget")
    def client_budget(
        year: Optional[int] = None,
        month: Optional[int] = Query(default=None, ge=1, le=12),
        principal: ClientPrincipal = Depends(require_client),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        today = date.today()
        budget = ctx.budgets.get_or_create(principal.data.id, year or today.year, month or today.month)
        return _dump(budget_out(budget))

    @app.patch("/client/budget/{budget_id}/salary")
    def client_budget_salary(
        budget_id: str,
        update: SalaryUpdate,
        principal: ClientPrincipal = Depends(require_client),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        _require_own_budget(ctx, principal, budget_id)
        return _dump(budget_out(ctx.budgets.update_salary(budget_id, update)))

    @app.patch("/client/budget/{budget_id}/amount")
    def client_budget_amount(
        budget_id: str,
        update: BudgetAmountUpdate,
        principal: ClientPrincipal = Depends(require_client),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        _require_own_budget(ctx, principal, budget_id)
        return _dump(budget_out(ctx.budgets.update_budget_amount(budget_id, update)))

    # ---- admin ----

    @app.get("/admin/dashboard")
    def admin_dashboard(
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        return _dump(ctx.dashboard.admin_dashboard())

    @app.get("/admin/clients")
    def admin_clients(
        page: int = Query(default=1, ge=1),
        limit: int = Query(default=10, ge=1, le=100),
        search: str = "",
        status: Optional[str] = None,
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        clients, pagination = ctx.clients.list_clients(page, limit, search, status)
        return {"clients": [client_to_payload(c) for c in clients], "pagination": _dump(pagination)}

    @app.get("/admin/clients/{client_id}")
    def admin_client(
        client_id: str,
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        return client_to_payload(ctx.clients.get_client(client_id))

    @app.post("/admin/clients", status_code=201)
    def admin_create_client(
        form: ClientForm,
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        validate_client_form(form)
        return client_to_payload(ctx.clients.create_client(form))

    @app.put("/admin/clients/{client_id}")
    def admin_update_client(
        client_id: str,
        form: ClientForm,
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        validate_client_form(form)
        return client_to_payload(ctx.clients.update_client(client_id, form))

    @app.delete("/admin/clients/{client_id}")
    def admin_delete_client(
        client_id: str,
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        return ctx.clients.delete_client(client_id)

    @app.get("/admin/clients/{client_id}/daily-status")
    def admin_client_daily_status(
        client_id: str,
        on: Optional[date] = Query(default=None, alias="date"),
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        try:
            return _dump(status_out(ctx.daily_status.status_for(client_id, on)))
        except BudgetNotConfigured as exc:
            return _no_budget(exc)

    @app.get("/admin/categories")
    def admin_categories(
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> list[dict[str, Any]]:
        return [{"id": c.id, "name": c.name, "description": c.description} for c in ctx.categories.list()]

    @app.get("/admin/categories/{category_id}")
    def admin_category(
        category_id: str,
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        category = ctx.categories.get(category_id)
        return {"id": category.id, "name": category.name, "description": category.description}

    @app.post("/admin/categories", status_code=201)
    def admin_create_category(
        form: CategoryForm,
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        validate_category(form.name)
        category = ctx.categories.create(form)
        return {"id": category.id, "name": category.name, "description": category.description}

    @app.put("/admin/categories/{category_id}")
    def admin_update_category(
        category_id: str,
        form: CategoryForm,
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        validate_category(form.name)
        category = ctx.categories.update(category_id, form)
        return {"id": category.id, "name": category.name, "description": category.description}

    @app.delete("/admin/categories/{category_id}")
    def admin_delete_category(
        category_id: str,
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        ctx.category_guard.delete(category_id)
        return {"success": True}

    @app.get("/admin/transactions")
    def admin_transactions(
        client_id: Optional[str] = Query(default=None, alias="clientId"),
        start_date: Optional[date] = Query(default=None, alias="startDate"),
        end_date: Optional[date] = Query(default=None, alias="endDate"),
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        filters = TransactionFilters(start_date=start_date, end_date=end_date)
        if bool(filters.start_date) != bool(filters.end_date):
            missing = "endDate" if filters.start_date else "startDate"
            raise FormValidationError({missing: "Informe a data inicial e a data final"})
        if filters.start_date and filters.end_date:
            transactions = list(ctx.transactions.iter_date_range(filters.start_date, filters.end_date, client_id))
        elif client_id:
            transactions = list(ctx.transactions.iter_for_client(client_id))
        else:
            transactions = ctx.transactions.list_all()
        return {
            "transactions": [_dump(transaction_out(t)) for t in transactions],
            "summary": _dump(totals_out(aggregator.totals(transactions))),
            "byDate": [_dump(g) for g in groups_out(aggregator.aggregate(transactions, "date"))],
            "byClient": [_dump(g) for g in groups_out(aggregator.aggregate(transactions, "client"))],
        }

    @app.get("/admin/transactions/aggregate")
    def admin_transactions_aggregate(
        group_by: str = Query(default="category", alias="groupBy", pattern="^(date|category|client)$"),
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> list[dict[str, Any]]:
        groups = aggregator.aggregate(ctx.transactions.list_all(), group_by)  # type: ignore[arg-type]
        return [_dump(g) for g in groups_out(groups)]

    @app.get("/admin/monthly-budgets")
    def admin_budgets(
        client_id: Optional[str] = Query(default=None, alias="clientId"),
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> list[dict[str, Any]]:
        budgets = ctx.budgets.list_for_client(client_id) if client_id else ctx.budgets.list_all()
        return [_dump(budget_out(b)) for b in budgets]

    @app.put("/admin/monthly-budgets/{budget_id}")
    def admin_update_budget(
        budget_id: str,
        update: MonthlyBudgetUpdate,
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        return _dump(budget_out(ctx.budgets.update(budget_id, update)))

    @app.delete("/admin/monthly-budgets/{budget_id}")
    def admin_delete_budget(
        budget_id: str,
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        return ctx.budgets.delete(budget_id)

    @app.get("/admin/settings")
    def admin_settings(
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        return {"allowRegistration": ctx.session.allow_registration}

    @app.put("/admin/settings")
    def admin_update_settings(
        setting: RegistrationSetting,
        principal: AdminPrincipal = Depends(require_admin),
        ctx: AppContext = Depends(get_ctx),
    ) -> dict[str, Any]:
        ctx.session.set_allow_registration(setting.allow_registration)
        logger.info("Registration %s by admin_id=%s", "enabled" if setting.allow_registration else "disabled", principal.data.id)
        return {"allowRegistration": ctx.session.allow_registration}

    return app


app = create_app(build_context())
