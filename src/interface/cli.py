from __future__ import annotations

import json
from datetime import date
from getpass import getpass
from typing import Optional

from application.context import AppContext
from application.views import status_out
from domain.errors import AuthenticationFailed, BudgetNotConfigured, FinanceAppError, SessionExpired
from domain.models import ClientPrincipal
from domain.schemas import LoginRequest
from infrastructure.config import Settings
from infrastructure.normalize import parse_date
from infrastructure.session import SessionContext, SessionStore


def build_context(settings: Optional[Settings] = None) -> AppContext:
    settings = settings or Settings.from_env()
    session = SessionContext(SessionStore(settings.session_file))
    return AppContext.from_settings(settings, session)


def _parse_day(text: str) -> Optional[date]:
    """Empty means today; accepts AAAA-MM-DD or DD/MM/AAAA. Returns None when unreadable."""
    return parse_date(text) if text else date.today()


def _run(ctx: AppContext) -> None:
    principal = ctx.session.principal
    if not isinstance(principal, ClientPrincipal):
        print(ctx.dashboard.admin_dashboard().model_dump_json(indent=2, by_alias=True))
        return

    text = input("Data (AAAA-MM-DD ou DD/MM/AAAA, vazio para hoje) > ").strip()
    day = _parse_day(text)
    if day is None:
        print(f"Data inválida: {text}")
        return
    try:
        status = ctx.daily_status.status_for(principal.data.id, day)
    except BudgetNotConfigured:
        print(json.dumps({"configured": False, "date": day.isoformat()}))
        return
    print(status_out(status).model_dump_json(indent=2, by_alias=True))


def main() -> None:
    ctx = build_context()
    try:
        if not ctx.session.is_authenticated:
            email = input("Email > ").strip()
            password = getpass("Senha > ")
            try:
                ctx.auth.login(LoginRequest(email=email, password=password))
            except AuthenticationFailed as exc:
                print(f"Login falhou: {exc}")
                return
        _run(ctx)
    except SessionExpired:
        ctx.session.clear()
        print("Sessão expirada. Faça login novamente.")
    except FinanceAppError as exc:
        print(f"Erro: {exc}")


if __name__ == "__main__":
    main()
