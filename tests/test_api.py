from __future__ import annotations

import unittest
from datetime import date

from fastapi.testclient import TestClient

from _fakes import FakeApi, make_token, page, txn_row
from application.context import AppContext
from domain.errors import ApiError, SessionExpired
from domain.schemas import AuthResponse
from infrastructure.session import SessionContext
from interface.api import create_app

CLIENT_PROFILE = {"id": "c1", "name": "Ana", "email": "ana@example.com"}
ADMIN_PROFILE = {"id": "a1", "name": "Root", "email": "root@example.com", "role": "admin"}


def _signed_in(kind: str) -> SessionContext:
    session = SessionContext()
    if kind == "client":
        session.init(AuthResponse(token=make_token({"id": "u1"}), type="client", client=CLIENT_PROFILE))
    elif kind == "admin":
        session.init(AuthResponse(token=make_token({"id": "a1"}), type="admin", user=ADMIN_PROFILE))
    return session


def _client(kind: str, routes: dict | None = None) -> tuple[TestClient, SessionContext, FakeApi]:
    session = _signed_in(kind)
    api = FakeApi(routes)
    return TestClient(create_app(AppContext(session, api))), session, api


class SessionRouteTests(unittest.TestCase):
    def test_health(self) -> None:
        http, _, _ = _client("anonymous")
        self.assertEqual(http.get("/health").json(), {"status": "ok"})

    def test_protected_route_requires_login(self) -> None:
        http, _, _ = _client("anonymous")
        resp = http.get("/client/dashboard")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["redirect"], "/login")

    def test_login_starts_session(self) -> None:
        http, session, _ = _client("anonymous", {
            ("POST", "/auth/login"): {"token": make_token({"id": "u1"}), "type": "client", "client": CLIENT_PROFILE},
        })
        resp = http.post("/session/login", json={"email": "ana@example.com", "password": "secret"})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["kind"], "client")
        self.assertTrue(session.is_authenticated)

    def test_bad_credentials_are_reported_inline(self) -> None:
        http, _, _ = _client("anonymous", {("POST", "/auth/login"): ApiError(401, "Credenciais inválidas")})
        resp = http.post("/session/login", json={"email": "ana@example.com", "password": "nope"})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "invalid_credentials", "message": "Credenciais inválidas"})

    def test_registration_disabled_redirects_to_login(self) -> None:
        http, _, api = _client("anonymous")
        resp = http.post(
            "/session/register",
            json={"name": "Ana", "email": "a@b.com", "password": "secret1", "confirmPassword": "secret1"},
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["error"], "registration_disabled")
        self.assertEqual(api.calls, [])

    def test_registration_validates_passwords(self) -> None:
        http, session, _ = _client("anonymous", {("POST", "/auth/register"): {"message": "ok"}})
        session.set_allow_registration(True)

        bad = http.post(
            "/session/register",
            json={"name": "Ana", "email": "a@b.com", "password": "secret1", "confirmPassword": "secret2"},
        )
        good = http.post(
            "/session/register",
            json={"name": "Ana", "email": "a@b.com", "password": "secret1", "confirmPassword": "secret1"},
        )
        self.assertEqual(bad.status_code, 422)
        self.assertIn("confirmPassword", bad.json()["fields"])
        self.assertEqual(good.status_code, 201)

    def test_expired_token_clears_session_once(self) -> None:
        http, session, _ = _client("client", {
            ("GET", "/daily-transactions/client/c1"): SessionExpired("Token expirado"),
        })
        resp = http.get("/client/dashboard")

        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "session_expired", "redirect": "/login"})
        self.assertFalse(session.is_authenticated)
        self.assertEqual(http.get("/client/dashboard").json()["error"], "not_authenticated")


class ClientRouteTests(unittest.TestCase):
    BUDGET = {
        "id": "b6",
        "clientId": "c1",
        "year": 2024,
        "month": 6,
        "monthlySalary": "3000",
        "budgetAmount": "30",
        "isPercentage": True,
    }

    def test_daily_status_reports_carryover(self) -> None:
        http, _, _ = _client("client", {
            ("GET", "/monthly-budgets/clients/c1"): [self.BUDGET],
            ("GET", "/daily-transactions/date-range"): page([
                txn_row("t1", "2024-06-02", "10.00"),
                txn_row("t2", "2024-06-03", "80.00"),
            ]),
        })
        body = http.get("/client/daily-status", params={"date": "2024-06-03"}).json()

        self.assertTrue(body["configured"])
        self.assertEqual(body["date"], "2024-06-03")
        self.assertEqual(body["dailyBudget"], 30.0)
        self.assertEqual(body["previousDayBalance"], 50.0)
        self.assertEqual(body["adjustedDailyBudget"], 80.0)
        self.assertEqual(body["remainingBalance"], 0.0)
        self.assertEqual(body["balanceTone"], "neutral")
        self.assertEqual(body["monthlyBudget"]["daysInMonth"], 30)

    def test_daily_status_without_budget_is_neutral(self) -> None:
        http, _, _ = _client("client", {("GET", "/monthly-budgets/clients/c1"): []})
        resp = http.get("/client/daily-status", params={"date": "2024-07-01"})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"configured": False, "year": 2024, "month": 7})

    def test_create_transaction_validates_form(self) -> None:
        http, _, api = _client("client")
        resp = http.post("/client/transactions", json={"description": "", "amount": "0", "type": "expense"})

        self.assertEqual(resp.status_code, 422)
        self.assertEqual(set(resp.json()["fields"]), {"description", "amount", "categoryId"})
        self.assertEqual(api.calls, [])

    def test_create_transaction_posts_for_current_client(self) -> None:
        http, _, api = _client("client", {
            ("POST", "/daily-transactions"): lambda payload: dict(payload, id="t9"),
        })
        resp = http.post(
            "/client/transactions",
            json={"description": "Café", "amount": "4.50", "type": "expense", "categoryId": "cat", "date": "2024-06-03"},
        )

        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["id"], "t9")
        self.assertEqual(api.calls[0][2]["clientId"], "c1")

    def test_budget_update_requires_ownership(self) -> None:
        foreign = dict(self.BUDGET, id="b9", clientId="c2")
        http, _, api = _client("client", {
            ("GET", "/monthly-budgets/b6"): self.BUDGET,
            ("GET", "/monthly-budgets/b9"): foreign,
            ("PATCH", "/monthly-budgets/b6/salary"): dict(self.BUDGET, monthlySalary="4000"),
        })

        denied = http.patch("/client/budget/b9/salary", json={"monthlySalary": "4000"})
        allowed = http.patch("/client/budget/b6/salary", json={"monthlySalary": "4000"})

        self.assertEqual(denied.status_code, 403)
        self.assertFalse(api.called("PATCH", "/monthly-budgets/b9/salary"))
        self.assertEqual(allowed.status_code, 200)
        self.assertEqual(allowed.json()["monthlySalary"], 4000.0)

    def test_admin_routes_reject_clients(self) -> None:
        http, _, _ = _client("client")
        resp = http.get("/admin/dashboard")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["error"], "forbidden")

    def test_upstream_server_error_becomes_bad_gateway(self) -> None:
        http, _, _ = _client("client", {("GET", "/categories"): ApiError(500, "Erro interno")})
        resp = http.get("/client/categories")

        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json()["notification"], "Erro interno")


class AdminRouteTests(unittest.TestCase):
    def test_delete_category_in_use_conflicts(self) -> None:
        http, _, api = _client("admin", {
            ("GET", "/daily-transactions"): page([txn_row("t1", "2024-06-02", "10.00", category_id="cat_food")]),
        })
        resp = http.delete("/admin/categories/cat_food")

        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["transactionCount"], 1)
        self.assertFalse(api.called("DELETE", "/categories/cat_food"))

    def test_client_form_errors_are_field_keyed(self) -> None:
        http, _, _ = _client("admin")
        resp = http.post("/admin/clients", json={"name": "Ana", "email": "bad", "cpf": "123"})

        self.assertEqual(resp.status_code, 422)
        self.assertEqual(set(resp.json()["fields"]), {"email", "cpf"})

    def test_transactions_are_grouped(self) -> None:
        http, _, _ = _client("admin", {
            ("GET", "/daily-transactions"): [
                txn_row("t1", "2024-06-02", "10.00", client_id="c1"),
                txn_row("t2", "2024-06-02", "50.00", type="income", client_id="c2"),
            ],
        })
        body = http.get("/admin/transactions").json()

        self.assertEqual(body["summary"], {"income": 50.0, "expense": 10.0, "balance": 40.0})
        self.assertEqual([g["key"] for g in body["byClient"]], ["c1", "c2"])
        self.assertEqual(body["byDate"], [{"key": "2024-06-02", "income": 50.0, "expense": 10.0}])

    def test_reversed_date_filter_is_rejected(self) -> None:
        http, _, _ = _client("admin")
        resp = http.get("/admin/transactions", params={"startDate": "2024-06-30", "endDate": "2024-06-01"})
        self.assertEqual(resp.status_code, 422)

    def test_one_sided_date_filter_is_rejected(self) -> None:
        http, _, api = _client("admin")
        resp = http.get("/admin/transactions", params={"startDate": "2024-06-01"})

        self.assertEqual(resp.status_code, 422)
        self.assertIn("endDate", resp.json()["fields"])
        self.assertEqual(api.calls, [])

    def test_registration_setting_round_trip(self) -> None:
        http, session, _ = _client("admin")
        resp = http.put("/admin/settings", json={"allowRegistration": True})

        self.assertEqual(resp.json(), {"allowRegistration": True})
        self.assertTrue(session.allow_registration)

    def test_admin_sees_client_daily_status(self) -> None:
        http, _, _ = _client("admin", {("GET", "/monthly-budgets/clients/c7"): []})
        today = date.today()
        body = http.get("/admin/clients/c7/daily-status").json()
        self.assertEqual(body, {"configured": False, "year": today.year, "month": today.month})


if __name__ == "__main__":
    unittest.main()
