from __future__ import annotations

from typing import Any, Optional

from domain.models import Client
from domain.schemas import ClientForm, Pagination, ProfileUpdate
from infrastructure.api_client import ApiClient
from infrastructure.normalize import parse_client


def client_form_payload(form: ClientForm) -> dict[str, Any]:
    return form.model_dump(by_alias=True, mode="json", exclude_none=True)


class ClientService:
    """Admin-side client CRUD plus the client's own profile endpoints."""

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    def list_clients(
        self,
        page: int = 1,
        limit: int = 10,
        search: str = "",
        status: Optional[str] = None,
    ) -> tuple[list[Client], Pagination]:
        payload = self._api.get("/clients", {"page": page, "limit": limit, "search": search, "status": status}) or {}
        if isinstance(payload, list):
            rows = payload
            pagination = Pagination(page=page, limit=limit, total=len(rows), total_pages=1)
        else:
            rows = payload.get("clients") or []
            pagination = Pagination.model_validate(payload.get("pagination") or {"page": page, "limit": limit})
        return [parse_client(row) for row in rows if isinstance(row, dict)], pagination

    def get_client(self, client_id: str) -> Client:
        return parse_client(self._api.get(f"/clients/{client_id}") or {})

    def create_client(self, form: ClientForm) -> Client:
        return parse_client(self._api.post("/clients", client_form_payload(form)) or {})

    def update_client(self, client_id: str, form: ClientForm) -> Client:
        return parse_client(self._api.put(f"/clients/{client_id}", client_form_payload(form)) or {})

    def delete_client(self, client_id: str) -> dict[str, Any]:
        return self._api.delete(f"/clients/{client_id}") or {"success": True}

    def get_own_profile(self) -> Client:
        return parse_client(self._api.get("/client/profile") or {})

    def update_own_profile(self, update: ProfileUpdate) -> Client:
        payload = update.model_dump(by_alias=True, exclude_none=True)
        return parse_client(self._api.put("/client/profile", payload) or {})
