from __future__ import annotations

from domain.models import Category
from domain.schemas import CategoryForm
from infrastructure.api_client import ApiClient
from infrastructure.normalize import parse_category


class CategoryService:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    def list(self) -> list[Category]:
        rows = self._api.get("/categories") or []
        return [parse_category(row) for row in rows if isinstance(row, dict)]

    def get(self, category_id: str) -> Category:
        return parse_category(self._api.get(f"/categories/{category_id}") or {})

    def create(self, form: CategoryForm) -> Category:
        return parse_category(self._api.post("/categories", form.model_dump(by_alias=True)) or {})

    def update(self, category_id: str, form: CategoryForm) -> Category:
        return parse_category(self._api.put(f"/categories/{category_id}", form.model_dump(by_alias=True)) or {})

    def delete(self, category_id: str) -> None:
        self._api.delete(f"/categories/{category_id}")
