from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterator, Optional

from domain.models import DailyTransaction, Totals, TransactionType
from domain.schemas import Pagination, TransactionForm
from infrastructure.api_client import ApiClient
from infrastructure.normalize import parse_decimal, parse_transaction

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


class DailyTransactionService:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    def _parse_page(self, payload: Any, page: int, limit: int) -> tuple[list[DailyTransaction], Pagination]:
        if isinstance(payload, list):
            rows = payload
            pagination = Pagination(page=page, limit=limit, total=len(rows), total_pages=1)
        else:
            payload = payload or {}
            rows = payload.get("transactions") or []
            raw_pagination = payload.get("pagination") or {"page": page, "limit": limit, "total": len(rows)}
            pagination = Pagination.model_validate(raw_pagination)
        return [parse_transaction(row) for row in rows if isinstance(row, dict)], pagination

    def iter_all(self) -> Iterator[DailyTransaction]:
        """Every transaction visible to the caller, following pagination when the API pages the result."""
        page = 1
        while True:
            payload = self._api.get("/daily-transactions", {"page": page, "limit": PAGE_SIZE})
            transactions, pagination = self._parse_page(payload, page, PAGE_SIZE)
            yield from transactions
            if page >= pagination.total_pages or not transactions:
                return
            page += 1

    def list_all(self) -> list[DailyTransaction]:
        return list(self.iter_all())

    def list_for_client(
        self,
        client_id: str,
        page: int = 1,
        limit: int = 10,
        start: Optional[date] = None,
        end: Optional[date] = None,
        txn_type: Optional[TransactionType] = None,
    ) -> tuple[list[DailyTransaction], Pagination]:
        params = {
            "page": page,
            "limit": limit,
            "startDate": _iso(start),
            "endDate": _iso(end),
            "type": txn_type.value if txn_type else None,
        }
        return self._parse_page(self._api.get(f"/daily-transactions/client/{client_id}", params), page, limit)

    def list_by_date_range(
        self,
        start: date,
        end: date,
        page: int = 1,
        limit: int = 10,
        client_id: Optional[str] = None,
    ) -> tuple[list[DailyTransaction], Pagination]:
        params = {
            "startDate": start.isoformat(),
            "endDate": end.isoformat(),
            "page": page,
            "limit": limit,
            "clientId": client_id,
        }
        return self._parse_page(self._api.get("/daily-transactions/date-range", params), page, limit)

    def iter_date_range(self, start: date, end: date, client_id: Optional[str] = None) -> Iterator[DailyTransaction]:
        """Yield every transaction in [start, end], following pagination to the last page."""
        page = 1
        while True:
            transactions, pagination = self.list_by_date_range(start, end, page=page, limit=PAGE_SIZE, client_id=client_id)
            yield from transactions
            if page >= pagination.total_pages or not transactions:
                return
            page += 1

    def iter_for_client(self, client_id: str, txn_type: Optional[TransactionType] = None) -> Iterator[DailyTransaction]:
        page = 1
        while True:
            transactions, pagination = self.list_for_client(client_id, page=page, limit=PAGE_SIZE, txn_type=txn_type)
            yield from transactions
            if page >= pagination.total_pages or not transactions:
                return
            page += 1

    def create(self, form: TransactionForm, client_id: Optional[str] = None, today: Optional[date] = None) -> DailyTransaction:
        payload = {
            "description": form.description.strip(),
            "amount": str(abs(form.amount)),
            "type": form.type.value,
            "categoryId": form.category_id,
            "date": (form.date or today or date.today()).isoformat(),
        }
        if client_id:
            payload["clientId"] = client_id
        logger.info("Creating daily transaction type=%s category=%s", form.type.value, form.category_id)
        return parse_transaction(self._api.post("/daily-transactions", payload) or {})

    def summary_for_client(self, client_id: str, start: Optional[date] = None, end: Optional[date] = None) -> Totals:
        params = {"startDate": _iso(start), "endDate": _iso(end)} if start and end else None
        payload = self._api.get(f"/clients/{client_id}/daily-transactions", params) or {}
        return Totals(income=parse_decimal(payload.get("income")), expense=parse_decimal(payload.get("expense")))
