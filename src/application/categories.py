from __future__ import annotations

import logging

from domain.errors import CategoryInUse
from infrastructure.services import CategoryService, DailyTransactionService

logger = logging.getLogger(__name__)


class CategoryGuard:
    """Blocks deleting a category while any transaction still references it."""

    def __init__(self, categories: CategoryService, transactions: DailyTransactionService):
        self._categories = categories
        self._transactions = transactions

    def delete(self, category_id: str) -> None:
        in_use = sum(1 for txn in self._transactions.iter_all() if txn.category_id == category_id)
        if in_use:
            logger.warning("Refusing to delete category_id=%s referenced_by=%d", category_id, in_use)
            raise CategoryInUse(category_id, in_use)
        self._categories.delete(category_id)
        logger.info("Deleted category_id=%s", category_id)
