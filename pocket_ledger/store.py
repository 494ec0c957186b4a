# pocket_ledger/store.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterable, List, Optional

from pocket_ledger.core.categorizer import Categorizer
from pocket_ledger.core.models import RecurringPayment, Transaction
from pocket_ledger.recurring import DetectorSettings, RecurringCache

logger = logging.getLogger(__name__)

Listener = Callable[[List[Transaction]], None]


class TransactionStore:
    """
    Host-side owner of the ledger.

    Every mutation invalidates the recurring cache and notifies subscribers
    with a fresh snapshot. Writes are not locked; callers serialize them.
    """

    def __init__(
        self,
        transactions: Optional[Iterable[Transaction]] = None,
        categorizer: Optional[Categorizer] = None,
        settings: Optional[DetectorSettings] = None,
    ):
        self._transactions: List[Transaction] = list(transactions or ())
        self.categorizer = categorizer or Categorizer()
        self.recurring_cache = RecurringCache(settings=settings)
        self._listeners: List[Listener] = []

    def __len__(self) -> int:
        return len(self._transactions)

    def snapshot(self) -> List[Transaction]:
        return list(self._transactions)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        self.recurring_cache.invalidate()
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def add(self, tx: Transaction, auto_categorize: bool = False) -> Transaction:
        return self.add_many([tx], auto_categorize)[0]

    def add_many(
        self, txs: Iterable[Transaction], auto_categorize: bool = False
    ) -> List[Transaction]:
        added = [
            self.categorizer.categorize_transaction(tx) if auto_categorize else tx
            for tx in txs
        ]
        self._transactions.extend(added)
        logger.debug("Added %d transaction(s)", len(added))
        self._changed()
        return added

    def update_category(self, tx_id: str, category: str) -> Transaction:
        """Re-label a transaction and teach the categorizer the correction."""
        for index, tx in enumerate(self._transactions):
            if tx.id == tx_id:
                self.categorizer.learn_correction(tx.description, category)
                updated = replace(tx, category=category)
                self._transactions[index] = updated
                self._changed()
                return updated
        raise KeyError(f"Unknown transaction id: {tx_id}")

    def delete(self, tx_id: str) -> bool:
        before = len(self._transactions)
        self._transactions = [t for t in self._transactions if t.id != tx_id]
        if len(self._transactions) == before:
            return False
        self._changed()
        return True

    def clear(self) -> None:
        self._transactions = []
        self._changed()

    def recurring(self) -> List[RecurringPayment]:
        return self.recurring_cache.get(self._transactions)
