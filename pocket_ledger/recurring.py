# pocket_ledger/recurring.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from pocket_ledger.core.categories import ENTERTAINMENT
from pocket_ledger.core.models import (
    DAILY,
    MONTHLY,
    WEEKLY,
    YEARLY,
    RecurringPayment,
    Transaction,
)
from pocket_ledger.core.similarity import similarity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectorSettings:
    merge_similarity: float = 0.8
    max_interval_cv: float = 0.4
    max_amount_cv: float = 0.3
    min_confidence: float = 0.5
    max_confidence: float = 0.99
    full_count: int = 12
    overdue_factor: float = 1.3


DEFAULT_SETTINGS = DetectorSettings()


def merchant_key(tx: Transaction) -> str:
    if tx.merchant and tx.merchant.strip():
        return tx.merchant.strip().lower()
    tokens = (tx.description or "").split()
    return tokens[0].lower() if tokens else ""


def cluster_transactions(
    transactions: Sequence[Transaction],
    settings: DetectorSettings = DEFAULT_SETTINGS,
) -> Dict[str, List[Transaction]]:
    """
    Group transactions by fuzzy merchant key.

    Each key is compared with every cluster created so far and joins the
    first one scoring above ``merge_similarity``. The outcome depends on
    input order, and the work grows with transactions x clusters.
    """
    clusters: Dict[str, List[Transaction]] = {}
    comparisons = 0
    for tx in transactions:
        key = merchant_key(tx)
        target = key if key in clusters else None
        if target is None:
            for existing in clusters:
                comparisons += 1
                if similarity(key, existing) > settings.merge_similarity:
                    target = existing
                    break
        if target is None:
            clusters[key] = []
            target = key
        clusters[target].append(tx)
    logger.debug(
        "Clustered %d transactions into %d merchants (%d similarity comparisons)",
        len(transactions), len(clusters), comparisons,
    )
    return clusters


def _day_gap(earlier: date, later: date) -> float:
    return (later - earlier).total_seconds() / 86400


def classify_frequency(mean_interval: float) -> str:
    if mean_interval <= 2:
        return DAILY
    if mean_interval <= 10:
        return WEEKLY
    if mean_interval <= 45:
        return MONTHLY
    return YEARLY


def confidence_score(
    count: int,
    interval_cv: float,
    amount_cv: float,
    settings: DetectorSettings = DEFAULT_SETTINGS,
) -> float:
    score = (
        0.4 * min(count / settings.full_count, 1.0)
        + 0.4 * max(0.0, 1.0 - interval_cv)
        + 0.2 * max(0.0, 1.0 - amount_cv)
    )
    return min(score, settings.max_confidence)


def _score_cluster(
    key: str,
    txs: List[Transaction],
    settings: DetectorSettings,
) -> Optional[RecurringPayment]:
    if len(txs) < 2:
        return None

    ordered = sorted(txs, key=lambda t: t.date)
    intervals = [_day_gap(a.date, b.date) for a, b in zip(ordered, ordered[1:])]
    gaps = np.array(intervals, dtype=float)
    mean_interval = float(gaps.mean())
    if mean_interval <= 0:
        logger.debug("Rejecting %r: all charges on the same day", key)
        return None
    interval_cv = float(gaps.std()) / mean_interval

    amounts = np.array([t.amount for t in ordered], dtype=float)
    mean_amount = float(amounts.mean())
    if mean_amount == 0:
        logger.debug("Rejecting %r: amounts cancel out", key)
        return None
    amount_cv = float(amounts.std()) / abs(mean_amount)

    if not (interval_cv < settings.max_interval_cv and amount_cv < settings.max_amount_cv):
        logger.debug(
            "Rejecting %r: interval cv %.3f, amount cv %.3f", key, interval_cv, amount_cv
        )
        return None

    confidence = confidence_score(len(ordered), interval_cv, amount_cv, settings)
    if confidence < settings.min_confidence:
        logger.debug("Rejecting %r: confidence %.3f", key, confidence)
        return None

    last = ordered[-1]
    merchant = last.merchant.strip() if last.merchant and last.merchant.strip() else key
    return RecurringPayment(
        merchant=merchant,
        amount=mean_amount,
        category=last.category,
        frequency=classify_frequency(mean_interval),
        last_date=last.date,
        next_expected_date=last.date + timedelta(days=mean_interval),
        intervals=intervals,
        count=len(ordered),
        confidence=confidence,
        amount_std_dev=float(amounts.std(ddof=1)),
    )


def detect_recurring(
    transactions: Sequence[Transaction],
    settings: Optional[DetectorSettings] = None,
) -> List[RecurringPayment]:
    """Return the recurring payments found in a full transaction snapshot."""
    settings = settings or DEFAULT_SETTINGS
    found = []
    for key, txs in cluster_transactions(list(transactions), settings).items():
        payment = _score_cluster(key, txs, settings)
        if payment is not None:
            found.append(payment)
    found.sort(key=lambda p: abs(p.amount), reverse=True)
    return found


class RecurringCache:
    """
    Memoizes ``detect_recurring`` for a host that owns the ledger.

    The cached list is reused until ``invalidate`` is called; the host calls
    it whenever transactions are added, deleted or imported.
    """

    def __init__(
        self,
        detector: Callable[..., List[RecurringPayment]] = detect_recurring,
        settings: Optional[DetectorSettings] = None,
        cached: Optional[List[RecurringPayment]] = None,
    ):
        self._detector = detector
        self._settings = settings
        self._cached = list(cached) if cached is not None else None

    @property
    def is_stale(self) -> bool:
        return self._cached is None

    def invalidate(self) -> None:
        self._cached = None

    def get(self, transactions: Sequence[Transaction]) -> List[RecurringPayment]:
        if self._cached is None:
            self._cached = self._detector(transactions, self._settings)
        return list(self._cached)


def days_since_last(payment: RecurringPayment, today: date) -> int:
    return (today - payment.last_date).days


def is_overdue(
    payment: RecurringPayment,
    today: date,
    settings: DetectorSettings = DEFAULT_SETTINGS,
) -> bool:
    mean_interval = payment.mean_interval
    if mean_interval <= 0:
        return False
    return days_since_last(payment, today) > mean_interval * settings.overdue_factor


@dataclass
class RecurringSummary:
    recurring: List[RecurringPayment]
    total_monthly: float
    essential_total: float
    non_essential_total: float
    recurring_income: float
    percent_of_income: float
    cancellation_candidates: List[RecurringPayment]
    potential_savings: float


def summarize_recurring(
    payments: Sequence[RecurringPayment],
    max_candidates: int = 3,
) -> RecurringSummary:
    """Monthly view of recurring costs against recurring income."""
    expenses = [p for p in payments if p.amount < 0]
    income = sum(p.monthly_amount for p in payments if p.amount > 0)
    total = sum(p.monthly_amount for p in expenses)
    essential = sum(p.monthly_amount for p in expenses if p.is_essential)
    candidates = sorted(
        (p for p in expenses if not p.is_essential and p.category == ENTERTAINMENT),
        key=lambda p: p.monthly_amount,
        reverse=True,
    )[:max_candidates]
    return RecurringSummary(
        recurring=list(payments),
        total_monthly=total,
        essential_total=essential,
        non_essential_total=total - essential,
        recurring_income=income,
        percent_of_income=(total / income * 100) if income > 0 else 0.0,
        cancellation_candidates=candidates,
        potential_savings=sum(p.monthly_amount for p in candidates),
    )
