# pocket_ledger/scoring.py
"""
Optional learned scorer for recurring candidates.

A small logistic regression over hand-built features of a
``RecurringPayment``. It is a drop-in alternative to the rule based
confidence in ``pocket_ledger.recurring`` and is only useful once the host
has a handful of payments labelled as recurring / not recurring.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence, Tuple

import numpy as np

from pocket_ledger.core.models import MONTHLY, YEARLY, RecurringPayment
from pocket_ledger.recurring import days_since_last, is_overdue

FEATURE_NAMES = [
    "count",
    "count_log",
    "interval_cv",
    "max_interval_deviation",
    "amount_cv",
    "amount_abs",
    "amount_log",
    "is_monthly",
    "is_yearly",
    "days_since_last",
    "is_overdue",
]

LEARNING_RATE = 0.01
ITERATIONS = 1000


@dataclass
class ModelWeights:
    weights: List[float]
    bias: float
    feature_names: List[str] = field(default_factory=lambda: list(FEATURE_NAMES))


def extract_features(payment: RecurringPayment, today: Optional[date] = None) -> List[float]:
    intervals = np.array(payment.intervals, dtype=float)
    mean_interval = float(intervals.mean()) if intervals.size else 0.0

    if intervals.size > 1 and mean_interval > 0:
        interval_cv = float(intervals.std()) / mean_interval
    else:
        interval_cv = 1.0
    if intervals.size and mean_interval > 0:
        max_dev = float(np.max(np.abs(intervals - mean_interval))) / mean_interval
    else:
        max_dev = 1.0

    amount_abs = abs(payment.amount)
    if payment.amount_std_dev and amount_abs > 0:
        amount_cv = payment.amount_std_dev / amount_abs
    else:
        amount_cv = 0.5

    since = days_since_last(payment, today) if today is not None else 0
    overdue = today is not None and is_overdue(payment, today)

    return [
        float(payment.count),
        math.log(payment.count + 1),
        interval_cv,
        max_dev,
        amount_cv,
        amount_abs,
        math.log(amount_abs + 1),
        1.0 if payment.frequency == MONTHLY else 0.0,
        1.0 if payment.frequency == YEARLY else 0.0,
        float(since),
        1.0 if overdue else 0.0,
    ]


def _sigmoid(z):
    return 1.0 / (1.0 + np.exp(-z))


class RecurringModel:
    def __init__(self, model: Optional[ModelWeights] = None):
        self.model = model

    def train(
        self,
        labeled: Sequence[Tuple[RecurringPayment, bool]],
        today: Optional[date] = None,
    ) -> ModelWeights:
        """Fit by plain batch gradient descent."""
        if not labeled:
            raise ValueError("Cannot train the recurring model without labelled data")
        X = np.array([extract_features(p, today) for p, _ in labeled], dtype=float)
        y = np.array([1.0 if flag else 0.0 for _, flag in labeled])

        weights = np.zeros(X.shape[1])
        bias = 0.0
        for _ in range(ITERATIONS):
            error = _sigmoid(X @ weights + bias) - y
            weights -= LEARNING_RATE * (X.T @ error) / len(X)
            bias -= LEARNING_RATE * float(error.sum()) / len(X)

        self.model = ModelWeights([float(w) for w in weights], float(bias))
        return self.model

    def predict(self, payment: RecurringPayment, today: Optional[date] = None) -> Optional[float]:
        if self.model is None:
            return None
        features = np.array(extract_features(payment, today))
        z = float(features @ np.array(self.model.weights)) + self.model.bias
        return float(_sigmoid(z))
