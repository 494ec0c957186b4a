# pocket_ledger/stats.py
from __future__ import annotations

from typing import Dict, Iterable, List

import pandas as pd

from pocket_ledger.core.models import CategoryStats, Transaction
from pocket_ledger.utils import safe_number


def _expense_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    rows = [
        {
            "date": pd.Timestamp(tx.date),
            "category": tx.category,
            "amount": abs(tx.amount),
        }
        for tx in transactions
        if tx.amount < 0
    ]
    return pd.DataFrame(rows, columns=["date", "category", "amount"])


def category_stats(transactions: Iterable[Transaction]) -> List[CategoryStats]:
    """Aggregate expenses per category, largest total first."""
    df = _expense_frame(transactions)
    if df.empty:
        return []

    grand_total = safe_number(df["amount"].sum())
    grouped = df.groupby("category", sort=False)["amount"].agg(["sum", "count"])
    grouped = grouped.sort_values("sum", ascending=False, kind="mergesort")

    stats = []
    for category, row in grouped.iterrows():
        total = safe_number(row["sum"])
        count = int(row["count"])
        stats.append(
            CategoryStats(
                category=category,
                total=total,
                count=count,
                average=total / count if count else 0.0,
                percentage=(total / grand_total * 100) if grand_total > 0 else 0.0,
            )
        )
    return stats


def monthly_category_totals(
    transactions: Iterable[Transaction], year: int, month: int
) -> Dict[str, float]:
    """Absolute expense totals per category for one calendar month."""
    df = _expense_frame(transactions)
    if df.empty:
        return {}
    in_month = df[(df["date"].dt.year == year) & (df["date"].dt.month == month)]
    totals = in_month.groupby("category", sort=False)["amount"].sum()
    return {cat: safe_number(total) for cat, total in totals.items()}
