# pocket_ledger/insights.py
from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Mapping, Optional, Sequence

import numpy as np

from pocket_ledger.core.categories import CATEGORY_LABELS, ENTERTAINMENT
from pocket_ledger.core.models import (
    CategoryStats,
    InsightMessage,
    RecurringPayment,
    Transaction,
)
from pocket_ledger.recurring import RecurringSummary, summarize_recurring
from pocket_ledger.stats import monthly_category_totals
from pocket_ledger.utils import previous_month, safe_number, transactions_in_month

logger = logging.getLogger(__name__)

ANOMALY_MIN_TRANSACTIONS = 3
ANOMALY_STD_FACTOR = 2.5
ANOMALY_LIMIT = 2
PACING_TOLERANCE = 20.0
TREND_NEW_SPEND = 100.0
TREND_DROP = -30.0
TREND_JUMP = 50.0
BUDGET_SHARE = 0.8
UNUSUAL_INCOME_WORDS = ("gift", "bonus", "refund")
UNUSUAL_INCOME_AMOUNT = 500.0
SUBSCRIPTION_REVIEW_MIN = 100.0
DISCRETIONARY_DAILY = 60.0
SAVINGS_TARGET = 100.0


def _first_line(text: str) -> str:
    return (text or "").split("\n")[0]


def detect_anomalies(expenses: Sequence[Transaction]) -> List[InsightMessage]:
    """Flag the largest expenses sitting more than 2.5 std above the mean."""
    if len(expenses) < ANOMALY_MIN_TRANSACTIONS:
        return []

    amounts = np.abs(np.array([t.amount for t in expenses], dtype=float))
    mean = safe_number(amounts.mean())
    std = safe_number(amounts.std())
    threshold = mean + ANOMALY_STD_FACTOR * std

    flagged = sorted(
        (t for t in expenses if abs(t.amount) > threshold),
        key=lambda t: abs(t.amount),
        reverse=True,
    )[:ANOMALY_LIMIT]

    insights = []
    for tx in flagged:
        amount = abs(tx.amount)
        deviation = (amount - mean) / mean * 100 if mean > 0 else 0.0
        insights.append(
            InsightMessage(
                id=f"anomaly-{tx.id}",
                type="anomaly",
                severity="warning",
                title=f"Unusual {tx.category} expense",
                description=(
                    f"{_first_line(tx.description)} ({amount:.0f}) is {deviation:.0f}% "
                    "higher than your average. Make sure this was intended!"
                ),
                category=tx.category,
                amount=amount,
            )
        )
    return insights


def analyze_budget_pacing(
    days_elapsed: int,
    days_total: int,
    already_spent: float,
    total_budget: float,
) -> Optional[InsightMessage]:
    if days_total <= 0 or days_elapsed <= 0:
        return None
    percent_elapsed = days_elapsed / days_total
    expected = total_budget * percent_elapsed
    if expected <= 0:
        return None

    variance = already_spent - expected
    variance_pct = variance / expected * 100
    projected = already_spent / percent_elapsed

    if variance_pct > PACING_TOLERANCE:
        return InsightMessage(
            id="pace-warning",
            type="warning",
            severity="danger",
            title="Spending too fast",
            description=(
                f"You're {variance_pct:.0f}% ahead of pace. At this rate, you'll "
                f"overspend by {projected - total_budget:.0f} by month end."
            ),
            amount=variance,
        )
    if variance_pct < -PACING_TOLERANCE:
        return InsightMessage(
            id="pace-good",
            type="achievement",
            severity="success",
            title="Excellent pacing!",
            description=(
                f"You're {abs(variance_pct):.0f}% under pace. Keep this up and "
                f"you'll have {total_budget - projected:.0f} extra to save!"
            ),
            amount=abs(variance),
        )
    return None


def analyze_spending_trends(
    current: Mapping[str, float],
    previous: Mapping[str, float],
) -> List[InsightMessage]:
    """Compare per-category expense totals of this month and the last one."""
    if not previous:
        return []

    insights = []
    categories = list(dict.fromkeys([*current, *previous]))
    for category in categories:
        now = safe_number(current.get(category, 0.0))
        before = safe_number(previous.get(category, 0.0))

        if before == 0:
            if now > TREND_NEW_SPEND:
                insights.append(
                    InsightMessage(
                        id=f"trend-new-{category}",
                        type="trend",
                        severity="info",
                        title=f"New spending in {category}",
                        description=(
                            f"You started spending on {category} this month "
                            f"({now:.0f}). Is this expected?"
                        ),
                        category=category,
                        amount=now,
                    )
                )
            continue

        change = (now - before) / before * 100
        if change < TREND_DROP:
            insights.append(
                InsightMessage(
                    id=f"trend-down-{category}",
                    type="achievement",
                    severity="success",
                    title=f"Great job on {category}!",
                    description=(
                        f"You spent {abs(change):.0f}% less on {category} this month "
                        f"({now:.0f} vs {before:.0f}). Keep it up!"
                    ),
                    category=category,
                    amount=before - now,
                )
            )
        elif change > TREND_JUMP:
            insights.append(
                InsightMessage(
                    id=f"trend-up-{category}",
                    type="warning",
                    severity="warning",
                    title=f"{category} spending increased",
                    description=(
                        f"Your {category} spending jumped {change:.0f}% ({now:.0f} vs "
                        f"{before:.0f} last month). Was this planned?"
                    ),
                    category=category,
                    amount=now - before,
                )
            )
    return insights


def recurring_insights(
    recurring: Sequence[RecurringPayment], top_n: int = 2
) -> List[InsightMessage]:
    insights = []
    for payment in recurring[:top_n]:
        kind = "expense" if payment.amount < 0 else "income"
        insights.append(
            InsightMessage(
                id=f"recurring-{payment.merchant}",
                type="trend",
                severity="info",
                title=payment.merchant,
                description=(
                    f"{abs(payment.amount):.0f} {payment.frequency} recurring "
                    f"{kind} detected"
                ),
                category=payment.category,
                amount=abs(payment.amount),
            )
        )
    return insights


def category_insights(stats: Sequence[CategoryStats]) -> List[InsightMessage]:
    """Surface the first (largest) category of host-sorted stats."""
    if not stats:
        return []
    top = stats[0]
    label = CATEGORY_LABELS.get(top.category, top.category.capitalize())
    return [
        InsightMessage(
            id="top-category",
            type="trend",
            severity="info",
            title=f"Top expense: {label}",
            description=(
                f"Your largest spending category is {top.category} at "
                f"{top.total:.0f} ({top.percentage:.1f}%)"
            ),
            category=top.category,
            amount=top.total,
        )
    ]


def detect_unusual_income(income: Sequence[Transaction]) -> List[InsightMessage]:
    """Flag one-off looking income: gifts, bonuses, refunds or anything above 500."""
    insights = []
    for tx in income:
        if tx.amount <= 0 or tx.is_recurring:
            continue
        text = (tx.description or "").lower()
        if tx.amount <= UNUSUAL_INCOME_AMOUNT and not any(w in text for w in UNUSUAL_INCOME_WORDS):
            continue
        insights.append(
            InsightMessage(
                id=f"anomaly-{tx.id}",
                type="anomaly",
                severity="success",
                title="Unexpected income received",
                description=(
                    f"{tx.amount:.0f} from {_first_line(tx.description)}. "
                    "Consider saving or investing this windfall!"
                ),
                category=tx.category,
                amount=tx.amount,
            )
        )
    return insights


def subscription_review(summary: RecurringSummary) -> Optional[InsightMessage]:
    if not summary.cancellation_candidates:
        return None
    if summary.non_essential_total <= SUBSCRIPTION_REVIEW_MIN:
        return None
    top = summary.cancellation_candidates[0]
    return InsightMessage(
        id="subscription-review",
        type="trend",
        severity="info",
        title="Review entertainment expenses",
        description=(
            f"{top.merchant} costs {top.monthly_amount:.0f}/mo. You have "
            f"{len(summary.recurring)} recurring items totaling "
            f"{summary.total_monthly:.0f}/mo. Cancel unused services to save "
            f"{summary.potential_savings:.0f}/mo."
        ),
        category=ENTERTAINMENT,
        amount=summary.potential_savings,
    )


@dataclass
class BudgetRecommendation:
    daily_budget: float
    projected_savings: float
    has_room: bool
    can_save: bool
    severity: str
    recommendation: str


def budget_recommendation(
    days_elapsed: int,
    days_total: int,
    income: float,
    already_spent: float,
    total_budget: float,
    recurring_total: float = 0.0,
) -> Optional[BudgetRecommendation]:
    """
    Daily allowance left in the budget and the savings projected at month
    end, where projected savings are income minus the month-end spend
    projection and the recurring costs.
    """
    if days_total <= 0 or days_elapsed <= 0 or income <= 0:
        return None
    percent_elapsed = min(days_elapsed / days_total, 1.0)
    # the last day of the month still has itself left to spend
    days_left = max(days_total - days_elapsed, 1)
    daily = (total_budget - already_spent) / days_left
    savings = income - already_spent / percent_elapsed - recurring_total

    has_room = daily > DISCRETIONARY_DAILY
    can_save = savings > SAVINGS_TARGET
    if has_room and can_save:
        severity = "success"
        text = (
            f"You're doing great! {daily:.0f}/day is available and you can "
            f"still save ~{savings:.0f}."
        )
    elif has_room:
        severity = "info"
        text = "There is room for discretionary spending, but savings are tight."
    elif savings > 0:
        severity = "warning"
        text = (
            f"Budget is tight for discretionary spending. Save the "
            f"{savings:.0f} instead."
        )
    else:
        severity = "danger"
        text = "You're overspending. Cut back on non-essentials to avoid going into the red."
    return BudgetRecommendation(
        daily_budget=max(0.0, daily),
        projected_savings=max(0.0, savings),
        has_room=has_room,
        can_save=can_save,
        severity=severity,
        recommendation=text,
    )


def recommendation_insight(rec: BudgetRecommendation) -> InsightMessage:
    return InsightMessage(
        id="budget-advice",
        type="achievement" if rec.severity == "success" else "warning",
        severity=rec.severity,
        title=f"{rec.daily_budget:.0f}/day left to spend",
        description=rec.recommendation,
        amount=rec.projected_savings,
    )


def monthly_budget(monthly_income: float, recurring_income: Optional[float] = None) -> float:
    """80% of income is budgeted for expenses; recurring income is preferred."""
    base = recurring_income if recurring_income and recurring_income > 0 else monthly_income
    return safe_number(base) * BUDGET_SHARE


def generate_insights(
    transactions: Sequence[Transaction],
    category_stats: Sequence[CategoryStats],
    recurring: Sequence[RecurringPayment],
    today: Optional[date] = None,
    budget: Optional[float] = None,
) -> List[InsightMessage]:
    """
    Build every message for the month containing ``today``.

    ``today`` defaults to the date of the latest transaction so that the
    output depends only on the inputs. Without a ``budget`` one is derived
    from income with ``monthly_budget``, preferring recurring income.
    """
    summary = summarize_recurring(recurring)
    review = subscription_review(summary)
    highlights = recurring_insights(recurring) + ([review] if review else [])

    if today is None:
        if not transactions:
            return highlights + category_insights(category_stats)
        today = max(t.date for t in transactions)

    month = transactions_in_month(transactions, today.year, today.month)
    month_expenses = [t for t in month if t.amount < 0]
    month_income = [t for t in month if t.amount > 0]
    income = safe_number(sum(t.amount for t in month_income))
    spent = safe_number(sum(abs(t.amount) for t in month_expenses))

    # largest first across both kinds of anomaly
    insights = sorted(
        detect_anomalies(month_expenses) + detect_unusual_income(month_income),
        key=lambda m: m.amount,
        reverse=True,
    )[:ANOMALY_LIMIT]

    if budget is None:
        budget = monthly_budget(income, summary.recurring_income)
    days_total = calendar.monthrange(today.year, today.month)[1]
    pacing = analyze_budget_pacing(today.day, days_total, spent, budget)
    if pacing is not None:
        insights.append(pacing)
    rec = budget_recommendation(
        today.day, days_total, income, spent, budget, summary.total_monthly
    )
    if rec is not None:
        insights.append(recommendation_insight(rec))

    prev_year, prev_month = previous_month(today.year, today.month)
    insights.extend(
        analyze_spending_trends(
            monthly_category_totals(transactions, today.year, today.month),
            monthly_category_totals(transactions, prev_year, prev_month),
        )
    )
    insights.extend(highlights)
    insights.extend(category_insights(category_stats))
    logger.debug("Generated %d insights for %s", len(insights), today.isoformat())
    return insights
