from datetime import date, timedelta

import pytest

from pocket_ledger.core.models import CategoryStats, RecurringPayment, Transaction
from pocket_ledger.insights import (
    analyze_budget_pacing,
    analyze_spending_trends,
    budget_recommendation,
    category_insights,
    detect_anomalies,
    detect_unusual_income,
    generate_insights,
    monthly_budget,
    recurring_insights,
    subscription_review,
)
from pocket_ledger.recurring import summarize_recurring
from pocket_ledger.stats import category_stats


def expense(amount, day=1, category="shopping", description="Store", tx_id=None):
    tx = Transaction(date(2025, 3, day), description, -amount, category=category)
    if tx_id:
        tx.id = tx_id
    return tx


def test_anomalies_need_three_transactions():
    assert detect_anomalies([]) == []
    assert detect_anomalies([expense(10), expense(5000)]) == []


def test_large_expense_is_flagged_with_deviation():
    txs = [expense(10, day=d) for d in range(1, 10)]
    txs.append(expense(1000, day=12, description="TV Store\nref 123", tx_id="big"))
    insights = detect_anomalies(txs)
    assert len(insights) == 1
    msg = insights[0]
    assert msg.id == "anomaly-big"
    assert msg.amount == 1000
    assert msg.severity == "warning"
    assert msg.description.startswith("TV Store (1000) is 817%")


def test_uniform_expenses_have_no_anomalies():
    assert detect_anomalies([expense(25, day=d) for d in range(1, 6)]) == []


def test_pacing_warns_when_ahead():
    msg = analyze_budget_pacing(10, 30, 500, 1000)
    assert msg.id == "pace-warning"
    assert msg.severity == "danger"
    assert "50% ahead" in msg.description
    assert "overspend by 500" in msg.description


def test_pacing_praises_when_behind():
    msg = analyze_budget_pacing(10, 30, 200, 1000)
    assert msg.id == "pace-good"
    assert msg.severity == "success"
    assert "40% under pace" in msg.description
    assert "400 extra" in msg.description


def test_pacing_is_silent_on_track_or_without_signal():
    assert analyze_budget_pacing(15, 30, 500, 1000) is None
    assert analyze_budget_pacing(10, 30, 500, 0) is None
    assert analyze_budget_pacing(0, 30, 500, 1000) is None
    assert analyze_budget_pacing(10, 0, 500, 1000) is None


def test_spending_trends():
    current = {"dining": 50.0, "shopping": 300.0, "health": 120.0, "groceries": 200.0}
    previous = {"dining": 100.0, "shopping": 150.0, "groceries": 190.0}
    insights = analyze_spending_trends(current, previous)
    assert [m.id for m in insights] == [
        "trend-down-dining",
        "trend-up-shopping",
        "trend-new-health",
    ]
    assert insights[0].amount == pytest.approx(50.0)
    assert insights[1].severity == "warning"


def test_spending_trends_edge_cases():
    assert analyze_spending_trends({"dining": 500.0}, {}) == []
    assert analyze_spending_trends({"health": 50.0, "dining": 20.0}, {"dining": 20.0}) == []
    dropped = analyze_spending_trends({}, {"dining": 80.0})
    assert [m.id for m in dropped] == ["trend-down-dining"]


def test_recurring_and_category_highlights():
    payments = [
        RecurringPayment("salary", 3000.0, "income", "monthly", date(2025, 3, 1),
                         date(2025, 3, 31), [30.0], 2, 0.7, 0.0),
        RecurringPayment("rent", -1200.0, "transfer", "monthly", date(2025, 3, 1),
                         date(2025, 3, 31), [30.0], 2, 0.7, 0.0),
        RecurringPayment("gym", -40.0, "health", "weekly", date(2025, 3, 1),
                         date(2025, 3, 8), [7.0], 2, 0.7, 0.0),
    ]
    msgs = recurring_insights(payments)
    assert [m.id for m in msgs] == ["recurring-salary", "recurring-rent"]
    assert msgs[0].description == "3000 monthly recurring income detected"
    assert msgs[1].description == "1200 monthly recurring expense detected"

    stats = [CategoryStats("groceries", 455.0, 10, 45.5, 45.5)]
    top = category_insights(stats)[0]
    assert top.title == "Top expense: Groceries"
    assert "(45.5%)" in top.description
    assert category_insights([]) == []


def test_monthly_budget():
    assert monthly_budget(2000) == pytest.approx(1600)
    assert monthly_budget(2000, 2500) == pytest.approx(2000)
    assert monthly_budget(2000, 0) == pytest.approx(1600)
    assert monthly_budget(float("nan")) == 0.0


def test_generate_insights_for_latest_month():
    txs = [
        Transaction(date(2025, 2, 3), "Safeway", -100.0, category="groceries"),
        Transaction(date(2025, 2, 17), "Safeway", -100.0, category="groceries"),
        Transaction(date(2025, 3, 5), "Safeway", -50.0, category="groceries"),
        Transaction(date(2025, 3, 10), "Bistro", -150.0, category="dining"),
        Transaction(date(2025, 3, 1), "Payroll", 2000.0, category="income", id="payroll"),
    ]
    insights = generate_insights(txs, category_stats(txs), [], budget=600)
    assert [m.id for m in insights] == [
        "anomaly-payroll",
        "budget-advice",
        "trend-down-groceries",
        "trend-new-dining",
        "top-category",
    ]
    again = generate_insights(txs, category_stats(txs), [], budget=600)
    assert again == insights


def test_generate_insights_with_pacing_and_explicit_today():
    txs = [
        Transaction(date(2025, 3, 1) + timedelta(days=i), "Cafe", -100.0, category="dining")
        for i in range(5)
    ]
    insights = generate_insights(txs, [], [], today=date(2025, 3, 10), budget=600)
    assert [m.id for m in insights] == ["pace-warning"]


def test_generate_insights_on_empty_history():
    assert generate_insights([], [], []) == []


def test_unusual_income():
    txs = [
        Transaction(date(2025, 3, 2), "Birthday gift from mum", 50.0, id="gift"),
        Transaction(date(2025, 3, 3), "Payroll ACME", 2500.0, id="pay"),
        Transaction(date(2025, 3, 4), "Payroll ACME", 2500.0, is_recurring=True),
        Transaction(date(2025, 3, 5), "Interest", 3.0),
        Transaction(date(2025, 3, 6), "Refund shop", -20.0),
    ]
    msgs = detect_unusual_income(txs)
    assert [m.id for m in msgs] == ["anomaly-gift", "anomaly-pay"]
    assert msgs[0].severity == "success"
    assert msgs[0].description == (
        "50 from Birthday gift from mum. Consider saving or investing this windfall!"
    )


def monthly(merchant, amount, category, frequency="monthly"):
    return RecurringPayment(merchant, amount, category, frequency, date(2025, 3, 1),
                            date(2025, 3, 31), [30.0], 3, 0.9, 0.0)


def test_subscription_review_needs_enough_non_essential_spend():
    payments = [
        monthly("Netflix", -60.0, "entertainment"),
        monthly("Disney", -50.0, "entertainment"),
        monthly("Gym", -40.0, "health", "weekly"),
    ]
    msg = subscription_review(summarize_recurring(payments))
    assert msg.id == "subscription-review"
    assert msg.category == "entertainment"
    assert msg.amount == pytest.approx(110.0)
    assert msg.description.startswith("Netflix costs 60/mo. You have 3 recurring items")

    assert subscription_review(summarize_recurring(payments[1:])) is None
    assert subscription_review(summarize_recurring([])) is None


def test_budget_recommendation_branches():
    great = budget_recommendation(10, 30, 3000, 500, 2400)
    assert great.severity == "success"
    assert great.daily_budget == pytest.approx(95.0)
    assert great.projected_savings == pytest.approx(1500.0)

    tight_savings = budget_recommendation(10, 30, 3000, 500, 2400, recurring_total=1450)
    assert (tight_savings.has_room, tight_savings.can_save) == (True, False)
    assert tight_savings.severity == "info"

    assert budget_recommendation(10, 30, 2000, 500, 800).severity == "warning"

    over = budget_recommendation(10, 30, 1000, 500, 800)
    assert over.severity == "danger"
    assert over.projected_savings == 0.0

    assert budget_recommendation(10, 30, 0, 500, 800) is None
    assert budget_recommendation(0, 30, 1000, 500, 800) is None


def paycheck_month(amount=500.0):
    txs = [Transaction(date(2025, 3, 1), "Payroll", amount, category="income")]
    txs += [
        Transaction(date(2025, 3, day), "Cafe", -100.0, category="dining")
        for day in (2, 3, 4)
    ]
    return txs


def test_pacing_budget_is_derived_from_income():
    insights = generate_insights(paycheck_month(), [], [], today=date(2025, 3, 10))
    assert [m.id for m in insights] == ["pace-warning", "budget-advice"]
    assert insights[1].severity == "danger"


def test_recurring_income_is_preferred_for_the_budget():
    salary = monthly("ACME", 3000.0, "income")
    insights = generate_insights(paycheck_month(), [], [salary], today=date(2025, 3, 10))
    assert [m.id for m in insights] == ["pace-good", "budget-advice", "recurring-ACME"]
    assert insights[1].severity == "info"
