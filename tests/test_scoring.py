from datetime import date, timedelta

import pytest

from pocket_ledger.core.models import RecurringPayment
from pocket_ledger.scoring import FEATURE_NAMES, RecurringModel, extract_features


def payment(count, gap, std=0.0, frequency="monthly", last=date(2025, 1, 1)):
    return RecurringPayment(
        merchant="m", amount=-10.0, category="other", frequency=frequency,
        last_date=last, next_expected_date=last + timedelta(days=gap),
        intervals=[float(gap)] * (count - 1), count=count, confidence=0.7,
        amount_std_dev=std,
    )


def test_features_flag_overdue_payments():
    features = extract_features(payment(3, 30), today=date(2025, 2, 15))
    assert len(features) == len(FEATURE_NAMES)
    named = dict(zip(FEATURE_NAMES, features))
    assert named["days_since_last"] == 45
    assert named["is_overdue"] == 1.0
    assert named["is_monthly"] == 1.0
    assert extract_features(payment(3, 30), today=date(2025, 1, 20))[-1] == 0.0


def test_untrained_model_has_no_opinion():
    assert RecurringModel().predict(payment(3, 30)) is None
    with pytest.raises(ValueError):
        RecurringModel().train([])


def test_model_separates_regular_from_sporadic():
    regular = [payment(12, 30) for _ in range(4)]
    sporadic = [payment(2, 200, std=5.0, frequency="yearly") for _ in range(4)]
    labelled = [(p, True) for p in regular] + [(p, False) for p in sporadic]

    model = RecurringModel()
    weights = model.train(labelled)
    assert len(weights.weights) == len(FEATURE_NAMES)
    assert model.predict(regular[0]) > model.predict(sporadic[0])
