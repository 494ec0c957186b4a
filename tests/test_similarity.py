import pytest

from pocket_ledger.core.similarity import edit_distance, similarity


def test_identical_and_empty_strings_score_one():
    assert similarity("", "") == 1.0
    assert similarity("netflix", "netflix") == 1.0


def test_classic_edit_distance():
    assert edit_distance("kitten", "sitting") == 3
    assert edit_distance("", "abc") == 3
    assert similarity("kitten", "sitting") == pytest.approx(4 / 7)


def test_similarity_is_symmetric_and_bounded():
    pairs = [
        ("spotify us", "spotify usa"),
        ("abc", ""),
        ("netflix.com", "rent"),
        ("walmart", "wal-mart"),
    ]
    for a, b in pairs:
        score = similarity(a, b)
        assert 0.0 <= score <= 1.0
        assert score == similarity(b, a)
    assert similarity("abc", "") == 0.0
    assert similarity("spotify us", "spotify usa") == pytest.approx(10 / 11)
