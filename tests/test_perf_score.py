import math

import pytest

from perf_score import calculate_performance_score


def test_all_good_metrics_score_100():
    assert calculate_performance_score(1500, 2500, 0.05, 2000) == 100


def test_all_poor_metrics_clamp_to_zero():
    assert calculate_performance_score(3500, 4500, 0.3, 6000) == 0


def test_mid_tier_penalties_add_up():
    assert calculate_performance_score(2000, 3000, 0.15, 3500) == 100 - 15 - 15 - 10 - 10


def test_only_higher_penalty_applies_per_metric():
    # FCP poor only: 30, not 15 + 30
    assert calculate_performance_score(3001, 0, 0, 0) == 70
    assert calculate_performance_score(0, 4001, 0, 0) == 70
    assert calculate_performance_score(0, 0, 0.26, 0) == 80
    assert calculate_performance_score(0, 0, 0, 5001) == 80


def test_thresholds_are_exclusive():
    assert calculate_performance_score(1800, 2500, 0.1, 3000) == 100
    assert calculate_performance_score(3000, 4000, 0.25, 5000) == 50


@pytest.mark.parametrize("index", range(4))
def test_score_is_monotonic_and_bounded_per_input(index):
    base = [0.0, 0.0, 0.0, 0.0]
    steps = {0: 250.0, 1: 250.0, 2: 0.02, 3: 250.0}
    previous = 101
    for i in range(40):
        values = list(base)
        values[index] = steps[index] * i
        score = calculate_performance_score(*values)
        assert 0 <= score <= 100
        assert score <= previous
        previous = score


def test_non_finite_inputs_stay_in_range():
    assert calculate_performance_score(math.inf, math.inf, math.inf, math.inf) == 0
    assert 0 <= calculate_performance_score(math.nan, -1, -5, math.nan) <= 100
    assert isinstance(calculate_performance_score(1.5, 2.5, 0.0, 3.5), int)
