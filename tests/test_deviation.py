from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import BASE_TIME
from eventfeed.baseline import BaselineStore
from eventfeed.deviation import assess_key, calculate_deviation, deviation_level
from eventfeed.models import BaselineEntry, Observation


def _entry(counts, avg_7d):
    observations = tuple(
        Observation(count=count, timestamp=BASE_TIME + timedelta(hours=i)) for i, count in enumerate(counts)
    )
    return BaselineEntry(
        key="k",
        observations=observations,
        avg_7d=avg_7d,
        avg_30d=avg_7d,
        last_updated=observations[-1].timestamp if observations else BASE_TIME,
    )


@pytest.mark.parametrize("counts", [[], [5], [5, 50]])
@pytest.mark.parametrize("current", [0, 5, 1000])
def test_sparse_history_is_never_flagged(counts, current):
    deviation = calculate_deviation(current, _entry(counts, 5.0))
    assert (deviation.z_score, deviation.percent_change, deviation.level) == (0, 0, "normal")


def test_missing_entry_is_normal():
    assert calculate_deviation(100, None).level == "normal"


def test_steady_history_is_normal():
    deviation = calculate_deviation(10, _entry([10] * 5, 10.0))
    assert deviation.z_score == 0
    assert deviation.percent_change == 0
    assert deviation.level == "normal"


def test_jump_over_flat_history_is_spike():
    deviation = calculate_deviation(40, _entry([10] * 5, 10.0))
    assert deviation.z_score == 30
    assert deviation.percent_change == 300
    assert deviation.level == "spike"


def test_variance_centered_on_seven_day_average():
    # spread is measured around avg_7d = 4: sqrt((4+0+16)/3)
    entry = _entry([2, 4, 8], 4.0)
    deviation = calculate_deviation(8, entry)
    assert deviation.z_score == pytest.approx(1.55)
    assert deviation.percent_change == 100
    assert deviation.level == "elevated"


def test_zero_average_gives_zero_percent():
    deviation = calculate_deviation(3, _entry([0, 0, 0], 0.0))
    assert deviation.z_score == 3
    assert deviation.percent_change == 0
    assert deviation.level == "spike"


def test_drop_is_quiet():
    deviation = calculate_deviation(0, _entry([10, 12, 8, 10], 10.0))
    assert deviation.level == "quiet"
    assert deviation.percent_change == -100


@pytest.mark.parametrize(
    ("z_score", "level"),
    [(2.51, "spike"), (2.5, "elevated"), (1.51, "elevated"), (1.5, "normal"), (-2.0, "normal"), (-2.01, "quiet")],
)
def test_level_boundaries_are_exclusive(z_score, level):
    assert deviation_level(z_score) == level


def test_assess_key_compares_with_prior_history(tmp_path):
    store = BaselineStore(tmp_path)
    for hour in range(5):
        store.update("topic", 10, now=BASE_TIME + timedelta(hours=hour))
    entry, deviation = assess_key(store, "topic", 40, now=BASE_TIME + timedelta(hours=6))
    assert deviation.level == "spike"
    assert deviation.percent_change == 300
    assert entry.counts[-1] == 40
    assert entry.avg_7d == 15


def test_assess_key_first_observation_is_normal(tmp_path):
    store = BaselineStore(tmp_path)
    entry, deviation = assess_key(store, "topic", 40, now=BASE_TIME)
    assert deviation.level == "normal"
    assert entry.counts == [40]
