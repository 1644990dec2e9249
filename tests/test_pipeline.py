from __future__ import annotations

from datetime import timedelta

from conftest import BASE_TIME
from eventfeed.baseline import BaselineStore
from eventfeed.pipeline import monitor_keys, run_pipeline


def test_run_pipeline_builds_enriched_events(make_item, tier_lookup):
    items = [
        make_item(title="Bank raises rates", source="BBC", tier=None, link="https://a/1"),
        make_item(
            title="Central bank raises interest rates",
            source="Reuters",
            tier=None,
            link="https://a/2",
            published=BASE_TIME + timedelta(minutes=10),
        ),
        make_item(
            title="Ceasefire deal brings peace",
            source="AP",
            link="https://a/3",
            is_alert=True,
            published=BASE_TIME + timedelta(hours=2),
        ),
    ]
    result = run_pipeline(items, tier_lookup)
    assert result.item_count == 3
    assert [event.source_count for event in result.events] == [1, 2]
    assert result.alert_count == 1
    peace, rates = result.events
    assert peace.velocity.sentiment == "positive"
    assert peace.velocity.sources_per_hour == 0
    assert rates.primary_source == "Reuters"
    assert rates.velocity.sources_per_hour == 8.0


def test_run_pipeline_empty_batch(tier_lookup):
    result = run_pipeline([], tier_lookup)
    assert result.events == []
    assert result.item_count == 0


def test_monitor_keys_classifies_each_key(tmp_path):
    store = BaselineStore(tmp_path)
    for hour in range(4):
        monitor_keys(store, {"quiet": 10, "busy": 10}, now=BASE_TIME + timedelta(hours=hour))
    results = monitor_keys(store, {"quiet": 10, "busy": 50}, now=BASE_TIME + timedelta(hours=5))
    assert results["quiet"].level == "normal"
    assert results["busy"].level == "spike"
    assert store.get("busy").counts == [10, 10, 10, 10, 50]
