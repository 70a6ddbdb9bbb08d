"""Unit tests for the purchase aggregation pass."""
import math

import pytest

from shopreport.aggregation import AggregationResult, GroupStats, aggregate_events
from shopreport.normalization import normalize_event


def event(brand="Acme", category="electronics.phones", event_type="purchase", price="10"):
    return normalize_event(
        {
            "brand": brand,
            "category_code": category,
            "event_time": "2023-01-05",
            "event_type": event_type,
            "price": price,
            "product_id": "p",
            "user_id": "u",
            "user_session": "s",
        }
    )


def test_average_is_consistent_after_every_purchase():
    stats = GroupStats()
    assert stats.avg_price == 0
    for idx, price in enumerate([10.0, 20.0, 60.0, 5.5], start=1):
        stats.add_purchase(price)
        assert stats.count == idx
        assert stats.avg_price == pytest.approx(stats.total_price / stats.count)
    assert stats.total_price == pytest.approx(95.5)


def test_only_purchases_change_stats():
    result = aggregate_events(
        [
            event(event_type="view", price="500"),
            event(event_type="cart", price="500"),
            event(price="10"),
            event(price="30"),
        ]
    )
    stats = result.categories["electronics"]
    assert (stats.count, stats.total_price, stats.avg_price) == (2, pytest.approx(40.0), pytest.approx(20.0))
    assert result.brands["Acme"].count == 2


def test_non_purchase_groups_exist_with_zero_values():
    result = aggregate_events([event(brand="Quiet", category="garden.tools", event_type="view")])
    assert result.categories == {"garden": GroupStats(0, 0.0, 0.0)}
    assert result.brands == {"Quiet": GroupStats(0, 0.0, 0.0)}


def test_groups_keyed_by_top_level_category_and_default_labels():
    result = aggregate_events([event(brand="", category=""), event(category="electronics.audio")])
    assert set(result.categories) == {"_none", "electronics"}
    assert set(result.brands) == {"_none", "Acme"}


def test_nan_price_poisons_the_group():
    result = aggregate_events([event(price="12"), event(price="oops"), event(price="8")])
    stats = result.categories["electronics"]
    assert stats.count == 3
    assert math.isnan(stats.total_price)
    assert math.isnan(stats.avg_price)


def test_empty_input():
    result = aggregate_events([])
    assert result.categories == {} and result.brands == {}


def test_dimension_lookup_and_frame():
    result = aggregate_events([event(price="10"), event(brand="Zeta", price="30")])
    assert result.dimension("brand") is result.brands
    frame = result.to_frame("brand").set_index("key")
    assert list(frame.columns) == ["count", "total_price", "avg_price"]
    assert frame.loc["Zeta", "avg_price"] == pytest.approx(30.0)
    with pytest.raises(ValueError):
        result.dimension("store")


def test_empty_frame_has_columns():
    frame = AggregationResult().to_frame("category")
    assert frame.empty
    assert list(frame.columns) == ["key", "count", "total_price", "avg_price"]
