"""Unit tests for analytics counters and reporting summaries."""

import asyncio
from datetime import date, timedelta

import pytest
from sqlalchemy import select

from app.core.config import settings
from app.models import AnalyticsCounter, EventType
from app.schemas.analytics import AnalyticsSummary, EventTotals
from app.services.analytics_service import (
    AnalyticsAggregator,
    AnalyticsEventStore,
    build_counter_handle,
    parse_event_type,
)
from app.utils.exceptions import ValidationException
from tests.conftest import OTHER_SHOP, SHOP


async def _counters(db_session) -> list[AnalyticsCounter]:
    result = await db_session.execute(
        select(AnalyticsCounter)
        .order_by(AnalyticsCounter.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


def test_parse_event_type_rejects_unknown_values():
    assert parse_event_type("add_to_cart") == EventType.ADD_TO_CART
    with pytest.raises(ValidationException) as exc_info:
        parse_event_type("purchase")
    assert "impression, click, add_to_cart" in exc_info.value.message


def test_counter_handle_replaces_unsafe_characters():
    handle = build_counter_handle(
        "Acme.myshopify.com",
        "gid://shopify/Product/1",
        "2",
        EventType.ADD_TO_CART,
        date(2026, 3, 1),
    )
    assert handle == "acme-myshopify-com-gid---shopify-product-1-2-add-to-cart-2026-03-01"


def test_conversion_rates_handle_zero_denominators():
    rates = AnalyticsAggregator.conversion_rates(AnalyticsSummary())
    assert rates.click_through_rate == 0.0
    assert rates.add_to_cart_rate == 0.0

    summary = AnalyticsSummary(last30Days=EventTotals(impressions=3, clicks=1, addToCarts=1))
    rates = AnalyticsAggregator.conversion_rates(summary)
    assert rates.click_through_rate == 33.3
    assert rates.add_to_cart_rate == 100.0


@pytest.mark.asyncio
async def test_same_day_events_share_one_counter(db_session, clock):
    counts = [
        await AnalyticsEventStore.record(db_session, SHOP, "p1", "p2", "impression")
        for _ in range(3)
    ]

    assert counts == [1, 2, 3]
    rows = await _counters(db_session)
    assert len(rows) == 1
    assert rows[0].count == 3
    assert rows[0].event_date == clock.now.date()


@pytest.mark.asyncio
async def test_counters_split_by_key(db_session, clock):
    await AnalyticsEventStore.record(db_session, SHOP, "p1", "p2", "impression")
    await AnalyticsEventStore.record(db_session, SHOP, "p1", "p2", "click")
    await AnalyticsEventStore.record(db_session, SHOP, "p1", "p3", "impression")
    await AnalyticsEventStore.record(db_session, OTHER_SHOP, "p1", "p2", "impression")
    clock.advance(days=1)
    await AnalyticsEventStore.record(db_session, SHOP, "p1", "p2", "impression")

    rows = await _counters(db_session)
    assert len(rows) == 5
    assert all(row.count == 1 for row in rows)


@pytest.mark.asyncio
async def test_concurrent_records_share_one_counter(session_factory, clock):
    async def _record():
        async with session_factory() as session:
            await AnalyticsEventStore.record(session, SHOP, "p1", "p2", "click")

    await asyncio.gather(*[_record() for _ in range(10)])

    async with session_factory() as session:
        rows = await _counters(session)
    assert [row.count for row in rows] == [10]


@pytest.mark.asyncio
async def test_record_rejects_unknown_event_type(db_session):
    with pytest.raises(ValidationException):
        await AnalyticsEventStore.record(db_session, SHOP, "p1", "p2", "purchase")
    assert await _counters(db_session) == []


@pytest.mark.asyncio
async def test_summary_of_empty_shop_is_all_zero(db_session, clock):
    summary = await AnalyticsAggregator.summarize(db_session, SHOP)

    assert summary.all_time == EventTotals()
    assert summary.last_30_days == EventTotals()
    assert summary.top_products == []


@pytest.mark.asyncio
async def test_recent_window_boundary_is_inclusive(db_session, clock):
    today = clock.now
    await AnalyticsEventStore.record(
        db_session, SHOP, "p1", "p2", "impression", occurred_at=today - timedelta(days=30)
    )
    await AnalyticsEventStore.record(
        db_session, SHOP, "p1", "p2", "impression", occurred_at=today - timedelta(days=31)
    )
    await AnalyticsEventStore.record(db_session, SHOP, "p1", "p2", "impression", occurred_at=today)

    summary = await AnalyticsAggregator.summarize(db_session, SHOP)

    assert summary.all_time.impressions == 3
    assert summary.last_30_days.impressions == 2


@pytest.mark.asyncio
async def test_summary_totals_per_event_type(db_session, clock):
    for _ in range(4):
        await AnalyticsEventStore.record(db_session, SHOP, "p1", "p2", "impression")
    for _ in range(2):
        await AnalyticsEventStore.record(db_session, SHOP, "p1", "p2", "click")
    await AnalyticsEventStore.record(db_session, SHOP, "p1", "p2", "add_to_cart")
    await AnalyticsEventStore.record(db_session, OTHER_SHOP, "p1", "p2", "click")

    summary = await AnalyticsAggregator.summarize(db_session, SHOP)

    assert summary.all_time == EventTotals(impressions=4, clicks=2, addToCarts=1)
    assert summary.last_30_days == summary.all_time
    assert [(p.product_id, p.clicks) for p in summary.top_products] == [("p2", 2)]


@pytest.mark.asyncio
async def test_top_products_sum_across_sources_and_days(db_session, clock):
    await AnalyticsEventStore.record(db_session, SHOP, "a", "hot", "click")
    await AnalyticsEventStore.record(db_session, SHOP, "b", "hot", "click")
    clock.advance(days=1)
    await AnalyticsEventStore.record(db_session, SHOP, "a", "hot", "click")
    await AnalyticsEventStore.record(db_session, SHOP, "a", "warm", "click")
    await AnalyticsEventStore.record(db_session, SHOP, "a", "warm", "click")
    for _ in range(5):
        await AnalyticsEventStore.record(db_session, SHOP, "a", "seen-only", "impression")

    summary = await AnalyticsAggregator.summarize(db_session, SHOP)

    assert [(p.product_id, p.clicks) for p in summary.top_products] == [("hot", 3), ("warm", 2)]


@pytest.mark.asyncio
async def test_top_products_capped_and_ties_keep_first_seen_order(db_session, clock):
    for index in range(12):
        await AnalyticsEventStore.record(db_session, SHOP, "src", f"rec-{index:02d}", "click")
    await AnalyticsEventStore.record(db_session, SHOP, "src", "rec-11", "click")

    summary = await AnalyticsAggregator.summarize(db_session, SHOP)

    assert len(summary.top_products) == settings.TOP_PRODUCTS_LIMIT == 10
    assert summary.top_products[0].product_id == "rec-11"
    assert summary.top_products[0].clicks == 2
    assert [p.product_id for p in summary.top_products[1:]] == [f"rec-{i:02d}" for i in range(9)]
