from __future__ import annotations

from datetime import timedelta, timezone

from storefront_pos.kv_store import MemoryKeyValueStore
from storefront_pos.models_cart import RegisterState
from storefront_pos.register import (
    RegisterReport,
    RegisterSessionStore,
    VarianceStatus,
    local_day,
    reconcile,
    register_key,
)
from tests.pos_helpers import FixedClock, make_order, utc

SYDNEY = timezone(timedelta(hours=10))


def _todays_sales():
    return [
        make_order("o-1", created="2024-03-05T09:00:00Z", method="Cash", paid=2500),
        make_order("o-2", created="2024-03-05T10:00:00Z", method="Cash", paid=1800),
        make_order(
            "o-3",
            created="2024-03-05T11:00:00Z",
            method="Square Terminal",
            paid=4000,
            refunds=[{"id": "r-1", "date": "2024-03-05T12:00:00Z", "amount": 500, "reason": "damaged"}],
        ),
    ]


def test_reconcile_buckets_sales_and_refunds() -> None:
    session = RegisterState(opened_at=utc(2024, 3, 5, 8), opening_float=10000, currency="AUD")
    report = reconcile(session, _todays_sales(), now=utc(2024, 3, 5, 18), tz=timezone.utc)
    assert report.cash_total == 4300
    assert report.cash_sale_count == 2
    assert report.terminal_total == 4000
    assert report.terminal_sale_count == 1
    assert report.refunds_today == 500
    assert report.grand_total == 8300
    assert report.expected_cash == 13800
    assert report.variance(13800) == 0
    assert report.classify(13800) == VarianceStatus.BALANCED
    assert report.variance(14000) == 200
    assert report.classify(14000) == VarianceStatus.OVER
    assert report.classify(13000) == VarianceStatus.SHORT


def test_reconcile_skips_voided_and_other_days() -> None:
    sales = [
        make_order("o-1", created="2024-03-05T09:00:00Z", paid=2500, voided_at="2024-03-05T09:05:00Z"),
        make_order("o-2", created="2024-03-04T09:00:00Z", paid=1800),
        make_order(
            "o-3",
            created="2024-03-05T09:00:00Z",
            paid=700,
            refunds=[{"date": "2024-03-04T23:00:00Z", "amount": 100}],
        ),
    ]
    report = reconcile(None, sales, now=utc(2024, 3, 5, 18), tz=timezone.utc)
    assert report.opening_float == 0
    assert report.cash_total == 700
    assert report.refunds_today == 0
    assert report.currency is None


def test_reconcile_uses_local_calendar_day() -> None:
    # 2024-03-05T15:00Z is already 2024-03-06 in UTC+10.
    sales = [make_order("o-1", created="2024-03-05T15:00:00Z", paid=900)]
    assert reconcile(None, sales, now=utc(2024, 3, 6, 1), tz=SYDNEY).cash_total == 900
    assert reconcile(None, sales, now=utc(2024, 3, 6, 1), tz=timezone.utc).cash_total == 0


def test_sale_without_payment_goes_to_terminal_bucket() -> None:
    order = make_order("o-1", created="2024-03-05T09:00:00Z")
    order = order.model_copy(update={"payments": []})
    report = reconcile(None, [order], now=utc(2024, 3, 5, 12), tz=timezone.utc)
    assert report.terminal_sale_count == 1
    assert report.terminal_total == 0


def test_expected_cash_can_go_negative() -> None:
    report = RegisterReport(
        opening_float=0,
        cash_total=0,
        cash_sale_count=0,
        terminal_total=1000,
        terminal_sale_count=1,
        refunds_today=400,
    )
    assert report.expected_cash == -400
    assert report.classify(0) == VarianceStatus.OVER


def test_local_day_for_naive_datetime_uses_tz() -> None:
    naive = utc(2024, 3, 5, 23).replace(tzinfo=None)
    assert str(local_day(naive, SYDNEY)) == "2024-03-05"
    assert str(local_day(utc(2024, 3, 5, 23), SYDNEY)) == "2024-03-06"


def test_open_persists_and_reloads() -> None:
    store = MemoryKeyValueStore()
    clock = FixedClock(utc(2024, 3, 5, 8))
    register = RegisterSessionStore("m-1", store, clock=clock, tz=timezone.utc)
    assert register.is_open is False

    state = register.open(10000, "AUD")
    assert state is not None
    assert register_key("m-1") in store.data

    reloaded = RegisterSessionStore("m-1", store, clock=clock, tz=timezone.utc)
    assert reloaded.current == state
    reloaded.close()
    assert register_key("m-1") not in store.data
    assert reloaded.is_open is False


def test_open_rejects_invalid_float() -> None:
    register = RegisterSessionStore("m-1", MemoryKeyValueStore(), clock=FixedClock(utc(2024, 3, 5)))
    assert register.open(-1, "AUD") is None
    assert register.open(12.5, "AUD") is None  # type: ignore[arg-type]
    assert register.open(True, "AUD") is None  # type: ignore[arg-type]
    assert register.is_open is False
    assert register.open(0, "AUD") is not None


def test_stale_session_is_discarded_on_load() -> None:
    store = MemoryKeyValueStore()
    RegisterSessionStore("m-1", store, clock=FixedClock(utc(2024, 3, 4, 8)), tz=timezone.utc).open(5000, "AUD")

    next_day = RegisterSessionStore("m-1", store, clock=FixedClock(utc(2024, 3, 5, 8)), tz=timezone.utc)
    assert next_day.current is None
    assert register_key("m-1") not in store.data


def test_session_goes_stale_while_running() -> None:
    store = MemoryKeyValueStore()
    clock = FixedClock(utc(2024, 3, 5, 22))
    register = RegisterSessionStore("m-1", store, clock=clock, tz=timezone.utc)
    register.open(5000, "AUD")
    clock.now = utc(2024, 3, 6, 1)
    assert register.is_open is False
    assert register_key("m-1") not in store.data


def test_corrupt_register_reads_as_closed() -> None:
    store = MemoryKeyValueStore({register_key("m-1"): "{broken"})
    register = RegisterSessionStore("m-1", store, clock=FixedClock(utc(2024, 3, 5)))
    assert register.current is None


def test_report_uses_session_float() -> None:
    store = MemoryKeyValueStore()
    register = RegisterSessionStore("m-1", store, clock=FixedClock(utc(2024, 3, 5, 18)), tz=timezone.utc)
    register.open(10000, "AUD")
    report = register.report(_todays_sales())
    assert report.opening_float == 10000
    assert report.currency == "AUD"
    assert report.expected_cash == 13800
