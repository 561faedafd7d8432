"""Tests for pool state aggregation."""
import pytest

from nas_led_monitor.aggregate import POOL_RANK, SMART_RANK, aggregate, summarize_operations, worst
from nas_led_monitor.models import PoolHealth, PoolInfo, SmartStatus

H = PoolHealth


def test_degraded_overrides_scrub():
    assert aggregate([H.ONLINE, H.SCRUB_ACTIVE, H.DEGRADED]) is H.DEGRADED


def test_degraded_overrides_scrub_in_any_order():
    assert aggregate([H.DEGRADED, H.SCRUB_ACTIVE, H.ONLINE]) is H.DEGRADED


def test_faulted_is_never_downgraded():
    assert aggregate([H.FAULTED, H.ONLINE, H.DEGRADED, H.SCRUB_ACTIVE]) is H.FAULTED


def test_faulted_overrides_degraded():
    assert aggregate([H.DEGRADED, H.FAULTED]) is H.FAULTED


def test_no_memory_between_calls():
    assert aggregate([H.FAULTED, H.ONLINE]) is H.FAULTED
    assert aggregate([H.ONLINE, H.ONLINE]) is H.ONLINE


def test_operation_beats_online():
    assert aggregate([H.ONLINE, H.RESILVER_ACTIVE]) is H.RESILVER_ACTIVE


def test_first_operation_state_is_kept():
    assert aggregate([H.SCRUB_ERRORS, H.SCRUB_ACTIVE]) is H.SCRUB_ERRORS


def test_unknown_reported_as_unavail():
    assert aggregate([H.ONLINE, H.UNKNOWN]) is H.UNAVAIL


def test_unavail_above_operations_below_degraded():
    assert aggregate([H.SCRUB_ACTIVE, H.UNAVAIL]) is H.UNAVAIL
    assert aggregate([H.UNAVAIL, H.DEGRADED]) is H.DEGRADED


def test_empty_input():
    assert aggregate([]) is H.UNAVAIL


def test_rank_table_covers_every_state():
    assert set(POOL_RANK) == set(PoolHealth)
    assert set(SMART_RANK) == set(SmartStatus)


def test_operation_band_is_between_online_and_degraded():
    for state in (H.SCRUB_ACTIVE, H.RESILVER_ACTIVE, H.SCRUB_ERRORS):
        assert POOL_RANK[H.ONLINE] < POOL_RANK[state] < POOL_RANK[H.DEGRADED]


def test_worst_keeps_best_for_empty_input():
    assert worst([], SMART_RANK, SmartStatus.HEALTHY) is SmartStatus.HEALTHY
    assert worst([SmartStatus.WARNING, SmartStatus.CRITICAL], SMART_RANK, SmartStatus.HEALTHY) is (
        SmartStatus.CRITICAL
    )


@pytest.mark.parametrize(
    "flags,expected",
    [
        ([(False, False, False)], H.ONLINE),
        ([(True, False, False)], H.SCRUB_ACTIVE),
        ([(False, False, True), (True, False, False)], H.SCRUB_ACTIVE),
        ([(True, False, False), (False, True, False)], H.RESILVER_ACTIVE),
        ([(False, False, True)], H.SCRUB_ERRORS),
        ([], H.ONLINE),
    ],
)
def test_summarize_operations(flags, expected):
    pools = [
        PoolInfo(name=f"p{i}", health=H.ONLINE, scrub_active=s, resilver_active=r, scrub_errors=e)
        for i, (s, r, e) in enumerate(flags)
    ]
    assert summarize_operations(pools).state is expected
