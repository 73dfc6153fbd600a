"""VWAP 계산 및 윈도우 필터 테스트."""

from datetime import date
from decimal import Decimal

import pytest

from momentum_trader.core.errors import DegenerateVWAPError, InsufficientDataError
from momentum_trader.strategy.vwap import filter_window, volume_weighted_average_price

from conftest import REFERENCE_DATE, make_tick


@pytest.fixture
def three_ticks():
    # 모두 기준일 - 3일보다 과거 → "outside" 윈도우에 포함
    return [
        make_tick(date(2024, 6, 3), low=9, high=12, close=10, volume=100),
        make_tick(date(2024, 6, 4), low=10, high=11, close="10.5", volume=200),
        make_tick(date(2024, 6, 5), low=11, high=13, close=12, volume=300),
    ]


class TestVWAP:
    def test_matches_hand_computed_average(self, three_ticks):
        vwap = volume_weighted_average_price(three_ticks, 3, REFERENCE_DATE)

        expected = (
            (Decimal(31) / 3) * 100
            + Decimal("10.5") * 200
            + Decimal(12) * 300
        ) / 600
        assert vwap == expected
        assert round(float(vwap), 6) == 11.222222

    def test_uniform_typical_price(self):
        ticks = [
            make_tick(date(2024, 5, 1), low=90, high=110, close=100, volume=10),
            make_tick(date(2024, 5, 2), low=100, volume=30),
        ]
        assert volume_weighted_average_price(ticks, 3, REFERENCE_DATE) == Decimal("100")

    def test_empty_series_raises(self):
        with pytest.raises(InsufficientDataError):
            volume_weighted_average_price([], 3, REFERENCE_DATE)

    def test_nothing_in_window_raises(self):
        ticks = [make_tick(date(2024, 6, 27), low=100)]
        with pytest.raises(InsufficientDataError):
            volume_weighted_average_price(ticks, 3, REFERENCE_DATE, window="outside")

    def test_zero_volume_raises(self):
        ticks = [
            make_tick(date(2024, 6, 3), low=100, volume=0),
            make_tick(date(2024, 6, 4), low=101, volume=0),
        ]
        with pytest.raises(DegenerateVWAPError):
            volume_weighted_average_price(ticks, 3, REFERENCE_DATE)

    def test_unknown_window_raises(self, three_ticks):
        with pytest.raises(ValueError):
            volume_weighted_average_price(three_ticks, 3, REFERENCE_DATE, window="last")


class TestWindowFilter:
    @pytest.fixture
    def ticks(self):
        days = [
            date(2024, 6, 20),
            date(2024, 6, 25),   # 기준일 - 3 (경계)
            date(2024, 6, 26),
            date(2024, 6, 28),   # 기준일
            date(2024, 7, 1),    # 기준일 + 3 (경계)
            date(2024, 7, 2),
        ]
        return [make_tick(d, low=100) for d in days]

    def test_outside_keeps_ticks_beyond_both_bounds(self, ticks):
        kept = [t.date for t in filter_window(ticks, 3, REFERENCE_DATE, "outside")]
        assert kept == [date(2024, 6, 20), date(2024, 6, 25), date(2024, 7, 1), date(2024, 7, 2)]

    def test_within_keeps_inclusive_range(self, ticks):
        kept = [t.date for t in filter_window(ticks, 3, REFERENCE_DATE, "within")]
        assert kept == [date(2024, 6, 25), date(2024, 6, 26), date(2024, 6, 28), date(2024, 7, 1)]

    def test_result_depends_on_injected_reference_date(self, ticks):
        later = filter_window(ticks, 3, date(2024, 7, 10), "within")
        assert later == []

    def test_whole_day_period_given_as_float(self, ticks):
        assert filter_window(ticks, 3.0, REFERENCE_DATE, "outside") == filter_window(ticks, 3, REFERENCE_DATE, "outside")

    @pytest.mark.parametrize("period", [3.5, -1])
    def test_fractional_or_negative_period_rejected(self, period):
        # 기준일 - 3일 봉: 3.5일 윈도우라면 포함되면 안 되는 봉
        ticks = [make_tick(date(2024, 6, 25), low=100)]
        with pytest.raises(ValueError):
            filter_window(ticks, period, REFERENCE_DATE, "outside")
