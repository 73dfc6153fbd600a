"""
테스트/샘플용 메모리 데이터 소스.

[ 포함 ]
    MockDataSource        - core/data_source.py::StockDataSource 구현체
                            미리 로드한 Tick 목록에서 최근 count개 제공
    generate_sample_ticks - 랜덤워크 샘플 일봉 생성 (종목별 시드 고정)

[ 호출하는 곳 ]
    - run_backtest.py --source sample
    - tests/에서 Trader/BacktestRunner에 고정 시계열 주입
"""

import zlib
from datetime import date
from decimal import Decimal
from typing import Iterable

import numpy as np
import pandas as pd

from momentum_trader.core.data_source import PriceSeries, StockDataSource, Tick, to_price_series


class MockDataSource(StockDataSource):
    """Tick 목록 기반 Mock 데이터 소스.

    사용법:
        source = MockDataSource()
        source.load_ticks("GOOG", ticks)
        prices = source.get_stock_prices("GOOG", 100)
    """

    def __init__(self, data: dict[str, Iterable[Tick]] | None = None):
        self._data: dict[str, PriceSeries] = {}   # symbol → 오름차순 Tick
        for symbol, ticks in (data or {}).items():
            self.load_ticks(symbol, ticks)

    def load_ticks(self, symbol: str, ticks: Iterable[Tick]) -> None:
        self._data[symbol] = to_price_series(ticks)

    def get_stock_prices(self, symbol: str, count: int) -> PriceSeries:
        """최근 count개 봉. 없는 종목이면 빈 튜플."""
        ticks = self._data.get(symbol, ())
        if count <= 0:
            return ()
        return ticks[-count:]

    def get_symbols(self) -> list[str]:
        return list(self._data.keys())


def generate_sample_ticks(
    symbol: str,
    start_date: date,
    end_date: date,
    initial_price: float = 100.0,
    volatility: float = 0.02,
) -> list[Tick]:
    """백테스트용 샘플 일봉 생성 (영업일 기준)."""
    rng = np.random.default_rng(zlib.crc32(symbol.encode("utf-8")))

    dates = pd.bdate_range(start=start_date, end=end_date)
    n = len(dates)

    returns = rng.normal(0.0002, volatility, n)
    prices = initial_price * np.cumprod(1 + returns)

    ticks = []
    for i, d in enumerate(dates):
        close = prices[i]
        high = close * (1 + abs(rng.normal(0, 0.01)))
        low = close * (1 - abs(rng.normal(0, 0.01)))
        open_price = close * (1 + rng.normal(0, 0.005))
        volume = int(rng.lognormal(12, 1))

        ticks.append(Tick(
            date=d.date(),
            open=Decimal(f"{open_price:.2f}"),
            high=Decimal(f"{max(high, open_price):.2f}"),
            low=Decimal(f"{min(low, open_price):.2f}"),
            close=Decimal(f"{close:.2f}"),
            volume=Decimal(volume),
            adj_close=Decimal(f"{close:.2f}"),
        ))
    return ticks
