from datetime import date
from decimal import Decimal

import pytest

from momentum_trader.core.data_source import Tick
from momentum_trader.data.mock_source import MockDataSource
from momentum_trader.data.portfolio import Portfolio

REFERENCE_DATE = date(2024, 6, 28)
SYMBOL = "TEST"


def make_tick(day, low, high=None, close=None, volume=1000, open_=None) -> Tick:
    """high/close 생략 시 low와 같은 값."""
    low = Decimal(str(low))
    high = Decimal(str(high)) if high is not None else low
    close = Decimal(str(close)) if close is not None else low
    open_ = Decimal(str(open_)) if open_ is not None else close
    return Tick(
        date=day,
        open=open_,
        high=high,
        low=low,
        close=close,
        volume=Decimal(str(volume)),
        adj_close=close,
    )


@pytest.fixture
def portfolio() -> Portfolio:
    return Portfolio(Decimal("10000"), REFERENCE_DATE)


@pytest.fixture
def source_for():
    """Tick 목록 → SYMBOL 하나만 가진 MockDataSource."""
    def _build(ticks):
        return MockDataSource({SYMBOL: ticks})
    return _build
