"""
주가 데이터 소스 추상 클래스 정의.

[ 역할 ]
    일봉(시가/고가/저가/종가/거래량/수정종가) 데이터를 제공하는 인터페이스.
    데이터 소스(HTTP CSV, yfinance, ClickHouse, 메모리)에 독립적으로
    Trader에 가격 시계열을 공급.

[ 구현체 ]
    - data/yahoo_source.py::YahooCsvDataSource   (HTTP CSV 엔드포인트)
    - data/yahoo_source.py::YFinanceDataSource   (yfinance)
    - data/clickhouse_source.py::ClickHouseDataSource (DB 조회)
    - data/mock_source.py::MockDataSource        (테스트/샘플용)

[ 호출하는 곳 ]
    - strategy/trader.py::Trader 생성 시 get_stock_prices()를 한 번 호출
    - data/__init__.py::create_data_source()가 설정으로 구현체 선택

[ 가격 시계열(PriceSeries) 규칙 ]
    tuple[Tick, ...] 형태, 날짜 오름차순(과거 → 최근).
    이후 모든 계산이 이 순서를 전제로 한다.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from momentum_trader.core.errors import DataRetrievalError


@dataclass(frozen=True)
class Tick:
    """단일 일봉. 금액/거래량은 모두 Decimal (부동소수점 누적 오차 방지)."""
    date: date
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal
    adj_close: Decimal = Decimal("0")

    @property
    def typical_price(self) -> Decimal:
        """(고가 + 저가 + 종가) / 3. VWAP의 봉별 가격."""
        return (self.high + self.low + self.close) / 3

    @classmethod
    def from_values(
        cls,
        date_value: Any,
        open: Any,
        high: Any,
        low: Any,
        close: Any,
        volume: Any,
        adj_close: Any = 0,
    ) -> "Tick":
        """문자열/숫자 입력을 Decimal로 변환하여 Tick 생성.

        Raises:
            DataRetrievalError: 날짜 또는 숫자 파싱 실패
        """
        return cls(
            date=to_date(date_value),
            open=to_decimal(open),
            high=to_decimal(high),
            low=to_decimal(low),
            close=to_decimal(close),
            volume=to_decimal(volume),
            adj_close=to_decimal(adj_close),
        )


PriceSeries = tuple[Tick, ...]


def to_decimal(value: Any) -> Decimal:
    """float는 repr 문자열을 거쳐 변환 (이진 오차를 그대로 옮기지 않기 위해)."""
    if isinstance(value, Decimal):
        return value
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise DataRetrievalError(f"숫자 파싱 실패: {value!r}") from exc
    if not result.is_finite():
        raise DataRetrievalError(f"유한한 숫자가 아님: {value!r}")
    return result


def to_date(value: Any) -> date:
    """date / datetime / ISO 문자열 / pandas Timestamp를 date로 변환."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime().date()
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        raise DataRetrievalError(f"날짜 파싱 실패: {value!r}") from exc


def to_price_series(ticks: Iterable[Tick]) -> PriceSeries:
    """날짜 오름차순으로 정렬된 불변 시계열로 변환."""
    return tuple(sorted(ticks, key=lambda t: t.date))


class StockDataSource(ABC):
    """주가 데이터 소스 추상 클래스.

    모든 구현체는 get_stock_prices()만 구현하면 된다.
    """

    @abstractmethod
    def get_stock_prices(self, symbol: str, count: int) -> PriceSeries:
        """일봉 시계열 조회.

        Args:
            symbol: 종목 코드 (예: 'GOOG')
            count: 조회할 최대 봉 수 (또는 조회 기간 일수)

        Returns:
            과거 → 최근 순서의 Tick 튜플, 길이 <= count

        Raises:
            DataRetrievalError: 소스 접속 실패 또는 잘못된 행
        """
        ...
