"""
ClickHouse 기반 데이터 소스 구현.

[ 역할 ]
    ClickHouse stock_history 테이블에 저장된 일봉을 조회하여 Trader에 제공.
    core/data_source.py::StockDataSource 인터페이스 구현.

[ 조회 규칙 ]
    symbol이 일치하고 date >= 기준일 - days_back 인 행.
    adj_close는 저장하지 않으므로 0으로 채운다.
    결과는 계약에 맞춰 과거 → 최근 순서.

[ 호출하는 곳 ]
    - data/__init__.py::create_data_source() (type: clickhouse)
"""

from datetime import date, timedelta
from typing import Iterable, Optional

import clickhouse_connect
from clickhouse_connect.driver import Client

from momentum_trader.core.data_source import PriceSeries, StockDataSource, Tick
from momentum_trader.core.errors import DataRetrievalError
from momentum_trader.utils.logger import get_logger

logger = get_logger("data")

TABLE_NAME = "stock_history"


def get_client(
    host: str = "localhost",
    port: int = 8123,
    database: str = "default",
    user: str = "default",
    password: str = "password",
) -> Client:
    """ClickHouse 클라이언트 연결 생성.

    Raises:
        DataRetrievalError: 접속 실패
    """
    try:
        return clickhouse_connect.get_client(
            host=host,
            port=port,
            database=database,
            username=user,
            password=password,
        )
    except Exception as exc:
        raise DataRetrievalError(f"ClickHouse 연결 실패 ({host}:{port}): {exc}") from exc


def initialize_schema(client: Client) -> None:
    """일봉 테이블 생성 (이미 존재하면 무시)."""
    client.command(f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        symbol String,
        date Date,
        open Decimal(18, 4),
        high Decimal(18, 4),
        low Decimal(18, 4),
        close Decimal(18, 4),
        volume UInt64
    )
    ENGINE = ReplacingMergeTree()
    PARTITION BY toYYYYMM(date)
    ORDER BY (symbol, date)
    """)
    logger.info(f"{TABLE_NAME} 테이블 생성 완료 (또는 이미 존재)")


def insert_ticks(client: Client, symbol: str, ticks: Iterable[Tick]) -> int:
    """일봉을 배치 삽입. 삽입한 행 수 반환."""
    columns = ["symbol", "date", "open", "high", "low", "close", "volume"]
    data = [
        [symbol, t.date, t.open, t.high, t.low, t.close, int(t.volume)]
        for t in ticks
    ]
    if not data:
        logger.warning(f"No data to insert for {symbol}")
        return 0

    client.insert(TABLE_NAME, data, column_names=columns)
    logger.info(f"Inserted {len(data)} rows for {symbol}")
    return len(data)


class ClickHouseDataSource(StockDataSource):
    """ClickHouse 조회 기반 데이터 소스.

    get_stock_prices()의 count는 봉 개수가 아니라 기준일로부터의 조회 일수.

    사용 예:
        source = ClickHouseDataSource(get_client("localhost", 8123), reference_date=date.today())
        prices = source.get_stock_prices("MSFT", 1000)
    """

    def __init__(self, client: Client, reference_date: Optional[date] = None):
        self.client = client
        self.reference_date = reference_date or date.today()

    def get_stock_prices(self, symbol: str, count: int) -> PriceSeries:
        since = self.reference_date - timedelta(days=count)
        query = f"""
            SELECT date, open, high, low, close, volume
            FROM {TABLE_NAME}
            WHERE symbol = %(symbol)s
              AND date >= %(since)s
            ORDER BY date ASC
        """
        try:
            result = self.client.query(query, parameters={"symbol": symbol, "since": since})
        except Exception as exc:
            raise DataRetrievalError(f"{symbol} 조회 실패: {exc}") from exc

        prices = tuple(
            Tick.from_values(row[0], row[1], row[2], row[3], row[4], row[5], 0)
            for row in result.result_rows
        )
        logger.info(f"{symbol}: {len(prices)}개 봉 조회 ({since} 이후)")
        return prices

    def close(self) -> None:
        """ClickHouse 연결 종료."""
        if hasattr(self.client, "close"):
            self.client.close()
