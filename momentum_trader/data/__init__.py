"""
데이터 소스 모듈.

[ 데이터 소스 선택 방식 ]
    config.yaml의 data_source.type 값으로 구현체를 고른다.
    호출부는 StockDataSource 인터페이스만 알면 된다.

    csv_http   → yahoo_source.YahooCsvDataSource
    yfinance   → yahoo_source.YFinanceDataSource
    clickhouse → clickhouse_source.ClickHouseDataSource
    sample     → mock_source.MockDataSource (랜덤워크 샘플)
"""

from datetime import date, timedelta
from typing import Callable

from momentum_trader.core.data_source import StockDataSource
from momentum_trader.utils.config import Config

DataSourceBuilder = Callable[[Config, date], StockDataSource]


def _build_csv_http(config: Config, reference_date: date) -> StockDataSource:
    from momentum_trader.data.yahoo_source import YahooCsvDataSource
    return YahooCsvDataSource(url=config.data_source.url, timeout=config.data_source.timeout)


def _build_yfinance(config: Config, reference_date: date) -> StockDataSource:
    from momentum_trader.data.yahoo_source import YFinanceDataSource
    return YFinanceDataSource(
        end_date=reference_date,
        max_retries=config.data_source.max_retries,
        retry_delay=config.data_source.retry_delay,
    )


def _build_clickhouse(config: Config, reference_date: date) -> StockDataSource:
    from momentum_trader.data.clickhouse_source import ClickHouseDataSource, get_client
    db = config.database
    client = get_client(db.host, db.port, db.database, db.user, db.password)
    return ClickHouseDataSource(client, reference_date=reference_date)


def _build_sample(config: Config, reference_date: date) -> StockDataSource:
    from momentum_trader.data.mock_source import MockDataSource, generate_sample_ticks
    symbol = config.strategy.symbol
    # 영업일 기준으로 lookback_days개 이상 나오도록 달력일을 넉넉히
    start = reference_date - timedelta(days=config.strategy.lookback_days * 2)
    return MockDataSource({symbol: generate_sample_ticks(symbol, start, reference_date)})


DATA_SOURCE_REGISTRY: dict[str, DataSourceBuilder] = {
    "csv_http": _build_csv_http,
    "yfinance": _build_yfinance,
    "clickhouse": _build_clickhouse,
    "sample": _build_sample,
}


def create_data_source(config: Config, reference_date: date) -> StockDataSource:
    """설정에 맞는 데이터 소스 생성.

    Raises:
        ValueError: 등록되지 않은 데이터 소스 타입
    """
    source_type = config.data_source.type
    if source_type not in DATA_SOURCE_REGISTRY:
        available = ", ".join(sorted(DATA_SOURCE_REGISTRY.keys()))
        raise ValueError(f"알 수 없는 데이터 소스: '{source_type}'. 사용 가능: {available}")
    return DATA_SOURCE_REGISTRY[source_type](config, reference_date)


def list_data_sources() -> list[str]:
    return sorted(DATA_SOURCE_REGISTRY.keys())
