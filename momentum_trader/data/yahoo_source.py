"""
Yahoo 계열 원격 데이터 소스.

[ 포함 ]
    YahooCsvDataSource - 과거 시세 CSV 엔드포인트를 HTTP로 조회 (requests)
                         응답은 최신 → 과거 순서, 첫 줄은 헤더
                         컬럼: Date, Open, High, Low, Close, Volume, Adj Close
    YFinanceDataSource - yfinance Ticker.history()로 조회, 실패 시 재시도

[ 규칙 ]
    두 구현체 모두 core/data_source.py::StockDataSource 계약을 따른다:
    과거 → 최근 순서, 길이 <= count, 실패 시 DataRetrievalError.
    재시도 정책은 데이터 소스의 책임이며 Trader/백테스트는 재시도하지 않는다.

[ 호출하는 곳 ]
    - data/__init__.py::create_data_source() (type: csv_http / yfinance)
"""

import io
import time
from datetime import date, timedelta
from typing import Optional

import pandas as pd
import requests
import yfinance as yf

from momentum_trader.core.data_source import PriceSeries, StockDataSource, Tick
from momentum_trader.core.errors import DataRetrievalError
from momentum_trader.utils.logger import get_logger

logger = get_logger("data")

DEFAULT_CSV_URL = "http://ichart.finance.yahoo.com/table.csv?s="

CSV_COLUMNS = ["date", "open", "high", "low", "close", "volume", "adj_close"]


def frame_to_ticks(df: pd.DataFrame) -> list[Tick]:
    """표준 컬럼 DataFrame → Tick 목록 (행 순서 유지).

    adj_close 컬럼이 없으면 0으로 채운다.

    Raises:
        DataRetrievalError: 필수 컬럼 누락 또는 파싱 불가 행
    """
    missing = set(CSV_COLUMNS[:6]) - set(df.columns)
    if missing:
        raise DataRetrievalError(f"필수 컬럼 누락: {sorted(missing)}")

    has_adj = "adj_close" in df.columns
    ticks = []
    for row in df.itertuples(index=False):
        ticks.append(Tick.from_values(
            row.date,
            row.open,
            row.high,
            row.low,
            row.close,
            row.volume,
            row.adj_close if has_adj else 0,
        ))
    return ticks


def parse_quotes_csv(text: str, count: int) -> PriceSeries:
    """CSV 본문 파싱. 헤더 다음 행부터 최근 count개를 잘라 과거 → 최근으로 뒤집는다."""
    if not text or not text.strip():
        raise DataRetrievalError("빈 CSV 응답")

    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, header=0, skip_blank_lines=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise DataRetrievalError(f"CSV 파싱 실패: {exc}") from exc

    if df.shape[1] < len(CSV_COLUMNS):
        raise DataRetrievalError(f"CSV 컬럼 부족: {list(df.columns)}")

    # 컬럼명은 피드마다 다를 수 있으므로 위치로 매핑
    df = df.iloc[:, :len(CSV_COLUMNS)]
    df.columns = CSV_COLUMNS

    recent = df.head(max(count, 0))
    return tuple(reversed(frame_to_ticks(recent)))


class YahooCsvDataSource(StockDataSource):
    """HTTP CSV 시세 엔드포인트 데이터 소스.

    사용 예:
        source = YahooCsvDataSource()
        prices = source.get_stock_prices("GOOG", 1000)
    """

    def __init__(
        self,
        url: str = DEFAULT_CSV_URL,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_stock_prices(self, symbol: str, count: int) -> PriceSeries:
        url = f"{self.url}{symbol}"
        logger.info(f"Fetching {symbol} quotes from {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DataRetrievalError(f"{symbol} 시세 조회 실패: {exc}") from exc

        prices = parse_quotes_csv(response.text, count)
        logger.info(f"Successfully fetched {len(prices)} rows for {symbol}")
        return prices


class YFinanceDataSource(StockDataSource):
    """yfinance 기반 데이터 소스.

    count는 봉 개수. 휴장일을 감안해 count × 2일 만큼 조회한 뒤 최근 count개를 사용.
    """

    def __init__(
        self,
        end_date: Optional[date] = None,
        max_retries: int = 3,
        retry_delay: float = 5,
    ):
        self.end_date = end_date or date.today()
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay

    def _download(self, symbol: str, count: int) -> pd.DataFrame:
        start_date = self.end_date - timedelta(days=count * 2 + 7)
        df = yf.Ticker(symbol).history(
            start=start_date,
            end=self.end_date + timedelta(days=1),  # end_date 포함
            auto_adjust=False,  # Adj Close를 별도로 가져옴
            actions=False,      # Dividends, Stock Splits 제외
        )
        if df.empty:
            return df

        df = df.reset_index().rename(columns={
            "Date": "date",
            "Open": "open",
            "High": "high",
            "Low": "low",
            "Close": "close",
            "Adj Close": "adj_close",
            "Volume": "volume",
        })
        if pd.api.types.is_datetime64_any_dtype(df["date"]):
            df["date"] = df["date"].dt.date
        return df

    def get_stock_prices(self, symbol: str, count: int) -> PriceSeries:
        if count <= 0:
            return ()

        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            try:
                logger.info(f"Fetching {symbol} up to {self.end_date} (attempt {attempt + 1}/{self.max_retries})")
                df = self._download(symbol, count)
                break
            except Exception as exc:
                last_error = exc
                logger.error(f"Error fetching {symbol} (attempt {attempt + 1}/{self.max_retries}): {exc}")
                if attempt < self.max_retries - 1:
                    logger.info(f"Retrying in {self.retry_delay} seconds...")
                    time.sleep(self.retry_delay)
        else:
            raise DataRetrievalError(f"Max retries reached for {symbol}: {last_error}") from last_error

        if df.empty:
            logger.warning(f"No data found for {symbol}")
            return ()

        df = df.sort_values("date").tail(count)
        prices = tuple(frame_to_ticks(df))
        logger.info(f"Successfully fetched {len(prices)} rows for {symbol}")
        return prices
