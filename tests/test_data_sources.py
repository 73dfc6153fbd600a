"""데이터 소스 구현체 테스트. 네트워크/DB 없이 가짜 객체로 검증."""

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pandas as pd
import pytest
import requests

from momentum_trader.core.data_source import Tick, to_date, to_decimal
from momentum_trader.core.errors import DataRetrievalError
from momentum_trader.data import create_data_source, list_data_sources
from momentum_trader.data.clickhouse_source import ClickHouseDataSource, insert_ticks
from momentum_trader.data.mock_source import MockDataSource
from momentum_trader.data.yahoo_source import (
    YahooCsvDataSource,
    YFinanceDataSource,
    parse_quotes_csv,
)
from momentum_trader.utils.config import Config

from conftest import REFERENCE_DATE, make_tick

QUOTES_CSV = """Date,Open,High,Low,Close,Volume,Adj Close
2024-06-27,102.00,103.50,101.25,103.10,1200,103.10
2024-06-26,101.00,102.75,100.50,101.90,1100,101.90
2024-06-25,100.00,101.00,99.00,100.40,1000,100.40
"""


# ---------------------------------------------------------------------------
# 변환 헬퍼
# ---------------------------------------------------------------------------

class TestConversions:
    def test_to_decimal_from_float_uses_repr(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_to_decimal_rejects_garbage(self):
        with pytest.raises(DataRetrievalError):
            to_decimal("abc")

    def test_to_decimal_rejects_nan(self):
        with pytest.raises(DataRetrievalError):
            to_decimal(float("nan"))

    def test_to_date_variants(self):
        assert to_date("2024-06-28") == date(2024, 6, 28)
        assert to_date(pd.Timestamp("2024-06-28 00:00:00")) == date(2024, 6, 28)
        assert to_date(date(2024, 6, 28)) == date(2024, 6, 28)

    def test_to_date_rejects_garbage(self):
        with pytest.raises(DataRetrievalError):
            to_date("28/06/2024")

    def test_tick_from_values(self):
        tick = Tick.from_values("2024-06-28", "1", "2", "0.5", "1.5", 100)
        assert tick.high == Decimal("2")
        assert tick.adj_close == Decimal("0")
        assert tick.typical_price == Decimal("4") / 3


# ---------------------------------------------------------------------------
# HTTP CSV
# ---------------------------------------------------------------------------

class TestParseQuotesCsv:
    def test_takes_most_recent_and_reverses(self):
        prices = parse_quotes_csv(QUOTES_CSV, 2)
        assert [t.date for t in prices] == [date(2024, 6, 26), date(2024, 6, 27)]
        assert prices[-1].low == Decimal("101.25")
        assert prices[-1].adj_close == Decimal("103.10")
        assert prices[-1].volume == Decimal("1200")

    def test_count_larger_than_feed(self):
        prices = parse_quotes_csv(QUOTES_CSV, 100)
        assert len(prices) == 3
        assert prices[0].date == date(2024, 6, 25)

    def test_malformed_number_raises(self):
        bad = QUOTES_CSV.replace("101.25", "n/a")
        with pytest.raises(DataRetrievalError):
            parse_quotes_csv(bad, 3)

    def test_malformed_date_raises(self):
        bad = QUOTES_CSV.replace("2024-06-26", "yesterday")
        with pytest.raises(DataRetrievalError):
            parse_quotes_csv(bad, 3)

    def test_missing_columns_raises(self):
        with pytest.raises(DataRetrievalError):
            parse_quotes_csv("Date,Open\n2024-06-27,1\n", 1)

    def test_empty_body_raises(self):
        with pytest.raises(DataRetrievalError):
            parse_quotes_csv("", 1)


class TestYahooCsvDataSource:
    def test_fetches_symbol_url(self):
        response = MagicMock()
        response.text = QUOTES_CSV
        session = MagicMock()
        session.get.return_value = response

        source = YahooCsvDataSource(url="http://quotes.test/table.csv?s=", timeout=5, session=session)
        prices = source.get_stock_prices("GOOG", 3)

        session.get.assert_called_once_with("http://quotes.test/table.csv?s=GOOG", timeout=5)
        assert len(prices) == 3

    def test_transport_error_wrapped(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("down")
        source = YahooCsvDataSource(session=session)
        with pytest.raises(DataRetrievalError):
            source.get_stock_prices("GOOG", 3)

    def test_http_error_wrapped(self):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404")
        session = MagicMock()
        session.get.return_value = response
        source = YahooCsvDataSource(session=session)
        with pytest.raises(DataRetrievalError):
            source.get_stock_prices("NOPE", 3)


# ---------------------------------------------------------------------------
# yfinance
# ---------------------------------------------------------------------------

def _history_frame(days):
    index = pd.DatetimeIndex([pd.Timestamp(d) for d in days], name="Date")
    n = len(days)
    return pd.DataFrame(
        {
            "Open": [100.0 + i for i in range(n)],
            "High": [101.5 + i for i in range(n)],
            "Low": [99.25 + i for i in range(n)],
            "Close": [100.5 + i for i in range(n)],
            "Adj Close": [100.5 + i for i in range(n)],
            "Volume": [1000 * (i + 1) for i in range(n)],
        },
        index=index,
    )


class TestYFinanceDataSource:
    def test_returns_recent_ticks_oldest_first(self, monkeypatch):
        days = [date(2024, 6, 24), date(2024, 6, 25), date(2024, 6, 26), date(2024, 6, 27)]
        ticker = MagicMock()
        ticker.history.return_value = _history_frame(days)
        monkeypatch.setattr("momentum_trader.data.yahoo_source.yf.Ticker", lambda symbol: ticker)

        source = YFinanceDataSource(end_date=REFERENCE_DATE, retry_delay=0)
        prices = source.get_stock_prices("GOOG", 2)

        assert [t.date for t in prices] == [date(2024, 6, 26), date(2024, 6, 27)]
        assert prices[0].low == Decimal("101.25")
        assert prices[0].volume == Decimal("3000")
        kwargs = ticker.history.call_args.kwargs
        assert kwargs["end"] == REFERENCE_DATE + timedelta(days=1)

    def test_empty_history(self, monkeypatch):
        ticker = MagicMock()
        ticker.history.return_value = pd.DataFrame()
        monkeypatch.setattr("momentum_trader.data.yahoo_source.yf.Ticker", lambda symbol: ticker)

        source = YFinanceDataSource(end_date=REFERENCE_DATE, retry_delay=0)
        assert source.get_stock_prices("NOPE", 10) == ()

    def test_retries_then_raises(self, monkeypatch):
        ticker = MagicMock()
        ticker.history.side_effect = RuntimeError("rate limited")
        monkeypatch.setattr("momentum_trader.data.yahoo_source.yf.Ticker", lambda symbol: ticker)
        monkeypatch.setattr("momentum_trader.data.yahoo_source.time.sleep", lambda s: None)

        source = YFinanceDataSource(end_date=REFERENCE_DATE, max_retries=3, retry_delay=0)
        with pytest.raises(DataRetrievalError):
            source.get_stock_prices("GOOG", 10)
        assert ticker.history.call_count == 3

    def test_recovers_after_transient_failure(self, monkeypatch):
        ticker = MagicMock()
        ticker.history.side_effect = [RuntimeError("timeout"), _history_frame([date(2024, 6, 27)])]
        monkeypatch.setattr("momentum_trader.data.yahoo_source.yf.Ticker", lambda symbol: ticker)
        monkeypatch.setattr("momentum_trader.data.yahoo_source.time.sleep", lambda s: None)

        source = YFinanceDataSource(end_date=REFERENCE_DATE, max_retries=2, retry_delay=0)
        assert len(source.get_stock_prices("GOOG", 10)) == 1


# ---------------------------------------------------------------------------
# ClickHouse
# ---------------------------------------------------------------------------

class TestClickHouseDataSource:
    def test_query_and_mapping(self):
        client = MagicMock()
        client.query.return_value.result_rows = [
            (date(2024, 6, 26), Decimal("101.0000"), Decimal("102.7500"), Decimal("100.5000"), Decimal("101.9000"), 1100),
            (date(2024, 6, 27), Decimal("102.0000"), Decimal("103.5000"), Decimal("101.2500"), Decimal("103.1000"), 1200),
        ]
        source = ClickHouseDataSource(client, reference_date=REFERENCE_DATE)

        prices = source.get_stock_prices("MSFT", 30)

        params = client.query.call_args.kwargs["parameters"]
        assert params == {"symbol": "MSFT", "since": REFERENCE_DATE - timedelta(days=30)}
        assert [t.date for t in prices] == [date(2024, 6, 26), date(2024, 6, 27)]
        assert all(t.adj_close == 0 for t in prices)
        assert prices[1].volume == Decimal("1200")

    def test_query_failure_wrapped(self):
        client = MagicMock()
        client.query.side_effect = ConnectionError("refused")
        source = ClickHouseDataSource(client, reference_date=REFERENCE_DATE)
        with pytest.raises(DataRetrievalError):
            source.get_stock_prices("MSFT", 30)

    def test_insert_ticks(self):
        client = MagicMock()
        ticks = [make_tick(date(2024, 6, 27), low=100, volume=1500)]
        assert insert_ticks(client, "MSFT", ticks) == 1
        rows = client.insert.call_args.args[1]
        assert rows[0][0] == "MSFT"
        assert rows[0][-1] == 1500

    def test_insert_nothing(self):
        client = MagicMock()
        assert insert_ticks(client, "MSFT", []) == 0
        client.insert.assert_not_called()


# ---------------------------------------------------------------------------
# 설정 기반 선택
# ---------------------------------------------------------------------------

class TestCreateDataSource:
    def test_registered_types(self):
        assert list_data_sources() == ["clickhouse", "csv_http", "sample", "yfinance"]

    def test_sample_source(self):
        config = Config()
        config.data_source.type = "sample"
        config.strategy.symbol = "SMPL"
        config.strategy.lookback_days = 50

        source = create_data_source(config, REFERENCE_DATE)

        assert isinstance(source, MockDataSource)
        prices = source.get_stock_prices("SMPL", 50)
        assert len(prices) == 50
        assert prices[-1].date <= REFERENCE_DATE

    def test_csv_http_source(self):
        config = Config()
        config.data_source.type = "csv_http"
        config.data_source.url = "http://quotes.test/?s="
        source = create_data_source(config, REFERENCE_DATE)
        assert isinstance(source, YahooCsvDataSource)
        assert source.url == "http://quotes.test/?s="

    def test_yfinance_source_uses_reference_date(self):
        config = Config()
        config.data_source.type = "yfinance"
        source = create_data_source(config, REFERENCE_DATE)
        assert isinstance(source, YFinanceDataSource)
        assert source.end_date == REFERENCE_DATE

    def test_clickhouse_source(self, monkeypatch):
        client = MagicMock()
        monkeypatch.setattr(
            "momentum_trader.data.clickhouse_source.get_client",
            lambda *args, **kwargs: client,
        )
        config = Config()
        config.data_source.type = "clickhouse"
        source = create_data_source(config, REFERENCE_DATE)
        assert isinstance(source, ClickHouseDataSource)
        assert source.client is client
        assert source.reference_date == REFERENCE_DATE

    def test_unknown_type(self):
        config = Config()
        config.data_source.type = "fax"
        with pytest.raises(ValueError):
            create_data_source(config, REFERENCE_DATE)


class TestMockDataSource:
    def test_unknown_symbol_is_empty(self):
        assert MockDataSource().get_stock_prices("NONE", 10) == ()

    def test_non_positive_count(self):
        source = MockDataSource({"A": [make_tick(date(2024, 6, 3), low=1)]})
        assert source.get_stock_prices("A", 0) == ()
