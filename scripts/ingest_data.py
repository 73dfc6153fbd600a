#!/usr/bin/env python3
"""
yfinance 일봉을 ClickHouse stock_history 테이블로 수집하는 스크립트.

ClickHouse 데이터 소스(--source clickhouse)로 백테스트하기 전에 실행.

[ 사용법 ]
    python scripts/ingest_data.py --symbols GOOG MSFT --count 1000
    python scripts/ingest_data.py --symbols GOOG --config config.yaml --init-schema
"""
import argparse
import sys
from pathlib import Path

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from momentum_trader.core.errors import TradingError
from momentum_trader.data.clickhouse_source import get_client, initialize_schema, insert_ticks
from momentum_trader.data.yahoo_source import YFinanceDataSource
from momentum_trader.utils.config import Config
from momentum_trader.utils.logger import get_logger, setup_logger

logger = get_logger("data")


def main() -> int:
    parser = argparse.ArgumentParser(description="yfinance → ClickHouse 일봉 수집")
    parser.add_argument("--symbols", nargs="+", required=True, help="수집할 종목 코드")
    parser.add_argument("--count", type=int, default=1000, help="종목별 최근 봉 수")
    parser.add_argument("--config", type=str, default="config.yaml", help="설정 파일 경로")
    parser.add_argument("--init-schema", action="store_true", help="테이블 생성")
    args = parser.parse_args()

    config_path = Path(args.config)
    config = Config.load(config_path) if config_path.exists() else Config()
    setup_logger(level=config.log_level, log_dir=config.log_dir)
    db = config.database

    try:
        client = get_client(db.host, db.port, db.database, db.user, db.password)
        if args.init_schema:
            initialize_schema(client)

        source = YFinanceDataSource(
            max_retries=config.data_source.max_retries,
            retry_delay=config.data_source.retry_delay,
        )
        total = 0
        for symbol in args.symbols:
            ticks = source.get_stock_prices(symbol, args.count)
            total += insert_ticks(client, symbol, ticks)
    except TradingError as e:
        logger.error(f"수집 실패: {e}")
        return 1

    logger.info(f"총 {total}행 수집 완료 ({len(args.symbols)}개 종목)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
