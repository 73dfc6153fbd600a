"""
백테스트 실행 스크립트 (시스템 진입점).

[ 사용법 ]
    # 기본 실행 (config.yaml 사용, 없으면 기본값 + 샘플 데이터)
    python run_backtest.py

    # 종목/데이터 소스 지정
    python run_backtest.py --symbol GOOG --source yfinance
    python run_backtest.py --symbol MSFT --source clickhouse --lookback 1000

    # 시작 현금, 기준일 지정 (기준일은 VWAP 윈도우 기준)
    python run_backtest.py --cash 10000 --reference-date 2024-06-28

    # 전략 파라미터 오버라이드
    python run_backtest.py -p trade_size=10 -p vwap_window=within

    # 봉마다 현재 봉 종가로 평가
    python run_backtest.py --mark-to tick

    # 주문 내역 출력
    python run_backtest.py --orders 10
"""

import argparse
import sys
from datetime import date
from pathlib import Path

from momentum_trader.backtest.runner import MARK_MODES, BacktestRunner
from momentum_trader.core.errors import TradingError
from momentum_trader.data import create_data_source, list_data_sources
from momentum_trader.data.portfolio import Portfolio
from momentum_trader.strategy.trader import Trader
from momentum_trader.utils.config import Config
from momentum_trader.utils.logger import setup_logger


def parse_param(param_str: str) -> tuple[str, object]:
    """'key=value' 문자열을 파싱하여 (key, value) 반환. 정수면 자동 변환.

    소수는 Decimal 변환을 위해 문자열 그대로 둔다.
    """
    key, _, value = param_str.partition("=")
    key = key.strip()
    value = value.strip()

    try:
        return key, int(value)
    except ValueError:
        if value.lower() in ("true", "yes"):
            return key, True
        if value.lower() in ("false", "no"):
            return key, False
        return key, value


def build_config(args: argparse.Namespace) -> Config:
    """설정 파일 로드 후 CLI 인자로 오버라이드."""
    config_path = Path(args.config)
    if config_path.exists():
        config = Config.load(config_path)
    else:
        print(f"설정 파일 없음: {config_path}, 기본값 사용")
        config = Config()

    if args.symbol:
        config.strategy.symbol = args.symbol
    if args.lookback:
        config.strategy.lookback_days = args.lookback
    if args.source:
        config.data_source.type = args.source
    if args.cash:
        config.backtest.starting_cash = args.cash
    if args.reference_date:
        config.backtest.reference_date = args.reference_date
    if args.mark_to:
        config.backtest.mark_to = args.mark_to
    for p in args.param:
        key, value = parse_param(p)
        config.strategy.params[key] = value
    config.validate()
    return config


def run(config: Config, today: date | None = None) -> BacktestRunner:
    """설정으로 데이터 소스, Portfolio, Trader를 조립하고 백테스트 실행."""
    reference_date = config.backtest.resolve_reference_date(today)
    portfolio = Portfolio(
        config.backtest.starting_cash_decimal,
        config.backtest.resolve_start_date(today),
    )
    data_source = create_data_source(config, reference_date)
    trader = Trader(
        portfolio,
        data_source,
        symbol=config.strategy.symbol,
        lookback_days=config.strategy.lookback_days,
        reference_date=reference_date,
        params=config.strategy.params,
    )
    runner = BacktestRunner(trader, mark_to=config.backtest.mark_to)
    runner.run()
    return runner


def print_orders(runner: BacktestRunner, limit: int) -> None:
    """최근 주문 출력."""
    orders = runner.generate_report()["orders"]
    if not orders:
        return
    print(f"\n최근 주문 (최대 {limit}건):")
    for o in orders[-limit:]:
        covered = " (covered)" if o["type"] == "short" and o["covered"] else ""
        print(f"  {o['type']:>5} {o['symbol']} {o['quantity']:>6}주  {o['value']:>12,.2f}{covered}")


def main() -> int:
    parser = argparse.ArgumentParser(description="VWAP 모멘텀 전략 백테스트 실행")
    parser.add_argument("--config", type=str, default="config.yaml", help="설정 파일 경로")
    parser.add_argument("--symbol", type=str, default=None, help="종목 코드")
    parser.add_argument("--source", type=str, default=None, choices=list_data_sources(), help="데이터 소스")
    parser.add_argument("--lookback", type=int, default=None, help="조회 기간 (봉 수 / 일수)")
    parser.add_argument("--cash", type=str, default=None, help="시작 현금")
    parser.add_argument("--reference-date", type=str, default=None, help="VWAP 기준일 (YYYY-MM-DD)")
    parser.add_argument("--mark-to", type=str, default=None, choices=MARK_MODES, help="평가 기준가")
    parser.add_argument("-p", "--param", action="append", default=[], help="전략 파라미터 오버라이드 (예: -p trade_size=10)")
    parser.add_argument("--orders", type=int, default=0, help="최근 주문 N건 출력")
    args = parser.parse_args()

    try:
        config = build_config(args)
    except (TradingError, ValueError) as e:
        setup_logger(log_dir=None).error(f"설정 오류: {e}")
        return 1
    logger = setup_logger(level=config.log_level, log_dir=config.log_dir, symbol=config.strategy.symbol)

    print(f"\n종목: {config.strategy.symbol} (데이터 소스: {config.data_source.type})")
    if args.param:
        print(f"파라미터 오버라이드: {dict(parse_param(p) for p in args.param)}")

    try:
        runner = run(config)
    except (TradingError, ValueError) as e:
        logger.error(f"백테스트 중단: {e}")
        return 1

    print(runner.metrics.summary())
    if args.orders:
        print_orders(runner, args.orders)
    return 0


if __name__ == "__main__":
    sys.exit(main())
