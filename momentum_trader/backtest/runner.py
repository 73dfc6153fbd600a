"""
백테스트 실행 모듈.

[ 역할 ]
    Trader가 로드한 가격 시계열을 날짜 오름차순으로 한 봉씩 흘려보내고,
    종료 후 Portfolio 상태로 결과를 집계.

[ 실행 흐름 ]
    run() 호출 시:
        1. 각 봉마다 portfolio.current_price 갱신
           - mark_to="final": 시계열 마지막 봉의 종가 (기존 정책, 전 구간 동일 가격)
           - mark_to="tick" : 현재 처리 중인 봉의 종가
        2. trader.incoming_tick(tick) 호출 → 주문이 Portfolio에 기록됨
        3. 봉별 총 평가액 기록 (daily_values)
        4. metrics.calculate_metrics()로 결과 집계

[ 의존성 ]
    - strategy/trader.py::Trader
    - backtest/metrics.py::calculate_metrics()

[ 호출하는 곳 ]
    - run_backtest.py (진입점)에서 생성 및 실행
"""

from datetime import date
from decimal import Decimal
from typing import Any

from momentum_trader.backtest.metrics import BacktestMetrics, calculate_metrics
from momentum_trader.core.signals import Signal, SignalType
from momentum_trader.data.portfolio import Portfolio
from momentum_trader.strategy.trader import Trader
from momentum_trader.utils.config import MARK_TO_CHOICES
from momentum_trader.utils.logger import get_logger

logger = get_logger("backtest")

MARK_MODES = MARK_TO_CHOICES


class BacktestRunner:
    """백테스트 실행기. run()으로 시뮬레이션 실행."""

    def __init__(self, trader: Trader, mark_to: str = "final"):
        if mark_to not in MARK_MODES:
            raise ValueError(f"알 수 없는 mark_to: '{mark_to}'. 사용 가능: {', '.join(MARK_MODES)}")
        self.trader = trader
        self.mark_to = mark_to

        # 실행 후 채워지는 결과
        self.signals: list[Signal] = []
        self.daily_values: list[Decimal] = []   # 봉별 총 평가액
        self.daily_dates: list[date] = []
        self.metrics: BacktestMetrics | None = None

    @property
    def portfolio(self) -> Portfolio:
        return self.trader.portfolio

    def run(self) -> BacktestMetrics:
        """백테스트 실행. 같은 시계열/파라미터면 항상 같은 주문이 나온다."""
        self.signals = []
        self.daily_values = []
        self.daily_dates = []

        prices = self.trader.prices
        logger.info("Algorithm Started.")
        if prices:
            logger.info(f"백테스트 구간: {prices[0].date} ~ {prices[-1].date} ({len(prices)}봉)")
        else:
            logger.warning("가격 데이터가 없습니다.")

        for tick in prices:
            if self.mark_to == "final":
                self.portfolio.current_price = prices[-1].close
            else:
                self.portfolio.current_price = tick.close

            signal = self.trader.incoming_tick(tick)
            self.signals.append(signal)
            if signal.signal_type is not SignalType.HOLD:
                logger.debug(f"[{tick.date}] {signal.signal_type.value}: {signal.reason}")

            self.daily_values.append(self.portfolio.portfolio_value)
            self.daily_dates.append(tick.date)

        self.metrics = calculate_metrics(self.portfolio, self.daily_values)

        logger.info(f"Sold {self.metrics.shares_sold} Shares")
        logger.info(f"Bought {self.metrics.shares_bought} Shares")
        logger.info(f"Covered {self.metrics.shares_covered} Shares")
        logger.info("Algorithm Ended.")
        return self.metrics

    def generate_report(self) -> dict[str, Any]:
        """백테스트 리포트 생성."""
        if self.metrics is None:
            return {"error": "백테스트를 먼저 실행하세요."}

        return {
            "metrics": self.metrics.to_dict(),
            "portfolio_summary": self.portfolio.get_summary(),
            "orders": [
                {
                    "symbol": o.symbol,
                    "type": o.order_type.value,
                    "quantity": o.quantity,
                    "value": o.value,
                    "covered": o.covered,
                }
                for o in self.portfolio.positions
            ],
        }
