"""
백테스트 결과 집계 모듈.

[ 역할 ]
    백테스트 종료 후 Portfolio 원장과 봉별 평가액을 받아 요약 지표를 계산.
    calculate_metrics() 함수가 핵심.

[ 계산하는 지표 ]
    - 공매도/매수/청산 수량 합계 및 주문 건수
    - 최종 현금, 포지션 평가액, 총 평가액, 손익, 수익률
    - MDD (봉별 평가액 기준 최대 낙폭)

[ 호출하는 곳 ]
    - backtest/runner.py::BacktestRunner.run() 완료 시 호출
"""

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any

import numpy as np

from momentum_trader.core.orders import OrderType
from momentum_trader.data.portfolio import Portfolio


@dataclass
class BacktestMetrics:
    """백테스트 결과. summary()로 포맷된 리포트 출력 가능."""
    shares_sold: int = 0              # 공매도 수량 합계 (절대값)
    shares_bought: int = 0            # 매수 수량 합계
    shares_covered: int = 0           # 청산 수량 합계
    short_orders: int = 0
    long_orders: int = 0
    cover_orders: int = 0
    open_shorts: int = 0              # 종료 시점 미청산 공매도 건수
    ticks: int = 0                    # 처리한 봉 수
    cash: Decimal = Decimal("0")
    positions_value: Decimal = Decimal("0")
    portfolio_value: Decimal = Decimal("0")
    profit_and_loss: Decimal = Decimal("0")
    returns: Decimal = Decimal("0")   # 비율 (0.05 = 5%)
    max_drawdown: float = 0.0         # 최대 낙폭 (%)

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환."""
        return asdict(self)

    def summary(self) -> str:
        """성과 요약 문자열."""
        lines = [
            "=" * 50,
            "백테스트 결과 리포트",
            "=" * 50,
            f"Sold {self.shares_sold} Shares",
            f"Bought {self.shares_bought} Shares",
            f"Covered {self.shares_covered} Shares",
            "-" * 50,
            f"처리한 봉:       {self.ticks:>14d}",
            f"공매도 주문:     {self.short_orders:>14d}",
            f"매수 주문:       {self.long_orders:>14d}",
            f"청산 주문:       {self.cover_orders:>14d}",
            f"미청산 공매도:   {self.open_shorts:>14d}",
            "-" * 50,
            f"현금:            {self.cash:>14,.2f}",
            f"포지션 평가액:   {self.positions_value:>14,.2f}",
            f"총 평가액:       {self.portfolio_value:>14,.2f}",
            f"손익:            {self.profit_and_loss:>14,.2f}",
            f"수익률:          {self.returns * 100:>13.2f}%",
            f"최대 낙폭(MDD):  {self.max_drawdown:>13.2f}%",
            "=" * 50,
        ]
        return "\n".join(lines)


def max_drawdown(values: list[Decimal]) -> float:
    """고점 대비 최대 하락폭 (%). 고점이 0 이하인 구간은 제외."""
    if not values:
        return 0.0
    arr = np.array([float(v) for v in values])
    peaks = np.maximum.accumulate(arr)
    valid = peaks > 0
    if not valid.any():
        return 0.0
    drawdowns = (peaks[valid] - arr[valid]) / peaks[valid] * 100
    return float(drawdowns.max())


def calculate_metrics(portfolio: Portfolio, daily_values: list[Decimal]) -> BacktestMetrics:
    """결과 지표 계산. runner.py에서 백테스트 완료 후 호출됨.

    Args:
        portfolio: 백테스트가 끝난 Portfolio (current_price 갱신 완료 상태)
        daily_values: 봉별 총 평가액
    """
    by_type = {t: [o for o in portfolio.positions if o.order_type is t] for t in OrderType}

    return BacktestMetrics(
        shares_sold=abs(portfolio.shares_by_type(OrderType.SHORT)),
        shares_bought=portfolio.shares_by_type(OrderType.LONG),
        shares_covered=portfolio.shares_by_type(OrderType.COVER),
        short_orders=len(by_type[OrderType.SHORT]),
        long_orders=len(by_type[OrderType.LONG]),
        cover_orders=len(by_type[OrderType.COVER]),
        open_shorts=len(portfolio.open_short_positions),
        ticks=len(daily_values),
        cash=portfolio.cash,
        positions_value=portfolio.positions_value,
        portfolio_value=portfolio.portfolio_value,
        profit_and_loss=portfolio.profit_and_loss,
        returns=portfolio.returns,
        max_drawdown=max_drawdown(daily_values),
    )
