"""
포트폴리오 원장 모듈.

[ 역할 ]
    시작 현금과 주문 원장(positions)을 보관하고,
    현금/평가금액/손익을 원장에서 매번 계산하여 제공.
    주문은 추가만 되고 삭제되지 않는다 (공매도는 covered 표시만 바뀜).

[ 회계 규칙 ]
    cash            = 시작 현금 - Σ value (LONG, SHORT)
                      COVER는 현금에 반영하지 않음. 청산 손익은 positions_value로 드러남.
    positions_value = Σ qty(LONG) × 현재가 + Σ |value|(SHORT) - Σ qty(COVER) × 현재가
    portfolio_value = cash + positions_value

    current_price는 모든 평가의 기준가. 평가 값을 읽기 전에 호출부가 갱신해야 함.

[ 호출하는 곳 ]
    - strategy/trader.py::Trader가 add_position / close_short_position 호출
    - backtest/runner.py가 current_price 갱신 및 결과 집계
"""

from datetime import date
from decimal import Decimal
from typing import Any

from momentum_trader.core.data_source import to_decimal
from momentum_trader.core.errors import InvariantViolationError
from momentum_trader.core.orders import Order, OrderType


class Portfolio:
    """포트폴리오 원장 클래스.

    백테스트 1회마다 생성되며, Trader가 실행 중 갱신하고
    종료 후에는 리포트용으로 읽기만 한다.
    """

    def __init__(self, starting_cash: Decimal, start_date: date):
        self.starting_cash = to_decimal(starting_cash)
        self.start_date = start_date
        self.current_price = Decimal("0")
        self.positions: list[Order] = []    # 원장 (추가 전용)

    # ─── 원장 갱신 ───────────────────────────────────────────────────────

    def add_position(self, order: Order) -> None:
        """신규 주문 기록. 검증은 호출부 책임."""
        self.positions.append(order)

    def close_short_position(self, short: Order, cover_order: Order) -> None:
        """공매도 청산: short를 covered로 전이한 뒤 청산 주문 기록.

        Raises:
            InvariantViolationError: short가 열린 SHORT가 아니거나 cover_order가 COVER가 아님
        """
        if cover_order.order_type is not OrderType.COVER:
            raise InvariantViolationError(f"청산 주문은 COVER여야 함: {cover_order.order_type.value}")
        short.mark_covered()
        self.positions.append(cover_order)

    # ─── 조회 ────────────────────────────────────────────────────────────

    def _orders_of(self, order_type: OrderType) -> list[Order]:
        return [o for o in self.positions if o.order_type is order_type]

    def shares_by_type(self, order_type: OrderType) -> int:
        """주문 종류별 수량 합계 (SHORT는 음수)."""
        return sum(o.quantity for o in self._orders_of(order_type))

    @property
    def short_positions(self) -> list[Order]:
        """전체 공매도 주문 (청산 여부 무관, 원장 순서)."""
        return self._orders_of(OrderType.SHORT)

    @property
    def open_short_positions(self) -> list[Order]:
        """아직 청산되지 않은 공매도."""
        return [o for o in self.positions if o.is_open_short]

    @property
    def cash(self) -> Decimal:
        """가용 현금. 주문 시점 금액 기준 (현재 평가액 아님)."""
        spent = sum(
            (o.value for o in self.positions if o.order_type in (OrderType.LONG, OrderType.SHORT)),
            Decimal("0"),
        )
        return self.starting_cash - spent

    @property
    def positions_value(self) -> Decimal:
        """보유 포지션 평가액."""
        long_value = self.shares_by_type(OrderType.LONG) * self.current_price
        short_value = sum((abs(o.value) for o in self.short_positions), Decimal("0"))
        cover_cost = self.shares_by_type(OrderType.COVER) * self.current_price
        return long_value + short_value - cover_cost

    @property
    def short_positions_value(self) -> Decimal:
        """열린 공매도의 value 합계 (음수)."""
        return sum((o.value for o in self.open_short_positions), Decimal("0"))

    @property
    def portfolio_value(self) -> Decimal:
        return self.cash + self.positions_value

    @property
    def profit_and_loss(self) -> Decimal:
        return self.portfolio_value - self.starting_cash

    @property
    def returns(self) -> Decimal:
        """시작 현금 대비 누적 수익률 (비율, %가 아님)."""
        return self.profit_and_loss / self.starting_cash

    def get_summary(self) -> dict[str, Any]:
        """포트폴리오 요약."""
        return {
            "starting_cash": self.starting_cash,
            "start_date": self.start_date,
            "current_price": self.current_price,
            "cash": self.cash,
            "positions_value": self.positions_value,
            "portfolio_value": self.portfolio_value,
            "profit_and_loss": self.profit_and_loss,
            "returns": self.returns,
            "num_orders": len(self.positions),
            "open_shorts": len(self.open_short_positions),
        }
