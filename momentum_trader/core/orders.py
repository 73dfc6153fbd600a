"""
주문(Order) 정의 모듈.

[ 역할 ]
    Portfolio 원장에 기록되는 주문 한 건과 주문 종류를 정의.

[ 부호 규칙 ]
    LONG  : quantity > 0, value > 0  (매수 원가)
    SHORT : quantity < 0, value < 0  (공매도 대금, 음수 부호로 표시)
    COVER : quantity = |공매도 수량|, value = quantity × 청산가

[ covered 상태 ]
    SHORT 주문은 Open → Covered 로 한 번만 전이한다.
    전이는 mark_covered()로만 일어나며 되돌릴 수 없다.

[ 호출하는 곳 ]
    - strategy/trader.py에서 Order.long/short/cover()로 생성
    - data/portfolio.py에서 원장 기록 및 평가
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from momentum_trader.core.errors import InvariantViolationError


class OrderType(Enum):
    """LONG/SHORT는 신규 진입, COVER는 공매도 청산."""
    LONG = "long"
    SHORT = "short"
    COVER = "cover"


@dataclass(eq=False)
class Order:
    """원장 한 줄. 동일성 비교는 객체 identity 기준."""
    symbol: str
    quantity: int
    order_type: OrderType
    value: Decimal
    covered: bool = False

    @classmethod
    def long(cls, symbol: str, size: int, price: Decimal) -> "Order":
        return cls(symbol=symbol, quantity=size, order_type=OrderType.LONG, value=size * price)

    @classmethod
    def short(cls, symbol: str, size: int, price: Decimal) -> "Order":
        return cls(symbol=symbol, quantity=-size, order_type=OrderType.SHORT, value=-size * price)

    @classmethod
    def cover(cls, short: "Order", price: Decimal) -> "Order":
        """공매도 청산 주문. 청산 주문 자체는 생성 시점부터 covered=True."""
        quantity = abs(short.quantity)
        return cls(
            symbol=short.symbol,
            quantity=quantity,
            order_type=OrderType.COVER,
            value=quantity * price,
            covered=True,
        )

    @property
    def is_open_short(self) -> bool:
        return self.order_type is OrderType.SHORT and not self.covered

    def mark_covered(self) -> None:
        """Open → Covered 전이.

        Raises:
            InvariantViolationError: SHORT가 아니거나 이미 청산된 주문
        """
        if self.order_type is not OrderType.SHORT:
            raise InvariantViolationError(f"SHORT 주문만 청산 가능: {self.order_type.value}")
        if self.covered:
            raise InvariantViolationError(f"이미 청산된 공매도: {self.symbol} {self.quantity}")
        self.covered = True
