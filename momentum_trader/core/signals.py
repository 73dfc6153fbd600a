"""
시그널 정의.

[ 역할 ]
    Trader.incoming_tick()이 봉 하나를 처리한 결과.
    어떤 규칙이 발동했는지, 어떤 주문이 원장에 기록됐는지를 담는다.

[ 호출하는 곳 ]
    - strategy/trader.py에서 생성
    - backtest/runner.py에서 로깅/집계
"""

from dataclasses import dataclass, field
from enum import Enum

from momentum_trader.core.orders import Order


class SignalType(Enum):
    """봉 하나에 대해 발동한 규칙. 한 봉에 하나만 발동한다."""
    SHORT = "short"
    LONG = "long"
    COVER = "cover"
    HOLD = "hold"


@dataclass
class Signal:
    signal_type: SignalType
    orders: list[Order] = field(default_factory=list)   # 이번 봉에서 원장에 추가된 주문
    reason: str = ""                                     # 로깅용
