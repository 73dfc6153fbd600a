"""
모멘텀 트레이더 구현.

[ 역할 ]
    가격 시계열과 Portfolio를 받아 봉마다 VWAP 대비 가격을 비교하고
    공매도/매수/공매도 청산 주문을 Portfolio에 기록.

[ 시그널 규칙 ] (봉의 저가를 트리거 가격으로 사용, 위에서부터 먼저 맞는 규칙 하나만 발동)
    1. 가격 < VWAP × short_threshold 이고 positions_value > min_limit
       → trade_size만큼 공매도
    2. 가격 > VWAP × long_threshold 이고 positions_value < max_limit
       → trade_size만큼 매수
    3. 그 외: 열린 공매도 중 |value / trade_size| >= cover_ratio × 가격 인 것 전부 청산
    신규 진입과 청산은 같은 봉에서 동시에 일어나지 않는다.

[ 노출 한도 ]
    max_limit = 시작 현금 + max_limit_epsilon
    min_limit = -시작 현금
    생성 시 한 번 계산.

[ 파라미터 (config.yaml의 strategy.params에서 오버라이드) ]
    trade_size:        1회 주문 수량
    vwap_period_days:  VWAP 윈도우 반경 (일)
    short_threshold:   공매도 기준 (VWAP 대비 비율)
    long_threshold:    매수 기준 (VWAP 대비 비율)
    cover_ratio:       청산 기준 비율
    max_limit_epsilon: 매수 한도 여유분
    vwap_window:       "outside" / "within" (strategy/vwap.py 참고)

[ 호출하는 곳 ]
    - backtest/runner.py::BacktestRunner.run()에서 봉마다 incoming_tick() 호출
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from momentum_trader.core.data_source import (
    PriceSeries,
    StockDataSource,
    Tick,
    to_decimal,
    to_price_series,
)
from momentum_trader.core.orders import Order
from momentum_trader.core.signals import Signal, SignalType
from momentum_trader.data.portfolio import Portfolio
from momentum_trader.strategy.vwap import WINDOW_MODES, volume_weighted_average_price
from momentum_trader.utils.logger import get_logger

logger = get_logger("trader")


class Trader:
    """VWAP 기반 모멘텀 트레이더."""

    # config.yaml에서 오버라이드 가능한 기본값
    DEFAULT_PARAMS = {
        "trade_size": 5,
        "vwap_period_days": 3,
        "short_threshold": "0.995",    # VWAP 대비 0.5% 하락
        "long_threshold": "1.001",     # VWAP 대비 0.1% 상승
        "cover_ratio": "0.8",
        "max_limit_epsilon": "0.1",
        "vwap_window": "outside",
    }

    def __init__(
        self,
        portfolio: Portfolio,
        data_source: StockDataSource,
        symbol: str,
        lookback_days: int,
        reference_date: date,
        params: dict[str, Any] | None = None,
    ):
        self.portfolio = portfolio
        self.symbol = symbol
        self.lookback_days = lookback_days
        self.reference_date = reference_date
        self.params = {**self.DEFAULT_PARAMS, **(params or {})}

        if self.vwap_window not in WINDOW_MODES:
            raise ValueError(f"알 수 없는 vwap_window: '{self.vwap_window}'")
        if self.trade_size <= 0:
            raise ValueError(f"trade_size는 양수여야 함: {self.trade_size}")
        logger.debug(f"VWAP 윈도우: ±{self.vwap_period_days}일 ({self.vwap_window})")

        # 시계열은 생성 시 한 번만 조회 (실패 시 DataRetrievalError 전파)
        self.prices: PriceSeries = to_price_series(data_source.get_stock_prices(symbol, lookback_days))
        logger.info(f"{symbol}: {len(self.prices)}개 봉 로드 (lookback {lookback_days})")

        self.max_limit = portfolio.starting_cash + to_decimal(self.params["max_limit_epsilon"])
        self.min_limit = -portfolio.starting_cash
        self._vwap: Optional[Decimal] = None

    @property
    def trade_size(self) -> int:
        return int(self.params["trade_size"])

    @property
    def vwap_period_days(self) -> int:
        days = to_decimal(self.params["vwap_period_days"])
        if days != days.to_integral_value() or days < 0:
            raise ValueError(f"vwap_period_days는 0 이상의 정수여야 함: {self.params['vwap_period_days']!r}")
        return int(days)

    @property
    def short_threshold(self) -> Decimal:
        return to_decimal(self.params["short_threshold"])

    @property
    def long_threshold(self) -> Decimal:
        return to_decimal(self.params["long_threshold"])

    @property
    def cover_ratio(self) -> Decimal:
        return to_decimal(self.params["cover_ratio"])

    @property
    def vwap_window(self) -> str:
        return str(self.params["vwap_window"])

    @property
    def vwap(self) -> Decimal:
        """시계열과 기준일이 고정이므로 첫 호출 시 한 번 계산.

        Raises:
            InsufficientDataError, DegenerateVWAPError
        """
        if self._vwap is None:
            self._vwap = volume_weighted_average_price(
                self.prices,
                self.vwap_period_days,
                self.reference_date,
                window=self.vwap_window,
            )
            logger.debug(f"VWAP({self.vwap_period_days}일, {self.vwap_window}) = {self._vwap}")
        return self._vwap

    def place_order(self, order: Order) -> None:
        self.portfolio.add_position(order)

    def close_short_position(self, short: Order, price: Decimal) -> Order:
        cover = Order.cover(short, price)
        self.portfolio.close_short_position(short, cover)
        return cover

    def shorts_to_cover(self, price: Decimal) -> list[Order]:
        """청산 대상: 주당 공매도 단가가 cover_ratio × 가격 이상인 열린 공매도."""
        threshold = self.cover_ratio * price
        return [
            s for s in self.portfolio.open_short_positions
            if abs(s.value / self.trade_size) >= threshold
        ]

    def incoming_tick(self, tick: Tick) -> Signal:
        """봉 하나 처리. 발동한 규칙과 기록된 주문을 Signal로 반환."""
        price = tick.low
        vwap = self.vwap
        positions_value = self.portfolio.positions_value

        if price < vwap * self.short_threshold and positions_value > self.min_limit:
            order = Order.short(self.symbol, self.trade_size, price)
            self.place_order(order)
            return Signal(
                signal_type=SignalType.SHORT,
                orders=[order],
                reason=f"저가 {price} < VWAP {vwap:.4f} × {self.short_threshold}",
            )

        if price > vwap * self.long_threshold and positions_value < self.max_limit:
            order = Order.long(self.symbol, self.trade_size, price)
            self.place_order(order)
            return Signal(
                signal_type=SignalType.LONG,
                orders=[order],
                reason=f"저가 {price} > VWAP {vwap:.4f} × {self.long_threshold}",
            )

        if not self.portfolio.short_positions:
            return Signal(signal_type=SignalType.HOLD, reason="조건 미충족")

        shorts = self.shorts_to_cover(price)
        logger.info(f"[{tick.date}] {len(shorts)} short positions closed")
        covers = [self.close_short_position(s, price) for s in shorts]
        if not covers:
            return Signal(signal_type=SignalType.HOLD, reason="청산 대상 없음")
        return Signal(
            signal_type=SignalType.COVER,
            orders=covers,
            reason=f"공매도 {len(covers)}건 청산 @ {price}",
        )
