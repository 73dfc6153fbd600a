"""
거래량 가중 평균가(VWAP) 계산 모듈.

[ 계산식 ]
    VWAP = Σ(((고가 + 저가 + 종가) / 3) × 거래량) / Σ 거래량

[ 윈도우 필터 ]
    기준일(reference_date)은 항상 인자로 주입받는다 (재현 가능한 백테스트).
    - "outside": ref - period 이하 또는 ref + period 이상인 봉 (기존 정책 그대로)
    - "within" : ref - period ~ ref + period 사이의 봉 (최근 N일 평균)

[ 호출하는 곳 ]
    - strategy/trader.py::Trader.vwap
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from momentum_trader.core.data_source import Tick
from momentum_trader.core.errors import DegenerateVWAPError, InsufficientDataError

WINDOW_MODES = ("outside", "within")


def filter_window(
    prices: Iterable[Tick],
    period_days: int,
    reference_date: date,
    window: str = "outside",
) -> list[Tick]:
    """기준일 ± period_days 윈도우 필터 (양 끝 포함). 봉은 일 단위이므로 period_days도 정수 일."""
    if window not in WINDOW_MODES:
        raise ValueError(f"알 수 없는 윈도우: '{window}'. 사용 가능: {', '.join(WINDOW_MODES)}")
    if isinstance(period_days, bool) or int(period_days) != period_days or period_days < 0:
        raise ValueError(f"period_days는 0 이상의 정수 일이어야 함: {period_days!r}")

    lower = reference_date - timedelta(days=period_days)
    upper = reference_date + timedelta(days=period_days)
    if window == "outside":
        return [t for t in prices if t.date <= lower or t.date >= upper]
    return [t for t in prices if lower <= t.date <= upper]


def volume_weighted_average_price(
    prices: Iterable[Tick],
    period_days: int,
    reference_date: date,
    window: str = "outside",
) -> Decimal:
    """VWAP 계산.

    Args:
        prices: 가격 시계열
        period_days: 윈도우 반경 (일, 정수)
        reference_date: 윈도우 기준일
        window: "outside" 또는 "within"

    Raises:
        InsufficientDataError: 윈도우에 해당하는 봉이 없음
        DegenerateVWAPError: 총 거래량이 0
    """
    ticks = filter_window(prices, period_days, reference_date, window)
    if not ticks:
        raise InsufficientDataError(
            f"VWAP 윈도우에 데이터 없음 (기준일 {reference_date}, ±{period_days}일, {window})"
        )

    total_volume = sum((t.volume for t in ticks), Decimal("0"))
    if total_volume == 0:
        raise DegenerateVWAPError(f"VWAP 총 거래량 0 ({len(ticks)}개 봉)")

    weighted = sum((t.typical_price * t.volume for t in ticks), Decimal("0"))
    return weighted / total_volume
