"""
예외 정의 모듈.

[ 역할 ]
    시스템 전체에서 사용하는 예외 계층.
    호출부는 TradingError 하나만 잡아도 모든 도메인 오류를 처리할 수 있다.

[ 호출하는 곳 ]
    - data/*_source.py: 데이터 조회/파싱 실패 → DataRetrievalError
    - strategy/vwap.py: 계산 불가 → InsufficientDataError, DegenerateVWAPError
    - core/orders.py, data/portfolio.py: 원장 규칙 위반 → InvariantViolationError
    - run_backtest.py: TradingError를 잡아 로그 후 종료
"""


class TradingError(Exception):
    """모든 도메인 예외의 부모."""


class DataRetrievalError(TradingError):
    """데이터 소스 접속 실패 또는 잘못된 행(날짜/숫자 파싱 불가)."""


class InsufficientDataError(TradingError):
    """VWAP 윈도우에 해당하는 봉이 없음."""


class DegenerateVWAPError(TradingError):
    """VWAP 분모(총 거래량)가 0."""


class InvariantViolationError(TradingError):
    """이미 청산된 공매도를 다시 청산하는 등 원장 규칙 위반."""
