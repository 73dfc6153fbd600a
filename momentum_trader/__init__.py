"""
=============================================================================
VWAP 모멘텀 백테스트 (Momentum Trader)
=============================================================================

[ 시스템 전체 구조 ]

    run_backtest.py (진입점)
         │
         ├── utils/config.py        ← config.yaml 설정 로드
         ├── utils/logger.py        ← 로깅
         │
         ├── data/__init__.py       ← 설정으로 데이터 소스 선택
         │     ├── yahoo_source.py       (HTTP CSV / yfinance)
         │     ├── clickhouse_source.py  (DB 조회)
         │     └── mock_source.py        (샘플/테스트)
         │
         ├── strategy/trader.py     ← VWAP 비교 → 공매도/매수/청산 주문
         │     └── strategy/vwap.py
         │
         └── backtest/runner.py     ← 봉 단위 실행 루프
               │
               ├── data/portfolio.py    ← 현금/주문 원장, 평가액 계산
               └── backtest/metrics.py  ← 결과 집계


[ 핵심 정의 (core/) ]

    core/data_source.py → Tick, PriceSeries, StockDataSource (데이터 소스 인터페이스)
    core/orders.py      → OrderType, Order
    core/signals.py     → SignalType, Signal
    core/errors.py      → TradingError 계층


[ 데이터 흐름 ]

    1. config.yaml에서 종목/전략 파라미터/데이터 소스 로드
    2. StockDataSource가 일봉 시계열 제공 (과거 → 최근, 1회 조회)
    3. Trader가 봉마다 저가와 VWAP을 비교해 주문을 Portfolio에 기록
    4. BacktestRunner가 기준가를 갱신하며 전체 봉을 순서대로 처리
    5. metrics.py가 최종 Portfolio로 공매도/매수/청산 수량과 손익 집계
"""
