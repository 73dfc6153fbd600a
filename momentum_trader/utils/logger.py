"""
로깅 모듈.

[ 역할 ]
    백테스트 실행 로그(시작/종료, 청산 알림, 데이터 조회 실패)를 파일과 콘솔에 남긴다.

[ 로거 구조 ]
    momentum_trader            ← setup_logger()가 핸들러를 붙이는 루트
      ├─ momentum_trader.trader    (strategy/trader.py)
      ├─ momentum_trader.backtest  (backtest/runner.py)
      └─ momentum_trader.data      (data/*)
    자식 로거는 핸들러 없이 루트로 전파된다.

[ 로그 파일 위치 ]
    {log_dir}/backtest_{SYMBOL}_{YYYYMMDD}.log (예: logs/backtest_GOOG_20240628.log)
    symbol을 주지 않으면 {log_dir}/momentum_trader_{YYYYMMDD}.log
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "momentum_trader"
LOG_AREAS = ("trader", "backtest", "data")

# 조회 라이브러리가 INFO로 남기는 요청 로그는 백테스트 로그에서 제외
NOISY_LIBRARIES = ("yfinance", "urllib3", "clickhouse_connect", "peewee")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(area: str) -> logging.Logger:
    """영역별 자식 로거."""
    if area not in LOG_AREAS:
        raise ValueError(f"알 수 없는 로그 영역: '{area}'. 사용 가능: {', '.join(LOG_AREAS)}")
    return logging.getLogger(f"{ROOT_LOGGER}.{area}")


def setup_logger(
    name: str = ROOT_LOGGER,
    level: str = "INFO",
    log_dir: Optional[str] = "logs",
    console: bool = True,
    symbol: Optional[str] = None,
) -> logging.Logger:
    """루트 로거에 파일/콘솔 핸들러를 한 번만 등록. log_dir가 None이면 파일 생략."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))
    for lib in NOISY_LIBRARIES:
        logging.getLogger(lib).setLevel(logging.WARNING)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    if log_dir:
        stem = f"backtest_{symbol}" if symbol else name
        path = Path(log_dir) / f"{stem}_{datetime.now():%Y%m%d}.log"
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
