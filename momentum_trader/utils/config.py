"""
설정 관리 모듈.

[ 역할 ]
    config.yaml (또는 .json) 파일을 파싱하여 Config 객체로 변환.
    전략 파라미터, 백테스트 파라미터, 데이터 소스, 로깅 설정 등을 통합 관리.

[ 설정 파일 구조 (config.yaml) ]
    strategy:         → StrategyConfig (종목, 조회 기간, 전략 파라미터)
    backtest:         → BacktestConfig (시작 현금, 기준일, 평가 기준가)
    data_source:      → DataSourceConfig (csv_http / yfinance / clickhouse / sample)
    database:         → DatabaseConfig (ClickHouse 접속 정보)
    log_level:        → "INFO" / "DEBUG"
    log_dir:          → 로그 디렉토리 경로

[ 호출하는 곳 ]
    - run_backtest.py, scripts/ingest_data.py에서 Config.load()로 로드
    - Trader 생성 시 config.strategy.params를 params로 전달
    - data/__init__.py::create_data_source()가 data_source/database 섹션 사용
"""

import json
import os
import re
from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

import yaml

from momentum_trader.core.data_source import to_decimal

MARK_TO_CHOICES = ("final", "tick")
ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


@dataclass
class StrategyConfig:
    """전략 설정. config.yaml의 strategy 섹션에 대응.

    params는 Trader.DEFAULT_PARAMS를 오버라이드할 값만 지정하면 된다.
    """
    symbol: str = "GOOG"
    lookback_days: int = 1000
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class BacktestConfig:
    """백테스트 설정. config.yaml의 backtest 섹션에 대응."""
    starting_cash: str = "10000"
    start_date: str = ""        # 비어 있으면 reference_date
    reference_date: str = ""    # VWAP 윈도우 기준일. 비어 있으면 실행일
    mark_to: str = "final"      # "final": 마지막 봉 종가로 평가, "tick": 현재 봉 종가

    @property
    def starting_cash_decimal(self) -> Decimal:
        return to_decimal(self.starting_cash)

    def resolve_reference_date(self, today: Optional[date] = None) -> date:
        if self.reference_date:
            return date.fromisoformat(str(self.reference_date))
        return today or date.today()

    def resolve_start_date(self, today: Optional[date] = None) -> date:
        if self.start_date:
            return date.fromisoformat(str(self.start_date))
        return self.resolve_reference_date(today)


@dataclass
class DataSourceConfig:
    """데이터 소스 설정. config.yaml의 data_source 섹션에 대응."""
    type: str = "sample"
    url: str = "http://ichart.finance.yahoo.com/table.csv?s="
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 5


@dataclass
class DatabaseConfig:
    """데이터베이스 설정. config.yaml의 database 섹션에 대응."""
    host: str = "localhost"
    port: int = 8123
    database: str = "default"
    user: str = "default"
    password: str = "password"


@dataclass
class Config:
    """전체 설정. from_yaml() 또는 from_json()으로 파일에서 로드."""
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    data_source: DataSourceConfig = field(default_factory=DataSourceConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    log_level: str = "INFO"
    log_dir: str = "logs"

    @classmethod
    def load(cls, path: str | Path) -> "Config":
        """확장자(.yaml/.yml/.json)에 따라 설정 로드."""
        path = Path(path)
        if path.suffix.lower() == ".json":
            return cls.from_json(path)
        return cls.from_yaml(path)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        return cls._from_dict(_read(path, yaml.safe_load))

    @classmethod
    def from_json(cls, path: str | Path) -> "Config":
        return cls._from_dict(_read(path, json.load))

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """딕셔너리에서 Config 생성. 알 수 없는 키는 무시, ${VAR}는 환경변수로 치환."""
        data = _expand_env(data)
        section = data.get("strategy") or {}

        # params 키가 없거나 비어 있으면 symbol/lookback_days를 뺀 나머지가 전략 파라미터
        params = section.get("params")
        if params is None:
            params = {k: v for k, v in section.items() if k not in ("symbol", "lookback_days", "params")}

        backtest = _section(BacktestConfig, data.get("backtest"))
        # YAML은 2024-06-28, 10000.5 같은 값을 date/float로 읽는다
        backtest.starting_cash = str(backtest.starting_cash)
        backtest.start_date = str(backtest.start_date or "")
        backtest.reference_date = str(backtest.reference_date or "")

        config = cls(
            strategy=StrategyConfig(
                symbol=str(section.get("symbol", "GOOG")),
                lookback_days=int(section.get("lookback_days", 1000)),
                params=dict(params),
            ),
            backtest=backtest,
            data_source=_section(DataSourceConfig, data.get("data_source")),
            database=_section(DatabaseConfig, data.get("database")),
            log_level=data.get("log_level", "INFO"),
            log_dir=data.get("log_dir", "logs"),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """값 범위 검사.

        Raises:
            ValueError: lookback_days <= 0, 알 수 없는 mark_to, 잘못된 날짜 형식
            DataRetrievalError: starting_cash가 숫자가 아님
        """
        if self.backtest.starting_cash_decimal <= 0:
            raise ValueError(f"starting_cash는 양수여야 함: {self.backtest.starting_cash}")
        if self.strategy.lookback_days <= 0:
            raise ValueError(f"lookback_days는 양수여야 함: {self.strategy.lookback_days}")
        if self.backtest.mark_to not in MARK_TO_CHOICES:
            raise ValueError(
                f"알 수 없는 mark_to: '{self.backtest.mark_to}'. 사용 가능: {', '.join(MARK_TO_CHOICES)}"
            )
        # 빈 값이면 실행일 기준이므로 형식만 확인
        self.backtest.resolve_reference_date(today=date.min)
        self.backtest.resolve_start_date(today=date.min)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def save_yaml(self, path: str | Path) -> None:
        """현재 설정을 YAML로 기록 (config.example.yaml 생성용)."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            yaml.safe_dump(self.to_dict(), allow_unicode=True, sort_keys=False),
            encoding="utf-8",
        )


def _read(path: str | Path, parser) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return parser(f) or {}


def _expand_env(value: Any) -> Any:
    """문자열 안의 ${VAR}를 환경변수 값으로 치환 (예: password: ${CLICKHOUSE_PASSWORD}).

    Raises:
        ValueError: 정의되지 않은 환경변수
    """
    if isinstance(value, str):
        def replace(match: re.Match) -> str:
            name = match.group(1)
            if name not in os.environ:
                raise ValueError(f"환경변수 없음: {name}")
            return os.environ[name]
        return ENV_PATTERN.sub(replace, value)
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


def _section(section_cls, section_data: dict[str, Any] | None):
    fields = section_cls.__dataclass_fields__
    return section_cls(**{k: v for k, v in (section_data or {}).items() if k in fields})
