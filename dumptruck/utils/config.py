"""기본값 병합 기능을 갖춘 YAML 설정 로더."""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv

from dumptruck.errors import ConfigurationError


def _to_bool(value: str) -> bool:
    """환경변수 문자열을 bool로 변환한다."""
    return value.strip().lower() in ("1", "true", "yes", "on")


# 환경변수 → Config 경로 매핑
_ENV_OVERRIDES: list[tuple[str, str, Any]] = [
    ("DUMPTRUCK_HOST", "smtp.host", str),
    ("DUMPTRUCK_PORT", "smtp.port", int),
    ("DUMPTRUCK_OUTPUT_DIR", "storage.output_directory", str),
    ("DUMPTRUCK_SPAM_DETECTION", "reputation.enabled", _to_bool),
    ("DUMPTRUCK_LOG_LEVEL", "logging.level", str),
]

# 설정 파일에 없는 키에 적용되는 기본값
DEFAULTS: dict[str, Any] = {
    "smtp": {
        "host": "0.0.0.0",
        "port": 25,
        "line_capacity": 1024,
    },
    "storage": {
        "output_directory": "/srv/http/maildump",
        "temp_directory": None,
        "min_size": 50,
    },
    "reputation": {
        "enabled": True,
        "zones": [
            "zen.spamhaus.org",
            "bl.spamcop.net",
            "b.barracudacentral.org",
            "dnsbl.sorbs.net",
        ],
    },
    "logging": {
        "level": "INFO",
        "directory": "data/logs",
        "filename": "dumptruck.log",
        "format": "text",
    },
    "metrics": {
        "enabled": False,
        "host": "127.0.0.1",
        "port": 9125,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """override를 base에 재귀적으로 병합하여 새 dict를 반환한다."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _set_nested(data: dict, dotted_key: str, value: Any) -> None:
    """점 표기법을 사용하여 중첩 dict에 값을 설정한다."""
    keys = dotted_key.split(".")
    current = data
    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def _apply_env_overrides(data: dict) -> None:
    """환경변수가 설정되어 있으면 YAML 값을 오버라이드한다."""
    for env_var, config_path, cast in _ENV_OVERRIDES:
        value = os.environ.get(env_var)
        if value is not None:
            try:
                _set_nested(data, config_path, cast(value))
            except ValueError as exc:
                raise ConfigurationError(f"Invalid value for {env_var}: {value!r}") from exc


class Config:
    """YAML 파일에서 로드된 불변 설정 컨테이너."""

    def __init__(self, data: dict[str, Any], config_path: str | Path | None = None) -> None:
        self._data = _deep_merge(copy.deepcopy(DEFAULTS), data)
        self.config_path: str | None = str(config_path) if config_path else None

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> Config:
        """YAML 파일에서 설정을 로드한다.

        프로젝트 루트 기준 config/default.yaml을 기본 경로로 사용한다.
        환경변수 DUMPTRUCK_CONFIG로 경로를 오버라이드할 수 있다.
        작업 디렉토리(또는 그 상위)의 .env 파일이 있으면 로드한다. 이미 설정된
        환경변수는 덮어쓰지 않는다.
        """
        load_dotenv(find_dotenv(usecwd=True))

        if config_path is None:
            config_path = os.environ.get("DUMPTRUCK_CONFIG")
        if config_path is None:
            project_root = Path(__file__).resolve().parent.parent.parent
            config_path = project_root / "config" / "default.yaml"

        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid config file {config_path}: {exc}") from exc

        inner = data.get("dumptruck", data)
        _apply_env_overrides(inner)

        return cls(inner, config_path=config_path)

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """점 표기법으로 값을 조회한다: 'smtp.port' -> config['smtp']['port']."""
        keys = dotted_key.split(".")
        current = self._data
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def override(self, dotted_key: str, value: Any) -> None:
        """CLI 인자 등 시작 시점의 값으로 설정을 덮어쓴다. 실행 중에는 호출하지 않는다."""
        _set_nested(self._data, dotted_key, value)

    def section(self, key: str) -> dict[str, Any]:
        """주어진 최상위 키에 대한 하위 dict를 반환한다."""
        return self._data.get(key, {})

    @property
    def raw(self) -> dict[str, Any]:
        """설정 데이터의 원본 dict를 반환한다."""
        return self._data
