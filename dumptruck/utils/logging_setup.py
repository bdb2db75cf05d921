"""dumptruck 로거 설정. 세션 컨텍스트(peer, zone, artifact)를 구조화 필드로 남긴다."""

from __future__ import annotations

import json as json_mod
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from dumptruck.errors import ConfigurationError
from dumptruck.utils.config import Config

LOG_FORMAT  = "%(asctime)s [%(levelname)-8s] %(name)-25s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_LOG_FILENAME = "dumptruck.log"

# logger 호출 시 extra={...}로 넘기는 세션 필드
CONTEXT_FIELDS = ("peer", "zone", "artifact")


class JSONFormatter(logging.Formatter):
    """한 줄 JSON 포매터. 레코드에 세션 필드가 있으면 최상위 키로 포함한다."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "ts": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_obj[field] = str(value)
        if record.exc_info and record.exc_info[0] is not None:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json_mod.dumps(log_obj, ensure_ascii=False)


def _build_file_handler(directory: str, filename: str, max_bytes: int, backup_count: int) -> logging.Handler:
    log_path = Path(directory)
    try:
        log_path.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            log_path / filename,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
    except OSError as exc:
        raise ConfigurationError(f"cannot open log file in {log_path}: {exc}") from exc


def setup_logging(config: Config) -> logging.Logger:
    """콘솔 + 로테이팅 파일 핸들러로 dumptruck 로거를 설정한다.

    logging.directory가 비어 있으면 콘솔에만 기록한다. 로그 파일을 열 수 없으면
    ConfigurationError를 발생시킨다. 재호출하면 기존 핸들러를 교체한다.
    """
    level_str    = config.get("logging.level", "INFO")
    log_dir      = config.get("logging.directory", "data/logs")
    filename     = config.get("logging.filename", DEFAULT_LOG_FILENAME)
    max_bytes    = config.get("logging.max_bytes", 10_485_760)
    backup_count = config.get("logging.backup_count", 5)
    log_format   = config.get("logging.format", "text")

    level = logging.getLevelName(str(level_str).upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"unknown log level: {level_str}")

    file_handler = None
    if log_dir:
        file_handler = _build_file_handler(log_dir, filename, max_bytes, backup_count)

    root = logging.getLogger("dumptruck")
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if log_format == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if file_handler is not None:
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root
