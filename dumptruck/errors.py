"""dumptruck 예외 계층."""

from __future__ import annotations


class DumpTruckError(Exception):
    """dumptruck의 모든 예외의 기반 클래스."""


class ConfigurationError(DumpTruckError):
    """시작 단계에서만 발생하는 치명적 설정 오류 (포트 바인딩, 출력 디렉토리 생성 등)."""


class PersistenceError(DumpTruckError):
    """캡처 파일 생성/기록/동기화/복사 실패. 해당 세션의 아티팩트만 손실된다."""
