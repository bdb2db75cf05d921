"""MAIL/RCPT 명령 라인에서 파일명에 쓸 수 있는 주소를 추출한다."""

from __future__ import annotations

import re

INVALID_ADDRESS = "invalid@addr"

# 아티팩트 이름은 주소 두 개와 피어 IP를 담으므로 NAME_MAX(255) 안에 들어가야 한다
MAX_ADDRESS_LENGTH = 96

# "MAIL FROM:<...>" / "RCPT TO:<...>" (키워드와 꺾쇠 내용 모두 대소문자 무시).
# 탐욕적 '.*' 이므로 꺾쇠가 여러 개면 마지막 것을 취한다.
_ENVELOPE_RE = re.compile(r"(MAIL|RCPT) (FROM|TO):.*<([^>]+)>", re.IGNORECASE)

# 허용 문자 외의 연속 구간은 '.' 하나로 치환한다
_DISALLOWED_RE = re.compile(r"[^a-zA-Z0-9@]+")


def clean_address(address: str) -> str:
    """[A-Za-z0-9@] 외 문자의 연속 구간을 '.' 하나로 바꾸고 MAX_ADDRESS_LENGTH로 자른다.

    치환 결과에는 더 바꿀 문자가 없고 길이도 이미 한도 이하이므로 멱등이다.
    """
    return _DISALLOWED_RE.sub(".", address)[:MAX_ADDRESS_LENGTH]


def extract_address(line: bytes | str) -> str | None:
    """꺾쇠로 감싼 원본 주소를 반환한다. 일치하지 않으면 None."""
    if isinstance(line, bytes):
        line = line.decode("latin-1")
    match = _ENVELOPE_RE.search(line)
    if match is None or not match.group(3):
        return None
    return match.group(3)


def sanitize_address(line: bytes | str) -> str:
    """명령 라인에서 주소를 추출해 정제한다. 실패하면 INVALID_ADDRESS.

    예외를 발생시키지 않는다.
    """
    address = extract_address(line)
    if address is None:
        return INVALID_ADDRESS
    return clean_address(address)
