"""SMTP 명령 / 응답 코드 모델과 프로토콜 조회 테이블."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


class Command(enum.Enum):
    EHLO = "EHLO"
    MAIL = "MAIL"
    RCPT = "RCPT"
    DATA = "DATA"
    RSET = "RSET"
    VRFY = "VRFY"
    EXPN = "EXPN"
    HELP = "HELP"
    NOOP = "NOOP"
    QUIT = "QUIT"
    UNKNOWN = "UNKNOWN"


class ReplyCode(str, enum.Enum):
    """서버가 보내는 고정 상태 라인. 값은 와이어 상의 바이트와 정확히 일치해야 한다."""

    SERVICE_READY           = "220 mail.lf.lc ESMTP dumptruck"
    SERVICE_CLOSING         = "221 goodbye"
    OKAY                    = "250 yes sir"
    START_MAIL_INPUT        = "354 fill 'er up"
    SERVICE_NOT_AVAILABLE   = "421 not at the moment"
    COMMAND_NOT_IMPLEMENTED = "502 *shrugs*"

    @property
    def code(self) -> int:
        """3자리 숫자 상태 코드."""
        return int(self.value[:3])

    def as_line(self) -> bytes:
        """개행으로 끝나는 와이어 형식 응답 라인."""
        return f"{self.value}\n".encode("ascii")


# 첫 토큰(대문자) -> Command. HELO는 EHLO와 같은 명령으로 취급한다.
_COMMAND_TABLE: dict[str, Command] = {
    "EHLO": Command.EHLO,
    "HELO": Command.EHLO,
    "MAIL": Command.MAIL,
    "RCPT": Command.RCPT,
    "DATA": Command.DATA,
    "RSET": Command.RSET,
    "VRFY": Command.VRFY,
    "EXPN": Command.EXPN,
    "HELP": Command.HELP,
    "NOOP": Command.NOOP,
    "QUIT": Command.QUIT,
}

_REPLY_TABLE: dict[Command, ReplyCode] = {
    Command.EHLO: ReplyCode.OKAY,
    Command.MAIL: ReplyCode.OKAY,
    Command.RCPT: ReplyCode.OKAY,
    Command.DATA: ReplyCode.START_MAIL_INPUT,
    Command.RSET: ReplyCode.OKAY,
    Command.VRFY: ReplyCode.OKAY,
    Command.EXPN: ReplyCode.COMMAND_NOT_IMPLEMENTED,
    Command.HELP: ReplyCode.COMMAND_NOT_IMPLEMENTED,
    Command.NOOP: ReplyCode.OKAY,
    Command.QUIT: ReplyCode.SERVICE_CLOSING,
}


@dataclass(frozen=True)
class ProtocolTables:
    """명령 테이블과 응답 테이블.

    프로세스 시작 시 한 번 생성되어 모든 세션에 참조로 전달된다.
    두 테이블 모두 읽기 전용 매핑이다.
    """

    commands: Mapping[str, Command] = field(
        default_factory=lambda: MappingProxyType(dict(_COMMAND_TABLE))
    )
    replies: Mapping[Command, ReplyCode] = field(
        default_factory=lambda: MappingProxyType(dict(_REPLY_TABLE))
    )

    @classmethod
    def build(
        cls,
        commands: Mapping[str, Command] | None = None,
        replies: Mapping[Command, ReplyCode] | None = None,
    ) -> ProtocolTables:
        """주어진 매핑(없으면 기본 테이블)을 읽기 전용으로 감싸 테이블을 만든다."""
        return cls(
            commands=MappingProxyType(
                {k.upper(): v for k, v in (commands or _COMMAND_TABLE).items()}
            ),
            replies=MappingProxyType(dict(replies or _REPLY_TABLE)),
        )


DEFAULT_TABLES = ProtocolTables.build()
