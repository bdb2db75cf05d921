"""SMTP 명령 해석과 고정 응답 정책.

한 줄의 첫 토큰만 본다. 인식하지 못한 명령에도 거부 응답 대신 250을 보내
스팸 클라이언트가 계속 말하게 한다.
"""

from __future__ import annotations

import asyncio

from dumptruck.smtp.models import DEFAULT_TABLES, Command, ProtocolTables, ReplyCode


def parse_command(line: bytes | str, tables: ProtocolTables = DEFAULT_TABLES) -> Command:
    """라인의 첫 토큰을 대소문자 무시로 명령 테이블에서 찾는다.

    앞뒤 공백을 제거한 뒤 단일 공백으로 분리한다. 테이블에 없으면 Command.UNKNOWN.
    """
    if isinstance(line, bytes):
        line = line.decode("latin-1")
    token = line.strip().split(" ")[0]
    return tables.commands.get(token.upper(), Command.UNKNOWN)


def reply_for(command: Command, tables: ProtocolTables = DEFAULT_TABLES) -> ReplyCode:
    """명령에 대한 고정 응답을 고른다."""
    if command is Command.UNKNOWN:
        return ReplyCode.OKAY
    return tables.replies.get(command, ReplyCode.COMMAND_NOT_IMPLEMENTED)


async def reply_command(
    writer: asyncio.StreamWriter,
    line: bytes | str,
    tables: ProtocolTables = DEFAULT_TABLES,
) -> Command:
    """라인을 해석하고 응답 한 줄을 피어에 기록한 뒤 해석된 명령을 반환한다.

    쓰기 실패는 ConnectionError로 전파된다.
    """
    command = parse_command(line, tables)
    writer.write(reply_for(command, tables).as_line())
    await writer.drain()
    return command
