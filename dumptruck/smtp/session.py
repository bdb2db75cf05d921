"""연결 하나를 처리하는 SMTP 세션 상태 머신.

상태 흐름: 인사 → 명령 루프 → (DATA 캡처) → 마무리 → 종료.

피어가 보낸 모든 라인은 모드와 상관없이 원문 그대로 캡처 파일에 추가된다.
DATA 모드에서는 본문 라인에 응답하지 않으며, '.'으로 시작하는 첫 라인이
DATA 모드를 끝낸다. 이 종료 라인은 이미 캡처되어 있고 일반 명령처럼 응답을 받는다.

읽기/쓰기 실패는 QUIT과 동일하게 마무리 단계로 넘어간다.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from dumptruck import metrics
from dumptruck.errors import PersistenceError
from dumptruck.reputation.dnsbl import DNSBLChecker
from dumptruck.smtp.address import INVALID_ADDRESS, sanitize_address
from dumptruck.smtp.commands import reply_command
from dumptruck.smtp.line_reader import DEFAULT_LINE_CAPACITY, read_line
from dumptruck.smtp.models import DEFAULT_TABLES, Command, ProtocolTables, ReplyCode
from dumptruck.storage.sink import DEFAULT_MIN_SIZE, CaptureFile, artifact_name
from dumptruck.utils.config import Config
from dumptruck.utils.network import peer_ip

logger = logging.getLogger("dumptruck.smtp.session")


@dataclass(frozen=True)
class SessionSettings:
    """모든 세션이 공유하는 읽기 전용 설정."""

    output_directory: Path
    temp_directory: Path | None = None
    min_size: int = DEFAULT_MIN_SIZE
    line_capacity: int = DEFAULT_LINE_CAPACITY

    @classmethod
    def from_config(cls, config: Config) -> SessionSettings:
        temp_dir = config.get("storage.temp_directory")
        return cls(
            output_directory=Path(config.get("storage.output_directory")),
            temp_directory=Path(temp_dir) if temp_dir else None,
            min_size=int(config.get("storage.min_size", DEFAULT_MIN_SIZE)),
            line_capacity=int(config.get("smtp.line_capacity", DEFAULT_LINE_CAPACITY)),
        )


class SMTPSession:
    """피어 하나와의 대화를 소유한다. 연결 수락 시 생성되고 핸들러 반환과 함께 사라진다."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        settings: SessionSettings,
        tables: ProtocolTables = DEFAULT_TABLES,
        checker: DNSBLChecker | None = None,
    ) -> None:
        self._reader   = reader
        self._writer   = writer
        self._settings = settings
        self._tables   = tables
        self._checker  = checker

        self.peer_ip           = peer_ip(writer.get_extra_info("peername"))
        self.sender_address    = INVALID_ADDRESS
        self.recipient_address = INVALID_ADDRESS
        self.in_data_mode      = False

    async def run(self) -> Path | None:
        """세션 전체를 실행한다. 저장된 아티팩트 경로 또는 None을 반환한다.

        어떤 경우에도 반환 시 연결은 닫혀 있다.
        """
        try:
            if await self._is_untrusted():
                metrics.sessions_total.labels(outcome="rejected").inc()
                return None

            logger.info("receiving mail from %s", self.peer_ip, extra={"peer": self.peer_ip})
            try:
                capture = CaptureFile(self._settings.temp_directory)
            except PersistenceError as exc:
                logger.error("Session %s aborted: %s", self.peer_ip, exc, extra={"peer": self.peer_ip})
                metrics.sessions_total.labels(outcome="failed").inc()
                return None

            metrics.sessions_total.labels(outcome="accepted").inc()
            try:
                await self._converse(capture)
                return self._finalize(capture)
            except PersistenceError as exc:
                logger.error("Capture from %s lost: %s", self.peer_ip, exc, extra={"peer": self.peer_ip})
                metrics.artifacts_failed.inc()
                return None
            finally:
                capture.discard()
        finally:
            await self._close()

    async def _is_untrusted(self) -> bool:
        """세션 시작 시 한 번만 평판을 검사한다."""
        if self._checker is None:
            return False
        zone = await self._checker.listed_zone(self.peer_ip)
        if zone is None:
            return False
        logger.info(
            "discarding mail from %s (listed on %s)", self.peer_ip, zone,
            extra={"peer": self.peer_ip, "zone": zone},
        )
        return True

    async def _converse(self, capture: CaptureFile) -> None:
        """배너를 보내고 QUIT 또는 연결 종료까지 명령을 처리한다."""
        try:
            self._writer.write(ReplyCode.SERVICE_READY.as_line())
            await self._writer.drain()

            while True:
                line = await read_line(self._reader, self._settings.line_capacity)
                capture.append(line)
                metrics.bytes_captured.inc(len(line))

                if self.in_data_mode and line.startswith(b"."):
                    self.in_data_mode = False
                if self.in_data_mode:
                    continue

                command = await reply_command(self._writer, line, self._tables)
                if command is Command.MAIL:
                    self.sender_address = sanitize_address(line)
                elif command is Command.RCPT:
                    self.recipient_address = sanitize_address(line)
                elif command is Command.DATA:
                    self.in_data_mode = True
                elif command is Command.QUIT:
                    return
        except ConnectionError as exc:
            logger.debug("Connection from %s ended: %s", self.peer_ip, exc)

    def _finalize(self, capture: CaptureFile) -> Path | None:
        name = artifact_name(self.recipient_address, self.sender_address, self.peer_ip)
        path = capture.finalize(
            self._settings.output_directory, name, self._settings.min_size,
        )
        if path is not None:
            logger.info(
                "Stored %d bytes from %s at %s", capture.size, self.peer_ip, path,
                extra={"peer": self.peer_ip, "artifact": path.name},
            )
            metrics.artifacts_persisted.inc()
        return path

    async def _close(self) -> None:
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (ConnectionError, OSError):
            pass
