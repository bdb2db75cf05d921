"""SMTPServer: asyncio TCP 리스너. 연결마다 독립 세션 태스크를 실행한다."""

from __future__ import annotations

import asyncio
import logging

from dumptruck import metrics
from dumptruck.errors import ConfigurationError
from dumptruck.reputation.dnsbl import DNSBLChecker
from dumptruck.smtp.models import DEFAULT_TABLES, ProtocolTables
from dumptruck.smtp.session import SessionSettings, SMTPSession

logger = logging.getLogger("dumptruck.smtp.server")


class SMTPServer:
    """TCP 연결을 수락해 SMTPSession에 넘기는 서비스.

    세션끼리는 읽기 전용 설정(테이블, 평판 검사기, SessionSettings)만 공유한다.
    유휴 타임아웃이나 동시 연결 상한은 두지 않는다.
    app.py에서 start() / stop()으로 수명주기를 관리한다.
    """

    def __init__(
        self,
        settings: SessionSettings,
        tables: ProtocolTables = DEFAULT_TABLES,
        checker: DNSBLChecker | None = None,
        host: str = "0.0.0.0",
        port: int = 25,
    ) -> None:
        self._settings = settings
        self._tables   = tables
        self._checker  = checker
        self._host     = host
        self._port     = port
        self._server: asyncio.Server | None = None
        self._sessions: set[asyncio.Task] = set()

    @property
    def port(self) -> int:
        """실제 바인딩된 포트 (port=0으로 시작한 경우 커널이 고른 값)."""
        if self._server is not None and self._server.sockets:
            return self._server.sockets[0].getsockname()[1]
        return self._port

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    async def start(self) -> None:
        """리스닝 소켓을 연다. 바인딩 실패는 ConfigurationError."""
        try:
            self._server = await asyncio.start_server(
                self._handle_connection, host=self._host, port=self._port,
            )
        except OSError as exc:
            raise ConfigurationError(
                f"cannot listen on {self._host}:{self._port}: {exc}"
            ) from exc
        logger.info("Listening on %s:%d", self._host, self.port)

    async def stop(self) -> None:
        """리스너를 닫고 진행 중인 세션을 취소한다."""
        if self._server is None:
            return
        self._server.close()
        tasks = list(self._sessions)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self._server.wait_closed()
        self._server = None
        logger.info("SMTP listener stopped")

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter,
    ) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._sessions.add(task)
        session = SMTPSession(
            reader, writer,
            settings=self._settings,
            tables=self._tables,
            checker=self._checker,
        )
        try:
            await session.run()
        except Exception:
            # 한 세션의 실패가 리스너나 다른 세션에 영향을 주지 않는다
            logger.exception("Unhandled error in session from %s", session.peer_ip)
            metrics.sessions_total.labels(outcome="failed").inc()
        finally:
            if task is not None:
                self._sessions.discard(task)
