"""메인 오케스트레이터: 설정, 로깅, 평판 검사기, SMTP 리스너 통합 관리."""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path

from dumptruck.errors import ConfigurationError
from dumptruck.reputation.dnsbl import DEFAULT_ZONES, DNSBLChecker
from dumptruck.smtp.models import ProtocolTables
from dumptruck.smtp.server import SMTPServer
from dumptruck.smtp.session import SessionSettings
from dumptruck.utils.config import Config
from dumptruck.utils.logging_setup import setup_logging

logger = logging.getLogger("dumptruck.app")


class DumpTruck:
    """최상위 애플리케이션 오케스트레이터.

    시작 시 한 번 읽기 전용 구성요소를 만들어 리스너에 넘기고,
    시작 순서 제어와 정상 종료만 담당한다.
    """

    def __init__(self, config: Config) -> None:
        self.config = config
        self.tables = ProtocolTables.build()
        self.settings = SessionSettings.from_config(config)

        self.checker: DNSBLChecker | None = None
        if config.get("reputation.enabled", True):
            self.checker = DNSBLChecker(config.get("reputation.zones") or DEFAULT_ZONES)

        self.server = SMTPServer(
            settings=self.settings,
            tables=self.tables,
            checker=self.checker,
            host=config.get("smtp.host", "0.0.0.0"),
            port=int(config.get("smtp.port", 25)),
        )

    def prepare_output_directory(self) -> Path:
        """출력 디렉토리를 만든다. 실패하면 시작하지 않는다."""
        output_dir = self.settings.output_directory
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(f"cannot create output directory {output_dir}: {exc}") from exc
        return output_dir

    async def run(self) -> None:
        """메인 진입점: 리스너를 시작하고 종료 시그널을 기다린다."""
        loop = asyncio.get_running_loop()

        setup_logging(self.config)
        logger.info("dumptruck starting...")

        output_dir = self.prepare_output_directory()

        if self.config.get("metrics.enabled", False):
            from dumptruck.metrics import start_metrics_server
            try:
                start_metrics_server(
                    self.config.get("metrics.host", "127.0.0.1"),
                    int(self.config.get("metrics.port", 9125)),
                )
            except OSError as exc:
                raise ConfigurationError(f"cannot start metrics endpoint: {exc}") from exc

        await self.server.start()
        logger.info("Spam detection: %s", self.checker is not None)
        if self.checker is not None:
            logger.info("DNSBL zones: %s", ", ".join(self.checker.zones))
        logger.info("Output directory: %s", output_dir)

        # ── 시그널 처리 ─────────────────────────────────────────────────
        stop_event = asyncio.Event()

        def _signal_handler() -> None:
            logger.info("Shutdown signal received")
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, _signal_handler)
            except NotImplementedError:
                # Windows 이벤트 루프
                pass

        await stop_event.wait()

        # ── 종료 ──────────────────────────────────────────────────────────
        logger.info("Shutting down...")
        await self.server.stop()
        logger.info("dumptruck stopped")
