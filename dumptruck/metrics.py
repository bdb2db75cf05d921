"""dumptruck용 Prometheus 메트릭 정의."""

from __future__ import annotations

import logging

from prometheus_client import Counter, start_http_server

logger = logging.getLogger("dumptruck.metrics")

# --- 세션 ---
sessions_total = Counter(
    "dumptruck_sessions_total",
    "SMTP sessions by outcome",
    ["outcome"],  # accepted | rejected | failed
)
bytes_captured = Counter("dumptruck_bytes_captured_total", "Raw bytes captured from peers")

# --- 저장 ---
artifacts_persisted = Counter("dumptruck_artifacts_persisted_total", "Capture artifacts written")
artifacts_failed    = Counter("dumptruck_artifacts_failed_total", "Capture artifacts lost to I/O errors")

# --- 평판 ---
dnsbl_hits = Counter("dumptruck_dnsbl_hits_total", "Peers found on a DNS blocklist", ["zone"])


def start_metrics_server(host: str, port: int) -> None:
    """별도 스레드에서 /metrics HTTP 엔드포인트를 연다."""
    start_http_server(port, addr=host)
    logger.info("Metrics endpoint listening on %s:%d", host, port)
