"""DNS 블록리스트(DNSBL) 기반 피어 평판 검사.

피어 IP를 역순 표기로 바꿔 각 존에 정방향 조회한다. 하나라도 해석되면
(반환 주소 값과 무관하게) 신뢰할 수 없는 피어로 분류한다.

조회 실패는 종류와 상관없이 "목록에 없음"으로 취급한다 (fail-open).
"""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Awaitable, Callable, Iterable, Sequence

from dumptruck import metrics
from dumptruck.utils.network import reverse_ip

logger = logging.getLogger("dumptruck.reputation.dnsbl")

DEFAULT_ZONES: tuple[str, ...] = (
    "zen.spamhaus.org",
    "bl.spamcop.net",
    "b.barracudacentral.org",
    "dnsbl.sorbs.net",
)

# 호스트명 -> 해석된 주소 목록. 해석 실패 시 예외를 발생시킨다.
Resolver = Callable[[str], Awaitable[Sequence[str]]]


def _resolve_sync(hostname: str) -> list[str]:
    """동기 정방향 DNS 해석 (executor 스레드에서 실행)."""
    _, _, addresses = socket.gethostbyname_ex(hostname)
    return addresses


async def system_resolver(hostname: str) -> Sequence[str]:
    """호스트 환경의 리졸버로 이벤트 루프를 막지 않고 해석한다."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, _resolve_sync, hostname)


class DNSBLChecker:
    """설정된 블록리스트 존을 순서대로 조회하는 평판 검사기.

    존 목록은 생성 시 고정되며 세션 간에 공유된다.
    """

    def __init__(self, zones: Iterable[str] = DEFAULT_ZONES, resolver: Resolver | None = None) -> None:
        # ".zen.spamhaus.org" 형태도 허용
        self._zones: tuple[str, ...] = tuple(z.strip().strip(".") for z in zones if z and z.strip(". "))
        self._resolver: Resolver = resolver or system_resolver

    @property
    def zones(self) -> tuple[str, ...]:
        return self._zones

    def query_names(self, ip: str) -> list[str]:
        """IP에 대해 조회할 DNSBL 호스트명 목록."""
        reversed_ip = reverse_ip(ip)
        return [f"{reversed_ip}.{zone}" for zone in self._zones]

    async def listed_zone(self, ip: str) -> str | None:
        """IP가 등재된 첫 번째 존을 반환한다. 어디에도 없으면 None."""
        if not ip:
            return None
        for zone, name in zip(self._zones, self.query_names(ip)):
            try:
                addresses = await self._resolver(name)
            except (OSError, UnicodeError) as exc:
                logger.debug("DNSBL lookup %s: not listed (%s)", name, exc)
                continue
            except Exception:
                # 리졸버 오류도 등재 근거가 아니다
                logger.warning("DNSBL lookup %s failed unexpectedly", name, exc_info=True)
                continue
            if addresses:
                logger.debug("DNSBL lookup %s resolved to %s", name, list(addresses))
                metrics.dnsbl_hits.labels(zone=zone).inc()
                return zone
        return None

    async def is_listed(self, ip: str) -> bool:
        """IP가 하나 이상의 블록리스트에 등재되어 있으면 True."""
        return await self.listed_zone(ip) is not None
