"""피어 주소 처리 헬퍼."""

from __future__ import annotations

import ipaddress
from typing import Any


def peer_ip(peername: Any) -> str:
    """소켓 peername에서 IP 리터럴을 추출한다.

    asyncio는 IPv4에 (host, port), IPv6에 (host, port, flow, scope) 튜플을 준다.
    알 수 없는 형식은 문자열로 변환해 그대로 반환한다.
    """
    if isinstance(peername, (tuple, list)) and peername:
        return str(peername[0])
    if peername is None:
        return ""
    return str(peername)


def reverse_ip(ip: str) -> str:
    """DNSBL 조회용으로 IP를 역순 표기로 바꾼다.

    IPv4는 옥텟 역순 (1.2.3.4 -> 4.3.2.1), IPv6는 니블 역순이다.
    IP 리터럴이 아니면 점 구분 레이블을 그대로 뒤집는다.
    """
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return ".".join(reversed(ip.split(".")))

    if isinstance(addr, ipaddress.IPv6Address):
        # IPv4-mapped 주소는 IPv4 블록리스트 규칙을 따른다
        if addr.ipv4_mapped is not None:
            return reverse_ip(str(addr.ipv4_mapped))
        return ".".join(reversed(addr.exploded.replace(":", "")))
    return ".".join(reversed(str(addr).split(".")))
