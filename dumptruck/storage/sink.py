"""세션 캡처용 임시 파일과 최종 아티팩트 저장."""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
import time
from pathlib import Path

from dumptruck.errors import PersistenceError

logger = logging.getLogger("dumptruck.storage.sink")

DEFAULT_MIN_SIZE = 50

ARTIFACT_NAME_FORMAT = "{recipient}-{sender}-{peer}-{timestamp}.txt"

UNKNOWN_PEER = "unknown"

# IPv6 콜론과 scope 구분자 등은 '_'로 바꾼다. '-'는 필드 구분자다.
_PEER_UNSAFE_RE = re.compile(r"[^0-9A-Za-z.]")
_MAX_PEER_LENGTH = 45


def peer_segment(peer: str) -> str:
    """피어 IP를 파일명 조각으로 바꾼다. 비어 있으면 UNKNOWN_PEER."""
    if not peer:
        return UNKNOWN_PEER
    return _PEER_UNSAFE_RE.sub("_", peer)[:_MAX_PEER_LENGTH]


def artifact_name(
    recipient: str, sender: str, peer: str = "", timestamp: float | None = None,
) -> str:
    """수신자/발신자/피어 IP/유닉스 초 단위 시각으로 아티팩트 파일명을 만든다.

    같은 초에 같은 피어와 주소 쌍으로 끝난 세션은 같은 이름을 얻고, 나중 것이 덮어쓴다.
    """
    if timestamp is None:
        timestamp = time.time()
    return ARTIFACT_NAME_FORMAT.format(
        recipient=recipient, sender=sender, peer=peer_segment(peer), timestamp=int(timestamp),
    )


class CaptureFile:
    """한 세션이 피어로부터 읽은 원시 바이트를 누적하는 추가 전용 임시 파일.

    세션이 단독으로 소유한다. finalize() 이후에는 임시 파일이 항상 삭제된다.
    """

    def __init__(self, temp_dir: str | Path | None = None, prefix: str = "maildump") -> None:
        try:
            self._file = tempfile.NamedTemporaryFile(
                mode="w+b", prefix=prefix, dir=temp_dir, delete=False,
            )
        except OSError as exc:
            raise PersistenceError(f"cannot create capture file: {exc}") from exc
        self.path = Path(self._file.name)
        self._size = 0
        self._closed = False

    @property
    def size(self) -> int:
        """지금까지 기록된 바이트 수."""
        return self._size

    def append(self, data: bytes) -> None:
        try:
            self._file.write(data)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"cannot write capture file {self.path}: {exc}") from exc
        self._size += len(data)

    def _sync_and_close(self) -> int:
        """버퍼를 디스크에 반영하고 파일을 닫은 뒤 실제 크기를 반환한다."""
        if not self._closed:
            self._closed = True
            try:
                self._file.flush()
                os.fsync(self._file.fileno())
            finally:
                self._file.close()
        return self.path.stat().st_size

    def discard(self) -> None:
        """임시 파일을 닫고 삭제한다. 여러 번 호출해도 안전하다."""
        if not self._closed:
            self._closed = True
            try:
                self._file.close()
            except OSError:
                logger.debug("Error closing capture file %s", self.path, exc_info=True)
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("Failed to remove capture file %s", self.path, exc_info=True)

    def finalize(
        self,
        output_dir: str | Path,
        name: str,
        min_size: int = DEFAULT_MIN_SIZE,
    ) -> Path | None:
        """캡처가 min_size를 초과하면 output_dir/name으로 복사하고 경로를 반환한다.

        크기가 부족하면 None. 복사 여부와 상관없이 임시 파일은 삭제된다.
        """
        try:
            size = self._sync_and_close()
            if size <= min_size:
                logger.debug("Capture %s too small (%d bytes), not persisted", self.path, size)
                return None
            dest = Path(output_dir) / name
            shutil.copyfile(self.path, dest)
            return dest
        except OSError as exc:
            raise PersistenceError(f"cannot persist capture {self.path}: {exc}") from exc
        finally:
            self.discard()
