"""Shared fixtures for dumptruck tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from dumptruck.utils.config import Config


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path: Path):
    """테스트 환경에서 DUMPTRUCK_* 환경변수가 설정을 덮어쓰지 않게 한다.
    load_dotenv()는 작업 디렉토리부터 상위로 .env를 찾으므로, tmp 작업 디렉토리에
    빈 .env를 두어 저장소나 상위 디렉토리의 .env가 변수를 되살리지 못하게 한다.
    상대 경로(data/logs 등)도 tmp 아래에 생긴다.
    """
    for var in (
        "DUMPTRUCK_CONFIG",
        "DUMPTRUCK_HOST",
        "DUMPTRUCK_PORT",
        "DUMPTRUCK_OUTPUT_DIR",
        "DUMPTRUCK_SPAM_DETECTION",
        "DUMPTRUCK_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    (tmp_path / ".env").write_text("")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    path = tmp_path / "maildump"
    path.mkdir()
    return path


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    path = tmp_path / "capture-tmp"
    path.mkdir()
    return path


@pytest.fixture
def config(tmp_path: Path, output_dir: Path, temp_dir: Path) -> Config:
    """Config pointing at test-specific directories."""
    yaml_content = f"""
dumptruck:
  smtp:
    host: "127.0.0.1"
    port: 0
    line_capacity: 1024
  storage:
    output_directory: "{output_dir}"
    temp_directory: "{temp_dir}"
    min_size: 50
  reputation:
    enabled: false
    zones: ["bl.example.org", "dnsbl.example.net"]
  logging:
    level: DEBUG
    directory: "{tmp_path / 'logs'}"
"""
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(yaml_content)
    return Config.load(config_file)


class StubResolver:
    """테스트용: 지정한 호스트명만 해석되는 리졸버."""

    def __init__(self, listed: dict[str, list[str]] | None = None, error: Exception | None = None):
        self.listed = listed or {}
        self.error = error
        self.queries: list[str] = []

    async def __call__(self, hostname: str) -> list[str]:
        self.queries.append(hostname)
        if hostname in self.listed:
            return self.listed[hostname]
        if self.error is not None:
            raise self.error
        raise OSError(f"no such host: {hostname}")


@pytest.fixture
def stub_resolver():
    return StubResolver
