"""dumptruck: 메일 트래픽 수집용 최소 SMTP 수신기."""

__version__ = "0.1.0"
