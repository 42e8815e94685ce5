from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

BUFSIZE = 2048  # a "total;seq;value\n" line is well under 100 bytes
FIELD_TIMEOUT = 5.0  # seconds of silence that end a transmission
SMA_WINDOW = 7
CENTRAL_HOST, CENTRAL_PORT = "127.0.0.1", 8080
REQUEST_TIMEOUT = 2.0
REPORT_HISTORY = 100


@dataclass(frozen=True)
class Settings:
    bufsize: int
    field_timeout: float
    sma_window: int
    central_host: str
    central_port: int
    request_timeout: float
    report_history: int
    log_level: str

    @property
    def central_url(self) -> str:
        return f"http://{self.central_host}:{self.central_port}"


def get_settings() -> Settings:
    # .env is optional and never overrides the real environment
    env_file = os.getenv("RELAY_ENV_FILE", ".env")
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    return Settings(
        bufsize=int(os.getenv("RELAY_BUFSIZE", str(BUFSIZE))),
        field_timeout=float(os.getenv("RELAY_FIELD_TIMEOUT", str(FIELD_TIMEOUT))),
        sma_window=int(os.getenv("RELAY_SMA_WINDOW", str(SMA_WINDOW))),
        central_host=os.getenv("RELAY_CENTRAL_HOST", CENTRAL_HOST),
        central_port=int(os.getenv("RELAY_CENTRAL_PORT", str(CENTRAL_PORT))),
        request_timeout=float(os.getenv("RELAY_REQUEST_TIMEOUT", str(REQUEST_TIMEOUT))),
        report_history=int(os.getenv("RELAY_REPORT_HISTORY", str(REPORT_HISTORY))),
        log_level=os.getenv("RELAY_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
