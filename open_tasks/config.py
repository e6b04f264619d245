"""Environment-driven settings for the scanner and its worker service"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    worker_url: str = 'http://localhost:8090'
    max_workers: Optional[int] = None
    request_timeout: float = 300.0
    poll_interval: float = 0.1
    host: str = '0.0.0.0'
    port: int = 8090
    log_level: str = 'INFO'


def _optional_int(value):
    return int(value) if value else None


def load_settings(dotenv: bool = True) -> Settings:
    """Read settings from the environment, optionally after loading a .env file"""
    if dotenv:
        load_dotenv()
    return Settings(
        worker_url=os.getenv('OPEN_TASKS_WORKER_URL', Settings.worker_url).rstrip('/'),
        max_workers=_optional_int(os.getenv('OPEN_TASKS_MAX_WORKERS')),
        request_timeout=float(os.getenv('OPEN_TASKS_REQUEST_TIMEOUT', Settings.request_timeout)),
        poll_interval=float(os.getenv('OPEN_TASKS_POLL_INTERVAL', Settings.poll_interval)),
        host=os.getenv('OPEN_TASKS_HOST', Settings.host),
        port=int(os.getenv('OPEN_TASKS_PORT', Settings.port)),
        log_level=os.getenv('OPEN_TASKS_LOG_LEVEL', Settings.log_level).upper(),
    )
