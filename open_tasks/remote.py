"""Runs scans on a worker that may live in another process or machine.

Only JSON-compatible data crosses the boundary: the orchestrator sends a
``ScanJob`` payload and gets the report back as a plain dict. Two failure
kinds come back to the caller and are never merged: ``ScanIOError`` when the
worker cannot be reached or fails, ``ScanCancelled`` when the caller aborted.
Nothing here retries.
"""
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Optional, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from .agent import ScanAgent
from .config import Settings, load_settings
from .errors import ConfigurationError, ScanCancelled, ScanIOError
from .models import Report, ScanRequest, TagConfig, ValidationOutcome
from .patterns import PatternCompiler
from .validator import TaskValidator

logger = logging.getLogger(__name__)


class ScanJob(BaseModel):
    """Self-contained unit of work sent to a worker"""
    model_config = ConfigDict(frozen=True)

    scan_id: str
    root: str
    request: ScanRequest


def execute_job(payload: dict, cancel_event=None, max_workers=None) -> dict:
    """Worker-side entry point: run one scan job and return the report as JSON data"""
    job = ScanJob.model_validate(payload)
    logger.info(f"Executing scan {job.scan_id} in {job.root}")
    report = ScanAgent(max_workers=max_workers).run(job.request, job.root, cancel_event)
    return report.model_dump(mode='json')


class TaskScanner(Protocol):
    """Capability an orchestrator depends on to find open tasks"""

    def scan(self, request: ScanRequest, root: str, cancel_event=None) -> Report: ...

    def validate(self, sample: str, tags: TagConfig) -> ValidationOutcome: ...


class Worker(Protocol):
    def execute(self, payload: dict, cancel_event=None) -> dict: ...


class LocalWorker:
    """Runs jobs in the current process"""

    def __init__(self, max_workers=None):
        self.max_workers = max_workers

    def execute(self, payload: dict, cancel_event=None) -> dict:
        return execute_job(payload, cancel_event, self.max_workers)


class HttpWorker:
    """Runs jobs on a worker service over HTTP"""

    def __init__(self, client: httpx.Client, poll_interval: float = 0.1):
        self.client = client
        self.poll_interval = poll_interval

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None):
        settings = settings or load_settings()
        client = httpx.Client(base_url=settings.worker_url, timeout=settings.request_timeout)
        return cls(client, poll_interval=settings.poll_interval)

    def execute(self, payload: dict, cancel_event=None) -> dict:
        if cancel_event is None:
            return self._post(payload)
        if cancel_event.is_set():
            raise ScanCancelled()

        # The call blocks, so it runs on a helper thread while we watch the event
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(self._post, payload)
            while True:
                done, _ = wait([future], timeout=self.poll_interval)
                if done:
                    return future.result()
                if cancel_event.is_set():
                    self._request_cancel(payload['scan_id'])
                    raise ScanCancelled()
        finally:
            executor.shutdown(wait=False)

    def _post(self, payload: dict) -> dict:
        try:
            response = self.client.post('/scans', json=payload)
        except httpx.HTTPError as e:
            raise ScanIOError(f"Cannot reach scan worker: {e}") from e

        detail = self._detail(response)
        if response.status_code == 409 and detail.get('kind') == 'cancelled':
            raise ScanCancelled(detail.get('message', 'Scan cancelled on worker'))
        if response.status_code == 400 and detail.get('kind') == 'configuration':
            raise ConfigurationError(detail.get('errors', []))
        if response.is_error:
            raise ScanIOError(f"Scan worker failed with HTTP {response.status_code}: {response.text}")

        try:
            return response.json()
        except ValueError as e:
            raise ScanIOError(f"Scan worker sent an unreadable response: {e}") from e

    def _request_cancel(self, scan_id: str):
        try:
            response = self.client.post(f'/scans/{scan_id}/cancel')
        except httpx.HTTPError as e:
            logger.warning(f"Could not cancel scan {scan_id} on worker: {e}")
            return
        if response.is_error:
            logger.warning(f"Worker refused to cancel scan {scan_id}: HTTP {response.status_code}")
        else:
            logger.info(f"Requested cancellation of scan {scan_id}")

    @staticmethod
    def _detail(response) -> dict:
        if not response.is_error:
            return {}
        try:
            detail = response.json().get('detail')
        except ValueError:
            return {}
        return detail if isinstance(detail, dict) else {}


class RemoteScanner:
    """Orchestrator-side scanner that ships scans to a worker"""

    def __init__(self, worker: Optional[Worker] = None, compiler=None, validator=None):
        self.worker = worker or LocalWorker()
        self.compiler = compiler or PatternCompiler()
        self.validator = validator or TaskValidator(self.compiler)

    def scan(self, request: ScanRequest, root, cancel_event=None) -> Report:
        # Configuration problems are reported here, before anything is sent
        compiled = self.compiler.compile(request.tags)
        if compiled.is_invalid:
            raise ConfigurationError(compiled.error_messages())

        job = ScanJob(scan_id=uuid.uuid4().hex, root=str(root), request=request)
        logger.info(f"Dispatching scan {job.scan_id} for {root}")
        try:
            result = self.worker.execute(job.model_dump(mode='json'), cancel_event)
        except KeyboardInterrupt:
            raise ScanCancelled('Scan interrupted') from None
        except OSError as e:
            raise ScanIOError(f"Scan {job.scan_id} failed on worker: {e}") from e

        try:
            return Report.model_validate(result)
        except ValidationError as e:
            raise ScanIOError(f"Worker returned a malformed report: {e}") from e

    def validate(self, sample: str, tags: TagConfig) -> ValidationOutcome:
        return self.validator.validate(sample, tags)
