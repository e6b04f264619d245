"""Open Tasks Worker - API server that scans workspaces where the files live"""
import logging
import threading

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from open_tasks.config import load_settings
from open_tasks.errors import ConfigurationError, ScanCancelled
from open_tasks.models import TagConfig, ValidationOutcome
from open_tasks.remote import ScanJob, execute_job
from open_tasks.validator import TaskValidator

logger = logging.getLogger(__name__)

settings = load_settings()

# FastAPI App
app = FastAPI(title="Open Tasks Worker API")

# Cancel events of the scans currently running, by scan id
_active_scans = {}
_scans_lock = threading.Lock()


def configure_logging(level=None):
    logging.basicConfig(
        level=level or settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler('open_tasks_worker.log')
        ]
    )


@app.on_event("startup")
async def startup_event():
    logger.info("Open Tasks Worker API starting...")
    logger.info(f"Scan pool size: {settings.max_workers or 'default'}")


class ValidateRequest(BaseModel):
    sample: str = ''
    tags: TagConfig


@app.get("/health")
async def health():
    with _scans_lock:
        running = len(_active_scans)
    return {"status": "ok", "running_scans": running}


@app.post("/scans")
def run_scan(job: ScanJob):
    """Run one scan job to completion and return its report.

    Declared sync so it runs on the server's thread pool and the cancel
    endpoint stays responsive while the scan is going.
    """
    cancel_event = threading.Event()
    with _scans_lock:
        if job.scan_id in _active_scans:
            raise HTTPException(status_code=409, detail={"kind": "duplicate", "message": f"Scan {job.scan_id} is already running"})
        _active_scans[job.scan_id] = cancel_event

    try:
        return execute_job(job.model_dump(mode='json'), cancel_event, settings.max_workers)
    except ConfigurationError as e:
        logger.warning(f"Rejected scan {job.scan_id}: {e}")
        raise HTTPException(status_code=400, detail={"kind": "configuration", "errors": e.errors})
    except ScanCancelled as e:
        logger.info(f"Scan {job.scan_id} cancelled")
        raise HTTPException(status_code=409, detail={"kind": "cancelled", "message": str(e)})
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    finally:
        with _scans_lock:
            _active_scans.pop(job.scan_id, None)


@app.post("/scans/{scan_id}/cancel")
async def cancel_scan(scan_id: str):
    with _scans_lock:
        cancel_event = _active_scans.get(scan_id)
    if cancel_event is None:
        raise HTTPException(status_code=404, detail=f"No running scan {scan_id}")
    cancel_event.set()
    logger.info(f"Cancellation requested for scan {scan_id}")
    return {"scan_id": scan_id, "cancelled": True}


@app.post("/validate", response_model=ValidationOutcome)
async def validate_example(request: ValidateRequest):
    """Preview which task the tag configuration finds in a sample text"""
    return TaskValidator().validate(request.sample, request.tags)


if __name__ == "__main__":
    import uvicorn

    configure_logging()

    print("=" * 60)
    print("  Open Tasks Worker API")
    print("=" * 60)
    print(f"  Server: http://{settings.host}:{settings.port}")
    print(f"  Docs: http://{settings.host}:{settings.port}/docs")
    print("=" * 60)

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
