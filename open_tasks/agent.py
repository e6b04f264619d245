"""Scan coordinator: resolves files, scans them in parallel, merges the report"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from .analyzer import TaskAnalyzer
from .errors import ConfigurationError, ScanCancelled
from .models import FileError, Report, ScanRequest
from .patterns import PatternCompiler
from .scanner import FileSetResolver

logger = logging.getLogger(__name__)


class ScanAgent:
    def __init__(self, max_workers=None, compiler=None, resolver=None):
        self.max_workers = max_workers
        self.compiler = compiler or PatternCompiler()
        self.resolver = resolver or FileSetResolver()

    def run(self, request: ScanRequest, root, cancel_event=None) -> Report:
        """Scan every selected file below root and return the merged report"""
        compiled = self.compiler.compile(request.tags)
        if compiled.is_invalid:
            raise ConfigurationError(compiled.error_messages())

        root = Path(root)
        if not root.is_dir():
            raise FileNotFoundError(f"Workspace root does not exist: {root}")

        self._check_cancelled(cancel_event)
        file_set = request.file_set
        info = [
            f"Searching for files in workspace '{root}' that match the include pattern "
            f"'{file_set.include_pattern}' and exclude pattern '{file_set.exclude_pattern}'"
        ]
        files = list(self.resolver.resolve(root, file_set))
        info.append(f"-> found {len(files)} files that will be scanned")
        logger.info(f"Scanning {len(files)} files in {root}")

        analyzer = TaskAnalyzer(compiled)
        tasks = []
        errors = []

        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = [
                executor.submit(self._scan_file, analyzer, path, root, request.encoding, cancel_event)
                for path in files
            ]
            for future in as_completed(futures):
                self._check_cancelled(cancel_event)
                found, error = future.result()
                tasks.extend(found)
                if error:
                    errors.append(error)
        except ScanCancelled:
            logger.info(f"Scan of {root} cancelled")
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        finally:
            executor.shutdown(wait=True)

        tasks.sort(key=lambda t: (t.file, t.line))
        errors.sort(key=lambda e: e.file)
        files_with_tasks = len({t.file for t in tasks})
        info.append(f"Found {len(tasks)} open tasks in {files_with_tasks} files")
        if errors:
            info.append(f"Skipped {len(errors)} files that could not be read")
        logger.info(f"Scan complete: {len(tasks)} tasks, {len(errors)} unreadable files")

        return Report(tasks=tuple(tasks), errors=tuple(errors), info=tuple(info))

    def _scan_file(self, analyzer, path, root, encoding, cancel_event):
        relative = path.relative_to(root).as_posix()
        self._check_cancelled(cancel_event)
        try:
            with open(path, 'r', encoding=encoding) as stream:
                return list(analyzer.scan(stream, relative, cancel_event)), None
        except (OSError, UnicodeError) as e:
            logger.warning(f"Error reading {relative}: {e}")
            return [], FileError(file=relative, message=str(e))

    @staticmethod
    def _check_cancelled(cancel_event):
        if cancel_event is not None and cancel_event.is_set():
            raise ScanCancelled()
