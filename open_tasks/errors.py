"""Failure kinds raised by the task scanner"""
from typing import Iterable


class OpenTasksError(Exception):
    """Base class for all task scanner errors"""


class ConfigurationError(OpenTasksError):
    """Tag configuration cannot produce a usable matcher.

    Raised before any file is touched. ``errors`` holds every problem found,
    each message naming its tier when it belongs to one.
    """

    def __init__(self, errors: Iterable[str]):
        self.errors = [str(e) for e in errors]
        super().__init__('; '.join(self.errors) or 'Invalid task configuration')


class ScanFailure(OpenTasksError):
    """A scan attempt failed and produced no report"""


class ScanIOError(ScanFailure):
    """Reaching or executing on the worker failed"""


class ScanCancelled(ScanFailure):
    """The scan was aborted by its caller"""

    def __init__(self, message='Scan cancelled'):
        super().__init__(message)
