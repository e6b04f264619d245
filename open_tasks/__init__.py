"""Open task scanner: finds TODO/FIXME style markers in source trees"""
from .agent import ScanAgent
from .errors import ConfigurationError, OpenTasksError, ScanCancelled, ScanFailure, ScanIOError
from .models import (
    FileError, FileSetSpec, MatchMode, OutcomeKind, PatternMode, PriorityTier, Report,
    ScanRequest, TagConfig, TaskRecord, ValidationOutcome,
)
from .remote import HttpWorker, LocalWorker, RemoteScanner, ScanJob, TaskScanner
from .validator import TaskValidator, validate

__all__ = [
    'ScanAgent', 'ConfigurationError', 'OpenTasksError', 'ScanCancelled', 'ScanFailure', 'ScanIOError',
    'FileError', 'FileSetSpec', 'MatchMode', 'OutcomeKind', 'PatternMode', 'PriorityTier', 'Report',
    'ScanRequest', 'TagConfig', 'TaskRecord', 'ValidationOutcome',
    'HttpWorker', 'LocalWorker', 'RemoteScanner', 'ScanJob', 'TaskScanner',
    'TaskValidator', 'validate',
]
