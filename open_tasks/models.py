"""Value types shared by the scanner, the worker service and its clients"""
import codecs
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class PriorityTier(str, Enum):
    """Priority of a task. Declaration order is the tie-break order."""
    HIGH = 'HIGH'
    NORMAL = 'NORMAL'
    LOW = 'LOW'


class MatchMode(str, Enum):
    CASE_SENSITIVE = 'CASE_SENSITIVE'
    IGNORE_CASE = 'IGNORE_CASE'


class PatternMode(str, Enum):
    STRING_MATCH = 'STRING_MATCH'
    REGEXP_MATCH = 'REGEXP_MATCH'


class TagConfig(BaseModel):
    """Tag identifiers per tier plus the matching options shared by all tiers"""
    model_config = ConfigDict(frozen=True)

    high: str = ''
    normal: str = ''
    low: str = ''
    match_mode: MatchMode = MatchMode.CASE_SENSITIVE
    pattern_mode: PatternMode = PatternMode.STRING_MATCH

    @field_validator('high', 'normal', 'low', mode='before')
    @classmethod
    def _strip(cls, value):
        return (value or '').strip()

    def tags_for(self, tier: PriorityTier) -> str:
        return getattr(self, tier.value.lower())

    @property
    def ignore_case(self) -> bool:
        return self.match_mode == MatchMode.IGNORE_CASE

    @property
    def is_regular_expression(self) -> bool:
        return self.pattern_mode == PatternMode.REGEXP_MATCH


class FileSetSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    include_pattern: str = ''
    exclude_pattern: str = ''
    use_default_excludes: bool = True

    @field_validator('include_pattern', 'exclude_pattern')
    @classmethod
    def _no_negation(cls, value):
        # gitignore matching would read a leading '!' as "un-match"
        for pattern in value.split(','):
            if pattern.strip().startswith('!'):
                raise ValueError(f"Negated patterns are not supported: '{pattern.strip()}'")
        return value


class ScanRequest(BaseModel):
    """Everything a worker needs to run one scan"""
    model_config = ConfigDict(frozen=True)

    tags: TagConfig
    file_set: FileSetSpec = FileSetSpec()
    encoding: str = 'utf-8'

    @field_validator('encoding')
    @classmethod
    def _known_encoding(cls, value):
        try:
            codecs.lookup(value)
        except LookupError:
            raise ValueError(f'Unknown character encoding: {value}')
        return value


class TaskRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    file: str
    line: int
    tier: PriorityTier
    tag: str
    message: str

    def as_tuple(self):
        return (self.file, self.line, self.tier.value, self.tag, self.message)


class FileError(BaseModel):
    """A file that was skipped because it could not be read"""
    model_config = ConfigDict(frozen=True)

    file: str
    message: str


class Report(BaseModel):
    """Result of a scan: tasks ordered by file and line, plus skipped files"""
    model_config = ConfigDict(frozen=True)

    tasks: tuple[TaskRecord, ...] = ()
    errors: tuple[FileError, ...] = ()
    info: tuple[str, ...] = ()

    @property
    def size(self) -> int:
        return len(self.tasks)

    def is_empty(self) -> bool:
        return not self.tasks

    def count(self, tier: PriorityTier) -> int:
        return sum(1 for task in self.tasks if task.tier == tier)

    def files(self) -> list[str]:
        """Files with at least one task, in report order"""
        return list(dict.fromkeys(task.file for task in self.tasks))


class OutcomeKind(str, Enum):
    COMPILE_ERROR = 'compile-error'
    NO_MATCH = 'no-match'
    SINGLE_MATCH = 'single-match'
    MULTIPLE_MATCH = 'multiple-match'


class ValidationOutcome(BaseModel):
    """Result of checking a tag configuration against a sample text"""
    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    messages: tuple[str, ...] = ()
    tag: Optional[str] = None
    message: Optional[str] = None
    count: int = 0

    @classmethod
    def compile_error(cls, messages):
        return cls(kind=OutcomeKind.COMPILE_ERROR, messages=tuple(messages))

    @classmethod
    def no_match(cls):
        return cls(kind=OutcomeKind.NO_MATCH)

    @classmethod
    def single_match(cls, tag, message):
        return cls(kind=OutcomeKind.SINGLE_MATCH, tag=tag, message=message, count=1)

    @classmethod
    def multiple_match(cls, count):
        return cls(kind=OutcomeKind.MULTIPLE_MATCH, count=count)

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.SINGLE_MATCH
