"""Preview of a tag configuration against a sample text"""
import io
import logging

from .analyzer import TaskAnalyzer
from .models import TagConfig, ValidationOutcome
from .patterns import PatternCompiler

logger = logging.getLogger(__name__)


class TaskValidator:
    def __init__(self, compiler=None):
        self.compiler = compiler or PatternCompiler()

    def validate(self, sample: str, tags: TagConfig) -> ValidationOutcome:
        """Scan the sample in memory and summarize what the tags would find.

        A scan keeps one task per line, but the preview counts every
        occurrence of the winning tier so repeated tags on a line show up.
        A blank sample compiles the tags and reports no-match; there is no
        separate outcome for an empty preview.
        """
        compiled = self.compiler.compile(tags)
        if compiled.is_invalid:
            return ValidationOutcome.compile_error(compiled.error_messages())

        sample = sample or ''
        tasks = TaskAnalyzer(compiled).scan_text(sample)
        if not tasks:
            return ValidationOutcome.no_match()

        matchers = {m.tier: m for m in compiled.matchers}
        # Same line splitting as the scanner, so line numbers and terminators agree
        lines = [line.rstrip('\r\n') for line in io.StringIO(sample)]
        occurrences = sum(len(matchers[t.tier].find_all(lines[t.line - 1])) for t in tasks)
        logger.debug(f"Sample produced {len(tasks)} tasks with {occurrences} tag occurrences")

        if occurrences == 1:
            return ValidationOutcome.single_match(tasks[0].tag, tasks[0].message)
        return ValidationOutcome.multiple_match(occurrences)


def validate(sample: str, tags: TagConfig) -> ValidationOutcome:
    return TaskValidator().validate(sample, tags)
