"""Finds open tasks line by line in a text stream"""
import io
from typing import Iterable, Iterator

from .errors import ScanCancelled
from .models import TaskRecord
from .patterns import CompiledTags


def clean_message(remainder: str) -> str:
    """Text after the tag, without surrounding blanks and one leading colon"""
    message = remainder.strip()
    if message.startswith(':'):
        message = message[1:].strip()
    return message


class TaskAnalyzer:
    def __init__(self, compiled: CompiledTags):
        self.matchers = compiled.matchers

    def match_line(self, line: str):
        """Return (tier, tag, message) for the highest tier matching the line"""
        for matcher in self.matchers:
            match = matcher.find(line)
            if match:
                return matcher.tier, match.group(0), clean_message(line[match.end():])
        return None

    def scan(self, stream: Iterable[str], file_name: str = '', cancel_event=None) -> Iterator[TaskRecord]:
        """Yield one record per line that carries a task.

        Read errors from the stream are not caught here; they end the sequence
        and reach the caller.
        """
        for line_number, line in enumerate(stream, 1):
            if cancel_event is not None and cancel_event.is_set():
                raise ScanCancelled(f'Scan cancelled while reading {file_name or "stream"}')
            found = self.match_line(line.rstrip('\r\n'))
            if found:
                tier, tag, message = found
                yield TaskRecord(file=file_name, line=line_number, tier=tier, tag=tag, message=message)

    def scan_text(self, text: str, file_name: str = '') -> list:
        return list(self.scan(io.StringIO(text), file_name))
