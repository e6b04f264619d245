"""Compiles tag identifiers into per-tier matchers"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from .models import PriorityTier, TagConfig

logger = logging.getLogger(__name__)

NO_IDENTIFIERS = 'No task identifiers configured'

_SEPARATORS = re.compile(r'[\s,]+')
_WORD_CHAR = re.compile(r'\w')


@dataclass(frozen=True)
class CompiledMatcher:
    tier: PriorityTier
    pattern: re.Pattern

    def find(self, line: str) -> Optional[re.Match]:
        """Leftmost non-empty occurrence in the line, if any"""
        for match in self.pattern.finditer(line):
            if match.end() > match.start():
                return match
        return None

    def find_all(self, line: str) -> list:
        return [m for m in self.pattern.finditer(line) if m.end() > m.start()]


@dataclass(frozen=True)
class CompileError:
    tier: Optional[PriorityTier]
    message: str

    def __str__(self):
        if self.tier is None:
            return self.message
        return f'{self.tier.value}: {self.message}'


@dataclass(frozen=True)
class CompiledTags:
    """Matchers in priority order plus every problem found while compiling"""
    matchers: tuple
    errors: tuple

    @property
    def is_invalid(self) -> bool:
        return bool(self.errors)

    def error_messages(self) -> list:
        return [str(e) for e in self.errors]


def split_identifiers(tags: str) -> list:
    """Split a tier string into distinct identifiers, keeping first-seen order"""
    identifiers = [t for t in _SEPARATORS.split(tags) if t]
    return list(dict.fromkeys(identifiers))


def literal_pattern(identifiers) -> str:
    """Alternation of escaped identifiers, longest first, bounded on word edges"""
    alternatives = []
    for identifier in sorted(identifiers, key=len, reverse=True):
        prefix = r'\b' if _WORD_CHAR.match(identifier[0]) else ''
        suffix = r'\b' if _WORD_CHAR.match(identifier[-1]) else ''
        alternatives.append(f'{prefix}{re.escape(identifier)}{suffix}')
    return '|'.join(alternatives)


class PatternCompiler:
    def compile(self, tags: TagConfig) -> CompiledTags:
        """Build a matcher for each configured tier.

        Invalid regular expressions are collected per tier instead of raised, so
        the caller sees every problem at once and the valid tiers stay usable.
        """
        flags = re.IGNORECASE if tags.ignore_case else 0
        matchers = []
        errors = []

        for tier in PriorityTier:
            source = tags.tags_for(tier)
            if not source:
                continue
            if tags.is_regular_expression:
                expression = source
            else:
                identifiers = split_identifiers(source)
                if not identifiers:
                    continue
                expression = literal_pattern(identifiers)
            try:
                matchers.append(CompiledMatcher(tier, re.compile(expression, flags)))
            except re.error as e:
                logger.debug(f"Invalid pattern for {tier.value}: {source!r} ({e})")
                errors.append(CompileError(
                    tier, f"Specified pattern is an invalid regular expression: '{source}': {e}"))

        if not matchers and not errors:
            errors.append(CompileError(None, NO_IDENTIFIERS))

        return CompiledTags(tuple(matchers), tuple(errors))
