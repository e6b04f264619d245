"""Resolves the set of files to scan below a workspace root"""
import os
import logging
from pathlib import Path
from typing import Iterator, Optional

from pathspec import PathSpec

from .models import FileSetSpec

logger = logging.getLogger(__name__)

# Directories skipped when default excludes are on
DEFAULT_EXCLUDE_DIRS = {
    '.git', '.svn', '.hg', '.bzr', 'CVS', '_darcs',
    '__pycache__', 'node_modules', '.venv', '.pytest_cache', '.idea', '.vscode',
}


def split_patterns(patterns: str) -> list:
    return [p.strip() for p in (patterns or '').split(',') if p.strip()]


def compile_patterns(patterns: str) -> Optional[PathSpec]:
    lines = split_patterns(patterns)
    if not lines:
        return None
    return PathSpec.from_lines('gitwildmatch', lines)


class FileSetResolver:
    """Walks a tree and yields files selected by include/exclude patterns.

    Every call to ``resolve`` walks the tree again, so the result can be
    re-resolved at any time without side effects.

    Patterns follow gitignore rules, not Ant rules: a pattern without a slash
    such as ``*.java`` matches at any depth, and ``dir/`` selects everything
    below ``dir``. Negated (``!``) patterns are rejected when the
    ``FileSetSpec`` is built.
    """

    def resolve(self, root, file_set: FileSetSpec) -> Iterator[Path]:
        root = Path(root)
        include_spec = compile_patterns(file_set.include_pattern)
        exclude_spec = compile_patterns(file_set.exclude_pattern)

        for dir_path, dirs, files in os.walk(root, onerror=self._on_walk_error):
            if file_set.use_default_excludes:
                dirs[:] = [d for d in dirs if d not in DEFAULT_EXCLUDE_DIRS]
            dirs.sort()
            for name in sorted(files):
                path = Path(dir_path) / name
                relative = path.relative_to(root).as_posix()
                if include_spec is not None and not include_spec.match_file(relative):
                    continue
                if exclude_spec is not None and exclude_spec.match_file(relative):
                    continue
                yield path

    def _on_walk_error(self, error: OSError):
        logger.warning(f"Skipping unreadable directory: {error}")
