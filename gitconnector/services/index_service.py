"""
Index/staging service for gitconnector.

Patterns are literal: a pattern names a file (staged exactly) or a
directory (staged recursively, deletions included). No glob expansion
takes place; git runs with --literal-pathspecs.
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
import logging

from ..domain.operation import AddResult
from ..domain.reference import StagingEntry
from ..domain.repository import RepositoryHandle
from ..errors import InvalidParameter, NoSuchPath, OperationFailed
from ..infra.git_client import GitClient, GitResult

logger = logging.getLogger(__name__)


def split_patterns(file_patterns) -> List[str]:
    """
    Normalize add patterns.

    Accepts a list of strings or one semicolon-delimited string; blank
    entries are dropped and surrounding whitespace is trimmed.
    """
    if file_patterns is None:
        return []
    if isinstance(file_patterns, str):
        file_patterns = file_patterns.split(';')
    return [p.strip() for p in file_patterns if p and p.strip()]


class IndexService:
    """Stages working-tree paths for the next commit."""

    def __init__(self, git_client: Optional[GitClient] = None):
        self.git = git_client or GitClient()

    def _git(self, handle: RepositoryHandle, args: List[str]) -> GitResult:
        return self.git.run(["--literal-pathspecs"] + args, cwd=handle.path)

    def stage(self, handle: RepositoryHandle, patterns: Iterable[str], strict: bool = False) -> AddResult:
        """
        Stage the paths named by patterns.

        Args:
            handle: Open repository handle
            patterns: Literal file or directory paths, relative to the
                working tree root (absolute paths inside it are accepted)
            strict: Fail if any pattern matches nothing. When False,
                unmatched patterns are skipped and only a call where no
                pattern matches fails.

        Raises:
            InvalidParameter: no patterns, or a pattern outside the working tree
            NoSuchPath: unmatched patterns (see strict)
        """
        handle.require_worktree("add")
        cleaned = split_patterns(patterns)
        if not cleaned:
            raise InvalidParameter("No file patterns given to add")

        matched, unmatched = self._match(handle, cleaned)

        if unmatched and (strict or not matched):
            raise NoSuchPath(
                f"No files match: {', '.join(unmatched)}",
                patterns=unmatched,
            )
        for pattern in unmatched:
            logger.warning(f"Pattern '{pattern}' did not match any files; skipping")

        result = self._git(handle, ["add", "--all", "--"] + matched)
        if not result.success:
            raise OperationFailed(f"Cannot add {', '.join(matched)}", cause=result.as_error())

        return AddResult(staged=self.staged_changes(handle, matched), unmatched=unmatched)

    def stage_all_modified(self, handle: RepositoryHandle) -> AddResult:
        """Stage modifications and deletions of tracked paths; untracked files are left alone."""
        handle.require_worktree("add")
        result = self.git.run(["add", "--update"], cwd=handle.path)
        if not result.success:
            raise OperationFailed("Cannot stage modified files", cause=result.as_error())
        return AddResult(staged=self.staged_changes(handle))

    def stage_everything(self, handle: RepositoryHandle) -> AddResult:
        """Stage every new, modified and deleted path in the working tree."""
        handle.require_worktree("add")
        result = self.git.run(["add", "--all"], cwd=handle.path)
        if not result.success:
            raise OperationFailed("Cannot stage working tree", cause=result.as_error())
        return AddResult(staged=self.staged_changes(handle))

    def staged_entries(self, handle: RepositoryHandle) -> List[StagingEntry]:
        """Every entry in the index."""
        handle.ensure_open()
        result = self.git.run(["ls-files", "--stage", "-z"], cwd=handle.path)
        if not result.success:
            raise OperationFailed("Cannot read index", cause=result.as_error())
        entries = []
        for record in result.stdout.split('\0'):
            if not record:
                continue
            # "<mode> <hash> <stage>\t<path>"
            meta, _, path = record.partition('\t')
            mode, content_hash, stage = meta.split(' ')
            entries.append(StagingEntry(path=path, content_hash=content_hash, mode=mode, stage=int(stage)))
        return entries

    def staged_changes(self, handle: RepositoryHandle, paths: Optional[List[str]] = None) -> List[str]:
        """Paths whose staged state differs from HEAD (optionally limited to paths)."""
        handle.ensure_open()
        if self.git.rev_parse(handle.path, "HEAD") is None:
            # Unborn branch: everything in the index is new
            names = sorted({entry.path for entry in self.staged_entries(handle)})
            if paths:
                names = [n for n in names if any(_within(n, p) for p in paths)]
            return names

        args = ["diff", "--cached", "--name-only", "--no-renames", "-z"]
        if paths:
            args += ["--"] + paths
        result = self._git(handle, args)
        if not result.success:
            raise OperationFailed("Cannot compare index with HEAD", cause=result.as_error())
        return sorted(name for name in result.stdout.split('\0') if name)

    def has_staged_changes(self, handle: RepositoryHandle) -> bool:
        """True when committing now would record a change."""
        return bool(self.staged_changes(handle))

    def unstaged_changes(self, handle: RepositoryHandle) -> List[str]:
        """Tracked paths whose working-tree state differs from the index."""
        handle.require_worktree("add")
        result = self._git(handle, ["diff", "--name-only", "--no-renames", "-z"])
        if not result.success:
            raise OperationFailed("Cannot compare working tree with index", cause=result.as_error())
        return sorted(name for name in result.stdout.split('\0') if name)

    def _match(self, handle: RepositoryHandle, patterns: List[str]) -> Tuple[List[str], List[str]]:
        matched: List[str] = []
        unmatched: List[str] = []
        for pattern in patterns:
            relative = self._relative(handle, pattern)
            if self._exists(handle, relative):
                if relative not in matched:
                    matched.append(relative)
            else:
                unmatched.append(pattern)
        return matched, unmatched

    def _relative(self, handle: RepositoryHandle, pattern: str) -> str:
        """Pattern as a path relative to the working tree root; refuses paths outside it."""
        root = handle.working_directory.resolve()
        candidate = Path(pattern)
        if not candidate.is_absolute():
            candidate = root / candidate
        resolved = Path(os.path.normpath(candidate))
        try:
            relative = resolved.relative_to(root)
        except ValueError:
            raise InvalidParameter(f"Path '{pattern}' is outside the working tree {root}")
        if relative.parts and relative.parts[0] == '.git':
            raise InvalidParameter(f"Path '{pattern}' is inside the repository metadata")
        return relative.as_posix() if relative.parts else '.'

    def _exists(self, handle: RepositoryHandle, relative: str) -> bool:
        """A pattern matches if it exists on disk or names tracked content (e.g. a deletion)."""
        if os.path.lexists(handle.working_directory / relative):
            return True
        tracked = self._git(handle, ["ls-files", "--", relative])
        return tracked.success and bool(tracked.output)


def _within(name: str, path: str) -> bool:
    return path == '.' or name == path or name.startswith(path.rstrip('/') + '/')
