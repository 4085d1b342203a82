"""
Commit service for gitconnector.

Records the staged index as a new commit on the current branch.
"""

from typing import List, Optional
import logging

from ..domain.commit import Commit, CommitIdentity
from ..domain.repository import RepositoryHandle
from ..errors import (
    DetachedHeadCommit,
    InvalidParameter,
    NothingToCommit,
    OperationFailed,
    UnresolvableStartPoint,
)
from ..infra.git_client import GitClient
from .index_service import IndexService

logger = logging.getLogger(__name__)


class CommitService:
    """Creates and reads commits."""

    def __init__(self, git_client: Optional[GitClient] = None, index: Optional[IndexService] = None):
        self.git = git_client or GitClient()
        self.index = index or IndexService(self.git)

    def commit(
        self,
        handle: RepositoryHandle,
        message: str,
        committer: CommitIdentity,
        author: Optional[CommitIdentity] = None,
        all: bool = False,
    ) -> Commit:
        """
        Commit the staged changes.

        Args:
            handle: Open repository handle with a working tree
            message: Commit message (must not be blank)
            committer: Identity recorded as committer
            author: Identity recorded as author (defaults to committer)
            all: Include modified and deleted tracked files; the index
                is left untouched if the commit is rejected

        Returns:
            The new Commit; HEAD's branch now points to it

        Raises:
            InvalidParameter: blank message or identity
            DetachedHeadCommit: HEAD is not on a branch
            NothingToCommit: the index matches HEAD
            OperationFailed: git refused the commit (a failing hook, for one)
        """
        handle.require_worktree("commit")
        if not message or not message.strip():
            raise InvalidParameter("A commit message is required")
        if not committer.name or not committer.email:
            raise InvalidParameter("Committer name and email are required")

        if self.git.symbolic_head(handle.path) is None:
            raise DetachedHeadCommit("HEAD is detached; check out a branch before committing")

        if not self.index.has_staged_changes(handle):
            if not (all and self.index.unstaged_changes(handle)):
                raise NothingToCommit("Nothing to commit; the index matches HEAD")

        env = committer.env("COMMITTER")
        env.update((author or committer).env("AUTHOR"))

        args = ["commit", "--quiet", "--cleanup=whitespace"]
        if all:
            # staged in a temporary index until the commit succeeds
            args.append("--all")
        result = self.git.run(args + ["-m", message], cwd=handle.path, env=env)
        if not result.success:
            raise OperationFailed("Commit failed", cause=result.as_error())

        commit = self.read_commit(handle, "HEAD")
        logger.info(f"Committed {commit.short_id}: {commit.subject}")
        return commit

    def read_commit(self, handle: RepositoryHandle, revision: str = "HEAD") -> Commit:
        """Load the commit a revision resolves to."""
        handle.ensure_open()
        commit_id = self.git.rev_parse(handle.path, revision)
        if commit_id is None:
            raise UnresolvableStartPoint(f"Cannot resolve '{revision}' to a commit")
        result = self.git.run(["cat-file", "commit", commit_id], cwd=handle.path)
        if not result.success:
            raise OperationFailed(f"Cannot read commit {commit_id}", cause=result.as_error())
        return Commit.parse(commit_id, result.stdout)

    def tree_paths(self, handle: RepositoryHandle, revision: str = "HEAD") -> List[str]:
        """Every file path recorded in a commit's tree."""
        handle.ensure_open()
        commit_id = self.git.rev_parse(handle.path, revision)
        if commit_id is None:
            raise UnresolvableStartPoint(f"Cannot resolve '{revision}' to a commit")
        result = self.git.run(["ls-tree", "-r", "--name-only", "-z", commit_id], cwd=handle.path)
        if not result.success:
            raise OperationFailed(f"Cannot list tree of {commit_id}", cause=result.as_error())
        return sorted(name for name in result.stdout.split('\0') if name)
