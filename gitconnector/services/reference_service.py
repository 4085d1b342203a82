"""
Reference store service for gitconnector.

Branch creation, deletion, resolution and checkout. Checks that decide
the error kind (exists, merged, current) run before git is asked to
change anything, so a refused request leaves the references untouched.
"""

from typing import List, Optional
import logging

from ..domain.reference import HEADS_PREFIX, REMOTES_PREFIX, Reference
from ..domain.repository import RepositoryHandle
from ..errors import (
    BranchAlreadyExists,
    BranchNotFullyMerged,
    CannotDeleteCurrentBranch,
    InvalidParameter,
    NoSuchBranch,
    OperationFailed,
    UnresolvableStartPoint,
)
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)


class ReferenceService:
    """Branches, HEAD and revision resolution."""

    def __init__(self, git_client: Optional[GitClient] = None):
        self.git = git_client or GitClient()

    def resolve(self, handle: RepositoryHandle, revision: str) -> str:
        """
        Resolve a branch, tag, remote branch or (abbreviated) id to a commit id.

        Raises:
            UnresolvableStartPoint: revision names no commit
        """
        handle.ensure_open()
        if not revision or not revision.strip():
            raise InvalidParameter("A revision is required")
        commit_id = self.git.rev_parse(handle.path, revision.strip())
        if commit_id is None:
            raise UnresolvableStartPoint(f"Cannot resolve '{revision}' to a commit")
        return commit_id

    def head(self, handle: RepositoryHandle) -> Reference:
        """HEAD as a symbolic (on a branch) or detached reference."""
        handle.ensure_open()
        target = self.git.symbolic_head(handle.path)
        if target is not None:
            return Reference(name="HEAD", target=target, symbolic=True)
        commit_id = self.git.rev_parse(handle.path, "HEAD")
        if commit_id is None:
            raise OperationFailed(f"HEAD of {handle.working_directory} does not resolve")
        return Reference(name="HEAD", target=commit_id, symbolic=False)

    def current_branch(self, handle: RepositoryHandle) -> Optional[str]:
        handle.ensure_open()
        return self.git.current_branch(handle.path)

    def branch_exists(self, handle: RepositoryHandle, name: str) -> bool:
        handle.ensure_open()
        result = self.git.run(["show-ref", "--verify", "--quiet", f"{HEADS_PREFIX}{name}"], cwd=handle.path)
        return result.success

    def list_branches(self, handle: RepositoryHandle, remote: bool = False) -> List[Reference]:
        """Local branches, or remote-tracking branches when remote is True."""
        handle.ensure_open()
        prefix = REMOTES_PREFIX if remote else HEADS_PREFIX
        result = self.git.run(
            ["for-each-ref", "--format=%(refname) %(objectname)", prefix.rstrip('/')],
            cwd=handle.path,
        )
        if not result.success:
            raise OperationFailed("Cannot list branches", cause=result.as_error())
        refs = []
        for line in result.lines():
            name, _, target = line.partition(' ')
            refs.append(Reference(name=name, target=target))
        return refs

    def validate_branch_name(self, handle: RepositoryHandle, name: str) -> str:
        """Return the trimmed name, or raise InvalidParameter."""
        if not name or not name.strip():
            raise InvalidParameter("A branch name is required")
        name = name.strip()
        if name.startswith(HEADS_PREFIX):
            name = name[len(HEADS_PREFIX):]
        if name == "HEAD" or name.startswith('-'):
            raise InvalidParameter(f"'{name}' is not a valid branch name")
        result = self.git.run(["check-ref-format", "--branch", name], cwd=handle.path)
        if not result.success:
            raise InvalidParameter(f"'{name}' is not a valid branch name", cause=result.as_error())
        return name

    def create_branch(
        self,
        handle: RepositoryHandle,
        name: str,
        start_point: str = "HEAD",
        force: bool = False,
    ) -> Reference:
        """
        Create a local branch at start_point.

        Args:
            handle: Open repository handle
            name: New branch name
            start_point: Branch, tag or commit id the branch will point to
            force: Retarget the branch if it already exists

        Raises:
            BranchAlreadyExists: name exists and force is False
            UnresolvableStartPoint: start_point names no commit
            InvalidParameter: bad name, or force-retargeting the checked-out branch
        """
        handle.ensure_open()
        name = self.validate_branch_name(handle, name)
        start_point = (start_point or "HEAD").strip()
        commit_id = self.resolve(handle, start_point)

        if self.branch_exists(handle, name):
            if not force:
                raise BranchAlreadyExists(f"Branch '{name}' already exists")
            if name == self.current_branch(handle):
                raise InvalidParameter(
                    f"Cannot force-update '{name}' because it is checked out; reset it instead"
                )

        args = ["branch"]
        if force:
            args.append("--force")
        # The symbolic start point lets git set up tracking for remote branches
        args += [name, start_point]
        result = self.git.run(args, cwd=handle.path)
        if not result.success:
            raise OperationFailed(f"Unable to create branch {name}", cause=result.as_error())

        logger.info(f"Created branch {name} at {commit_id[:7]} ({start_point})")
        return Reference(name=f"{HEADS_PREFIX}{name}", target=commit_id)

    def delete_branch(self, handle: RepositoryHandle, name: str, force: bool = False) -> Reference:
        """
        Delete a local branch.

        Raises:
            NoSuchBranch: the branch does not exist
            CannotDeleteCurrentBranch: HEAD points to the branch
            BranchNotFullyMerged: force is False and the tip is not
                reachable from HEAD
        """
        handle.ensure_open()
        if not name or not name.strip():
            raise InvalidParameter("A branch name is required")
        name = name.strip()
        if name.startswith(HEADS_PREFIX):
            name = name[len(HEADS_PREFIX):]

        if not self.branch_exists(handle, name):
            raise NoSuchBranch(f"Branch '{name}' does not exist")
        if name == self.current_branch(handle):
            raise CannotDeleteCurrentBranch(f"Cannot delete branch '{name}' while it is checked out")

        tip = self.git.rev_parse(handle.path, f"{HEADS_PREFIX}{name}")
        if not force:
            head = self.git.rev_parse(handle.path, "HEAD")
            if head is None or not self.git.is_ancestor(handle.path, tip, head):
                raise BranchNotFullyMerged(
                    f"Branch '{name}' is not fully merged into the current branch; use force to delete it"
                )

        result = self.git.run(["branch", "--delete", "--force", name], cwd=handle.path)
        if not result.success:
            raise OperationFailed(f"Unable to delete branch {name}", cause=result.as_error())

        logger.info(f"Deleted branch {name} (was {tip[:7] if tip else 'unknown'})")
        return Reference(name=f"{HEADS_PREFIX}{name}", target=tip or "")

    def checkout(self, handle: RepositoryHandle, branch: str, start_point: Optional[str] = None) -> Reference:
        """
        Switch HEAD and the working tree to branch.

        With start_point, branch is created there first; if the switch
        fails the new branch is removed again so references are unchanged.
        Tracked files that differ are overwritten; local changes are not
        merged.

        Raises:
            NoSuchBranch: no start_point and branch does not exist
            BranchAlreadyExists: start_point given and branch exists
            UnresolvableStartPoint: start_point names no commit
        """
        handle.require_worktree("checkout")
        name = self.validate_branch_name(handle, branch)

        if start_point is None:
            if not self.branch_exists(handle, name):
                raise NoSuchBranch(f"Branch '{name}' does not exist")
            result = self.git.run(["checkout", "--force", "--quiet", name, "--"], cwd=handle.path)
            if not result.success:
                raise OperationFailed(f"Unable to checkout {name}", cause=result.as_error())
            return self.head(handle)

        start_point = start_point.strip()
        self.resolve(handle, start_point)
        if self.branch_exists(handle, name):
            raise BranchAlreadyExists(f"Branch '{name}' already exists")

        result = self.git.run(
            ["checkout", "--force", "--quiet", "-b", name, start_point, "--"],
            cwd=handle.path,
        )
        if not result.success:
            if self.branch_exists(handle, name) and self.current_branch(handle) != name:
                self.git.run(["branch", "--delete", "--force", name], cwd=handle.path)
                logger.warning(f"Checkout of new branch {name} failed; branch removed")
            raise OperationFailed(f"Unable to checkout {name} at {start_point}", cause=result.as_error())

        logger.info(f"Checked out new branch {name} at {start_point}")
        return self.head(handle)
