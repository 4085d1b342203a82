"""
Repository handle service for gitconnector.

Locates, opens, initializes and clones repositories. Every handle it
returns is owned by the caller and must be closed (use it as a context
manager).
"""

import shutil
from pathlib import Path
from typing import List, Optional
import logging

from ..domain.operation import CloneResult
from ..domain.reference import HEADS_PREFIX
from ..domain.repository import RepositoryHandle
from ..errors import (
    CloneFailed,
    DirectoryCreationFailed,
    InvalidParameter,
    NotARepository,
    OperationFailed,
)
from ..infra.credentials import Credentials, mask_credentials
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "HEAD"


class RepositoryService:
    """
    Service for repository handles.

    Example:
        service = RepositoryService()
        with service.open("/path/to/repo") as handle:
            print(handle.working_directory)
    """

    def __init__(self, git_client: Optional[GitClient] = None):
        self.git = git_client or GitClient()

    def open(self, path) -> RepositoryHandle:
        """
        Open the repository containing path.

        Non-bare repositories are discovered at or above path; a bare
        repository must be exactly at path.

        Raises:
            NotARepository: path missing or no metadata store found
        """
        directory = Path(path).expanduser()
        if not directory.is_dir():
            raise NotARepository(f"Directory {directory} does not exist")

        result = self.git.run(["rev-parse", "--is-bare-repository", "--absolute-git-dir"], cwd=directory)
        lines = result.lines()
        if not result.success or len(lines) < 2:
            raise NotARepository(
                f"Could not open Git repository at {directory}",
                cause=result.as_error(),
            )

        is_bare = lines[0].strip() == "true"
        git_dir = Path(lines[1].strip())

        if is_bare:
            if git_dir.resolve() != directory.resolve():
                raise NotARepository(f"{directory} is inside a bare repository, not at its root")
            return RepositoryHandle(working_directory=git_dir, metadata_directory=git_dir, is_bare=True)

        toplevel = self.git.run(["rev-parse", "--show-toplevel"], cwd=directory)
        if not toplevel.success or not toplevel.output:
            raise NotARepository(
                f"{directory} is not inside a working tree",
                cause=toplevel.as_error(),
            )
        return RepositoryHandle(
            working_directory=Path(toplevel.output),
            metadata_directory=git_dir,
            is_bare=False,
        )

    def is_repository_root(self, path) -> bool:
        """True when path itself is the root of a repository (work tree or bare)."""
        directory = Path(path).expanduser()
        try:
            handle = self.open(directory)
        except NotARepository:
            return False
        with handle:
            return handle.working_directory.resolve() == directory.resolve()

    def init(self, path, bare: bool = False, initial_branch: str = "main") -> RepositoryHandle:
        """
        Create a new empty repository at path.

        Raises:
            DirectoryCreationFailed: path cannot be created
            OperationFailed: git init failed
        """
        directory = Path(path).expanduser()
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreationFailed(f"Directory {directory} cannot be created", cause=e)

        args = ["init", "--quiet"]
        if bare:
            args.append("--bare")
        result = self.git.run(args + [str(directory)])
        if not result.success:
            raise OperationFailed(f"Cannot initialize repository at {directory}", cause=result.as_error())

        git_dir = directory if bare else directory / ".git"
        self.git.run(["symbolic-ref", "HEAD", f"{HEADS_PREFIX}{initial_branch}"], cwd=git_dir)
        return self.open(directory)

    def init_or_clone(
        self,
        path,
        source_uri: str,
        bare: bool = False,
        remote: str = "origin",
        branch: str = DEFAULT_BRANCH,
        credentials: Optional[Credentials] = None,
    ) -> CloneResult:
        """
        Clone source_uri into path, or verify the repository already there.

        When path already holds a repository this only checks that its
        latest history can be read; nothing is fetched.

        Args:
            path: Target directory
            source_uri: Repository to clone from
            bare: Create a bare repository
            remote: Name recorded for the upstream repository
            branch: Branch to check out; HEAD means the remote's default
            credentials: Optional credentials for the transport

        Returns:
            CloneResult; its handle is open and owned by the caller

        Raises:
            DirectoryCreationFailed: target path cannot be created
            CloneFailed: transport failure, or path is a non-empty
                directory that is not a repository
        """
        if not source_uri or not source_uri.strip():
            raise InvalidParameter("A repository URI is required to clone")

        target = Path(path).expanduser()

        if target.exists():
            if not target.is_dir():
                raise CloneFailed(f"{target} exists and is not a directory")
            if self.is_repository_root(target):
                return self._verify(target, bare, remote)
            if any(target.iterdir()):
                raise CloneFailed(f"{target} exists, is not empty and is not a Git repository")
            created: List[Path] = []
        else:
            created = self._create_directories(target)

        return self._clone(target, source_uri, bare, remote, branch, credentials, created)

    def _verify(self, target: Path, bare: bool, remote: str) -> CloneResult:
        """Idempotent path of init_or_clone: confirm the latest commit is readable."""
        handle = self.open(target)
        log = self.git.run(["log", "-1", "--format=%H"], cwd=handle.path)
        head: Optional[str] = None
        if log.success:
            head = log.output or None
        else:
            refs = self.git.run(["show-ref"], cwd=handle.path)
            if refs.output:
                handle.close()
                raise CloneFailed(
                    f"Cannot read history of existing repository {target}",
                    cause=log.as_error(),
                )
            # An empty repository has no history to read.
        logger.info(f"Repository already present at {target}; skipping clone")
        return CloneResult(
            directory=str(target),
            cloned=False,
            bare=handle.is_bare,
            remote=remote,
            branch=self.git.current_branch(handle.path),
            head=head,
            handle=handle,
        )

    def _create_directories(self, target: Path) -> List[Path]:
        """Create target and missing parents; return the created ones, outermost first."""
        missing = []
        current = target
        while not current.exists():
            missing.append(current)
            if current.parent == current:
                break
            current = current.parent
        try:
            target.mkdir(parents=True)
        except OSError as e:
            raise DirectoryCreationFailed(f"Directory {target} cannot be created", cause=e)
        return list(reversed(missing))

    def _clone(
        self,
        target: Path,
        source_uri: str,
        bare: bool,
        remote: str,
        branch: str,
        credentials: Optional[Credentials],
        created: List[Path],
    ) -> CloneResult:
        args = ["clone", "--quiet"]
        # Older git refuses --origin together with --bare
        if bare:
            args.append("--bare")
        else:
            args += ["--origin", remote]
        branch_name = _normalize_branch(branch)
        if branch_name:
            args += ["--branch", branch_name]
        args += ["--", source_uri, str(target)]

        logger.info(f"Cloning {mask_credentials(source_uri)} into {target}")
        result = self.git.run_network(args, credentials=credentials)
        if not result.success:
            self._cleanup(target, created)
            raise CloneFailed(
                f"Cannot clone {mask_credentials(source_uri)} into {target}",
                cause=result.as_error(),
                timed_out=result.timed_out,
            )

        handle = self.open(target)
        if bare and remote != "origin":
            renamed = self.git.run(["remote", "rename", "origin", remote], cwd=handle.path)
            if not renamed.success:
                handle.close()
                self._cleanup(target, created)
                raise CloneFailed(f"Cannot name remote {remote}", cause=renamed.as_error())
        return CloneResult(
            directory=str(target),
            cloned=True,
            bare=bare,
            remote=remote,
            branch=self.git.current_branch(handle.path),
            head=self.git.rev_parse(handle.path, "HEAD"),
            handle=handle,
        )

    def _cleanup(self, target: Path, created: List[Path]) -> None:
        """Undo a failed clone: remove created directories, or empty a pre-existing one."""
        if created:
            shutil.rmtree(created[0], ignore_errors=True)
            return
        for child in target.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child, ignore_errors=True)
            else:
                child.unlink(missing_ok=True)


def _normalize_branch(branch: Optional[str]) -> Optional[str]:
    """Branch name for ``git clone --branch``; None for the remote default."""
    if not branch or branch == DEFAULT_BRANCH:
        return None
    if branch.startswith(HEADS_PREFIX):
        return branch[len(HEADS_PREFIX):]
    return branch
