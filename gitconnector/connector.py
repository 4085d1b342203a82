"""
Operation facade for gitconnector.

GitConnector is what a workflow engine (or any Python caller) talks to.
Each method resolves the repository directory, opens a handle, takes the
repository lock, delegates to the services and closes the handle again.
Failures always leave as one of the kinds in gitconnector.errors.

Example:
    connector = GitConnector(ConnectorConfig(directory="/srv/repo"))
    connector.clone("https://example.com/project.git")
    connector.checkout("feature", start_point="origin/feature")

    outcome = connector.invoke("createBranch", {"branchName": "topic"})
    if not outcome.ok:
        print(outcome.kind, outcome.message)
"""

import functools
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional, Union
import logging

from .config import ConnectorConfig
from .domain.commit import Commit, CommitIdentity
from .domain.operation import (
    AddResult,
    CloneResult,
    FetchResult,
    OperationOutcome,
    PullResult,
    PushResult,
    ResetResult,
)
from .domain.reference import Reference
from .domain.repository import RepositoryHandle
from .errors import (
    CloneFailed,
    GitConnectorError,
    InvalidParameter,
    OperationFailed,
    TransportError,
)
from .infra.credentials import Credentials
from .infra.git_client import GitClient
from .infra.locking import clear_stale_lock, repository_lock
from .operations import bind_parameters, get_operation
from .services import (
    CommitService,
    IndexService,
    ReferenceService,
    RemoteService,
    RepositoryService,
    split_patterns,
)

logger = logging.getLogger(__name__)

FALLBACK_KINDS = {
    'clone': CloneFailed,
    'fetch': TransportError,
    'pull': TransportError,
    'push': TransportError,
}


def translate_errors(operation: str):
    """
    Decorator: let classified errors through, wrap everything else.

    Unclassified exceptions become the operation's fallback kind with the
    original exception chained as its cause.
    """
    fallback = FALLBACK_KINDS.get(operation, OperationFailed)

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except GitConnectorError:
                raise
            except Exception as e:
                logger.error(f"Unexpected error in {operation}: {type(e).__name__}: {e}")
                raise fallback(f"{operation} failed: {e}", cause=e) from e
        return wrapper
    return decorator


class GitConnector:
    """Git operations exposed as declarative, lock-protected calls."""

    def __init__(self, config: Optional[ConnectorConfig] = None, git_client: Optional[GitClient] = None):
        self.config = config or ConnectorConfig()
        self.git = git_client or GitClient(
            timeout=self.config.local_timeout,
            network_timeout=self.config.network_timeout,
        )
        self.repositories = RepositoryService(self.git)
        self.index = IndexService(self.git)
        self.references = ReferenceService(self.git)
        self.commits = CommitService(self.git, self.index)
        self.remotes = RemoteService(self.git, self.references)

    def resolve_directory(self, override_directory: Optional[str] = None) -> Path:
        """override_directory when given, else the configured directory."""
        if override_directory is not None:
            if not str(override_directory).strip():
                raise InvalidParameter("overrideDirectory must not be empty")
            return Path(override_directory).expanduser()
        if not self.config.directory:
            raise InvalidParameter("No repository directory configured and no override given")
        return Path(self.config.directory).expanduser()

    @contextmanager
    def _session(
        self,
        operation: str,
        override_directory: Optional[str],
        exclusive: bool = True,
    ) -> Iterator[RepositoryHandle]:
        """Open the repository and hold its lock for one operation."""
        handle = self.repositories.open(self.resolve_directory(override_directory))
        with handle:
            handle.enter(repository_lock(
                handle.metadata_directory,
                operation,
                exclusive=exclusive,
                timeout=self.config.lock_timeout,
            ))
            yield handle

    def _credentials(self, credentials: Optional[Credentials]) -> Optional[Credentials]:
        return credentials if credentials is not None else self.config.credentials

    @translate_errors("clone")
    def clone(
        self,
        uri: str,
        bare: bool = False,
        remote: str = "origin",
        branch: str = "HEAD",
        override_directory: Optional[str] = None,
        credentials: Optional[Credentials] = None,
    ) -> CloneResult:
        """
        Clone uri into the repository directory, or verify the repository
        already there.

        Args:
            uri: Repository to clone from
            bare: Create a bare repository
            remote: Name for the upstream repository
            branch: Branch to check out; HEAD means the remote's default
            override_directory: Directory to use instead of the configured one
            credentials: Credentials for the transport (defaults to config)
        """
        directory = self.resolve_directory(override_directory)
        result = self.repositories.init_or_clone(
            directory,
            uri,
            bare=bare,
            remote=remote or "origin",
            branch=branch or "HEAD",
            credentials=self._credentials(credentials),
        )
        # An interrupted earlier operation shows up here as RepositoryLocked
        with result.handle as handle:
            handle.enter(repository_lock(
                handle.metadata_directory, "clone", exclusive=False, timeout=self.config.lock_timeout
            ))
        return result

    @translate_errors("add")
    def add(
        self,
        file_patterns: Union[str, List[str], None] = None,
        force_all: bool = False,
        override_directory: Optional[str] = None,
        strict: Optional[bool] = None,
    ) -> AddResult:
        """
        Stage files for the next commit.

        Args:
            file_patterns: Literal paths (files or directories), as a list
                or one ";"-delimited string
            force_all: Stage every new, modified and deleted file
            override_directory: Directory to use instead of the configured one
            strict: Fail if any pattern matches nothing (defaults to config)
        """
        with self._session("add", override_directory) as handle:
            if force_all:
                return self.index.stage_everything(handle)
            if strict is None:
                strict = self.config.strict_patterns
            return self.index.stage(handle, split_patterns(file_patterns), strict=strict)

    @translate_errors("create_branch")
    def create_branch(
        self,
        name: str,
        force: bool = False,
        start_point: str = "HEAD",
        override_directory: Optional[str] = None,
    ) -> Reference:
        with self._session("create_branch", override_directory) as handle:
            return self.references.create_branch(handle, name, start_point or "HEAD", force=force)

    @translate_errors("delete_branch")
    def delete_branch(
        self,
        name: str,
        force: bool = False,
        override_directory: Optional[str] = None,
    ) -> Reference:
        with self._session("delete_branch", override_directory) as handle:
            return self.references.delete_branch(handle, name, force=force)

    @translate_errors("commit")
    def commit(
        self,
        msg: str,
        committer_name: str,
        committer_email: str,
        author_name: Optional[str] = None,
        author_email: Optional[str] = None,
        all: bool = False,
        override_directory: Optional[str] = None,
    ) -> Commit:
        """
        Record the staged changes as a new commit on the current branch.

        The author is used only when both author_name and author_email are
        given; otherwise the committer is also the author.
        """
        if not committer_name or not committer_email:
            raise InvalidParameter("committerName and committerEmail are required")
        if bool(author_name) != bool(author_email):
            raise InvalidParameter("authorName and authorEmail must be given together")

        committer = CommitIdentity(name=committer_name, email=committer_email)
        author = CommitIdentity(name=author_name, email=author_email) if author_name else None

        with self._session("commit", override_directory) as handle:
            return self.commits.commit(handle, msg, committer, author=author, all=all)

    @translate_errors("push")
    def push(
        self,
        remote: str = "origin",
        force: bool = False,
        override_directory: Optional[str] = None,
        credentials: Optional[Credentials] = None,
    ) -> PushResult:
        with self._session("push", override_directory) as handle:
            return self.remotes.push(
                handle,
                remote or self.config.remote,
                force=force,
                credentials=self._credentials(credentials),
            )

    @translate_errors("pull")
    def pull(
        self,
        remote: Optional[str] = None,
        override_directory: Optional[str] = None,
        credentials: Optional[Credentials] = None,
    ) -> PullResult:
        with self._session("pull", override_directory) as handle:
            return self.remotes.pull(
                handle,
                remote or self._default_remote(handle),
                credentials=self._credentials(credentials),
                identity=self.config.identity,
            )

    @translate_errors("fetch")
    def fetch(
        self,
        remote: Optional[str] = None,
        override_directory: Optional[str] = None,
        credentials: Optional[Credentials] = None,
    ) -> FetchResult:
        with self._session("fetch", override_directory) as handle:
            return self.remotes.fetch(
                handle,
                remote or self._default_remote(handle),
                credentials=self._credentials(credentials),
            )

    @translate_errors("checkout")
    def checkout(
        self,
        branch: str,
        start_point: Optional[str] = None,
        override_directory: Optional[str] = None,
    ) -> Reference:
        """
        Switch to branch, creating it at start_point when one is given.

        Differences in tracked files are overwritten.
        """
        with self._session("checkout", override_directory) as handle:
            return self.references.checkout(handle, branch, start_point=start_point or None)

    @translate_errors("reset_repository")
    def reset_repository(self, branch: str = "HEAD", override_directory: Optional[str] = None) -> ResetResult:
        """Hard reset the current branch, index and working tree to branch."""
        with self._session("reset_repository", override_directory) as handle:
            return self.remotes.reset_hard(handle, branch or "HEAD")

    def unlock(self, override_directory: Optional[str] = None) -> bool:
        """Remove the marker an interrupted operation left behind."""
        handle = self.repositories.open(self.resolve_directory(override_directory))
        with handle:
            return clear_stale_lock(handle.metadata_directory)

    def invoke(
        self,
        operation: str,
        params: Optional[Mapping[str, Any]] = None,
        credentials: Optional[Credentials] = None,
    ) -> OperationOutcome:
        """
        Run an operation by its engine name and return an explicit outcome.

        Never raises a connector error: failures come back as an
        OperationOutcome carrying the error kind.
        """
        name = operation
        directory = None
        try:
            spec = get_operation(operation)
            name = spec.name
            kwargs = bind_parameters(spec, params)
            if spec.network and credentials is not None:
                kwargs['credentials'] = credentials
            directory = str(self.resolve_directory(kwargs.get('override_directory')))
            value = getattr(self, spec.method)(**kwargs)
        except GitConnectorError as e:
            logger.warning(f"{name} failed: {e.kind}: {e}")
            return OperationOutcome.failure(name, e, directory=directory)
        return OperationOutcome.success(name, value, directory=directory)

    def _default_remote(self, handle: RepositoryHandle) -> str:
        branch = self.git.current_branch(handle.path)
        if branch and self.git.config_get(handle.path, f"branch.{branch}.remote"):
            return self.remotes.default_remote(handle)
        return self.config.remote
