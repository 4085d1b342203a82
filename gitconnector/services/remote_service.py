"""
Remote transport service for gitconnector.

Fetch, pull, push and hard reset. Network commands run through
GitClient.run_network so they use the network timeout and never prompt.
"""

import os
import re
from typing import Dict, List, Optional
import logging

from ..domain.commit import CommitIdentity
from ..domain.operation import FetchResult, PullResult, PushResult, ResetResult
from ..domain.reference import HEADS_PREFIX, REMOTES_PREFIX, RemoteDescriptor
from ..domain.repository import RepositoryHandle
from ..errors import (
    InvalidParameter,
    MergeConflict,
    NoSuchBranch,
    NoSuchRemote,
    NonFastForward,
    OperationFailed,
    TransportError,
)
from ..infra.credentials import Credentials, mask_credentials
from ..infra.git_client import GitClient, GitResult
from .reference_service import ReferenceService

logger = logging.getLogger(__name__)

DEFAULT_REMOTE = "origin"
FETCH_HEAD = "FETCH_HEAD"

_SCP_LIKE_RE = re.compile(r"^[\w.-]+@[\w.-]+:")
_REJECTION_REASONS = ("non-fast-forward", "fetch first", "stale info")
_AUTH_FAILURES = ("authentication failed", "could not read username", "permission denied")


class RemoteService:
    """Talks to remotes: fetch, pull, push. Also owns hard reset."""

    def __init__(self, git_client: Optional[GitClient] = None, references: Optional[ReferenceService] = None):
        self.git = git_client or GitClient()
        self.references = references or ReferenceService(self.git)

    def get_remote(
        self,
        handle: RepositoryHandle,
        name_or_uri: str,
        credentials: Optional[Credentials] = None,
    ) -> RemoteDescriptor:
        """
        Look up a configured remote, or accept a URI as an anonymous remote.

        Raises:
            InvalidParameter: blank, or starts with "-" (would be read as a git option)
            NoSuchRemote: neither a configured remote nor a usable URI
        """
        handle.ensure_open()
        if not name_or_uri or not name_or_uri.strip():
            raise InvalidParameter("A remote name or URI is required")
        name_or_uri = name_or_uri.strip()
        if name_or_uri.startswith('-'):
            raise InvalidParameter(f"'{mask_credentials(name_or_uri)}' is not a valid remote name or URI")

        if name_or_uri in self.git.remote_names(handle.path):
            uri = self.git.remote_url(handle.path, name_or_uri) or ""
            return RemoteDescriptor(name=name_or_uri, uri=uri, credentials=credentials)
        if "://" in name_or_uri or _SCP_LIKE_RE.match(name_or_uri) or os.path.isdir(name_or_uri):
            return RemoteDescriptor(name=name_or_uri, uri=name_or_uri, credentials=credentials)
        raise NoSuchRemote(f"Remote '{mask_credentials(name_or_uri)}' is not configured")

    def default_remote(self, handle: RepositoryHandle) -> str:
        """Remote tracked by the current branch, else origin."""
        branch = self.git.current_branch(handle.path)
        if branch:
            configured = self.git.config_get(handle.path, f"branch.{branch}.remote")
            if configured and configured != ".":
                return configured
        return DEFAULT_REMOTE

    def fetch(
        self,
        handle: RepositoryHandle,
        remote: Optional[str] = None,
        credentials: Optional[Credentials] = None,
        refspec: Optional[str] = None,
    ) -> FetchResult:
        """
        Download objects and update remote-tracking references.

        Local branches and the working tree are not touched.

        Raises:
            NoSuchRemote: remote is unknown
            TransportError: the transport failed or timed out
        """
        handle.ensure_open()
        descriptor = self.get_remote(handle, remote or self.default_remote(handle), credentials)

        before = self._tracking_refs(handle, descriptor)
        args = ["fetch", "--quiet", "--", descriptor.name]
        if refspec:
            args.append(refspec)

        logger.info(f"Fetching from {mask_credentials(descriptor.uri or descriptor.name)}")
        result = self.git.run_network(args, cwd=handle.path, credentials=credentials)
        if not result.success:
            raise self._transport_error(f"Fetch from {descriptor.name} failed", result)

        after = self._tracking_refs(handle, descriptor)
        updated = {ref: target for ref, target in after.items() if before.get(ref) != target}
        return FetchResult(remote=mask_credentials(descriptor.name), updated=updated)

    def pull(
        self,
        handle: RepositoryHandle,
        remote: Optional[str] = None,
        credentials: Optional[Credentials] = None,
        identity: Optional[CommitIdentity] = None,
    ) -> PullResult:
        """
        Fetch, then integrate the upstream of the current branch.

        Fast-forwards when possible, otherwise records a merge commit.
        A conflicting merge is aborted and leaves the working tree as it
        was before the merge.

        Args:
            handle: Open repository handle with a working tree
            remote: Remote name or URI (defaults to the branch's remote)
            credentials: Optional credentials for the transport
            identity: Identity for a merge commit (defaults to git config)

        Raises:
            InvalidParameter: HEAD is detached
            NoSuchBranch: the remote has no matching branch
            MergeConflict: the merge produced conflicts or would
                overwrite local changes
            TransportError: the fetch failed
        """
        handle.require_worktree("pull")
        branch = self.git.current_branch(handle.path)
        if branch is None:
            raise InvalidParameter("HEAD is detached; check out a branch before pulling")

        remote_name = remote or self.default_remote(handle)
        descriptor = self.get_remote(handle, remote_name, credentials)
        upstream_branch = self._upstream_branch(handle, branch)

        if descriptor.is_anonymous:
            self.fetch(handle, descriptor.name, credentials, refspec=f"{HEADS_PREFIX}{upstream_branch}")
            upstream = FETCH_HEAD
        else:
            self.fetch(handle, descriptor.name, credentials)
            upstream = f"{REMOTES_PREFIX}{descriptor.name}/{upstream_branch}"

        upstream_id = self.git.rev_parse(handle.path, upstream)
        if upstream_id is None:
            raise NoSuchBranch(f"Remote {mask_credentials(descriptor.name)} has no branch '{upstream_branch}'")

        before = self.git.rev_parse(handle.path, "HEAD")
        result_args = dict(
            remote=mask_credentials(descriptor.name),
            branch=branch,
            upstream=upstream if upstream != FETCH_HEAD else upstream_branch,
            before=before,
        )

        if before is not None and self.git.is_ancestor(handle.path, upstream_id, before):
            logger.info(f"Branch {branch} is already up to date with {upstream}")
            return PullResult(after=before, **result_args)

        if before is None or self.git.is_ancestor(handle.path, before, upstream_id):
            result = self.git.run(["merge", "--ff-only", "--quiet", upstream_id], cwd=handle.path)
            if not result.success:
                self._raise_merge_failure(handle, upstream, result)
            after = self.git.rev_parse(handle.path, "HEAD")
            pulled = self._count(handle, before, after)
            logger.info(f"Fast-forwarded {branch} by {pulled} commit(s)")
            return PullResult(after=after, commits_pulled=pulled, fast_forward=True, **result_args)

        env = {}
        if identity is not None:
            env.update(identity.env("AUTHOR"))
            env.update(identity.env("COMMITTER"))
        message = f"Merge {upstream_branch} of {mask_credentials(descriptor.uri or descriptor.name)} into {branch}"
        result = self.git.run(
            ["merge", "--no-ff", "--no-edit", "--quiet", "-m", message, upstream_id],
            cwd=handle.path,
            env=env or None,
        )
        if not result.success:
            self._raise_merge_failure(handle, upstream, result)

        after = self.git.rev_parse(handle.path, "HEAD")
        pulled = self._count(handle, before, upstream_id)
        logger.info(f"Merged {pulled} commit(s) from {upstream} into {branch}")
        return PullResult(
            after=after,
            commits_pulled=pulled,
            fast_forward=False,
            merge_commit=after,
            **result_args,
        )

    def push(
        self,
        handle: RepositoryHandle,
        remote: str = DEFAULT_REMOTE,
        force: bool = False,
        credentials: Optional[Credentials] = None,
    ) -> PushResult:
        """
        Push the current branch to the branch of the same name on remote.

        Raises:
            InvalidParameter: HEAD is detached or has no commits
            NoSuchRemote: remote is unknown
            NonFastForward: the remote branch has commits not in the local
                branch and force is False
            TransportError: any other transport failure
        """
        handle.ensure_open()
        branch = self.git.current_branch(handle.path)
        if branch is None:
            raise InvalidParameter("HEAD is detached; check out a branch before pushing")
        new_tip = self.git.rev_parse(handle.path, "HEAD")
        if new_tip is None:
            raise InvalidParameter(f"Branch {branch} has no commits to push")

        descriptor = self.get_remote(handle, remote or DEFAULT_REMOTE, credentials)
        old_tip = None
        if not descriptor.is_anonymous:
            old_tip = self.git.rev_parse(handle.path, f"{REMOTES_PREFIX}{descriptor.name}/{branch}")

        refspec = f"{HEADS_PREFIX}{branch}:{HEADS_PREFIX}{branch}"
        args = ["push", "--porcelain"]
        if force:
            args.append("--force")
        args += ["--", descriptor.name, refspec]

        logger.info(f"Pushing {branch} to {mask_credentials(descriptor.uri or descriptor.name)}")
        result = self.git.run_network(args, cwd=handle.path, credentials=credentials)
        status = _porcelain_status(result.stdout, refspec)

        if not result.success:
            if status is not None and status[0] == '!' and any(r in status[1] for r in _REJECTION_REASONS):
                raise NonFastForward(
                    f"Remote branch {branch} has commits that are not in the local branch; pull first",
                    cause=result.as_error(),
                )
            raise self._transport_error(f"Push to {descriptor.name} failed", result)

        return PushResult(
            remote=mask_credentials(descriptor.name),
            branch=branch,
            old_tip=old_tip,
            new_tip=new_tip,
            forced=status is not None and status[0] == '+',
            up_to_date=status is not None and status[0] == '=',
        )

    def reset_hard(self, handle: RepositoryHandle, ref: str = "HEAD") -> ResetResult:
        """
        Point the current branch, index and working tree at ref.

        Uncommitted changes to tracked files are discarded; untracked
        files are left in place.

        Raises:
            UnresolvableStartPoint: ref names no commit
        """
        handle.require_worktree("reset")
        ref = (ref or "HEAD").strip()
        target = self.references.resolve(handle, ref)
        before = self.git.rev_parse(handle.path, "HEAD")

        result = self.git.run(["reset", "--hard", "--quiet", target], cwd=handle.path)
        if not result.success:
            raise OperationFailed(f"Cannot reset to {ref}", cause=result.as_error())

        logger.info(f"Reset {handle.working_directory} to {ref} ({target[:7]})")
        return ResetResult(ref=ref, before=before, after=target)

    def _upstream_branch(self, handle: RepositoryHandle, branch: str) -> str:
        merge = self.git.config_get(handle.path, f"branch.{branch}.merge")
        if merge and merge.startswith(HEADS_PREFIX):
            return merge[len(HEADS_PREFIX):]
        return branch

    def _tracking_refs(self, handle: RepositoryHandle, descriptor: RemoteDescriptor) -> Dict[str, str]:
        if descriptor.is_anonymous:
            return {}
        result = self.git.run(
            ["for-each-ref", "--format=%(refname) %(objectname)", f"{REMOTES_PREFIX}{descriptor.name}"],
            cwd=handle.path,
        )
        refs = {}
        for line in result.lines():
            name, _, target = line.partition(' ')
            refs[name] = target
        return refs

    def _count(self, handle: RepositoryHandle, before: Optional[str], after: Optional[str]) -> int:
        if after is None:
            return 0
        if before is None:
            return self.git.count_commits(handle.path, after)
        return self.git.count_commits(handle.path, f"{before}..{after}")

    def _conflicts(self, handle: RepositoryHandle) -> List[str]:
        result = self.git.run(["diff", "--name-only", "--diff-filter=U", "-z"], cwd=handle.path)
        return sorted(name for name in result.stdout.split('\0') if name)

    def _raise_merge_failure(self, handle: RepositoryHandle, upstream: str, result: GitResult) -> None:
        conflicts = self._conflicts(handle)
        if self.git.rev_parse(handle.path, "MERGE_HEAD") is not None:
            self.git.run(["merge", "--abort"], cwd=handle.path)
            raise MergeConflict(
                f"Merging {upstream} produced conflicts; the merge was aborted",
                conflicts=conflicts,
                cause=result.as_error(),
            )
        text = f"{result.stdout}\n{result.stderr}"
        if "overwritten" in text or "conflict" in text.lower():
            raise MergeConflict(
                f"Merging {upstream} would overwrite local changes",
                conflicts=conflicts,
                cause=result.as_error(),
            )
        raise OperationFailed(f"Cannot merge {upstream}", cause=result.as_error())

    def _transport_error(self, message: str, result: GitResult) -> TransportError:
        if result.timed_out:
            message = f"{message} (timed out)"
        text = result.error_text.lower()
        auth_failed = any(marker in text for marker in _AUTH_FAILURES)
        return TransportError(
            message,
            auth_failed=auth_failed,
            cause=result.as_error(),
            timed_out=result.timed_out,
        )


def _porcelain_status(output: str, refspec: str):
    """(flag, summary) for refspec from ``git push --porcelain`` output, or None."""
    for line in output.splitlines():
        parts = line.split('\t')
        if len(parts) >= 3 and parts[1] == refspec:
            return parts[0], '\t'.join(parts[2:])
    return None
