"""
Error taxonomy for gitconnector.

Every failure that leaves the connector is exactly one of the kinds below.
Lower-layer exceptions (OSError, subprocess errors, unexpected git exits)
are chained as ``cause`` so diagnostics are never lost.

Besides the kinds each operation documents, three are specific to this
package: NoSuchPath (``add`` patterns that match nothing),
DetachedHeadCommit (``commit`` with HEAD off any branch) and
OperationFailed, the catch-all for a local git command that failed for a
reason none of the other kinds describe. Unclassified exceptions escaping
clone fall back to CloneFailed, and those escaping fetch, pull and push fall
back to TransportError.
"""

from typing import Any, Dict, List, Optional, Type

from .exit_codes import (
    CommandError,
    GENERAL_ERROR,
    USAGE_ERROR,
    NOT_A_REPOSITORY,
    PERMISSION_ERROR,
    NETWORK_ERROR,
    AUTH_ERROR,
    REFUSED,
    LOCKED,
)


class GitConnectorError(CommandError):
    """
    Base class for every classified connector failure.

    Attributes:
        kind: Stable error kind name reported to callers
        cause: The lower-layer exception or git output that triggered it
    """
    exit_code = GENERAL_ERROR

    def __init__(self, message: str, cause: Optional[BaseException] = None, **details: Any):
        super().__init__(message, type(self).exit_code)
        self.cause = cause
        self.details = details
        if cause is not None:
            self.__cause__ = cause

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'error': str(self),
            'kind': self.kind,
            'exit_code': self.exit_code,
        }
        if self.cause is not None:
            result['cause'] = f"{type(self.cause).__name__}: {self.cause}"
        if self.details:
            result['details'] = self.details
        return result


class NotARepository(GitConnectorError):
    exit_code = NOT_A_REPOSITORY


class DirectoryCreationFailed(GitConnectorError):
    exit_code = PERMISSION_ERROR


class CloneFailed(GitConnectorError):
    exit_code = NETWORK_ERROR


class TransportError(GitConnectorError):
    exit_code = NETWORK_ERROR

    def __init__(self, message: str, auth_failed: bool = False, **kwargs: Any):
        super().__init__(message, **kwargs)
        if auth_failed:
            self.exit_code = AUTH_ERROR
            self.details['auth_failed'] = True


class NoSuchRemote(GitConnectorError):
    exit_code = USAGE_ERROR


class NoSuchBranch(GitConnectorError):
    exit_code = USAGE_ERROR


class NoSuchPath(GitConnectorError):
    exit_code = USAGE_ERROR

    def __init__(self, message: str, patterns: Optional[List[str]] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.patterns = list(patterns or [])
        if self.patterns:
            self.details['patterns'] = self.patterns


class BranchAlreadyExists(GitConnectorError):
    exit_code = REFUSED


class BranchNotFullyMerged(GitConnectorError):
    exit_code = REFUSED


class CannotDeleteCurrentBranch(GitConnectorError):
    exit_code = REFUSED


class UnresolvableStartPoint(GitConnectorError):
    exit_code = USAGE_ERROR


class NothingToCommit(GitConnectorError):
    exit_code = REFUSED


class DetachedHeadCommit(GitConnectorError):
    exit_code = REFUSED


class NonFastForward(GitConnectorError):
    exit_code = REFUSED


class MergeConflict(GitConnectorError):
    exit_code = REFUSED

    def __init__(self, message: str, conflicts: Optional[List[str]] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.conflicts = list(conflicts or [])
        if self.conflicts:
            self.details['conflicts'] = self.conflicts


class RepositoryLocked(GitConnectorError):
    exit_code = LOCKED


class InvalidParameter(GitConnectorError):
    exit_code = USAGE_ERROR


class OperationFailed(GitConnectorError):
    """A git failure with no more specific kind."""
    exit_code = GENERAL_ERROR


ERROR_KINDS: Dict[str, Type[GitConnectorError]] = {
    cls.__name__: cls
    for cls in (
        NotARepository,
        DirectoryCreationFailed,
        CloneFailed,
        TransportError,
        NoSuchRemote,
        NoSuchBranch,
        NoSuchPath,
        BranchAlreadyExists,
        BranchNotFullyMerged,
        CannotDeleteCurrentBranch,
        UnresolvableStartPoint,
        NothingToCommit,
        DetachedHeadCommit,
        NonFastForward,
        MergeConflict,
        RepositoryLocked,
        InvalidParameter,
        OperationFailed,
    )
}
