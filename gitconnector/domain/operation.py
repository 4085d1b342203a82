"""
Operation result domain objects for gitconnector.

Provides standardized result types for the connector's operations and
the OperationOutcome envelope returned to workflow engines.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import GitConnectorError
from .repository import RepositoryHandle


class OperationStatus(Enum):
    """Status of an invoked operation."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class CloneResult:
    """Result of init-or-clone."""
    directory: str
    cloned: bool  # False when an existing repository was verified instead
    bare: bool = False
    remote: str = "origin"
    branch: Optional[str] = None
    head: Optional[str] = None
    handle: Optional[RepositoryHandle] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'directory': self.directory,
            'action': 'cloned' if self.cloned else 'verified',
            'bare': self.bare,
            'remote': self.remote,
            'branch': self.branch,
            'head': self.head,
        }


@dataclass(frozen=True)
class AddResult:
    """Paths staged by an add."""
    staged: List[str] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'staged': list(self.staged)}
        if self.unmatched:
            result['unmatched'] = list(self.unmatched)
        return result


@dataclass(frozen=True)
class FetchResult:
    """Remote-tracking references changed by a fetch."""
    remote: str
    updated: Dict[str, str] = field(default_factory=dict)  # ref -> new commit id

    def to_dict(self) -> Dict[str, Any]:
        return {
            'remote': self.remote,
            'updated': dict(self.updated),
        }


@dataclass(frozen=True)
class PullResult:
    """Result of a git pull."""
    remote: str
    branch: str
    upstream: str
    before: Optional[str]
    after: Optional[str]
    commits_pulled: int = 0
    fast_forward: bool = True
    merge_commit: Optional[str] = None

    @property
    def up_to_date(self) -> bool:
        return self.before == self.after

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'remote': self.remote,
            'branch': self.branch,
            'upstream': self.upstream,
            'before': self.before,
            'after': self.after,
            'commits_pulled': self.commits_pulled,
            'fast_forward': self.fast_forward,
            'up_to_date': self.up_to_date,
        }
        if self.merge_commit:
            result['merge_commit'] = self.merge_commit
        return result


@dataclass(frozen=True)
class PushResult:
    """Result of a git push."""
    remote: str
    branch: str
    old_tip: Optional[str]
    new_tip: str
    forced: bool = False
    up_to_date: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'remote': self.remote,
            'branch': self.branch,
            'old_tip': self.old_tip,
            'new_tip': self.new_tip,
            'forced': self.forced,
            'up_to_date': self.up_to_date,
        }


@dataclass(frozen=True)
class ResetResult:
    """Result of a hard reset."""
    ref: str
    before: Optional[str]
    after: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ref': self.ref,
            'before': self.before,
            'after': self.after,
        }


@dataclass
class OperationOutcome:
    """
    Explicit success-or-error-kind result of one invoked operation.

    Workflow engines receive this instead of an exception.
    """
    operation: str
    status: OperationStatus
    directory: Optional[str] = None
    value: Any = None
    kind: Optional[str] = None
    message: Optional[str] = None
    error: Optional[GitConnectorError] = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else self.error.exit_code

    @classmethod
    def success(cls, operation: str, value: Any = None, directory: Optional[str] = None) -> 'OperationOutcome':
        return cls(operation=operation, status=OperationStatus.SUCCESS, value=value, directory=directory)

    @classmethod
    def failure(cls, operation: str, error: GitConnectorError, directory: Optional[str] = None) -> 'OperationOutcome':
        return cls(
            operation=operation,
            status=OperationStatus.FAILED,
            directory=directory,
            kind=error.kind,
            message=str(error),
            error=error,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {
            'operation': self.operation,
            'status': self.status.value,
        }
        if self.directory:
            result['directory'] = self.directory
        if self.ok:
            if hasattr(self.value, 'to_dict'):
                result['result'] = self.value.to_dict()
            elif self.value is not None:
                result['result'] = self.value
        else:
            result.update(self.error.to_dict())
        return result
