"""
Domain layer for gitconnector.

Contains pure domain objects with no I/O or side effects:
- RepositoryHandle: an open repository and the resources tied to it
- Commit, CommitIdentity: parsed commit objects
- Reference, StagingEntry, RemoteDescriptor: refs, index entries, remotes
- Result objects and OperationOutcome for operation results

These objects provide serialization methods for JSON output.
"""

from .repository import RepositoryHandle
from .commit import Commit, CommitIdentity
from .reference import Reference, StagingEntry, RemoteDescriptor, short_ref_name
from .operation import (
    OperationStatus,
    OperationOutcome,
    CloneResult,
    AddResult,
    FetchResult,
    PullResult,
    PushResult,
    ResetResult,
)

__all__ = [
    'RepositoryHandle',
    'Commit',
    'CommitIdentity',
    'Reference',
    'StagingEntry',
    'RemoteDescriptor',
    'short_ref_name',
    'OperationStatus',
    'OperationOutcome',
    'CloneResult',
    'AddResult',
    'FetchResult',
    'PullResult',
    'PushResult',
    'ResetResult',
]
