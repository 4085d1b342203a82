"""
Service layer for gitconnector.

Contains the Git semantics that sit on top of the git runner:
- RepositoryService: open, init and init-or-clone
- IndexService: staging
- ReferenceService: branches, HEAD, checkout
- CommitService: commits
- RemoteService: fetch, pull, push, hard reset

Services are the primary API for the connector facade to use.
"""

from .repository_service import RepositoryService
from .index_service import IndexService, split_patterns
from .reference_service import ReferenceService
from .commit_service import CommitService
from .remote_service import RemoteService

__all__ = [
    'RepositoryService',
    'IndexService',
    'split_patterns',
    'ReferenceService',
    'CommitService',
    'RemoteService',
]
