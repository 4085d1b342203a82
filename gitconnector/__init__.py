"""
gitconnector - Git operations as declarative, lock-protected calls.

gitconnector exposes clone, add, branch management, commit, checkout,
push, pull, fetch and reset as operations a workflow engine can invoke
by name. Git itself does the heavy lifting; gitconnector owns the
repository lifecycle, the safety rules and a closed set of error kinds.

Quick Start:
    from gitconnector import GitConnector, ConnectorConfig

    connector = GitConnector(ConnectorConfig(directory="~/work/project"))
    connector.clone("https://example.com/project.git")
    connector.add(["src", "README.md"])
    connector.commit("Update docs", "CI", "ci@example.com")
    connector.push()

    # Engine-style invocation, never raises
    outcome = connector.invoke("createBranch", {"branchName": "topic"})
    print(outcome.to_dict())

Services (for advanced use):
    RepositoryService - open, init, init-or-clone
    IndexService - staging
    ReferenceService - branches and checkout
    CommitService - commits
    RemoteService - fetch, pull, push, reset
"""

__version__ = "0.1.0"

# High-level API
from .connector import GitConnector
from .config import ConnectorConfig, load_config, save_config

# Domain objects
from .domain import (
    RepositoryHandle,
    Commit,
    CommitIdentity,
    Reference,
    StagingEntry,
    RemoteDescriptor,
    OperationOutcome,
)

# Services (for advanced use)
from .services import (
    RepositoryService,
    IndexService,
    ReferenceService,
    CommitService,
    RemoteService,
)

from .infra import Credentials
from .errors import GitConnectorError, ERROR_KINDS

__all__ = [
    # Version
    "__version__",
    # High-level API
    "GitConnector",
    "ConnectorConfig",
    # Domain objects
    "RepositoryHandle",
    "Commit",
    "CommitIdentity",
    "Reference",
    "StagingEntry",
    "RemoteDescriptor",
    "OperationOutcome",
    # Services
    "RepositoryService",
    "IndexService",
    "ReferenceService",
    "CommitService",
    "RemoteService",
    # Credentials and errors
    "Credentials",
    "GitConnectorError",
    "ERROR_KINDS",
    # Configuration
    "load_config",
    "save_config",
]
