"""
Infrastructure layer for gitconnector.

Contains abstractions for external systems:
- GitClient: Git command execution
- Credentials: username/password handed to network operations
- repository_lock: advisory per-repository locking

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, GitResult, GitCommandError
from .credentials import Credentials, mask_credentials, strip_credentials
from .locking import repository_lock, clear_stale_lock, read_marker

__all__ = [
    'GitClient',
    'GitResult',
    'GitCommandError',
    'Credentials',
    'mask_credentials',
    'strip_credentials',
    'repository_lock',
    'clear_stale_lock',
    'read_marker',
]
