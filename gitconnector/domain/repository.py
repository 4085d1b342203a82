"""
Repository handle domain object for gitconnector.

A RepositoryHandle is the unit of resource ownership: locks taken for an
operation are registered on it and released when the handle is closed.
"""

from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from ..errors import InvalidParameter


@dataclass
class RepositoryHandle:
    """An open repository: its working tree and metadata store."""
    working_directory: Path
    metadata_directory: Path
    is_bare: bool = False
    is_open: bool = True
    _resources: ExitStack = field(default_factory=ExitStack, repr=False, compare=False)

    @property
    def path(self) -> str:
        """Directory git commands run in."""
        return str(self.working_directory)

    def ensure_open(self) -> None:
        if not self.is_open:
            raise InvalidParameter(f"Repository handle for {self.working_directory} is closed")

    def require_worktree(self, operation: str) -> None:
        """Fail for operations that need a working tree on a bare repository."""
        self.ensure_open()
        if self.is_bare:
            raise InvalidParameter(
                f"'{operation}' needs a working tree but {self.working_directory} is a bare repository"
            )

    def enter(self, context_manager):
        """Acquire a resource whose release is tied to this handle."""
        self.ensure_open()
        return self._resources.enter_context(context_manager)

    def close(self) -> None:
        """Release every resource held by the handle. Safe to call twice."""
        self.__exit__(None, None, None)

    def __enter__(self) -> 'RepositoryHandle':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self.is_open:
            return
        self.is_open = False
        # Resources see the exception that ended the handle's use
        self._resources.__exit__(exc_type, exc, tb)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'working_directory': str(self.working_directory),
            'metadata_directory': str(self.metadata_directory),
            'is_bare': self.is_bare,
            'is_open': self.is_open,
        }
