"""
Reference, staging and remote domain objects for gitconnector.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..infra.credentials import Credentials, strip_credentials

HEADS_PREFIX = "refs/heads/"
REMOTES_PREFIX = "refs/remotes/"
TAGS_PREFIX = "refs/tags/"


def short_ref_name(ref: str) -> str:
    """refs/heads/main -> main, refs/remotes/origin/x -> origin/x."""
    for prefix in (HEADS_PREFIX, REMOTES_PREFIX, TAGS_PREFIX):
        if ref.startswith(prefix):
            return ref[len(prefix):]
    return ref


@dataclass(frozen=True)
class Reference:
    """
    A named pointer into history.

    ``target`` is a commit id, or for a symbolic reference (HEAD on a
    branch) the full name of the reference it points to.
    """
    name: str
    target: str
    symbolic: bool = False

    @property
    def short_name(self) -> str:
        return short_ref_name(self.name)

    @property
    def is_detached_head(self) -> bool:
        return self.name == "HEAD" and not self.symbolic

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'target': self.target,
            'symbolic': self.symbolic,
        }


@dataclass(frozen=True)
class StagingEntry:
    """One path in the index."""
    path: str
    content_hash: str
    mode: str
    stage: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'content_hash': self.content_hash,
            'mode': self.mode,
            'stage': self.stage,
        }


@dataclass(frozen=True)
class RemoteDescriptor:
    """A configured remote, or an anonymous one given by URI."""
    name: str
    uri: str
    credentials: Optional[Credentials] = None

    @property
    def is_anonymous(self) -> bool:
        return self.name == self.uri

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': strip_credentials(self.name),
            'uri': strip_credentials(self.uri),
            'has_credentials': bool(self.credentials and self.credentials.is_set),
        }
