"""
Commit domain objects for gitconnector.

Commits are parsed from git's raw commit object format:

    tree <id>
    parent <id>            (zero or more)
    author <name> <<email>> <unix-time> <tz>
    committer <name> <<email>> <unix-time> <tz>
    <other headers>

    <message>
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

_IDENTITY_RE = re.compile(r"^(?P<name>.*) <(?P<email>[^>]*)> (?P<ts>-?\d+) (?P<tz>[+-]\d{4})$")


@dataclass(frozen=True)
class CommitIdentity:
    """Author or committer of a commit."""
    name: str
    email: str
    timestamp: Optional[datetime] = None

    def env(self, role: str) -> Dict[str, str]:
        """Environment variables git reads for this identity (role: AUTHOR or COMMITTER)."""
        result = {
            f"GIT_{role}_NAME": self.name,
            f"GIT_{role}_EMAIL": self.email,
        }
        if self.timestamp is not None:
            result[f"GIT_{role}_DATE"] = self.timestamp.isoformat()
        return result

    @classmethod
    def parse(cls, value: str) -> 'CommitIdentity':
        """Parse an ``author``/``committer`` header value."""
        match = _IDENTITY_RE.match(value.strip())
        if not match:
            raise ValueError(f"Malformed identity line: {value!r}")
        tz = match.group('tz')
        offset = timedelta(hours=int(tz[1:3]), minutes=int(tz[3:5]))
        if tz[0] == '-':
            offset = -offset
        timestamp = datetime.fromtimestamp(int(match.group('ts')), tz=timezone(offset))
        return cls(name=match.group('name'), email=match.group('email'), timestamp=timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'email': self.email,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass(frozen=True)
class Commit:
    """An immutable, content-addressed commit."""
    id: str
    tree: str
    parents: Tuple[str, ...]
    author: CommitIdentity
    committer: CommitIdentity
    message: str

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def short_id(self) -> str:
        return self.id[:7]

    @property
    def subject(self) -> str:
        return self.message.split('\n', 1)[0]

    @classmethod
    def parse(cls, commit_id: str, raw: str) -> 'Commit':
        """Build a Commit from ``git cat-file commit`` output."""
        header, _, message = raw.partition('\n\n')
        tree = ''
        parents = []
        author = committer = None
        for line in header.split('\n'):
            # Continuation lines belong to multi-line headers such as gpgsig
            if not line or line.startswith(' '):
                continue
            key, _, value = line.partition(' ')
            if key == 'tree':
                tree = value
            elif key == 'parent':
                parents.append(value)
            elif key == 'author':
                author = CommitIdentity.parse(value)
            elif key == 'committer':
                committer = CommitIdentity.parse(value)
        if not tree or author is None or committer is None:
            raise ValueError(f"Malformed commit object {commit_id}")
        return cls(
            id=commit_id,
            tree=tree,
            parents=tuple(parents),
            author=author,
            committer=committer,
            message=message.rstrip('\n'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'tree': self.tree,
            'parents': list(self.parents),
            'author': self.author.to_dict(),
            'committer': self.committer.to_dict(),
            'message': self.message,
        }
