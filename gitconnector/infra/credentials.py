"""
Credential plumbing for network-facing git operations.

Credentials are an explicit value handed to each network call. They reach
git through a one-shot credential helper that reads them from the
subprocess environment, so they never appear on a command line.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

USERNAME_ENV = "GITCONNECTOR_USERNAME"
PASSWORD_ENV = "GITCONNECTOR_PASSWORD"

# Reads the two variables above; only answers "get" requests.
CREDENTIAL_HELPER = (
    "!f() { test \"$1\" = get || exit 0; "
    f"echo \"username=${{{USERNAME_ENV}}}\"; "
    f"echo \"password=${{{PASSWORD_ENV}}}\"; }}; f"
)

_USERINFO_RE = re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)(?P<userinfo>[^/@\s]+)@")


@dataclass(frozen=True)
class Credentials:
    """Username/password pair for a remote."""
    username: str = ""
    password: str = ""

    @property
    def is_set(self) -> bool:
        return bool(self.username or self.password)

    def env(self) -> Dict[str, str]:
        return {USERNAME_ENV: self.username, PASSWORD_ENV: self.password}

    def git_config(self) -> List[Tuple[str, str]]:
        """One-shot ``-c`` settings installing the environment helper."""
        # The empty entry resets helpers inherited from user or system config.
        return [("credential.helper", ""), ("credential.helper", CREDENTIAL_HELPER)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'username': self.username,
            'password': '***' if self.password else '',
        }

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password={'***' if self.password else ''!r})"

    @classmethod
    def from_values(cls, username: Optional[str], password: Optional[str]) -> Optional['Credentials']:
        """Build credentials, or None when neither value is given."""
        if not username and not password:
            return None
        return cls(username=username or "", password=password or "")


def mask_credentials(text: str) -> str:
    """Replace the userinfo part of any URL in text with ***."""
    return _USERINFO_RE.sub(lambda m: f"{m.group('scheme')}***@", text)


def strip_credentials(url: str) -> str:
    """Remove userinfo from a URL; non-URL strings are returned unchanged."""
    if "://" not in url:
        return url
    parts = urlsplit(url)
    if "@" not in parts.netloc:
        return url
    host = parts.netloc.rsplit("@", 1)[1]
    return urlunsplit((parts.scheme, host, parts.path, parts.query, parts.fragment))
