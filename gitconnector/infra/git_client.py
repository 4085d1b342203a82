"""
Git client infrastructure for gitconnector.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

The client never raises for a failed git command; it returns a GitResult
and leaves classification to the services layer.
"""

import os
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from .credentials import Credentials, mask_credentials

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
DEFAULT_NETWORK_TIMEOUT = 300
GIT_NOT_FOUND = 127


@dataclass
class GitResult:
    """Result of a git command."""
    args: List[str]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """Stripped stdout."""
        return self.stdout.strip()

    @property
    def error_text(self) -> str:
        """Best available description of a failure."""
        text = self.stderr.strip() or self.stdout.strip()
        if self.timed_out:
            return text or "git command timed out"
        return text or f"git exited with status {self.returncode}"

    def lines(self) -> List[str]:
        return [line for line in self.stdout.splitlines() if line.strip()]

    def as_error(self) -> 'GitCommandError':
        """Wrap a failed result so it can be chained as an exception cause."""
        return GitCommandError(self)


class GitCommandError(Exception):
    """A failed git invocation, used as the cause of classified errors."""

    def __init__(self, result: GitResult):
        super().__init__(f"git {' '.join(mask_credentials(a) for a in result.args)}: {result.error_text}")
        self.result = result


class GitClient:
    """
    Abstraction over git commands.

    Example:
        client = GitClient()
        result = client.run(["status", "--porcelain"], "/path/to/repo")
        if result.success and not result.output:
            print("Repository is clean")
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        network_timeout: int = DEFAULT_NETWORK_TIMEOUT,
        git_executable: str = "git",
    ):
        """
        Initialize GitClient.

        Args:
            timeout: Timeout in seconds for local commands (default: 30)
            network_timeout: Timeout in seconds for commands that talk to a
                remote (default: 300)
            git_executable: Name or path of the git binary
        """
        self.timeout = timeout
        self.network_timeout = network_timeout
        self.git_executable = git_executable

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[str] = None,
        timeout: Optional[int] = None,
        env: Optional[Dict[str, str]] = None,
        config: Optional[Sequence[Tuple[str, str]]] = None,
    ) -> GitResult:
        """
        Run a git command.

        Args:
            args: Git command arguments (e.g., ["status", "--porcelain"])
            cwd: Directory passed to ``git -C``
            timeout: Timeout in seconds (defaults to the local timeout)
            env: Extra environment variables for the subprocess
            config: One-shot ``-c key=value`` settings

        Returns:
            GitResult with returncode, stdout, stderr and timed_out flag
        """
        cmd = [self.git_executable]
        if cwd is not None:
            cmd += ["-C", str(cwd)]
        for key, value in config or ():
            cmd += ["-c", f"{key}={value}"]
        cmd += list(args)

        timeout = timeout or self.timeout
        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)

        display = " ".join(mask_credentials(part) for part in cmd)
        logger.debug(f"Running: {display}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=full_env,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out after {timeout}s: {display}")
            return GitResult(
                args=list(args),
                returncode=-1,
                stdout="",
                stderr=f"Command timed out after {timeout}s",
                timed_out=True,
            )
        except FileNotFoundError:
            logger.error(f"Git executable not found: {self.git_executable}")
            return GitResult(
                args=list(args),
                returncode=GIT_NOT_FOUND,
                stdout="",
                stderr=f"git executable not found: {self.git_executable}",
            )

        if result.returncode != 0:
            logger.debug(f"Git command failed ({result.returncode}): {display}: {result.stderr.strip()}")

        return GitResult(
            args=list(args),
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    def run_network(
        self,
        args: Sequence[str],
        cwd: Optional[str] = None,
        credentials: Optional[Credentials] = None,
    ) -> GitResult:
        """
        Run a git command that talks to a remote.

        Uses the network timeout, never prompts on a terminal, and hands
        credentials to git through a one-shot credential helper.
        """
        env = {"GIT_TERMINAL_PROMPT": "0"}
        config: List[Tuple[str, str]] = []
        if credentials is not None and credentials.is_set:
            env.update(credentials.env())
            config.extend(credentials.git_config())
        return self.run(args, cwd=cwd, timeout=self.network_timeout, env=env, config=config)

    def rev_parse(self, path: str, revision: str) -> Optional[str]:
        """Resolve a revision to a commit id, or None if it does not resolve."""
        result = self.run(["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"], cwd=path)
        if result.success and result.output:
            return result.output
        return None

    def symbolic_head(self, path: str) -> Optional[str]:
        """Full ref name HEAD points to (e.g. refs/heads/main), or None if detached."""
        result = self.run(["symbolic-ref", "--quiet", "HEAD"], cwd=path)
        if result.success and result.output:
            return result.output
        return None

    def current_branch(self, path: str) -> Optional[str]:
        """Get current branch name, or None for a detached HEAD."""
        ref = self.symbolic_head(path)
        if ref and ref.startswith("refs/heads/"):
            return ref[len("refs/heads/"):]
        return None

    def is_ancestor(self, path: str, ancestor: str, descendant: str) -> bool:
        """Check if ancestor is an ancestor of (or equal to) descendant."""
        result = self.run(["merge-base", "--is-ancestor", ancestor, descendant], cwd=path)
        return result.success

    def config_get(self, path: str, key: str) -> Optional[str]:
        """Read a single git config value."""
        result = self.run(["config", "--get", key], cwd=path)
        if result.success and result.output:
            return result.output
        return None

    def remote_names(self, path: str) -> List[str]:
        """List configured remote names."""
        result = self.run(["remote"], cwd=path)
        if not result.success:
            return []
        return result.lines()

    def remote_url(self, path: str, remote: str = "origin") -> Optional[str]:
        """
        Get remote URL.

        Args:
            path: Path to git repository
            remote: Remote name (default: "origin")

        Returns:
            Remote URL or None if not found
        """
        return self.config_get(path, f"remote.{remote}.url")

    def count_commits(self, path: str, ref_range: str) -> int:
        """Number of commits in a range such as ``a..b``; 0 on error."""
        result = self.run(["rev-list", "--count", ref_range], cwd=path)
        if result.success:
            try:
                return int(result.output)
            except ValueError:
                pass
        return 0
