"""
Common CLI utilities for consistent command behavior.

Every connector command goes through run_operation(): clean JSON on
stdout (or a rich panel with --pretty), logs on stderr, and the exit
code of the error kind on failure.
"""

import json
import sys
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Dict, Optional

import click

from .config import ConnectorConfig
from .connector import GitConnector
from .domain.operation import OperationOutcome
from .exit_codes import INTERRUPTED, SUCCESS, CommandError
from .infra.credentials import Credentials


@dataclass
class CliState:
    """Options shared by every command, set by the top-level group."""
    config: Dict[str, Any] = field(default_factory=dict)
    directory: Optional[str] = None
    credentials: Optional[Credentials] = None
    pretty: bool = False
    _connector: Optional[GitConnector] = field(default=None, repr=False)

    @property
    def connector(self) -> GitConnector:
        if self._connector is None:
            self._connector = GitConnector(ConnectorConfig.from_dict(self.config))
        return self._connector

    def override_directory(self) -> Optional[str]:
        """-C wins; without it and without a configured directory, use the cwd."""
        if self.directory is not None:
            return self.directory
        if self.connector.config.directory:
            return None
        return "."


pass_state = click.make_pass_decorator(CliState, ensure=True)


def print_json(data: Dict[str, Any]) -> None:
    print(json.dumps(data, ensure_ascii=False, default=str), flush=True)


def emit(outcome: OperationOutcome, pretty: bool = False) -> None:
    """Print an outcome and exit with its code."""
    if pretty:
        from .render import render_outcome
        render_outcome(outcome)
    else:
        print_json(outcome.to_dict())
    sys.exit(SUCCESS if outcome.ok else outcome.exit_code)


def run_operation(state: CliState, operation: str, **params: Any) -> None:
    """
    Invoke a connector operation with the CLI's directory and credentials.

    Parameters whose value is None are left to the operation's defaults.
    """
    params = {key: value for key, value in params.items() if value is not None}
    override = state.override_directory()
    if override is not None:
        params['override_directory'] = override
    try:
        outcome = state.connector.invoke(operation, params, credentials=state.credentials)
    except KeyboardInterrupt:
        click.echo("Interrupted by user", err=True)
        sys.exit(INTERRUPTED)
    emit(outcome, pretty=state.pretty)


def handle_command_errors(func):
    """
    Decorator for commands that do not go through run_operation: report
    CommandError as a JSON error object and exit with its code.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.ClickException:
            raise
        except CommandError as e:
            error_obj = getattr(e, 'to_dict', None)
            print_json(error_obj() if error_obj else {
                "error": str(e),
                "type": type(e).__name__,
                "exit_code": e.exit_code,
            })
            sys.exit(e.exit_code)
    return wrapper


# Standard options that many commands share
common_options = {
    'force': click.option('-f', '--force', is_flag=True, default=False,
                          help='Override the safety check'),
    'remote': click.option('-r', '--remote', default=None,
                           help='Remote name or URI'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('force', 'remote')
        def my_command(force, remote):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
