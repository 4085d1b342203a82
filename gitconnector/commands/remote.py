"""
Remote commands: push, pull, fetch.
"""

import click

from ..cli_utils import CliState, add_common_options, pass_state, run_operation


@click.command('push')
@add_common_options('remote', 'force')
@pass_state
def push_cmd(state: CliState, remote, force):
    """Push the current branch to the same-named branch on the remote."""
    run_operation(state, 'push', remote=remote, force=force)


@click.command('pull')
@add_common_options('remote')
@pass_state
def pull_cmd(state: CliState, remote):
    """Fetch and integrate the current branch's upstream."""
    run_operation(state, 'pull', remote=remote)


@click.command('fetch')
@add_common_options('remote')
@pass_state
def fetch_cmd(state: CliState, remote):
    """Update remote-tracking branches."""
    run_operation(state, 'fetch', remote=remote)
