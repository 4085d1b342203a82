"""
Repository-level commands: clone, reset, unlock.
"""

import click

from ..cli_utils import CliState, handle_command_errors, pass_state, print_json, run_operation


@click.command('clone')
@click.argument('uri')
@click.option('--bare', is_flag=True, default=False, help='Create a bare repository')
@click.option('--remote', default='origin', show_default=True, help='Name for the upstream remote')
@click.option('-b', '--branch', default='HEAD', show_default=True,
              help="Branch to check out (HEAD: the remote's default)")
@pass_state
def clone_cmd(state: CliState, uri, bare, remote, branch):
    """Clone URI into the repository directory.

    If the directory already holds a repository it is only verified;
    nothing is fetched.

    Examples:

    \b
        gitconnector -C ~/src/project clone https://example.com/project.git
        gitconnector -C /srv/mirror clone --bare ../project
    """
    run_operation(state, 'clone', uri=uri, bare=bare, remote=remote, branch=branch)


@click.command('reset')
@click.argument('ref', default='HEAD', required=False)
@pass_state
def reset_cmd(state: CliState, ref):
    """Hard reset the current branch, index and working tree to REF.

    Uncommitted changes to tracked files are lost.
    """
    run_operation(state, 'reset_repository', branch=ref)


@click.command('unlock')
@pass_state
@handle_command_errors
def unlock_cmd(state: CliState):
    """Remove the marker an interrupted operation left in the repository."""
    connector = state.connector
    directory = connector.resolve_directory(state.override_directory())
    removed = connector.unlock(state.override_directory())
    print_json({'directory': str(directory), 'removed': removed})
