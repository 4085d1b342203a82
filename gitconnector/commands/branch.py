"""
Branch commands: create-branch, delete-branch, checkout.
"""

import click

from ..cli_utils import CliState, add_common_options, pass_state, run_operation


@click.command('create-branch')
@click.argument('name')
@click.argument('start_point', default='HEAD', required=False)
@add_common_options('force')
@pass_state
def create_branch_cmd(state: CliState, name, start_point, force):
    """Create branch NAME at START_POINT (default HEAD).

    With --force an existing branch is moved to START_POINT.
    """
    run_operation(state, 'create_branch', name=name, start_point=start_point, force=force)


@click.command('delete-branch')
@click.argument('name')
@add_common_options('force')
@pass_state
def delete_branch_cmd(state: CliState, name, force):
    """Delete branch NAME.

    Without --force the branch must be merged into the current branch.
    """
    run_operation(state, 'delete_branch', name=name, force=force)


@click.command('checkout')
@click.argument('branch')
@click.option('-b', '--start-point', default=None,
              help='Create BRANCH at this commit first')
@pass_state
def checkout_cmd(state: CliState, branch, start_point):
    """Switch to BRANCH.

    Tracked files that differ are overwritten.

    Examples:

    \b
        gitconnector checkout main
        gitconnector checkout feature --start-point origin/feature
    """
    run_operation(state, 'checkout', branch=branch, start_point=start_point)
