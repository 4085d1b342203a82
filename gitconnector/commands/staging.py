"""
Staging and commit commands.
"""

import click

from ..cli_utils import CliState, pass_state, run_operation


@click.command('add')
@click.argument('patterns', nargs=-1)
@click.option('-A', '--all', 'force_all', is_flag=True, default=False,
              help='Stage every new, modified and deleted file')
@click.option('--strict/--permissive', default=None,
              help='Fail when any pattern matches nothing (default from config)')
@pass_state
def add_cmd(state: CliState, patterns, force_all, strict):
    """Stage PATTERNS (literal files or directories) for the next commit.

    A single argument may hold several paths separated by ";".
    """
    run_operation(
        state,
        'add',
        file_patterns=list(patterns) or None,
        force_all=force_all,
        strict=strict,
    )


@click.command('commit')
@click.option('-m', '--message', 'msg', required=True, help='Commit message')
@click.option('--committer-name', envvar='GIT_COMMITTER_NAME', required=True)
@click.option('--committer-email', envvar='GIT_COMMITTER_EMAIL', required=True)
@click.option('--author-name', default=None, help='Defaults to the committer')
@click.option('--author-email', default=None, help='Defaults to the committer')
@click.option('-a', '--all', 'all_', is_flag=True, default=False,
              help='Stage modified and deleted tracked files first')
@pass_state
def commit_cmd(state: CliState, msg, committer_name, committer_email, author_name, author_email, all_):
    """Record the staged changes as a new commit."""
    run_operation(
        state,
        'commit',
        msg=msg,
        committer_name=committer_name,
        committer_email=committer_email,
        author_name=author_name,
        author_email=author_email,
        all=all_,
    )
