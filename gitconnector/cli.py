#!/usr/bin/env python3

import sys

import click

from gitconnector.cli_utils import CliState, print_json
from gitconnector.config import configure_logging, load_config
from gitconnector.exit_codes import ConfigError
from gitconnector.infra.credentials import PASSWORD_ENV, USERNAME_ENV, Credentials
from gitconnector.commands.repository import clone_cmd, reset_cmd, unlock_cmd
from gitconnector.commands.staging import add_cmd, commit_cmd
from gitconnector.commands.branch import create_branch_cmd, delete_branch_cmd, checkout_cmd
from gitconnector.commands.remote import push_cmd, pull_cmd, fetch_cmd
from gitconnector.commands.config import config_cmd


@click.group()
@click.version_option(package_name="gitconnector")
@click.option('-C', '--directory', default=None, type=click.Path(file_okay=False),
              help='Repository directory (default: configured directory, else the current one)')
@click.option('--username', envvar=USERNAME_ENV, default=None, help='Username for remote operations')
@click.option('--password', envvar=PASSWORD_ENV, default=None, help='Password or token for remote operations')
@click.option('--pretty', is_flag=True, default=False, help='Show results as a table instead of JSON')
@click.option('-v', '--verbose', is_flag=True, default=False, help='Log git commands to stderr')
@click.pass_context
def cli(ctx, directory, username, password, pretty, verbose):
    """gitconnector - Git operations as declarative, lock-protected commands.

    Results are printed as JSON on stdout; logs go to stderr. Failures
    print a JSON error object with a stable "kind" and exit non-zero.
    """
    try:
        config = load_config()
    except ConfigError as e:
        print_json({"error": str(e), "type": type(e).__name__, "exit_code": e.exit_code})
        sys.exit(e.exit_code)

    configure_logging(config, verbose=verbose)
    ctx.obj = CliState(
        config=config,
        directory=directory,
        credentials=Credentials.from_values(username, password),
        pretty=pretty,
    )


cli.add_command(clone_cmd)
cli.add_command(add_cmd)
cli.add_command(create_branch_cmd)
cli.add_command(delete_branch_cmd)
cli.add_command(commit_cmd)
cli.add_command(push_cmd)
cli.add_command(pull_cmd)
cli.add_command(fetch_cmd)
cli.add_command(checkout_cmd)
cli.add_command(reset_cmd)
cli.add_command(unlock_cmd)
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
