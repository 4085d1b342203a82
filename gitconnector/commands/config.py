import click
import json

from ..config import get_config_path, get_default_config, save_config
from ..cli_utils import CliState, handle_command_errors, pass_state, print_json


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSON")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@pass_state
def show_config(state: CliState, pretty, path):
    """Show the current configuration with all merges applied.

    Passwords are masked.
    """
    if path:
        print_json({"config_path": str(get_config_path())})
        return

    config = json.loads(json.dumps(state.config))
    if config.get("credentials", {}).get("password"):
        config["credentials"]["password"] = "***"

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print_json(config)


@config_cmd.command("init")
@click.option("--format", "fmt", type=click.Choice(["json", "toml", "yaml"]), default="json",
              show_default=True, help="File format")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@handle_command_errors
def init_config(fmt, force):
    """Write a default configuration file."""
    path = get_config_path()
    if path.suffix.lstrip('.') not in (fmt, 'yml' if fmt == 'yaml' else fmt):
        path = path.with_suffix(f".{fmt}")
    if path.exists() and not force:
        raise click.ClickException(f"Configuration already exists at {path}; use --force to overwrite")
    saved = save_config(get_default_config(), path)
    print_json({"config_path": str(saved)})
