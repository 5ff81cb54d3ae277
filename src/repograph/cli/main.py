"""repograph CLI."""

from pathlib import Path

import click

from repograph import __version__
from repograph.cli.add import add_command
from repograph.cli.delete import delete_command
from repograph.cli.find import find_command
from repograph.cli.index import index_command
from repograph.cli.serve import serve_command
from repograph.cli.status import status_command
from repograph.cli.sync import sync_command
from repograph.config import load_config
from repograph.core.errors import ConfigError
from repograph.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="repograph")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="YAML config file (default: ./repograph.yaml when present)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """repograph - index repositories into a code knowledge graph."""
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(e.message) from e
    if verbose:
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose


cli.add_command(add_command, name="add")
cli.add_command(index_command, name="index")
cli.add_command(status_command, name="status")
cli.add_command(sync_command, name="sync")
cli.add_command(delete_command, name="delete")
cli.add_command(find_command, name="find")
cli.add_command(serve_command, name="serve")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
