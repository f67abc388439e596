from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated

import typer
from click.core import ParameterSource

from .config import CONFIG_FILENAME, RunConfig
from .errors import ArborError
from .logging import configure_logging, get_logger
from .models import DiskUsage, PrefixKind, SortKey
from .render import render
from .tree import Tree


def package_version() -> str:
    try:
        return version(distribution_name="arbor")
    except PackageNotFoundError:
        return "unknown (package not installed)"


app: typer.Typer = typer.Typer(
    help=f"arbor: directory tree with disk usage\n\nVersion: {package_version()}",
    add_completion=False,
)

_LOGGER = get_logger("main")


def print_version(is_version: bool) -> None:
    """
    Callback for the --version / -V option.

    Typer passes a boolean telling whether the flag was supplied. When it
    was, print the installed version and stop before the walk starts.
    """
    if not is_version:
        return

    typer.echo(package_version())
    raise typer.Exit()


@app.command()
def main(
    ctx: typer.Context,
    directory: Annotated[Path | None, typer.Argument(help="Root directory to traverse.")] = None,
    threads: Annotated[int | None, typer.Option("--threads", "-T", help="Number of walker threads.")] = None,
    follow: Annotated[
        bool | None, typer.Option("--follow/--no-follow", "-f", help="Follow symbolic links.")
    ] = None,
    no_ignore: Annotated[
        bool | None, typer.Option("--no-ignore/--ignore", "-i", help="Do not respect .gitignore files.")
    ] = None,
    hidden: Annotated[
        bool | None, typer.Option("--hidden/--no-hidden", "-H", help="Show hidden files and directories.")
    ] = None,
    prune: Annotated[
        bool | None, typer.Option("--prune/--no-prune", "-P", help="Remove empty directories from the output.")
    ] = None,
    dirs_only: Annotated[
        bool | None, typer.Option("--dirs-only/--all-entries", help="Only print directories.")
    ] = None,
    sort: Annotated[SortKey | None, typer.Option("--sort", "-s", help="Sort siblings by this key.")] = None,
    reverse: Annotated[
        bool | None, typer.Option("--reverse/--no-reverse", "-r", help="Reverse the sort order.")
    ] = None,
    disk_usage: Annotated[
        DiskUsage | None, typer.Option("--disk-usage", "-d", help="Report logical or physical sizes.")
    ] = None,
    prefix: Annotated[PrefixKind | None, typer.Option("--prefix", "-p", help="Binary or SI size units.")] = None,
    scale: Annotated[int | None, typer.Option("--scale", help="Decimal places shown for sizes.")] = None,
    level: Annotated[int | None, typer.Option("--level", "-L", help="Maximum depth to display.")] = None,
    glob: Annotated[
        list[str] | None,
        typer.Option("--glob", "-g", help="Include matching paths; prefix with ! to exclude. Repeatable."),
    ] = None,
    glob_case_insensitive: Annotated[
        bool | None, typer.Option("--glob-case-insensitive/--glob-case-sensitive", help="Match globs ignoring case.")
    ] = None,
    config: Annotated[Path, typer.Option("--config", help="YAML configuration file.")] = CONFIG_FILENAME,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log skipped entries and phase summaries.")] = False,
    log_file: Annotated[
        Path | None, typer.Option("--log-file", help="Also write a debug log to this file.", dir_okay=False)
    ] = None,
    _version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=print_version,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Print DIRECTORY as a tree annotated with disk usage."""
    configure_logging(verbose=verbose, log_file=log_file)

    def given(name: str, value: object) -> object:
        # Only flags typed on the command line override the config file.
        if ctx.get_parameter_source(name) is not ParameterSource.COMMANDLINE:
            return None
        return value

    try:
        cfg: RunConfig = RunConfig.load(config).with_overrides(
            root=given("directory", directory),
            threads=given("threads", threads),
            follow_links=given("follow", follow),
            no_ignore=given("no_ignore", no_ignore),
            hidden=given("hidden", hidden),
            prune=given("prune", prune),
            dirs_only=given("dirs_only", dirs_only),
            sort=given("sort", sort),
            reverse=given("reverse", reverse),
            disk_usage=given("disk_usage", disk_usage),
            prefix=given("prefix", prefix),
            scale=given("scale", scale),
            level=given("level", level),
            globs=given("glob", glob or None),
            glob_case_insensitive=given("glob_case_insensitive", glob_case_insensitive),
        )

        _LOGGER.debug("Walking %s with %d threads", cfg.root, cfg.threads)
        tree: Tree = Tree.init(cfg)
    except ArborError as e:
        typer.echo(f"arbor: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(render(tree))


if __name__ == "__main__":
    app()
