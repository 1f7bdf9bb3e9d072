import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .aggregator import collect_build_dependencies, count_matches, matching_formula_names
from .catalog import load_catalog
from .catalog_cache import cache_status, ensure_fresh
from .cli_config import (
    ComprehensiveConfig,
    apply_config_data,
    create_sample_config,
    find_config_file,
    get_config,
    load_config_file,
    validate_config_values,
)
from .error_handling import BrewLangCountError, get_error_handler
from .formula import Formula
from .matcher import validate_query
from .structured_logging import configure_logging, log_query_complete

console = Console()
error_console = Console(stderr=True)

DEFAULT_QUERY_NOTICE = (
    "No language nor build system nor library is specified. "
    "Counting packages built in {name} (by default):"
)


def format_results(
    catalog: List[Formula],
    query: str,
    build_dep: bool = False,
    list_packages: bool = False,
) -> List[str]:
    """
    Render the query results as output lines.

    The first line is always the match count. Matching formula names follow
    when ``list_packages`` is set, then the build dependency summary when
    ``build_dep`` is set.
    """
    match_count = count_matches(catalog, query)
    lines = [str(match_count)]

    if list_packages:
        lines.extend(matching_formula_names(catalog, query))

    build_dependency_count = None
    if build_dep:
        build_dependencies = collect_build_dependencies(catalog)
        build_dependency_count = len(build_dependencies)
        lines.append(f"Build dependencies count: {build_dependency_count}")
        lines.append(repr(build_dependencies))

    log_query_complete(query, match_count, build_dependency_count)
    return lines


def _abort(message: str, exit_code: int = 1) -> None:
    error_console.print(
        f"Error: {message}", style="red", markup=False, highlight=False, soft_wrap=True
    )
    sys.exit(exit_code)


def _setup_logging(verbose: bool) -> None:
    log_level = "DEBUG" if verbose else get_config().logging.log_level
    configure_logging(log_level)
    get_error_handler().logger.logger.setLevel(
        getattr(logging, log_level.upper(), logging.WARNING)
    )


@click.group(invoke_without_command=True)
@click.option(
    "-l",
    "--lang",
    "lang",
    metavar="NAME",
    help="Count packages which have this language/build-system/library as a dependency",
)
@click.option(
    "-b",
    "--build-dep",
    is_flag=True,
    help="Also show the build dependencies of all packages in Homebrew core",
)
@click.option(
    "--list",
    "list_packages",
    is_flag=True,
    help="Print the names of the matching packages after the count",
)
@click.option(
    "--cache-file",
    type=click.Path(dir_okay=False),
    help="Catalog snapshot location (default from config: core_formulas.json)",
)
@click.option("--refresh", is_flag=True, help="Download the catalog even if the cache is fresh")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr")
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(
    ctx,
    lang: Optional[str],
    build_dep: bool,
    list_packages: bool,
    cache_file: Optional[str],
    refresh: bool,
    verbose: bool,
    version: bool,
):
    """
    Count all programs written/built in X language or Y build system or Z
    library distributed via Homebrew.

    Optionally list the build dependencies of every package in Homebrew core.

    Examples:

      brew-lang-count -l rust

      brew-lang-count -l python -b
    """
    if version:
        console.print(f"brew-lang-count version {__version__}")
        ctx.exit()

    try:
        # Query length is checked before any file or network access.
        if lang is not None:
            validate_query(lang)

        config = get_config()
        _setup_logging(verbose)
        ctx.obj = {"cache_file": cache_file or config.catalog.cache_file}

        if ctx.invoked_subcommand is not None:
            return

        if lang is None:
            lang = validate_query(config.query.default_query)
            error_console.print(
                DEFAULT_QUERY_NOTICE.format(name=lang.capitalize()),
                markup=False,
                highlight=False,
                soft_wrap=True,
            )

        snapshot = ctx.obj["cache_file"]
        ensure_fresh(snapshot, force=refresh)
        catalog = load_catalog(snapshot)
        lines = format_results(catalog, lang, build_dep, list_packages)

    except KeyboardInterrupt:
        error_console.print("\nInterrupted by user", style="yellow")
        sys.exit(130)
    except BrewLangCountError as e:
        _abort(str(e))
    except Exception as e:
        _abort(f"Unexpected error: {e}")

    for line in lines:
        click.echo(line)


@cli.command()
def info():
    """Show information about usage, configuration and environment variables."""
    config = get_config()
    info_text = f"""
[bold blue]What it does:[/bold blue]

Counts Homebrew core formulae that declare a dependency on a language,
build system or library, in any of the build, runtime, test, recommended
or optional dependency lists. Versioned variants count too:
[green]-l python[/green] matches [green]python[/green] and [green]python@3.12[/green].

[bold blue]Catalog cache:[/bold blue]

- File: [green]{config.catalog.cache_file}[/green]
- Source: [green]{config.catalog.api_url}[/green]
- Downloaded again when older than {config.catalog.max_age_days:g} days

[bold blue]Environment Variables:[/bold blue]

- [cyan]BREW_LANG_COUNT_CACHE_FILE[/cyan] - Catalog snapshot location
- [cyan]BREW_LANG_COUNT_API_URL[/cyan] - Catalog endpoint
- [cyan]BREW_LANG_COUNT_MAX_AGE_DAYS[/cyan] - Staleness window in days
- [cyan]BREW_LANG_COUNT_DEFAULT_QUERY[/cyan] - Query used without -l
- [cyan]BREW_LANG_COUNT_LOG_LEVEL[/cyan] - Log level for stderr logs

[bold blue]Configuration Files:[/bold blue]

- [green].brew-lang-count.json[/green] / [green].brew-lang-count.toml[/green] - Project-level config
- [green]~/.config/brew-lang-count/config.json[/green] - User-level config

[bold blue]Usage Examples:[/bold blue]

  brew-lang-count -l rust
  brew-lang-count -l cmake --list
  brew-lang-count -l go -b
  brew-lang-count cache status
"""
    console.print(
        Panel(
            info_text,
            title="[bold]brew-lang-count Information[/bold]",
            border_style="blue",
        )
    )


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("init")
@click.option(
    "--path",
    type=click.Path(dir_okay=False),
    default=".brew-lang-count.json",
    help="Where to write the sample config",
    show_default=True,
)
@click.option("--force", is_flag=True, help="Overwrite existing config file")
def config_init(path: str, force: bool):
    """Write a sample configuration file holding the defaults."""
    config_path = Path(path)
    if config_path.exists() and not force:
        raise click.ClickException(
            f"Config file already exists: {config_path} (use --force to overwrite)"
        )

    config_path.write_text(create_sample_config() + "\n", encoding="utf-8")
    console.print(f"Sample configuration written to {config_path}", style="green")


@config.command("show")
def config_show():
    """Show the effective configuration."""
    config_file = find_config_file()
    console.print(f"Config file: {config_file or 'none (defaults)'}", style="dim")
    console.print_json(data=get_config().to_dict())


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def config_validate(config_file: str):
    """Validate a configuration file."""
    file_config = load_config_file(Path(config_file))
    if file_config is None:
        raise click.ClickException(f"Could not load config file: {config_file}")

    candidate = ComprehensiveConfig()
    apply_config_data(candidate, file_config)
    errors = validate_config_values(candidate)
    if errors:
        for error in errors:
            error_console.print(f"  - {error}", style="red", markup=False)
        raise click.ClickException(f"{len(errors)} configuration error(s) found")

    console.print(f"Configuration is valid: {config_file}", style="green")


@cli.group()
def cache():
    """Catalog cache management commands."""
    pass


@cache.command("status")
@click.pass_obj
def cache_status_command(obj):
    """Show the state of the cached catalog snapshot."""
    status = cache_status(obj["cache_file"])

    table = Table(title="Catalog cache")
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("File", status.file_path)
    table.add_row("Exists", "yes" if status.exists else "no")
    if status.exists:
        size = f"{status.size_bytes} bytes" if status.size_bytes is not None else "unknown"
        table.add_row("Size", size)
        if status.age_seconds is not None:
            table.add_row("Age", f"{status.age_seconds / 3600:.1f} hours")
    table.add_row("Stale", "yes" if status.is_stale else "no")
    console.print(table)


@cache.command("refresh")
@click.pass_obj
def cache_refresh(obj):
    """Download a new catalog snapshot now."""
    try:
        ensure_fresh(obj["cache_file"], force=True)
    except BrewLangCountError as e:
        _abort(str(e))


@cache.command("clear")
@click.option("--confirm", is_flag=True, help="Skip confirmation prompt")
@click.pass_obj
def cache_clear(obj, confirm: bool):
    """Delete the cached catalog snapshot."""
    snapshot = Path(obj["cache_file"])
    if not snapshot.exists():
        console.print("No cached catalog to remove", style="yellow")
        return

    if not confirm and not click.confirm(f"Delete {snapshot}?"):
        console.print("Operation cancelled", style="yellow")
        return

    try:
        snapshot.unlink()
    except OSError as e:
        _abort(f"Could not remove {snapshot}: {e}")
    console.print(f"Removed {snapshot}", style="green")


if __name__ == "__main__":
    cli()
