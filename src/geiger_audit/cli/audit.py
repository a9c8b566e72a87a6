"""The audit command: build, scan and print the unsafe usage tree."""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from ..api import run_audit
from ..exceptions import GeigerAuditError
from ..formatters import Charset, OutputFormat, PrintConfig, get_formatter
from ..logging_config import setup_logging
from . import app
from ._common import console, err_console, resolve_config
from ._ux import AuditTimer, ExitCode, exit_code_for


def _extra_deps(build_deps: bool, dev_deps: bool, all_deps: bool) -> Optional[str]:
    if all_deps or (build_deps and dev_deps):
        return "all"
    if build_deps:
        return "build"
    if dev_deps:
        return "dev"
    return None


def _prefix(no_indent: bool, prefix_depth: bool) -> Optional[str]:
    if prefix_depth:
        return "depth"
    if no_indent:
        return "none"
    return None


@app.callback(invoke_without_command=True, no_args_is_help=False)
def main(
    ctx: typer.Context,
    manifest_path: Optional[Path] = typer.Option(
        None,
        "--manifest-path",
        help="Path to Cargo.toml",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    package: Optional[str] = typer.Option(
        None,
        "-p",
        "--package",
        help="Package to be used as the root of the tree (name or name@version)",
    ),
    features: Optional[str] = typer.Option(
        None,
        "--features",
        help="Space or comma separated list of features to activate",
    ),
    all_features: bool = typer.Option(False, "--all-features", help="Activate all available features"),
    no_default_features: bool = typer.Option(
        False, "--no-default-features", help="Do not activate the `default` feature"
    ),
    target: Optional[str] = typer.Option(
        None, "--target", help="Set the target triple (default: host)"
    ),
    all_targets: bool = typer.Option(
        False, "--all-targets", help="Return dependencies for all targets (default: host only)"
    ),
    build_deps: bool = typer.Option(False, "--build-deps", help="Also include build dependencies"),
    dev_deps: bool = typer.Option(False, "--dev-deps", help="Also include dev dependencies"),
    all_deps: bool = typer.Option(False, "--all-deps", help="Include all dependency kinds"),
    invert: bool = typer.Option(
        False, "-i", "--invert", help="Invert the tree direction (show dependents)"
    ),
    no_indent: bool = typer.Option(False, "--no-indent", help="Display the dependencies as a list"),
    prefix_depth: bool = typer.Option(
        False, "--prefix-depth", help="Display the dependencies as a list prefixed by depth"
    ),
    show_all: bool = typer.Option(
        False, "-a", "--all", help="Don't truncate dependencies that have already been displayed"
    ),
    charset: Optional[Charset] = typer.Option(
        None,
        "--charset",
        help="Character set to use for tree vines",
        case_sensitive=False,
    ),
    format_pattern: Optional[str] = typer.Option(
        None,
        "-f",
        "--format",
        help="Format string for package names: {p} package, {l} license, {r} repository",
    ),
    compact: bool = typer.Option(
        False, "--compact", help="Print (functions, exprs, impls, traits, methods) instead of the table"
    ),
    include_tests: bool = typer.Option(
        False, "--include-tests", help="Count unsafe usage in tests"
    ),
    allow_partial_results: bool = typer.Option(
        False,
        "--allow-partial-results",
        help="Skip files that fail to scan instead of aborting",
    ),
    output_format: Optional[OutputFormat] = typer.Option(
        None,
        "--output-format",
        help="Output format",
        case_sensitive=False,
    ),
    no_build: bool = typer.Option(
        False,
        "--no-build",
        help="Skip the observed build; count every file as not used by the build",
    ),
    offline: bool = typer.Option(False, "--offline", help="Run cargo without accessing the network"),
    frozen: bool = typer.Option(False, "--frozen", help="Require Cargo.lock and cache are up to date"),
    locked: bool = typer.Option(False, "--locked", help="Require Cargo.lock is up to date"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every scanned file"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also append log records to this file",
        file_okay=True,
        dir_okay=False,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Report unsafe Rust usage in a crate and all of its dependencies.

    Runs [bold]cargo clean[/bold] and a full [bold]cargo check[/bold] to learn
    which files the build really compiles, then scans every package in the
    dependency tree. Each cell reads [green]used[/green]/[red]total[/red]
    unsafe items.

    [bold cyan]Examples:[/bold cyan]

      geiger-audit

      geiger-audit --all-deps --charset ascii

      geiger-audit -p serde --invert

      geiger-audit --output-format json --allow-partial-results
    """
    if ctx.invoked_subcommand is not None:
        return

    from .. import __version__

    if version:
        console.print(f"[bold cyan]Geiger Audit[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(ExitCode.SUCCESS)

    logger = setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    try:
        settings = resolve_config(
            config=config,
            features=features,
            all_features=all_features,
            no_default_features=no_default_features,
            target=target,
            all_targets=all_targets,
            extra_deps=_extra_deps(build_deps, dev_deps, all_deps),
            invert=invert,
            prefix=_prefix(no_indent, prefix_depth),
            show_all=show_all,
            charset=charset.value if charset else None,
            format_pattern=format_pattern,
            compact=compact,
            include_tests=include_tests,
            allow_partial_results=allow_partial_results,
            output_format=output_format.value if output_format else None,
            no_build=no_build,
            offline=offline,
            frozen=frozen,
            locked=locked,
            verbose=verbose,
            quiet=quiet,
        )
        print_config = PrintConfig.from_config(settings)

        timer = AuditTimer.start()
        result = run_audit(settings, manifest_path=manifest_path, package=package)
        get_formatter(settings.output_format).render(result, print_config)

        if settings.output_format == "table" and settings.verbosity != "quiet":
            timer.package_count = len(result.graph)
            timer.file_count = result.files_scanned
            err_console.print(f"[dim]{timer.summary_line()}[/dim]")

    except typer.Exit:
        raise

    except GeigerAuditError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(exit_code_for(e))

    except KeyboardInterrupt:
        logger.info("Audit interrupted by user")
        console.print("\n[yellow]Audit interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error during audit")
        console.print(f"[red]Unexpected error:[/red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(ExitCode.INTERNAL_ERROR)
