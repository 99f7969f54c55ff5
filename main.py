"""
node-package-builder CLI Entry Point.

This module implements the command-line interface for node-package-builder, a
tool that packages a Node.js program into standalone native executables using
Node's Single Executable Application (SEA) support. One invocation can build
for several operating systems: runtimes for platforms other than the host are
downloaded once from nodejs.org and cached.

Each platform build goes through four distinct stages:

1.  **Configuration**: Writes a platform-specific SEA configuration into a
    temporary session workspace and compiles it into a blob with the host
    `node --experimental-sea-config`.
2.  **Runtime Preparation**: Copies the host `node` binary, or a cached
    official build for other platforms, to the output executable name.
3.  **Injection**: Injects the blob into the executable with `npx postject`.
4.  **Verification & Signing**: Checks Windows executables and re-signs
    macOS/Windows executables where the signing tools are available.

A failure on one platform never stops the others. The command exits with
code 1 only if no platform could be built.

Usage:
    $ node-package-builder build --main index.js --output app --platforms linux,win32
    $ node-package-builder platforms
    $ node-package-builder cleanup --cache
    $ node-package-builder init --name my-app

Dependencies:
    - Typer: CLI argument parsing and app structure.
    - Rich: Terminal UI, colors, logging and progress visualization.
    - Inquirer: Interactive terminal user prompts.
    - httpx: Node.js release index and runtime downloads.
    - Node.js >= 19.9.0 and npx: External SEA tooling on the host.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich import print as pr
from rich.markup import escape

from adapters.node import get_node_path, get_npx_path
from adapters.sea_tools import SubprocessSeaToolchain
from constants import (
    APP_NAME,
    APP_VERSION,
    DEFAULT_MAIN,
    DEFAULT_OUTPUT,
    DEFAULT_PROJECT_NAME,
)
from core.builder import BuildCoordinator, summarize
from core.exceptions import (
    BuildError,
    InvalidMainFileError,
    NodeNotFoundError,
    SettingsError,
    UnsupportedPlatformError,
    UnsupportedRuntimeError,
)
from core.models import BuildOptions, BuildResult
from core.platforms import get_host_platform, get_supported_platforms, parse_platform_list
from core.runtime_cache import CacheStore, RuntimeCache
from core.scaffold import create_sample_project
from core.settings import load_settings
from core.workspace import BuildWorkspace
from ui.progress_display import NoOpProgressDisplay, RichProgressDisplay
from ui.prompts import prompt_project_name
from utils import configure_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Build Node.js applications into single executable files.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    if value:
        pr(f"{APP_NAME} {APP_VERSION}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = None,
):
    """Build Node.js applications into single executable files."""


@app.command()
def build(
    main_file: Annotated[
        Path,
        typer.Option("--main", "-m", help="Main JavaScript file"),
    ] = Path(DEFAULT_MAIN),
    output: Annotated[
        str,
        typer.Option("--output", "-o", help="Output executable name"),
    ] = DEFAULT_OUTPUT,
    platforms: Annotated[
        Optional[str],
        typer.Option(
            "--platforms",
            "-p",
            help=(
                "Target platforms, comma-separated (linux, darwin, win32). "
                "Defaults to the current platform only; pass "
                "--platforms linux,darwin,win32 to build for all three."
            ),
        ),
    ] = None,
    use_snapshot: Annotated[
        bool,
        typer.Option("--use-snapshot", help="Enable snapshot support (current platform only)"),
    ] = False,
    use_code_cache: Annotated[
        bool,
        typer.Option("--use-code-cache", help="Enable code cache (current platform only)"),
    ] = False,
    assets: Annotated[
        str,
        typer.Option("--assets", help='Assets to include, as a JSON object: {"name": "path"}'),
    ] = "{}",
    disable_warning: Annotated[
        bool,
        typer.Option(
            "--disable-warning/--enable-warning",
            help="Disable the experimental SEA warning",
        ),
    ] = True,
    output_dir: Annotated[
        Path,
        typer.Option(
            "--output-dir",
            "-d",
            file_okay=False,
            resolve_path=True,
            help="Directory receiving the executables",
        ),
    ] = Path("."),
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print the build results as JSON"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
):
    """
    Build executables from a Node.js application.

    Validates the entry point and the requested platforms, then builds each
    platform in turn and prints one line per platform followed by a summary.

    Raises:
        typer.Exit: With code 1 on invalid input, session-level failures, or
            when no platform could be built.
    """
    configure_logging(verbose)

    try:
        parsed_assets = parse_assets(assets)
    except ValueError as e:
        pr(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    try:
        host_platform = get_host_platform()
        target_platforms = parse_platform_list(platforms) if platforms else (host_platform,)
    except UnsupportedPlatformError as e:
        print_platform_err(e)
        return

    if not target_platforms:
        pr("[red]Error:[/red] No target platforms given.")
        raise typer.Exit(code=1)

    results: list[BuildResult] = []
    try:
        settings = load_settings()
        node_path = get_node_path(settings.node_path)
        try:
            npx_path: Optional[Path] = get_npx_path(settings.npx_path)
        except NodeNotFoundError as e:
            logger.warning("%s", e.message)
            npx_path = None

        toolchain = SubprocessSeaToolchain(node_path, npx_path)
        runtime_cache = RuntimeCache(
            CacheStore(settings.cache_dir), host_platform, node_path
        )
        options = BuildOptions(
            main=main_file,
            output=output,
            disable_warning=disable_warning,
            use_snapshot=use_snapshot,
            use_code_cache=use_code_cache,
            assets=parsed_assets,
            platforms=target_platforms,
            temp_root=settings.temp_dir,
            output_dir=output_dir,
        )
        display = NoOpProgressDisplay() if json_output else RichProgressDisplay()
        coordinator = BuildCoordinator(toolchain, runtime_cache, host_platform, display)
        results = coordinator.run(options)
    except InvalidMainFileError as e:
        print_main_file_err(e)
    except (NodeNotFoundError, UnsupportedRuntimeError) as e:
        print_node_err(e)
    except SettingsError as e:
        print_settings_err(e)
    except BuildError as e:
        print_build_err(e)
    except Exception as e:  # noqa: BLE001
        # Catch-all for any unexpected errors - ensures users always see
        # a friendly message instead of a raw Python stack trace
        print_unexpected_err(e)

    if json_output:
        typer.echo(json.dumps([result.to_dict() for result in results], indent=2))
    else:
        print_results(results)

    succeeded, _total = summarize(results)
    if succeeded == 0:
        raise typer.Exit(code=1)


@app.command("platforms")
def list_platforms():
    """List supported platforms, marking the current one."""
    try:
        host_platform = get_host_platform()
    except UnsupportedPlatformError:
        host_platform = None

    pr("[blue]Supported platforms:[/blue]")
    for platform in get_supported_platforms():
        current = " [green](current)[/green]" if platform == host_platform else ""
        pr(f"  • {platform}{current}")


@app.command()
def cleanup(
    cache: Annotated[
        bool,
        typer.Option("--cache", help="Also delete the downloaded Node.js runtimes"),
    ] = False,
):
    """Clean up temporary build directories left by interrupted builds."""
    configure_logging()

    try:
        settings = load_settings()
    except SettingsError as e:
        print_settings_err(e)
        return

    removed = BuildWorkspace.sweep(settings.temp_dir)
    pr(f"[green]Temporary directories cleaned up successfully ({removed} removed)[/green]")

    if cache:
        try:
            CacheStore(settings.cache_dir).clear()
        except OSError as e:
            pr(f"[red]Failed to clean up runtime cache:[/red] {escape(str(e))}")
            raise typer.Exit(code=1) from e
        pr(f"[green]Runtime cache cleared:[/green] {escape(str(settings.cache_dir))}")


@app.command()
def init(
    name: Annotated[
        Optional[str],
        typer.Option("--name", "-n", help="Project name"),
    ] = None,
):
    """Initialize a sample project."""
    if name is None:
        name = prompt_project_name() if sys.stdin.isatty() else DEFAULT_PROJECT_NAME

    try:
        project_dir = create_sample_project(name)
    except ValueError as e:
        pr(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    except BuildError as e:
        pr(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(code=1) from e

    pr(f"[green]Sample project created: {escape(str(project_dir))}[/green]")
    pr("\n[blue]Next steps:[/blue]")
    pr(f"  cd {escape(name)}")
    pr("  npm run build")
    pr(f"  ./{escape(name)}")
    pr("  npm run cleanup  # to clean temp files")


def parse_assets(value: str) -> dict[str, str]:
    """
    Parse the --assets JSON object.

    Returns:
        dict[str, str]: Mapping of asset name to source file path.

    Raises:
        ValueError: If the value is not a JSON object of strings.
    """
    try:
        data = json.loads(value) if value.strip() else {}
    except json.JSONDecodeError as e:
        raise ValueError("Invalid assets JSON format") from e

    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise ValueError('Assets must be a JSON object of strings: {"name": "path"}')
    return data


def print_results(results: list[BuildResult]) -> None:
    """Print one line per platform and the success summary."""
    if not results:
        return

    pr("\n[green]✅ Build completed![/green]\n")
    for result in results:
        if result.success:
            pr(f"[green]✅ {result.platform}: {escape(str(result.executable))}[/green]")
            pr(f"[bright_black]   Path: {escape(str(result.path))}[/bright_black]")
        else:
            pr(f"[red]❌ {result.platform}: {escape(str(result.error))}[/red]")
        for warning in result.warnings:
            pr(f"[yellow]   ⚠ {escape(warning)}[/yellow]")

    succeeded, total = summarize(results)
    pr(f"\n[blue]📊 Summary: {succeeded}/{total} builds successful[/blue]")


def print_platform_err(e: UnsupportedPlatformError) -> None:
    """
    Displays the unsupported platform error with the list of valid platforms.

    Raises:
        typer.Exit: Always raises with exit code 1 to terminate the application.
    """
    pr(f"[red]Error:[/red] {escape(e.message)}")
    supported = ", ".join(str(p) for p in get_supported_platforms())
    pr(f"[yellow]Supported platforms: {supported}[/yellow]")
    raise typer.Exit(code=1) from e


def print_main_file_err(e: InvalidMainFileError) -> None:
    """
    Raises:
        typer.Exit: Always raises with exit code 1 to terminate the application.
    """
    pr(f"❌ [bold red]{escape(e.message)}[/bold red]")
    pr("\n[yellow]Quick Fix:[/yellow] Pass your entry point with --main, e.g. --main src/index.js")
    raise typer.Exit(code=1) from e


def print_node_err(e: BuildError) -> None:
    """
    Displays a user-friendly error message when the host Node.js is unusable.

    Args:
        e (BuildError): A NodeNotFoundError or UnsupportedRuntimeError.

    Raises:
        typer.Exit: Always raises with exit code 1 to terminate the application.
    """
    pr("❌ [bold red]Node.js Error[/bold red]")
    pr(escape(e.message))
    pr(
        "\n[yellow]Quick Fix:[/yellow] Install Node.js 19.9.0 or newer, or set "
        '"node_path" and "npx_path" in your settings file.'
    )
    raise typer.Exit(code=1) from e


def print_settings_err(e: SettingsError) -> None:
    """
    Raises:
        typer.Exit: Always raises with exit code 1 to terminate the application.
    """
    pr("❌ [bold red]Settings Error[/bold red]")
    pr(escape(e.message))
    pr("\n[yellow]Quick Fix:[/yellow] Fix or delete the settings file.")
    raise typer.Exit(code=1) from e


def print_build_err(e: BuildError) -> None:
    """
    Displays a user-friendly error message for session-level build failures.

    Prints the failure, including diagnostic information for troubleshooting.
    Per-platform failures never reach this handler: they are reported as
    failed results.

    Args:
        e (BuildError): The exception that was raised, containing error details
            and diagnostic information.

    Raises:
        typer.Exit: Always raises with exit code 1 to terminate the application.
    """
    pr("❌ [bold red]Build Error[/bold red]")
    pr(f"The build could not start: {escape(e.message)}")
    pr(
        "\n[yellow]Quick Fix:[/yellow] Ensure your temp folder is writable and you have free disk space."
    )

    pr("\n--- PLEASE REPORT THIS ---")
    pr(f"Error Context: {escape(str(e))}")
    pr(f"Diagnostics: {escape(str(e.diagnostic_info))}")
    raise typer.Exit(code=1) from e


def print_unexpected_err(e: Exception) -> None:
    """
    Displays a user-friendly error message for unexpected errors.

    This catch-all handler ensures that any unhandled exceptions are presented
    to the user in a friendly way, rather than showing a raw Python stack trace.
    It provides helpful guidance and diagnostic information for reporting issues.

    Args:
        e (Exception): The unexpected exception that was raised.

    Raises:
        typer.Exit: Always raises with exit code 1 to terminate the application.
    """
    pr("❌ [bold red]Unexpected Error[/bold red]")
    pr("An unexpected error occurred while building your application.")
    pr(f"\n[yellow]Error Type:[/yellow] {type(e).__name__}")
    pr(f"[yellow]Error Message:[/yellow] {escape(str(e))}")

    pr("\n[yellow]What to do:[/yellow]")
    pr("1. Check that your entry point and assets are readable")
    pr("2. Ensure you have sufficient disk space and permissions")
    pr("3. Try running the command again with --verbose")
    pr("4. If the problem persists, please report this issue")

    pr("\n--- PLEASE REPORT THIS ---")
    pr(f"Error Type: {type(e).__name__}")
    pr(f"Error Message: {escape(str(e))}")
    if e.__cause__:
        pr(f"Caused by: {escape(str(e.__cause__))}")

    raise typer.Exit(code=1) from e


if __name__ == "__main__":
    app()
