"""
Build sessions and the multi-platform build coordinator.

A BuildSession validates its inputs once, owns one temporary workspace and
runs a PlatformBuildPipeline for every requested platform, in order. A
failure on one platform is recorded as a failed BuildResult and never stops
the next platform. Whatever happens, the workspace is removed before build()
returns.
"""

import logging
from pathlib import Path
from types import TracebackType
from typing import Optional

from constants import MIN_NODE_VERSION
from core.exceptions import BuildError, InvalidMainFileError, UnsupportedRuntimeError
from core.models import BuildOptions, BuildResult
from core.pipeline import PlatformBuildPipeline
from core.platforms import get_traits
from core.runtime_cache import RuntimeCache
from core.versions import is_version_greater_or_equal
from core.workspace import BuildWorkspace
from adapters.sea_tools import SeaToolchain
from models import Platform
from ui.progress_display import NoOpProgressDisplay, ProgressDisplay

logger = logging.getLogger(__name__)


def validate_main_file(main: Path) -> Path:
    """
    Check that the entry point exists and is a regular file.

    Returns:
        Path: The absolute path of the entry point.

    Raises:
        InvalidMainFileError: If the path is missing or is not a regular file.
    """
    path = Path(main)
    if not path.exists():
        raise InvalidMainFileError(
            message=f"Main file not found: {path}", file_path=str(path)
        )
    if not path.is_file():
        raise InvalidMainFileError(
            message=f"Main path is not a file: {path}", file_path=str(path)
        )
    return path.resolve()


def check_node_version(version: str, minimum: str = MIN_NODE_VERSION) -> None:
    """
    Raises:
        UnsupportedRuntimeError: If `version` is older than `minimum` or
            cannot be parsed.
    """
    try:
        supported = is_version_greater_or_equal(version, minimum)
    except ValueError as e:
        raise UnsupportedRuntimeError(
            message=f"Could not parse Node.js version '{version}'",
            original_exception=e,
        ) from e
    if not supported:
        raise UnsupportedRuntimeError(
            message=(
                f"Node.js {minimum} or higher is required for single executable "
                f"applications. Current version: v{version}"
            )
        )


class BuildSession:
    """
    One build invocation: validated options, a workspace and a toolchain.

    Construction performs the checks shared by every platform (main file,
    host Node.js version) and creates the workspace, so an invalid session
    fails before any platform starts.

    Example:
        >>> with BuildSession(options, toolchain, cache, host) as session:
        ...     results = session.build()
    """

    def __init__(
        self,
        options: BuildOptions,
        toolchain: SeaToolchain,
        runtime_cache: RuntimeCache,
        host_platform: Platform,
        progress_display: Optional[ProgressDisplay] = None,
    ):
        """
        Raises:
            InvalidMainFileError: If options.main is not an existing file.
            UnsupportedRuntimeError: If the host Node.js is older than 19.9.0.
            WorkspaceError: If the session workspace cannot be created.
        """
        validate_main_file(options.main)
        check_node_version(toolchain.node_version())

        self.options = options
        self.toolchain = toolchain
        self.runtime_cache = runtime_cache
        self.host_platform = host_platform
        self.progress_display = (
            progress_display if progress_display is not None else NoOpProgressDisplay()
        )
        self.platforms: tuple[Platform, ...] = options.platforms or (host_platform,)
        self.workspace = BuildWorkspace(options.temp_root)
        self.results: list[BuildResult] = []

    @property
    def session_id(self) -> str:
        return self.workspace.session_id

    def __enter__(self) -> "BuildSession":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.workspace.teardown()

    def output_dir_for(self, platform: Platform) -> Path:
        """
        Directory receiving the executable of `platform`.

        Multi-platform sessions write each executable to its own
        `<output_dir>/<platform>/` subdirectory, since the linux and darwin
        executables share a name.
        """
        if len(self.platforms) > 1:
            return Path(self.options.output_dir) / str(platform)
        return Path(self.options.output_dir)

    def build(self) -> list[BuildResult]:
        """
        Build every requested platform sequentially.

        Returns:
            list[BuildResult]: One result per platform, in request order.
        """
        logger.info(
            "Session %s building for %s",
            self.session_id,
            ", ".join(str(p) for p in self.platforms),
        )
        try:
            with self.progress_display as display:
                for platform in self.platforms:
                    self.results.append(self._build_platform(platform, display))
        finally:
            self.workspace.teardown()
        return self.results

    def _build_platform(self, platform: Platform, display: ProgressDisplay) -> BuildResult:
        display_name = get_traits(platform)["display_name"]
        display.on_start(f"Building for {display_name}...")

        pipeline = PlatformBuildPipeline(
            platform=platform,
            options=self.options,
            workspace=self.workspace,
            runtime_cache=self.runtime_cache,
            toolchain=self.toolchain,
            host_platform=self.host_platform,
            output_dir=self.output_dir_for(platform),
            progress_display=display,
        )
        try:
            result = pipeline.run()
        except BuildError as e:
            logger.error("Build failed for %s: %s", platform, e.message)
            logger.debug("Diagnostics: %s", e.diagnostic_info)
            display.on_fail(f"{display_name}: {e.message}")
            return BuildResult.failed(platform, e.message, tuple(pipeline.warnings))
        except Exception as e:  # noqa: BLE001
            message = f"Unexpected error: {e}"
            logger.exception("Build failed for %s", platform)
            display.on_fail(f"{display_name}: {message}")
            return BuildResult.failed(platform, message, tuple(pipeline.warnings))

        display.on_complete(
            f"{display_name}: {result.executable}", warning=bool(result.warnings)
        )
        return result


class BuildCoordinator:
    """
    Entry point for building one set of options end to end.

    Holds the long-lived collaborators (toolchain, runtime cache) so that
    several sessions can share them.
    """

    def __init__(
        self,
        toolchain: SeaToolchain,
        runtime_cache: RuntimeCache,
        host_platform: Platform,
        progress_display: Optional[ProgressDisplay] = None,
    ):
        self.toolchain = toolchain
        self.runtime_cache = runtime_cache
        self.host_platform = host_platform
        self.progress_display = progress_display

    def run(self, options: BuildOptions) -> list[BuildResult]:
        """
        Validate `options`, then build every requested platform.

        Raises:
            InvalidMainFileError, UnsupportedRuntimeError, WorkspaceError:
                Session-level failures raised before any platform is built.
        """
        session = BuildSession(
            options,
            self.toolchain,
            self.runtime_cache,
            self.host_platform,
            self.progress_display,
        )
        with session:
            return session.build()


def summarize(results: list[BuildResult]) -> tuple[int, int]:
    """Return (successful builds, total builds)."""
    return sum(1 for result in results if result.success), len(results)
