"""
Core data models for the build pipeline.

This module defines the data structures exchanged between the coordinator,
the per-platform pipelines and the CLI: the immutable build options, the SEA
configuration handed to Node.js, the outcome of best-effort steps, and the
per-platform build results.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Mapping, Optional

from constants import DEFAULT_OUTPUT, DEFAULT_TEMP_ROOT
from models import Platform


class PipelineStage(StrEnum):
    """States a platform pipeline moves through, in order."""

    CONFIGURING = "configuring"
    GENERATING_ARTIFACT = "generating_artifact"
    ASSEMBLING_EXECUTABLE = "assembling_executable"
    INJECTING = "injecting"
    VERIFYING = "verifying"
    SIGNING = "signing"
    CLEANING_UP = "cleaning_up"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class BuildOptions:
    """
    Immutable options for one build session.

    Attributes:
        main: Path to the JavaScript entry point. Must be an existing regular
            file before any pipeline runs.
        output: Base name of the produced executables. Windows builds get
            ".exe" appended.
        disable_warning: Suppress Node's experimental SEA warning at run time.
        use_snapshot: Build the blob with a startup snapshot (host only).
        use_code_cache: Embed V8 code cache in the blob (host only).
        assets: Mapping of virtual asset path to source file path.
        platforms: Ordered target platforms. Defaults to the host platform.
        temp_root: Directory under which session workspaces are created.
        output_dir: Directory receiving the produced executables.
    """

    main: Path
    output: str = DEFAULT_OUTPUT
    disable_warning: bool = True
    use_snapshot: bool = False
    use_code_cache: bool = False
    assets: Mapping[str, str] = field(default_factory=dict)
    platforms: tuple[Platform, ...] = ()
    temp_root: Path = DEFAULT_TEMP_ROOT
    output_dir: Path = field(default_factory=Path.cwd)


@dataclass(frozen=True)
class SeaConfig:
    """
    The configuration consumed by `node --experimental-sea-config`.

    The key set is Node's contract. `assets` is omitted from the serialized
    form when it is None.
    """

    main: str
    output: str
    disable_experimental_sea_warning: bool = True
    use_snapshot: bool = False
    use_code_cache: bool = False
    assets: Optional[dict[str, str]] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "main": self.main,
            "output": self.output,
            "disableExperimentalSEAWarning": self.disable_experimental_sea_warning,
            "useSnapshot": self.use_snapshot,
            "useCodeCache": self.use_code_cache,
        }
        if self.assets is not None:
            data["assets"] = dict(self.assets)
        return data


@dataclass(frozen=True)
class StepOutcome:
    """
    Result of a best-effort step such as removing or adding a code signature.

    Attributes:
        ok: True if the step completed.
        warning: Explanation shown to the user when the step did not complete.
    """

    ok: bool
    warning: Optional[str] = None

    @classmethod
    def success(cls) -> "StepOutcome":
        return cls(ok=True)

    @classmethod
    def skipped(cls, warning: str) -> "StepOutcome":
        return cls(ok=False, warning=warning)


@dataclass(frozen=True)
class BuildResult:
    """
    Outcome of building one platform within a session.

    Successful results carry the executable name, its absolute path and the
    session id; failed results carry the error description. Both carry the
    warnings collected from best-effort steps.
    """

    platform: Platform
    success: bool
    executable: Optional[str] = None
    path: Optional[Path] = None
    build_id: Optional[str] = None
    error: Optional[str] = None
    warnings: tuple[str, ...] = ()

    @classmethod
    def succeeded(
        cls,
        platform: Platform,
        executable: str,
        path: Path,
        build_id: str,
        warnings: tuple[str, ...] = (),
    ) -> "BuildResult":
        return cls(
            platform=platform,
            success=True,
            executable=executable,
            path=path,
            build_id=build_id,
            warnings=warnings,
        )

    @classmethod
    def failed(
        cls, platform: Platform, error: str, warnings: tuple[str, ...] = ()
    ) -> "BuildResult":
        return cls(platform=platform, success=False, error=error, warnings=warnings)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON-friendly shape printed by `build --json`."""
        data: dict[str, Any] = {"platform": str(self.platform), "success": self.success}
        if self.success:
            data["executable"] = self.executable
            data["path"] = str(self.path)
            data["buildId"] = self.build_id
        else:
            data["error"] = self.error
        if self.warnings:
            data["warnings"] = list(self.warnings)
        return data
