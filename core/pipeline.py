"""
Per-platform build pipeline.

One PlatformBuildPipeline turns the session's entry point into a native
executable for a single target platform. It moves through these stages:

1.  **Configuring**: writes `sea-config-<platform>.json` into the session
    workspace. Snapshot and code cache are forced off for cross-platform
    targets, since both embed host-specific data.
2.  **Generating artifact**: runs `node --experimental-sea-config` to compile
    the configuration into `sea-prep-<platform>.blob`.
3.  **Assembling executable**: copies the base runtime (host node, or a cached
    official build for other platforms) to the output name and strips the
    inherited code signature where the platform has one (best effort).
4.  **Injecting**: runs postject with the SEA sentinel fuse.
5.  **Verifying**: Windows only, re-runs the result to catch injections that
    exited successfully without doing anything.
6.  **Signing**: macOS and Windows, best effort.
7.  **Cleaning up**: removes the config and blob. Runs on failure too.

Fatal errors raise a BuildError subclass, which the coordinator turns into a
failed BuildResult. Best-effort steps only add warnings to the result.
"""

import json
import logging
import shutil
from pathlib import Path

from constants import SEA_BLOB_TEMPLATE, SEA_CONFIG_TEMPLATE
from core.exceptions import (
    BlobGenerationError,
    BuildError,
    ConfigWriteError,
    ExecutableAssemblyError,
)
from core.models import BuildOptions, BuildResult, PipelineStage, SeaConfig, StepOutcome
from core.platforms import get_executable_name, get_traits, supports_signing
from core.runtime_cache import RuntimeCache
from core.workspace import BuildWorkspace
from adapters.sea_tools import SeaToolchain
from models import Platform
from ui.progress_display import NoOpProgressDisplay, ProgressDisplay

logger = logging.getLogger(__name__)

STAGE_DESCRIPTIONS: dict[PipelineStage, str] = {
    PipelineStage.CONFIGURING: "writing SEA configuration",
    PipelineStage.GENERATING_ARTIFACT: "generating blob",
    PipelineStage.ASSEMBLING_EXECUTABLE: "preparing Node.js runtime",
    PipelineStage.INJECTING: "injecting blob",
    PipelineStage.VERIFYING: "verifying executable",
    PipelineStage.SIGNING: "signing executable",
    PipelineStage.CLEANING_UP: "cleaning up",
}


class PlatformBuildPipeline:
    """
    Builds one executable for one target platform inside a session workspace.

    Attributes:
        platform: Target platform.
        stage: Current stage, PipelineStage.DONE or PipelineStage.FAILED once
            run() has returned or raised.
        warnings: Warnings collected from best-effort steps.
    """

    def __init__(
        self,
        platform: Platform,
        options: BuildOptions,
        workspace: BuildWorkspace,
        runtime_cache: RuntimeCache,
        toolchain: SeaToolchain,
        host_platform: Platform,
        output_dir: Path,
        progress_display: ProgressDisplay | None = None,
    ):
        self.platform = platform
        self.options = options
        self.workspace = workspace
        self.runtime_cache = runtime_cache
        self.toolchain = toolchain
        self.host_platform = host_platform
        self.output_dir = output_dir
        self.progress_display = (
            progress_display if progress_display is not None else NoOpProgressDisplay()
        )

        self.stage = PipelineStage.CONFIGURING
        self.warnings: list[str] = []
        self.config_path = workspace.path_for(SEA_CONFIG_TEMPLATE.format(platform=platform))
        self.blob_path = workspace.path_for(SEA_BLOB_TEMPLATE.format(platform=platform))
        self.executable_name = get_executable_name(options.output, platform)
        self.executable_path = (output_dir / self.executable_name).resolve()

    def run(self) -> BuildResult:
        """
        Execute every stage for this platform.

        Returns:
            BuildResult: A successful result.

        Raises:
            BuildError: Any fatal stage failure. Intermediate files are removed
                before the error propagates.
        """
        try:
            self._enter(PipelineStage.CONFIGURING)
            self.write_config()

            self._enter(PipelineStage.GENERATING_ARTIFACT)
            self.generate_blob()

            self._enter(PipelineStage.ASSEMBLING_EXECUTABLE)
            self.create_executable()

            self._enter(PipelineStage.INJECTING)
            self.toolchain.inject(self.executable_path, self.blob_path, self.platform)

            if get_traits(self.platform)["requires_verification"]:
                self._enter(PipelineStage.VERIFYING)
                self._record(self.toolchain.verify(self.executable_path, self.platform))

            if supports_signing(self.platform):
                self._enter(PipelineStage.SIGNING)
                self._record(self.toolchain.sign(self.executable_path, self.platform))
        except BuildError as e:
            self.stage = PipelineStage.FAILED
            if e.platform is None:
                e.platform = str(self.platform)
            raise
        except Exception:
            self.stage = PipelineStage.FAILED
            raise
        finally:
            self.cleanup()

        self.stage = PipelineStage.DONE
        return BuildResult.succeeded(
            platform=self.platform,
            executable=self.executable_name,
            path=self.executable_path,
            build_id=self.workspace.session_id,
            warnings=tuple(self.warnings),
        )

    def build_config(self) -> SeaConfig:
        """
        Build the SEA configuration for this platform.

        Assets are resolved to absolute paths and omitted entirely when the
        session has none.
        """
        is_host = self.platform == self.host_platform
        assets = (
            {name: str(Path(source).resolve()) for name, source in self.options.assets.items()}
            if self.options.assets
            else None
        )
        return SeaConfig(
            main=str(Path(self.options.main).resolve()),
            output=str(self.blob_path),
            disable_experimental_sea_warning=self.options.disable_warning,
            use_snapshot=self.options.use_snapshot and is_host,
            use_code_cache=self.options.use_code_cache and is_host,
            assets=assets,
        )

    def write_config(self) -> Path:
        config = self.build_config()
        try:
            self.config_path.write_text(
                json.dumps(config.to_dict(), indent=2), encoding="utf-8"
            )
        except OSError as e:
            raise ConfigWriteError(
                message=f"Failed to write SEA configuration: {self.config_path}",
                platform=str(self.platform),
                original_exception=e,
            ) from e
        return self.config_path

    def generate_blob(self) -> Path:
        self.toolchain.generate_blob(self.config_path, self.workspace.path)
        if not self.blob_path.is_file():
            raise BlobGenerationError(
                message=f"Failed to generate blob: {self.blob_path.name} was not created",
                platform=str(self.platform),
            )
        return self.blob_path

    def create_executable(self) -> Path:
        """
        Copy the base runtime to the output executable and strip its signature.

        Raises:
            ExecutableAssemblyError: If the runtime cannot be copied.
            DownloadError, ExtractionError: If a runtime had to be fetched and
                that failed.
        """
        runtime_path = self.runtime_cache.acquire(self.platform)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(runtime_path, self.executable_path)
        except OSError as e:
            raise ExecutableAssemblyError(
                message=(
                    f"Failed to copy Node.js executable from '{runtime_path}' "
                    f"to '{self.executable_path}': {e}"
                ),
                platform=str(self.platform),
                original_exception=e,
            ) from e

        if supports_signing(self.platform):
            self._record(self.toolchain.remove_signature(self.executable_path, self.platform))
        return self.executable_path

    def cleanup(self) -> None:
        previous = self.stage
        self.stage = PipelineStage.CLEANING_UP
        self.workspace.cleanup([self.config_path, self.blob_path])
        self.stage = previous

    def _enter(self, stage: PipelineStage) -> None:
        self.stage = stage
        logger.debug("%s: %s", self.platform, stage)
        self.progress_display.on_update(
            description=f"{self.platform}: {STAGE_DESCRIPTIONS[stage]}..."
        )

    def _record(self, outcome: StepOutcome) -> None:
        if not outcome.ok and outcome.warning:
            logger.warning("%s: %s", self.platform, outcome.warning)
            self.warnings.append(outcome.warning)
