"""
Comprehensive tests for the pipeline module using pytest.

Tests cover:
- build_config / write_config: absolute paths, host-only snapshot and code
  cache, optional assets, write failures
- run(): stage order, result fields, warnings from best-effort steps
- Failures: blob generation, missing blob, copy failure, injection,
  verification; intermediates are always removed
"""

import json

import pytest

from adapters.sea_tools import MockSeaToolchain
from core.exceptions import (
    BlobGenerationError,
    ConfigWriteError,
    ExecutableAssemblyError,
    InjectionError,
    VerificationError,
)
from core.models import PipelineStage, StepOutcome
from core.pipeline import PlatformBuildPipeline
from core.workspace import BuildWorkspace
from models import Platform


@pytest.fixture
def workspace(temp_root):
    ws = BuildWorkspace(temp_root)
    yield ws
    ws.teardown()


@pytest.fixture
def pipeline_factory(options_factory, workspace, runtime_cache, toolchain, output_dir):
    def _factory(platform=Platform.LINUX, host=Platform.LINUX, display=None, **option_overrides):
        return PlatformBuildPipeline(
            platform=platform,
            options=options_factory(**option_overrides),
            workspace=workspace,
            runtime_cache=runtime_cache,
            toolchain=toolchain,
            host_platform=host,
            output_dir=output_dir,
            progress_display=display,
        )

    return _factory


def workspace_files(workspace):
    return sorted(p.name for p in workspace.path.iterdir())


# ============================================================================
# Tests for SEA configuration
# ============================================================================


@pytest.mark.unit
def test_config_uses_absolute_paths(pipeline_factory, main_file, workspace):
    config = pipeline_factory().build_config()

    assert config.main == str(main_file.resolve())
    assert config.output == str(workspace.path / "sea-prep-linux.blob")
    assert config.assets is None


@pytest.mark.unit
def test_snapshot_and_code_cache_kept_for_host(pipeline_factory):
    config = pipeline_factory(use_snapshot=True, use_code_cache=True).build_config()

    assert config.use_snapshot is True
    assert config.use_code_cache is True


@pytest.mark.unit
def test_snapshot_and_code_cache_forced_off_for_cross_builds(pipeline_factory):
    config = pipeline_factory(
        platform=Platform.WINDOWS, use_snapshot=True, use_code_cache=True
    ).build_config()

    assert config.use_snapshot is False
    assert config.use_code_cache is False


@pytest.mark.unit
def test_assets_are_resolved(pipeline_factory, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = pipeline_factory(assets={"data.json": "assets/data.json"}).build_config()

    assert config.assets == {"data.json": str(tmp_path.resolve() / "assets" / "data.json")}


@pytest.mark.unit
def test_write_config_serializes_node_keys(pipeline_factory):
    pipeline = pipeline_factory(disable_warning=False)

    path = pipeline.write_config()

    assert path.name == "sea-config-linux.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert set(data) == {
        "main",
        "output",
        "disableExperimentalSEAWarning",
        "useSnapshot",
        "useCodeCache",
    }
    assert data["disableExperimentalSEAWarning"] is False


@pytest.mark.unit
@pytest.mark.mock
def test_write_config_failure(pipeline_factory, mocker):
    mocker.patch("pathlib.Path.write_text", side_effect=OSError("disk full"))

    with pytest.raises(ConfigWriteError) as exc_info:
        pipeline_factory().write_config()

    assert exc_info.value.platform == "linux"


# ============================================================================
# Tests for run()
# ============================================================================


@pytest.mark.unit
def test_linux_run_produces_executable(pipeline_factory, output_dir, workspace, toolchain):
    pipeline = pipeline_factory()

    result = pipeline.run()

    assert result.success
    assert result.executable == "app"
    assert result.path == (output_dir / "app").resolve()
    assert result.build_id == workspace.session_id
    assert result.path.read_bytes().startswith(b"\x7fELF-host-node")
    assert pipeline.stage is PipelineStage.DONE
    assert workspace_files(workspace) == []
    assert toolchain.calls_to("verify") == []
    assert toolchain.calls_to("sign") == []


@pytest.mark.unit
def test_stage_transitions_are_reported(
    pipeline_factory, tracking_progress_display, seeded_cache
):
    seeded_cache()
    pipeline_factory(platform=Platform.WINDOWS, display=tracking_progress_display).run()

    descriptions = [call[1] for call in tracking_progress_display.calls]
    assert descriptions == [
        "win32: writing SEA configuration...",
        "win32: generating blob...",
        "win32: preparing Node.js runtime...",
        "win32: injecting blob...",
        "win32: verifying executable...",
        "win32: signing executable...",
    ]


@pytest.mark.unit
def test_windows_cross_build(pipeline_factory, toolchain, seeded_cache):
    seeded_cache()

    result = pipeline_factory(platform=Platform.WINDOWS).run()

    assert result.success
    assert result.executable == "app.exe"
    assert result.path.read_bytes().startswith(b"runtime-win32")
    assert len(toolchain.calls_to("verify")) == 1
    assert len(toolchain.calls_to("remove_signature")) == 1
    assert len(toolchain.calls_to("sign")) == 1


@pytest.mark.unit
def test_darwin_signs_without_verification(pipeline_factory, toolchain, seeded_cache):
    seeded_cache()

    result = pipeline_factory(platform=Platform.MACOS).run()

    assert result.success
    assert toolchain.calls_to("verify") == []
    assert len(toolchain.calls_to("sign")) == 1


@pytest.mark.unit
def test_best_effort_warnings_are_collected(
    options_factory, workspace, runtime_cache, output_dir, seeded_cache
):
    seeded_cache()
    toolchain = MockSeaToolchain(
        sign_outcome=StepOutcome.skipped("Could not sign"),
        remove_signature_outcome=StepOutcome.skipped("Could not remove signature"),
    )
    pipeline = PlatformBuildPipeline(
        Platform.MACOS,
        options_factory(),
        workspace,
        runtime_cache,
        toolchain,
        Platform.LINUX,
        output_dir,
    )

    result = pipeline.run()

    assert result.success
    assert result.warnings == ("Could not remove signature", "Could not sign")


# ============================================================================
# Tests for failures
# ============================================================================


def make_pipeline(toolchain, platform, options_factory, workspace, runtime_cache, output_dir):
    return PlatformBuildPipeline(
        platform,
        options_factory(),
        workspace,
        runtime_cache,
        toolchain,
        Platform.LINUX,
        output_dir,
    )


@pytest.mark.unit
def test_blob_generation_failure(options_factory, workspace, runtime_cache, output_dir):
    pipeline = make_pipeline(
        MockSeaToolchain(fail_blob=True),
        Platform.LINUX,
        options_factory,
        workspace,
        runtime_cache,
        output_dir,
    )

    with pytest.raises(BlobGenerationError) as exc_info:
        pipeline.run()

    assert exc_info.value.platform == "linux"
    assert pipeline.stage is PipelineStage.FAILED
    assert workspace_files(workspace) == []
    assert not (output_dir / "app").exists()


@pytest.mark.unit
@pytest.mark.mock
def test_missing_blob_is_a_generation_failure(
    options_factory, workspace, runtime_cache, output_dir, mocker
):
    toolchain = MockSeaToolchain()
    mocker.patch.object(toolchain, "generate_blob")
    pipeline = make_pipeline(
        toolchain, Platform.LINUX, options_factory, workspace, runtime_cache, output_dir
    )

    with pytest.raises(BlobGenerationError, match="was not created"):
        pipeline.run()


@pytest.mark.unit
@pytest.mark.mock
def test_copy_failure(pipeline_factory, workspace, mocker):
    mocker.patch("core.pipeline.shutil.copy2", side_effect=PermissionError("denied"))

    with pytest.raises(ExecutableAssemblyError, match="denied"):
        pipeline_factory().run()

    assert workspace_files(workspace) == []


@pytest.mark.unit
def test_injection_failure(options_factory, workspace, runtime_cache, output_dir, seeded_cache):
    seeded_cache()
    pipeline = make_pipeline(
        MockSeaToolchain(fail_inject=frozenset({Platform.MACOS})),
        Platform.MACOS,
        options_factory,
        workspace,
        runtime_cache,
        output_dir,
    )

    with pytest.raises(InjectionError):
        pipeline.run()

    assert workspace_files(workspace) == []


@pytest.mark.unit
def test_verification_failure(options_factory, workspace, runtime_cache, output_dir, seeded_cache):
    seeded_cache()
    toolchain = MockSeaToolchain(fail_verify=frozenset({Platform.WINDOWS}))
    pipeline = make_pipeline(
        toolchain, Platform.WINDOWS, options_factory, workspace, runtime_cache, output_dir
    )

    with pytest.raises(VerificationError):
        pipeline.run()

    assert toolchain.calls_to("sign") == []
    assert workspace_files(workspace) == []
