"""
Subprocess adapter for the external SEA tools.

This module wraps every external program the pipeline relies on:

- `node --experimental-sea-config` compiles the SEA configuration into a blob,
- `npx postject` injects the blob into a copy of the runtime binary,
- `codesign` (macOS) and `signtool` (Windows) remove and add code signatures,
- the freshly built Windows executable itself, run once for verification.

Blob generation and injection failures are fatal for the platform being
built. Signature removal and signing are best effort and report their
result as a StepOutcome instead of raising.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Callable, Optional, Protocol

from constants import (
    MACHO_SEGMENT_NAME,
    REPL_BANNER_MARKERS,
    SEA_CONFIG_FLAG,
    SEA_RESOURCE_NAME,
    SENTINEL_FUSE,
    VERIFICATION_FLAG,
    VERIFICATION_TIMEOUT_SECONDS,
)
from core.exceptions import (
    BlobGenerationError,
    InjectionError,
    NodeNotFoundError,
    VerificationError,
)
from core.models import StepOutcome
from core.platforms import get_traits
from models import Platform

logger = logging.getLogger(__name__)

REMOVE_SIGNATURE_COMMANDS: dict[Platform, list[str]] = {
    Platform.MACOS: ["codesign", "--remove-signature"],
    Platform.WINDOWS: ["signtool", "remove", "/s"],
}

SIGN_COMMANDS: dict[Platform, list[str]] = {
    Platform.MACOS: ["codesign", "--sign", "-"],
    Platform.WINDOWS: ["signtool", "sign", "/fd", "SHA256"],
}


class SeaToolchain(Protocol):
    """
    Protocol for the external tools used to assemble an executable.

    Allows the pipeline to be exercised with MockSeaToolchain in tests and with
    SubprocessSeaToolchain in production.
    """

    def node_version(self) -> str:
        """Return the host Node.js version without its "v" prefix."""

    def generate_blob(self, config_path: Path, cwd: Path) -> None:
        """Compile a SEA configuration file into the blob it names."""

    def inject(self, executable: Path, blob_path: Path, platform: Platform) -> None:
        """Inject the blob into the executable."""

    def verify(self, executable: Path, platform: Platform) -> StepOutcome:
        """Check that injection really happened (Windows only)."""

    def remove_signature(self, executable: Path, platform: Platform) -> StepOutcome:
        """Strip the code signature inherited from the runtime binary."""

    def sign(self, executable: Path, platform: Platform) -> StepOutcome:
        """Sign the finished executable."""


def _describe_failure(e: subprocess.CalledProcessError) -> str:
    output = (e.stderr or e.stdout or "").strip()
    if output:
        return f"exit code {e.returncode}: {output.splitlines()[-1]}"
    return f"exit code {e.returncode}"


class SubprocessSeaToolchain:
    """
    Production SeaToolchain backed by subprocess calls.

    Attributes:
        node_path: Path of the host node executable.
        npx_path: Path of the host npx executable, required for injection.
    """

    def __init__(
        self,
        node_path: Path,
        npx_path: Optional[Path] = None,
        run_factory: Optional[Callable] = None,
    ):
        """
        Args:
            node_path: Host node executable.
            npx_path: Host npx executable. Injection fails if it is None.
            run_factory: Optional replacement for subprocess.run. Useful for testing.
        """
        self.node_path = node_path
        self.npx_path = npx_path
        self._run = run_factory if run_factory else subprocess.run

    def node_version(self) -> str:
        try:
            completed = self._run(
                [str(self.node_path), "--version"],
                capture_output=True,
                text=True,
                check=True,
            )
        except (subprocess.CalledProcessError, OSError) as e:
            raise NodeNotFoundError(
                message=f"Could not run {self.node_path} --version",
                original_exception=e,
            ) from e
        return completed.stdout.strip().lstrip("v")

    def generate_blob(self, config_path: Path, cwd: Path) -> None:
        cmd = [str(self.node_path), SEA_CONFIG_FLAG, str(config_path)]
        logger.debug("Running %s", " ".join(cmd))
        try:
            self._run(cmd, cwd=cwd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            raise BlobGenerationError(
                message=f"Failed to generate blob: {_describe_failure(e)}",
                original_exception=e,
            ) from e
        except OSError as e:
            raise BlobGenerationError(
                message=f"Failed to generate blob: {e}", original_exception=e
            ) from e

    def inject(self, executable: Path, blob_path: Path, platform: Platform) -> None:
        if self.npx_path is None:
            raise InjectionError(
                message="Failed to inject blob: npx was not found on PATH",
                platform=str(platform),
            )

        cmd = [
            str(self.npx_path),
            "--yes",
            "postject",
            str(executable),
            SEA_RESOURCE_NAME,
            str(blob_path),
            "--sentinel-fuse",
            SENTINEL_FUSE,
        ]
        if get_traits(platform)["requires_macho_segment"]:
            cmd.extend(["--macho-segment-name", MACHO_SEGMENT_NAME])

        logger.debug("Running %s", " ".join(cmd))
        try:
            self._run(cmd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            raise InjectionError(
                message=f"Failed to inject blob: {_describe_failure(e)}",
                platform=str(platform),
                original_exception=e,
            ) from e
        except OSError as e:
            raise InjectionError(
                message=f"Failed to inject blob: {e}",
                platform=str(platform),
                original_exception=e,
            ) from e

    def verify(self, executable: Path, platform: Platform) -> StepOutcome:
        """
        Run the built executable once and look for the plain node banner.

        A successful SEA build runs the bundled program; a failed injection
        leaves a bare node.exe that prints node's own banner or usage text.

        Raises:
            VerificationError: If node's own output is detected or the
                executable does not exit within the timeout.
        """
        if not get_traits(platform)["requires_verification"]:
            return StepOutcome.success()

        try:
            completed = self._run(
                [str(executable), VERIFICATION_FLAG],
                capture_output=True,
                text=True,
                stdin=subprocess.DEVNULL,
                timeout=VERIFICATION_TIMEOUT_SECONDS,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise VerificationError(
                message=(
                    f"Executable did not exit within {VERIFICATION_TIMEOUT_SECONDS:g}s "
                    "during verification"
                ),
                platform=str(platform),
                original_exception=e,
            ) from e
        except OSError as e:
            # A Windows binary cannot be executed from Linux or macOS
            return StepOutcome.skipped(f"Could not run {executable.name} to verify it: {e}")

        output = f"{completed.stdout or ''}{completed.stderr or ''}"
        for marker in REPL_BANNER_MARKERS:
            if marker in output:
                raise VerificationError(
                    message=(
                        "Blob injection failed: the executable still behaves like "
                        "a plain Node.js runtime"
                    ),
                    platform=str(platform),
                )
        return StepOutcome.success()

    def remove_signature(self, executable: Path, platform: Platform) -> StepOutcome:
        return self._best_effort(
            REMOVE_SIGNATURE_COMMANDS.get(platform),
            executable,
            "Could not remove signature. Continuing...",
        )

    def sign(self, executable: Path, platform: Platform) -> StepOutcome:
        return self._best_effort(
            SIGN_COMMANDS.get(platform),
            executable,
            f"Could not sign executable for {platform}. The executable should still work.",
        )

    def _best_effort(
        self, cmd: Optional[list[str]], executable: Path, warning: str
    ) -> StepOutcome:
        if cmd is None:
            return StepOutcome.success()
        try:
            self._run(
                [*cmd, str(executable)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=True,
            )
        except (subprocess.CalledProcessError, OSError) as e:
            logger.debug("%s failed: %s", cmd[0], e)
            return StepOutcome.skipped(warning)
        return StepOutcome.success()


class MockSeaToolchain:
    """
    Mock implementation of SeaToolchain for testing.

    Writes a fake blob where the SEA configuration asks for it and appends it
    to the executable on injection, so the pipeline can run end to end without
    Node.js. Failures can be configured per platform.

    Attributes (for test inspection):
        calls: List of (method_name, *args) tuples in call order.
    """

    def __init__(
        self,
        version: str = "20.18.0",
        fail_blob: bool = False,
        fail_inject: frozenset[Platform] = frozenset(),
        fail_verify: frozenset[Platform] = frozenset(),
        sign_outcome: Optional[StepOutcome] = None,
        remove_signature_outcome: Optional[StepOutcome] = None,
    ):
        self.version = version
        self.fail_blob = fail_blob
        self.fail_inject = fail_inject
        self.fail_verify = fail_verify
        self.sign_outcome = sign_outcome or StepOutcome.success()
        self.remove_signature_outcome = remove_signature_outcome or StepOutcome.success()

        self.calls: list[tuple] = []

    def calls_to(self, method_name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == method_name]

    def node_version(self) -> str:
        self.calls.append(("node_version",))
        return self.version

    def generate_blob(self, config_path: Path, cwd: Path) -> None:
        self.calls.append(("generate_blob", config_path, cwd))
        if self.fail_blob:
            raise BlobGenerationError(message="Failed to generate blob: exit code 1")

        config = json.loads(config_path.read_text(encoding="utf-8"))
        blob_path = Path(cwd) / config["output"]
        blob_path.write_bytes(b"SEA-BLOB:" + config["main"].encode("utf-8"))

    def inject(self, executable: Path, blob_path: Path, platform: Platform) -> None:
        self.calls.append(("inject", executable, blob_path, platform))
        if platform in self.fail_inject:
            raise InjectionError(
                message="Failed to inject blob: exit code 1", platform=str(platform)
            )
        with open(executable, "ab") as f:
            f.write(blob_path.read_bytes())

    def verify(self, executable: Path, platform: Platform) -> StepOutcome:
        self.calls.append(("verify", executable, platform))
        if platform in self.fail_verify:
            raise VerificationError(
                message="Blob injection failed: the executable still behaves like a plain Node.js runtime",
                platform=str(platform),
            )
        return StepOutcome.success()

    def remove_signature(self, executable: Path, platform: Platform) -> StepOutcome:
        self.calls.append(("remove_signature", executable, platform))
        return self.remove_signature_outcome

    def sign(self, executable: Path, platform: Platform) -> StepOutcome:
        self.calls.append(("sign", executable, platform))
        return self.sign_outcome
