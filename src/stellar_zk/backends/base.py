"""The lifecycle every proving backend implements."""
from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from ..artifacts import BuildArtifacts, ProofArtifacts
from ..config import BackendConfig
from ..errors import InputNotFoundError, MissingToolError, StellarZkError
from ..estimator import CostEstimate, static_estimate
from ..pipeline import WasmOutput, build_and_optimize
from ..profile import OptimizationProfile
from ..toolchain import ToolInvocation, Version, detect_version, install_hint, is_installed, run_tool

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class MissingPrerequisite:
    tool_name: str
    install_instructions: str


@dataclass(frozen=True)
class VersionWarning:
    tool_name: str
    found_version: str
    minimum_version: str


class ZkBackend(ABC):
    """One proving system: circuit compile, key setup, proving, cost model.

    Subclasses declare ``REQUIRED_TOOLS`` (checked fail-closed before any
    work) and ``MIN_VERSIONS`` (checked best-effort, never fatal).
    """

    name: str = "unknown"
    display_name: str = "unknown"
    REQUIRED_TOOLS: Sequence[str] = ()
    MIN_VERSIONS: Mapping[str, Version] = {}

    def __init__(self, *, timeout: float | None = None, cancel: threading.Event | None = None) -> None:
        self.timeout = timeout
        self.cancel = cancel

    # --- checks ------------------------------------------------------------

    def check_prerequisites(self) -> list[MissingPrerequisite]:
        """Every required tool not on PATH; empty means ready."""
        return [
            MissingPrerequisite(tool, install_hint(tool))
            for tool in self.REQUIRED_TOOLS
            if not is_installed(tool)
        ]

    def check_versions(self) -> list[VersionWarning]:
        warnings = []
        for tool, minimum in self.MIN_VERSIONS.items():
            found = detect_version(tool)
            if found is None:
                LOGGER.debug("could not detect %s version, skipping check", tool)
                continue
            if found < minimum:
                warnings.append(VersionWarning(tool, str(found), str(minimum)))
        return warnings

    def preflight(self) -> None:
        """Raise for the first missing tool and log version warnings."""
        missing = self.check_prerequisites()
        if missing:
            for item in missing[1:]:
                LOGGER.error("missing %s (install: %s)", item.tool_name, item.install_instructions)
            raise MissingToolError(missing[0].tool_name, missing[0].install_instructions)
        for warning in self.check_versions():
            LOGGER.warning(
                "%s %s is older than the tested minimum %s",
                warning.tool_name,
                warning.found_version,
                warning.minimum_version,
            )

    # --- lifecycle ---------------------------------------------------------

    @abstractmethod
    def build(
        self,
        project_dir: Path,
        backend_config: BackendConfig,
        profile: OptimizationProfile,
    ) -> BuildArtifacts:
        """Compile, set up keys, and build the verifier contract."""

    @abstractmethod
    def prove(
        self,
        project_dir: Path,
        build_artifacts: BuildArtifacts,
        input_path: Path,
    ) -> ProofArtifacts:
        """Generate a proof for ``input_path`` and write it under ``proofs/``."""

    def estimate_cost(
        self,
        project_dir: Path,
        proof_artifacts: ProofArtifacts,
        build_artifacts: BuildArtifacts,
    ) -> CostEstimate:
        return static_estimate(self.name, len(proof_artifacts.public_inputs))

    # --- helpers shared by the implementations ----------------------------

    def run(
        self,
        tool: str,
        args: Sequence[Any],
        error_cls: type[StellarZkError],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        outputs: Sequence[Path] = (),
        prefix: str = "",
    ) -> ToolInvocation:
        """Run a tool with this backend's timeout/cancel; raise ``error_cls`` on failure."""
        result = run_tool(
            tool,
            [str(a) for a in args],
            cwd=cwd,
            env=env,
            timeout=self.timeout,
            cancel=self.cancel,
            outputs=outputs,
        )
        return result.check(error_cls, prefix)

    def build_verifier(self, project_dir: Path, profile: OptimizationProfile) -> WasmOutput:
        output = build_and_optimize(project_dir / "contracts" / "verifier", profile)
        for stage, size in output.stage_sizes:
            LOGGER.info("  %-12s %8d bytes", stage, size)
        return output

    @staticmethod
    def require_input(input_path: Path) -> Path:
        input_path = Path(input_path)
        if not input_path.exists():
            raise InputNotFoundError(input_path)
        return input_path

    @staticmethod
    def target_dir(project_dir: Path) -> Path:
        target = Path(project_dir) / "target"
        target.mkdir(parents=True, exist_ok=True)
        return target

    @staticmethod
    def read_json(path: Path, error_cls: type[StellarZkError]) -> Any:
        try:
            return json.loads(Path(path).read_text())
        except FileNotFoundError:
            raise error_cls(f"expected output not found: {path}") from None
        except json.JSONDecodeError as exc:
            raise error_cls(f"failed to parse {Path(path).name}: {exc}") from exc

    @staticmethod
    def write_cached_settings(target: Path, filename: str, settings: Mapping[str, Any]) -> Path:
        """Persist build-time settings that ``prove`` needs without the config."""
        path = target / filename
        path.write_text(json.dumps(dict(settings)))
        return path

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


__all__ = ["MissingPrerequisite", "VersionWarning", "ZkBackend"]
