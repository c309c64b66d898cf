"""Exception hierarchy for the stellar-zk toolkit.

Every error raised by the library derives from ``StellarZkError`` so the CLI
can report it as a single line and exit non-zero. Errors that wrap external
tool output keep the captured diagnostic text verbatim in ``str(exc)``.
"""
from __future__ import annotations

from pathlib import Path


class StellarZkError(Exception):
    """Base class for all stellar-zk errors."""


# --- Configuration ---------------------------------------------------------

class ConfigError(StellarZkError):
    """A project or backend config file exists but cannot be used."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(f"{message} ({path})" if path else message)
        self.path = path


class ConfigNotFoundError(ConfigError):
    """A required config file is missing."""

    def __init__(self, path: Path):
        super().__init__("config file not found", path)


class NotAProjectError(StellarZkError):
    def __init__(self, project_dir: Path):
        super().__init__(f"not a stellar-zk project (missing stellar-zk.config.json in {project_dir})")
        self.project_dir = project_dir


class UnknownBackendError(StellarZkError):
    def __init__(self, name: str):
        super().__init__(f"unknown backend: {name} (supported: groth16, ultrahonk, risc0)")
        self.name = name


class UnknownProfileError(StellarZkError):
    def __init__(self, name: str):
        super().__init__(
            f"unknown profile: {name} (supported: development, testnet, stellar-production)"
        )
        self.name = name


# --- Prerequisites ---------------------------------------------------------

class MissingToolError(StellarZkError):
    """A required external tool is not installed."""

    def __init__(self, name: str, install: str):
        super().__init__(f"required tool '{name}' not found - install: {install}")
        self.name = name
        self.install = install


# --- Build -----------------------------------------------------------------

class CircuitCompilationError(StellarZkError):
    """The circuit or guest program failed to compile."""


class ContractBuildError(StellarZkError):
    """The Soroban verifier contract failed to build."""


class WasmOptError(StellarZkError):
    """wasm-opt or wasm-strip ran and failed."""


class WasmTooLargeError(StellarZkError):
    """The final WASM exceeds the protocol size ceiling."""

    def __init__(self, size: int, max_size: int, path: Path):
        super().__init__(f"WASM too large: {size} bytes (max {max_size}) at {path}")
        self.size = size
        self.max_size = max_size
        self.path = path


# --- Codec -----------------------------------------------------------------

class CodecError(StellarZkError, ValueError):
    """Malformed, oversized, or wrong-shaped input to a wire-format conversion."""


# --- Proof -----------------------------------------------------------------

class ProofGenerationError(StellarZkError):
    """Witness computation, proving, or proof conversion failed."""


class InputNotFoundError(StellarZkError):
    def __init__(self, path: Path):
        super().__init__(f"input file not found: {path}")
        self.path = path


class ArtifactsNotFoundError(StellarZkError):
    def __init__(self, path: Path):
        super().__init__(f"build artifacts not found at {path} - run `stellar-zk build` first")
        self.path = path


# --- External invocation ---------------------------------------------------

class ToolInvocationError(StellarZkError):
    """An external tool could not be started."""


class ToolCancelledError(ToolInvocationError):
    """An external tool was terminated by timeout or caller cancellation."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"{name} {reason}; partial outputs discarded")
        self.name = name
        self.reason = reason


class StellarCliError(StellarZkError):
    """The ``stellar`` CLI returned an error."""


class DeployError(StellarCliError):
    """Contract deployment failed."""


# --- Concurrency -----------------------------------------------------------

class ProjectLockedError(StellarZkError):
    def __init__(self, project_dir: Path):
        super().__init__(f"another stellar-zk run holds the lock for {project_dir}")
        self.project_dir = project_dir


__all__ = [
    "StellarZkError",
    "ConfigError",
    "ConfigNotFoundError",
    "NotAProjectError",
    "UnknownBackendError",
    "UnknownProfileError",
    "MissingToolError",
    "CircuitCompilationError",
    "ContractBuildError",
    "WasmOptError",
    "WasmTooLargeError",
    "CodecError",
    "ProofGenerationError",
    "InputNotFoundError",
    "ArtifactsNotFoundError",
    "ToolInvocationError",
    "ToolCancelledError",
    "StellarCliError",
    "DeployError",
    "ProjectLockedError",
]
