"""Subprocess boundary for external tools.

Every call to circom, snarkjs, nargo, bb, cargo, wasm-opt, the stellar CLI and
friends goes through ``run_tool``. It:

- enforces argv discipline (list only, no shell strings)
- captures stdout/stderr into a ``ToolInvocation`` record
- maps "executable not found" to ``MissingToolError`` with an install hint
- supports a timeout and caller-driven cancellation (``threading.Event``);
  either one kills the child and deletes the declared output files
- removes declared outputs before starting and after a failed run, so a
  retry never picks up a stale or partial file

Version detection lives here too: ``detect_version`` returns ``None`` for any
tool that is missing or prints nothing that looks like ``X.Y.Z``.
"""
from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, NamedTuple, Optional, Sequence

from .errors import MissingToolError, StellarZkError, ToolCancelledError, ToolInvocationError

LOGGER = logging.getLogger(__name__)

INSTALL_HINTS: dict[str, str] = {
    "circom": "https://docs.circom.io/getting-started/installation/",
    "snarkjs": "npm install -g snarkjs",
    "node": "https://nodejs.org/",
    "nargo": "curl -L https://raw.githubusercontent.com/noir-lang/noirup/main/install | bash && noirup",
    "bb": "curl -L https://raw.githubusercontent.com/AztecProtocol/aztec-packages/master/barretenberg/bbup/install | bash && bbup",
    "cargo": "https://rustup.rs/ (then: rustup target add wasm32-unknown-unknown)",
    "cargo-risczero": "curl -L https://risczero.com/install | bash && rzup install",
    "docker": "https://docs.docker.com/get-docker/ (needed for Groth16 proof wrapping)",
    "wasm-opt": "https://github.com/WebAssembly/binaryen (or: npm install -g binaryen)",
    "wasm-strip": "https://github.com/WebAssembly/wabt",
    "stellar": "https://developers.stellar.org/docs/tools/cli",
}

TIMEOUT_ENV = "STELLAR_ZK_TOOL_TIMEOUT"

# How often a running tool is checked for cancellation
_POLL_SECS = 0.2

# Tail of the diagnostic kept when a tool fails
MAX_DIAGNOSTIC_CHARS = 8000


def install_hint(tool: str) -> str:
    return INSTALL_HINTS.get(tool, f"install '{tool}' and make sure it is on PATH")


def default_timeout() -> float | None:
    """Per-call timeout from STELLAR_ZK_TOOL_TIMEOUT, or None for unbounded."""
    raw = os.getenv(TIMEOUT_ENV, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        LOGGER.warning("ignoring non-numeric %s=%r", TIMEOUT_ENV, raw)
        return None
    return value if value > 0 else None


def is_installed(tool: str) -> bool:
    return shutil.which(tool) is not None


@dataclass(frozen=True)
class ToolInvocation:
    """Captured result of one external tool call."""
    name: str
    args: tuple[str, ...]
    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def diagnostic(self) -> str:
        """stderr if the tool wrote any, otherwise stdout (tail only)."""
        text = self.stderr if self.stderr.strip() else self.stdout
        return text[-MAX_DIAGNOSTIC_CHARS:]

    def check(self, error_cls: type[StellarZkError], prefix: str = "") -> "ToolInvocation":
        """Raise ``error_cls`` carrying the captured diagnostic on non-zero exit."""
        if not self.ok:
            raise error_cls(f"{prefix}{self.diagnostic}")
        return self


def _discard(outputs: Iterable[Path]) -> None:
    for path in outputs:
        path = Path(path)
        if path.is_dir():
            shutil.rmtree(path, ignore_errors=True)
        elif path.exists():
            path.unlink()
            LOGGER.debug("discarded %s", path)


def run_tool(
    name: str,
    args: Sequence[str | os.PathLike[str]] = (),
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
    outputs: Sequence[Path] = (),
) -> ToolInvocation:
    """Run ``name args...`` and capture its output.

    Args:
        name: Executable name or path
        args: Arguments (list only, no shell strings)
        cwd: Working directory
        env: Extra environment variables layered over os.environ
        timeout: Seconds before the tool is killed (default: STELLAR_ZK_TOOL_TIMEOUT)
        cancel: Event the caller sets to terminate the tool early
        outputs: Files the tool is expected to write; deleted before the run
            and again if the run fails, times out, or is cancelled

    Returns:
        ToolInvocation, regardless of exit status

    Raises:
        TypeError: If args is a string
        MissingToolError: If the executable cannot be found
        ToolCancelledError: On timeout or cancellation
        ToolInvocationError: If the executable exists but cannot be started
    """
    if isinstance(args, (str, bytes)):
        raise TypeError(
            "args must be a list, not a shell string. "
            "Pass ['groth16', 'setup'] not 'groth16 setup'"
        )

    argv = [str(a) for a in args]
    if timeout is None:
        timeout = default_timeout()
    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)

    _discard(outputs)
    LOGGER.debug("%s %s", name, " ".join(argv))

    try:
        proc = subprocess.Popen(
            [name, *argv],
            cwd=str(cwd) if cwd else None,
            env=full_env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except FileNotFoundError:
        raise MissingToolError(name, install_hint(Path(name).name)) from None
    except OSError as exc:
        raise ToolInvocationError(f"failed to run {name}: {exc}") from exc

    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        try:
            stdout, stderr = proc.communicate(timeout=_POLL_SECS)
            break
        except subprocess.TimeoutExpired:
            if cancel is not None and cancel.is_set():
                reason = "cancelled"
            elif deadline is not None and time.monotonic() >= deadline:
                reason = f"timed out after {timeout:g}s"
            else:
                continue
            proc.kill()
            proc.communicate()
            _discard(outputs)
            LOGGER.warning("%s %s", name, reason)
            raise ToolCancelledError(name, reason) from None
        except KeyboardInterrupt:
            proc.kill()
            proc.communicate()
            _discard(outputs)
            raise

    result = ToolInvocation(
        name=name,
        args=tuple(argv),
        stdout=stdout or "",
        stderr=stderr or "",
        returncode=proc.returncode,
    )
    if not result.ok:
        _discard(outputs)
        LOGGER.debug("%s exited with %d", name, result.returncode)
    return result


class Version(NamedTuple):
    """A semver-like ``major.minor.patch`` triple; compares as a tuple."""
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


_VERSION_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)")


def parse_version(text: str) -> Optional[Version]:
    """Find the first ``X.Y.Z`` in ``text``.

    Handles "2.1.8", "v0.36.0", "nargo version = 0.36.0", "snarkjs@0.7.4" and
    pre-release suffixes like "0.56.0-beta1".
    """
    match = _VERSION_RE.search(text or "")
    if match is None:
        return None
    return Version(*(int(part) for part in match.groups()))


def detect_version(tool: str, timeout: float = 10.0) -> Optional[Version]:
    """Run ``tool --version`` and parse stdout, then stderr.

    Returns None when the tool is missing, hangs, or prints no version.
    """
    try:
        result = run_tool(tool, ["--version"], timeout=timeout)
    except (MissingToolError, ToolInvocationError):
        return None
    if result.ok:
        return parse_version(result.stdout) or parse_version(result.stderr)
    # some tools exit non-zero but still report a version on stderr
    return parse_version(result.stderr)


__all__ = [
    "INSTALL_HINTS",
    "TIMEOUT_ENV",
    "ToolInvocation",
    "Version",
    "default_timeout",
    "detect_version",
    "install_hint",
    "is_installed",
    "parse_version",
    "run_tool",
]
