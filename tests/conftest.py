"""Pytest configuration and fixtures for stellar-zk tests.

No real external tools are ever run: ``fake_tools`` replaces ``run_tool`` in
every module that shells out with a scriptable ``FakeRunner``.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import pytest

from stellar_zk.errors import MissingToolError
from stellar_zk.toolchain import ToolInvocation

WASM_DIR = Path("target") / "wasm32-unknown-unknown"


class FakeRunner:
    """Stand-in for ``toolchain.run_tool``.

    Handlers are registered per tool name and receive ``(args, cwd, env)``.
    They may write files and return ``None`` (success), an exit code, or a
    ``(returncode, stdout, stderr)`` tuple.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[str]]] = []
        self.handlers: dict[str, Callable] = {}
        self.missing: set[str] = set()
        self.envs: dict[str, dict] = {}

    def on(self, tool: str, handler: Callable) -> None:
        self.handlers[tool] = handler

    def tools(self) -> list[str]:
        return [name for name, _ in self.calls]

    def __call__(self, name, args=(), *, cwd=None, env=None, timeout=None, cancel=None, outputs=()):
        args = [str(a) for a in args]
        self.calls.append((name, args))
        if env:
            self.envs[name] = dict(env)
        if name in self.missing or Path(name).name in self.missing:
            raise MissingToolError(name, "install it")

        handler = self.handlers.get(name) or self.handlers.get(Path(name).name)
        outcome = handler(args, cwd, env) if handler else None
        if outcome is None:
            returncode, stdout, stderr = 0, "", ""
        elif isinstance(outcome, int):
            returncode, stdout, stderr = outcome, "", f"{name} failed"
        else:
            returncode, stdout, stderr = outcome
        return ToolInvocation(name, tuple(args), stdout, stderr, returncode)


def write_wasm(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\0asm" + b"\x01" * (size - 4))
    return path


def cargo_wasm_handler(size: int, name: str = "verifier.wasm") -> Callable:
    """cargo build handler that leaves one module of ``size`` bytes."""

    def handler(args, cwd, env):
        mode = "release" if "--release" in args else "debug"
        write_wasm(Path(cwd) / WASM_DIR / mode / name, size)

    return handler


def shrink_handler(factor: float) -> Callable:
    """wasm-opt / wasm-strip handler writing ``-o`` output smaller by ``factor``."""

    def handler(args, cwd, env):
        out = Path(args[args.index("-o") + 1])
        src = Path(next(a for a in args if a.endswith(".wasm") and a != str(out)))
        write_wasm(out, max(8, int(src.stat().st_size * factor)))

    return handler


@pytest.fixture
def fake_tools(monkeypatch) -> FakeRunner:
    """Patch every subprocess seam; all tools present, versions undetectable."""
    runner = FakeRunner()
    monkeypatch.setattr("stellar_zk.pipeline.run_tool", runner)
    monkeypatch.setattr("stellar_zk.backends.base.run_tool", runner)
    monkeypatch.setattr("stellar_zk.stellar.run_tool", runner)
    monkeypatch.setattr("stellar_zk.backends.base.is_installed", lambda tool: tool not in runner.missing)
    monkeypatch.setattr("stellar_zk.backends.base.detect_version", lambda tool: None)
    monkeypatch.setattr("stellar_zk.stellar.shutil.which", lambda tool: f"/usr/bin/{tool}")
    runner.on("cargo", cargo_wasm_handler(30_000))
    runner.on("wasm-opt", shrink_handler(0.8))
    runner.on("wasm-strip", shrink_handler(0.9))
    return runner


def _make_project(root: Path, backend: str, profile: str = "development") -> Path:
    from stellar_zk.config import BackendConfig, ProjectConfig, write_project

    root.mkdir(parents=True, exist_ok=True)
    write_project(
        root,
        ProjectConfig(name=root.name, backend=backend, profile=profile),
        BackendConfig.default_for_backend(backend),
    )
    (root / "contracts" / "verifier" / "src").mkdir(parents=True)
    (root / "inputs").mkdir()
    (root / "proofs").mkdir()
    if backend == "groth16":
        (root / "circuits").mkdir()
        (root / "circuits" / "main.circom").write_text("pragma circom 2.0.0;\n")
        (root / "inputs" / "input.json").write_text(json.dumps({"a": "3", "b": "11"}))
    elif backend == "ultrahonk":
        (root / "circuits" / "src").mkdir(parents=True)
        (root / "circuits" / "Prover.toml").write_text('x = "1"\n')
        (root / "inputs" / "input.json").write_text("{}")
    else:
        (root / "programs" / "guest" / "src").mkdir(parents=True)
        (root / "programs" / "host" / "src").mkdir(parents=True)
        (root / "inputs" / "input.json").write_text(json.dumps({"value": 42}))
    return root


@pytest.fixture
def make_project(tmp_path) -> Callable[..., Path]:
    """Factory: ``make_project("ultrahonk")`` -> scaffolded project directory."""

    def factory(backend: str = "groth16", profile: str = "development", name: str = "demo") -> Path:
        return _make_project(tmp_path / name, backend, profile)

    return factory


@pytest.fixture
def tmp_project(make_project) -> Path:
    """A Groth16 project directory with both config files."""
    return make_project("groth16")
