"""Build and shrink the Soroban verifier contract.

Stages, in order:

    1. cargo build --target wasm32-unknown-unknown [--release]
    2. wasm-opt -Os|-Oz           (profile controlled)
    3. wasm-strip                 (profile controlled)
    4. size check against 64 KiB  (profile controlled)

A missing wasm-opt or wasm-strip is not fatal: the stage is skipped with a
warning and the previous file passes through unchanged. Post-processed files
are written to ``<contract>/target/stellar-zk/`` so cargo's output directory
only ever holds the one compiled module.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path

from .errors import ContractBuildError, MissingToolError, WasmOptError, WasmTooLargeError
from .profile import MAX_WASM_SIZE, OptimizationProfile, WasmOptLevel
from .toolchain import run_tool

LOGGER = logging.getLogger(__name__)

WASM_TARGET = "wasm32-unknown-unknown"
OUTPUT_SUBDIR = "stellar-zk"


@dataclass(frozen=True)
class WasmOutput:
    path: Path
    size_bytes: int
    optimized: bool = False
    stage_sizes: tuple[tuple[str, int], ...] = ()

    def with_stage(self, stage: str, path: Path, **changes) -> "WasmOutput":
        """Return a copy pointing at ``path`` with ``(stage, size)`` appended."""
        size = path.stat().st_size
        return replace(
            self,
            path=path,
            size_bytes=size,
            stage_sizes=self.stage_sizes + ((stage, size),),
            **changes,
        )


def cargo_profile_env(profile: OptimizationProfile) -> dict[str, str]:
    """CARGO_PROFILE_* overrides so the contract's Cargo.toml needn't match the profile."""
    prefix = f"CARGO_PROFILE_{profile.compile_mode.value.upper()}"
    return {
        f"{prefix}_OPT_LEVEL": profile.opt_level,
        f"{prefix}_LTO": "true" if profile.lto else "false",
        f"{prefix}_CODEGEN_UNITS": str(profile.codegen_units),
        f"{prefix}_OVERFLOW_CHECKS": "true" if profile.overflow_checks else "false",
    }


def find_wasm_file(directory: Path) -> Path:
    """Return the single ``.wasm`` file in ``directory``."""
    candidates = sorted(directory.glob("*.wasm")) if directory.is_dir() else []
    if not candidates:
        raise ContractBuildError(f"no .wasm file found in {directory}")
    if len(candidates) > 1:
        names = ", ".join(p.name for p in candidates)
        raise ContractBuildError(f"expected one .wasm file in {directory}, found {len(candidates)}: {names}")
    return candidates[0]


def cargo_build(contract_dir: Path, profile: OptimizationProfile) -> Path:
    args = ["build", "--target", WASM_TARGET]
    if profile.is_release:
        args.append("--release")

    LOGGER.info("building verifier contract in %s (%s)", contract_dir, profile.name)
    result = run_tool("cargo", args, cwd=contract_dir, env=cargo_profile_env(profile))
    result.check(ContractBuildError)

    out_dir = contract_dir / "target" / WASM_TARGET / profile.compile_mode.output_dir
    return find_wasm_file(out_dir)


def run_wasm_opt(input_path: Path, level: WasmOptLevel, out_dir: Path) -> Path | None:
    """Optimize ``input_path``; None when wasm-opt is not installed."""
    output_path = out_dir / f"{input_path.stem}.opt.wasm"
    try:
        result = run_tool(
            "wasm-opt",
            [level.flag, str(input_path), "-o", str(output_path)],
            outputs=[output_path],
        )
    except MissingToolError:
        LOGGER.warning("wasm-opt not found, skipping WASM optimization")
        return None
    result.check(WasmOptError, "wasm-opt failed: ")
    return output_path


def strip_wasm(input_path: Path, out_dir: Path) -> Path | None:
    """Strip custom sections; None when wasm-strip is not installed."""
    stem = input_path.name.removesuffix(".wasm").removesuffix(".opt")
    output_path = out_dir / f"{stem}.stripped.wasm"
    try:
        result = run_tool("wasm-strip", [str(input_path), "-o", str(output_path)], outputs=[output_path])
    except MissingToolError:
        LOGGER.warning("wasm-strip not found, skipping symbol stripping")
        return None
    result.check(WasmOptError, "wasm-strip failed: ")
    return output_path


def build_and_optimize(contract_dir: Path, profile: OptimizationProfile) -> WasmOutput:
    """Run the full pipeline and return the final artifact with its stage trace.

    Raises:
        ContractBuildError: cargo failed or did not leave exactly one module
        WasmOptError: wasm-opt or wasm-strip ran and failed
        WasmTooLargeError: the size limit is enforced and exceeded
    """
    contract_dir = Path(contract_dir)
    raw = cargo_build(contract_dir, profile)
    output = WasmOutput(path=raw, size_bytes=0).with_stage("cargo build", raw)
    LOGGER.info("cargo build: %d bytes", output.size_bytes)

    out_dir = contract_dir / "target" / OUTPUT_SUBDIR
    if profile.wasm_opt is not WasmOptLevel.NONE or profile.strip_symbols:
        out_dir.mkdir(parents=True, exist_ok=True)

    if profile.wasm_opt is not WasmOptLevel.NONE:
        optimized = run_wasm_opt(output.path, profile.wasm_opt, out_dir)
        if optimized is not None:
            output = output.with_stage("wasm-opt", optimized, optimized=True)
            LOGGER.info("wasm-opt %s: %d bytes", profile.wasm_opt.flag, output.size_bytes)

    if profile.strip_symbols:
        stripped = strip_wasm(output.path, out_dir)
        if stripped is not None:
            output = output.with_stage("strip", stripped)
            LOGGER.info("wasm-strip: %d bytes", output.size_bytes)

    if profile.enforce_size_limit:
        if output.size_bytes > MAX_WASM_SIZE:
            raise WasmTooLargeError(output.size_bytes, MAX_WASM_SIZE, output.path)
        output = replace(output, stage_sizes=output.stage_sizes + (("size-check", output.size_bytes),))

    return output


__all__ = [
    "WASM_TARGET",
    "WasmOutput",
    "build_and_optimize",
    "cargo_build",
    "cargo_profile_env",
    "find_wasm_file",
    "run_wasm_opt",
    "strip_wasm",
]
