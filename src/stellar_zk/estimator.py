"""Tiered cost estimation for on-chain verification.

Tier 1  ``static_estimate``      closed-form model per backend and public-input count
Tier 2  ``apply_artifact_size``  measured size of the built verifier WASM
Tier 3  ``apply_simulation``     live ``--sim-only`` counters from the network

Each tier takes a ``CostEstimate`` and returns a new one with only the fields
it measured replaced. Tier 3 is best-effort: when simulation is unavailable
the previous values stand and a note says why.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from .errors import MissingToolError, StellarCliError, ToolInvocationError
from .profile import MAX_CPU_INSTRUCTIONS, MAX_WASM_SIZE

if TYPE_CHECKING:
    from .stellar import SimulationResult

LOGGER = logging.getLogger(__name__)

BASE_FEE_STROOPS = 100
INSTRUCTIONS_PER_STROOP = 10_000
CPU_WARN_RATIO = 0.7
WASM_WARN_RATIO = 0.75

# Protocol per-transaction limits shown alongside the estimate
MAX_MEMORY_BYTES = 40 * 1024 * 1024
MAX_LEDGER_READS = 40
MAX_LEDGER_WRITES = 20


class Status(str, Enum):
    OK = "OK"
    WARN = "WARN"
    FAIL = "FAIL"


@dataclass(frozen=True)
class CostEstimate:
    cpu_instructions: int = 0
    memory_bytes: int = 0
    wasm_size: int = 0
    ledger_reads: int = 0
    ledger_writes: int = 0
    estimated_fee_stroops: int = 0
    warnings: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()

    @property
    def cpu_percent(self) -> float:
        return self.cpu_instructions / MAX_CPU_INSTRUCTIONS * 100

    @property
    def wasm_percent(self) -> float:
        return self.wasm_size / MAX_WASM_SIZE * 100

    @property
    def fee_xlm(self) -> float:
        return self.estimated_fee_stroops / 10_000_000


def estimate_fee(cpu_instructions: int) -> int:
    return BASE_FEE_STROOPS + cpu_instructions // INSTRUCTIONS_PER_STROOP


def cpu_warning(cpu_instructions: int) -> str | None:
    if cpu_instructions > MAX_CPU_INSTRUCTIONS * CPU_WARN_RATIO:
        return (
            f"CPU usage {cpu_instructions:,} is above 70% of the "
            f"{MAX_CPU_INSTRUCTIONS // 1_000_000}M limit"
        )
    return None


def cpu_status(cpu_instructions: int) -> Status:
    if cpu_instructions <= MAX_CPU_INSTRUCTIONS * CPU_WARN_RATIO:
        return Status.OK
    if cpu_instructions <= MAX_CPU_INSTRUCTIONS:
        return Status.WARN
    return Status.FAIL


def wasm_status(wasm_size: int) -> Status:
    if wasm_size < MAX_WASM_SIZE * WASM_WARN_RATIO:
        return Status.OK
    if wasm_size <= MAX_WASM_SIZE:
        return Status.WARN
    return Status.FAIL


def _model(cpu: int, memory: int, wasm: int, reads: int, writes: int, warnings: list[str]) -> CostEstimate:
    warn = cpu_warning(cpu)
    if warn:
        warnings.insert(0, warn)
    return CostEstimate(
        cpu_instructions=cpu,
        memory_bytes=memory,
        wasm_size=wasm,
        ledger_reads=reads,
        ledger_writes=writes,
        estimated_fee_stroops=estimate_fee(cpu),
        warnings=tuple(warnings),
    )


def static_estimate(backend: str, num_public_inputs: int) -> CostEstimate:
    """Tier 1: fixed base cost plus a per-input marginal cost.

    Unknown backends give an all-zero estimate with a warning rather than an
    error, so ``estimate`` still renders something useful.
    """
    n = max(0, int(num_public_inputs))
    if backend == "groth16":
        # 4 pairings plus one g1_mul/g1_add per public input; reads VK + nullifier
        warnings = []
        if n > 20:
            warnings.append(
                "many public inputs increase g1_mul cost, consider hashing inputs off-chain"
            )
        return _model(10_000_000 + 500_000 * n, 500_000, 45_000, 2, 2, warnings)
    elif backend == "ultrahonk":
        # sumcheck plus several MSMs
        warnings = ["UltraHonk verification is the most CPU-intensive backend, monitor limits closely"]
        return _model(35_000_000 + 200_000 * n, 2_000_000, 55_000, 2, 1, warnings)
    elif backend == "risc0":
        # Groth16 wrapper with a fixed VK and two fixed public inputs
        return _model(15_000_000, 600_000, 48_000, 2, 2, [])
    return CostEstimate(warnings=("unknown backend",))


def apply_artifact_size(estimate: CostEstimate, wasm_path: Path | None) -> CostEstimate:
    """Tier 2: overwrite ``wasm_size`` with the measured file size, if it exists."""
    if wasm_path is None:
        return estimate
    wasm_path = Path(wasm_path)
    if not wasm_path.is_file():
        LOGGER.debug("no verifier WASM at %s, keeping static size", wasm_path)
        return estimate
    return replace(estimate, wasm_size=wasm_path.stat().st_size)


def apply_simulation(
    estimate: CostEstimate,
    simulate: Callable[[], "SimulationResult"],
) -> CostEstimate:
    """Tier 3: replace counters with a live simulation.

    ``simulate`` is called once. A missing ``stellar`` CLI or a failed
    simulation leaves ``estimate`` untouched apart from an added note.
    """
    try:
        sim = simulate()
    except (MissingToolError, StellarCliError, ToolInvocationError) as exc:
        LOGGER.warning("simulation unavailable: %s", exc)
        return replace(estimate, notes=estimate.notes + (f"simulation unavailable: {exc}",))

    warnings = estimate.warnings
    warn = cpu_warning(sim.cpu_instructions)
    if warn and not any("above 70%" in w for w in warnings):
        warnings = warnings + (warn,)

    fee = sim.resource_fee_stroops or estimate_fee(sim.cpu_instructions)
    return replace(
        estimate,
        cpu_instructions=sim.cpu_instructions,
        memory_bytes=sim.memory_bytes,
        ledger_reads=sim.ledger_reads,
        ledger_writes=sim.ledger_writes,
        estimated_fee_stroops=fee,
        warnings=warnings,
        notes=estimate.notes + ("CPU, memory, ledger and fee figures from live simulation",),
    )


__all__ = [
    "CostEstimate",
    "Status",
    "apply_artifact_size",
    "apply_simulation",
    "cpu_status",
    "cpu_warning",
    "estimate_fee",
    "static_estimate",
    "wasm_status",
]
