"""Thin wrapper over the ``stellar`` CLI: deploy, invoke, simulate."""
from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence, Tuple

from .errors import DeployError, MissingToolError, StellarCliError
from .toolchain import install_hint, run_tool

LOGGER = logging.getLogger(__name__)

NETWORKS = ("local", "testnet", "mainnet")

Arg = Tuple[str, str]


@dataclass(frozen=True)
class SimulationResult:
    cpu_instructions: int
    memory_bytes: int
    resource_fee_stroops: int
    ledger_reads: int
    ledger_writes: int

    @classmethod
    def from_json(cls, text: str) -> "SimulationResult":
        """Parse ``--sim-only`` output.

        Raises StellarCliError unless the output is a JSON object carrying
        ``cpu_insns``; other missing or non-numeric fields read as 0.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            raise StellarCliError(f"unreadable simulation output: {text[:200]!r}") from None
        if not isinstance(data, dict) or "cpu_insns" not in data:
            raise StellarCliError(f"simulation output has no cpu_insns: {text[:200]!r}")
        return cls(
            cpu_instructions=_count(data, "cpu_insns"),
            memory_bytes=_count(data, "mem_bytes"),
            resource_fee_stroops=_count(data, "resource_fee"),
            ledger_reads=_count(data, "read_bytes"),
            ledger_writes=_count(data, "write_bytes"),
        )


def _count(data: dict, key: str) -> int:
    value: Any = data.get(key, 0)
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return 0


def _fn_args(args: Sequence[Arg]) -> list[str]:
    out = []
    for key, value in args:
        out.extend([f"--{key}", value])
    return out


class StellarCli:
    """Runs ``stellar contract ...`` commands. Construction fails if the CLI is absent."""

    def __init__(self, binary: str = "stellar"):
        if shutil.which(binary) is None:
            raise MissingToolError(binary, install_hint("stellar"))
        self.binary = binary

    def _run(self, args: list[str], error_cls: type[StellarCliError] = StellarCliError) -> str:
        result = run_tool(self.binary, args)
        result.check(error_cls)
        return result.stdout.strip()

    def deploy(
        self,
        wasm_path: Path,
        network: str,
        source: str,
        constructor_args: Sequence[Arg] = (),
    ) -> str:
        """Deploy ``wasm_path`` and return the new contract id.

        ``constructor_args`` are passed after ``--`` so the contract's
        ``__constructor`` runs at deploy time.
        """
        args = [
            "contract", "deploy",
            "--wasm", str(wasm_path),
            "--network", network,
            "--source", source,
        ]
        if constructor_args:
            args.append("--")
            args.extend(_fn_args(constructor_args))
        LOGGER.info("deploying %s to %s", wasm_path, network)
        return self._run(args, DeployError)

    def invoke(
        self,
        contract_id: str,
        function: str,
        args: Sequence[Arg],
        network: str,
        source: str,
    ) -> str:
        cmd = [
            "contract", "invoke",
            "--id", contract_id,
            "--network", network,
            "--source", source,
            "--", function,
            *_fn_args(args),
        ]
        LOGGER.info("invoking %s.%s on %s", contract_id, function, network)
        return self._run(cmd)

    def simulate(
        self,
        contract_id: str,
        function: str,
        args: Sequence[Arg],
        network: str,
        source: str | None = None,
    ) -> SimulationResult:
        cmd = ["contract", "invoke", "--id", contract_id, "--network", network]
        if source:
            cmd.extend(["--source", source])
        cmd.extend(["--sim-only", "--", function, *_fn_args(args)])
        output = self._run(cmd)
        LOGGER.debug("simulate output: %s", output)
        return SimulationResult.from_json(output)


__all__ = ["NETWORKS", "SimulationResult", "StellarCli"]
