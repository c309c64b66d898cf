"""stellar-zk estimate - predict on-chain verification cost."""
from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

import click

from ..artifacts import PUBLIC_INPUTS_FILE, load_build_artifacts, load_public_inputs
from ..config import load_project
from ..errors import ArtifactsNotFoundError, InputNotFoundError
from ..estimator import CostEstimate, apply_artifact_size, apply_simulation, static_estimate
from ..stellar import NETWORKS, StellarCli
from .call_cmd import verify_args
from .common import config_exists, project_dir, reports_errors
from .output import print_estimate, print_header, print_key_value, print_step

LOGGER = logging.getLogger(__name__)


def _with_note(estimate: CostEstimate, note: str) -> CostEstimate:
    return replace(estimate, notes=estimate.notes + (note,))


@click.command("estimate")
@click.option("--proof", "proof_path", type=click.Path(path_type=Path), default=None,
              help="Proof file to simulate with (static estimate if omitted)")
@click.option("--public-inputs", "num_public_inputs", type=click.IntRange(min=0), default=2, show_default=True,
              help="Number of public inputs for the static estimate")
@click.option("--contract-id", default=None, help="Deployed verifier to simulate against")
@click.option("--network", type=click.Choice(NETWORKS), default="testnet", show_default=True)
@click.option("--source", default=None, help="Source account for the simulation")
@click.pass_context
@reports_errors
def estimate_command(
    ctx: click.Context,
    proof_path: Path | None,
    num_public_inputs: int,
    contract_id: str | None,
    network: str,
    source: str | None,
) -> None:
    """Estimate CPU, memory, WASM size and fee for on-chain verification."""
    print_header("stellar-zk estimate")
    root = project_dir(ctx)

    if config_exists(ctx):
        project, _ = load_project(root)
        backend = project.backend
    else:
        backend = "groth16"

    print_key_value("Backend", backend)
    print_key_value("Public inputs", num_public_inputs)

    estimate = static_estimate(backend, num_public_inputs)

    try:
        artifacts = load_build_artifacts(root)
    except ArtifactsNotFoundError:
        LOGGER.debug("no build artifacts, using static WASM size")
    else:
        estimate = apply_artifact_size(estimate, artifacts.verifier_wasm)
        if artifacts.verifier_wasm.is_file():
            print_key_value("WASM size (actual)", f"{estimate.wasm_size} bytes")

    if proof_path is not None:
        if not proof_path.is_file():
            raise InputNotFoundError(proof_path)
        if contract_id is None:
            estimate = _with_note(estimate, "pass --contract-id to simulate against a deployed verifier")
        else:
            proof = proof_path.read_bytes()
            pi_file = root / "proofs" / PUBLIC_INPUTS_FILE
            public_inputs = b"".join(load_public_inputs(pi_file)) if pi_file.is_file() else b""
            args = verify_args(proof, public_inputs)

            print_step(1, 1, "Running on-chain simulation...")
            estimate = apply_simulation(
                estimate,
                lambda: StellarCli().simulate(contract_id, "verify", args, network, source),
            )
    elif contract_id is not None:
        estimate = _with_note(estimate, "simulation needs --proof")

    print_estimate(estimate, backend)
