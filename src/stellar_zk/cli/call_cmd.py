"""stellar-zk call - submit a proof to a deployed verifier."""
from __future__ import annotations

import hashlib
from pathlib import Path

import click

from ..artifacts import PUBLIC_INPUTS_FILE, load_public_inputs
from ..config import load_project
from ..errors import ArtifactsNotFoundError, InputNotFoundError
from ..stellar import NETWORKS, StellarCli
from .common import project_dir, reports_errors
from .output import print_header, print_key_value, print_step, print_success


def compute_nullifier(proof: bytes, public_inputs: bytes) -> bytes:
    """SHA-256(proof || public inputs); the contract rejects a repeated nullifier."""
    return hashlib.sha256(proof + public_inputs).digest()


def read_public_inputs(explicit: Path | None, root: Path) -> bytes:
    """Raw bytes from ``explicit``, else the concatenated field elements from proofs/public_inputs.json."""
    if explicit is not None:
        if not explicit.is_file():
            raise InputNotFoundError(explicit)
        return explicit.read_bytes()

    path = root / "proofs" / PUBLIC_INPUTS_FILE
    if not path.is_file():
        raise ArtifactsNotFoundError(path)
    return b"".join(load_public_inputs(path))


def verify_args(proof: bytes, public_inputs: bytes) -> list[tuple[str, str]]:
    nullifier = compute_nullifier(proof, public_inputs)
    return [
        ("proof", proof.hex()),
        ("public_inputs", public_inputs.hex()),
        ("nullifier", nullifier.hex()),
    ]


@click.command("call")
@click.option("--contract-id", required=True, help="Contract ID (C...) on the network")
@click.option("--proof", "proof_path", type=click.Path(path_type=Path), required=True, help="Path to proof file")
@click.option("--public-inputs", "public_inputs_path", type=click.Path(path_type=Path), default=None,
              help="Raw public inputs file (default: proofs/public_inputs.json)")
@click.option("--network", type=click.Choice(NETWORKS), default="testnet", show_default=True)
@click.option("--source", required=True, help="Source account secret key or identity name")
@click.pass_context
@reports_errors
def call_command(
    ctx: click.Context,
    contract_id: str,
    proof_path: Path,
    public_inputs_path: Path | None,
    network: str,
    source: str,
) -> None:
    """Call verify() on the deployed contract with a proof."""
    print_header("stellar-zk call")
    root = project_dir(ctx)
    project, _ = load_project(root)

    print_key_value("Contract", contract_id)
    print_key_value("Backend", project.backend)
    print_key_value("Network", network)
    print_key_value("Proof", proof_path)

    if not proof_path.is_file():
        raise InputNotFoundError(proof_path)
    proof = proof_path.read_bytes()
    public_inputs = read_public_inputs(public_inputs_path, root)
    print_key_value("Public inputs", f"{len(public_inputs) // 32} field elements")

    stellar = StellarCli()
    print_step(1, 1, "Calling verify on contract...")
    result = stellar.invoke(contract_id, "verify", verify_args(proof, public_inputs), network, source)
    print_success(f"Verification result: {result}")
