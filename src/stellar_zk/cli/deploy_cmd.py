"""stellar-zk deploy - deploy the verifier with its verification key."""
from __future__ import annotations

import click

from ..artifacts import load_build_artifacts
from ..config import load_project
from ..errors import ArtifactsNotFoundError
from ..stellar import NETWORKS, StellarCli
from .common import project_dir, reports_errors
from .output import console, print_header, print_key_value, print_step, print_success


@click.command("deploy")
@click.option("--network", type=click.Choice(NETWORKS), default="testnet", show_default=True)
@click.option("--source", required=True, help="Source account secret key or identity name")
@click.pass_context
@reports_errors
def deploy_command(ctx: click.Context, network: str, source: str) -> None:
    """Deploy the verifier contract, initializing it with the VK."""
    print_header("stellar-zk deploy")
    root = project_dir(ctx)
    project, _ = load_project(root)
    artifacts = load_build_artifacts(root)

    if not artifacts.verifier_wasm.is_file():
        raise ArtifactsNotFoundError(artifacts.verifier_wasm)
    if not artifacts.verification_key.is_file():
        raise ArtifactsNotFoundError(artifacts.verification_key)
    vk = artifacts.verification_key.read_bytes()

    print_key_value("Contract", project.contract.name)
    print_key_value("Network", network)
    print_key_value("WASM", artifacts.verifier_wasm)
    print_key_value("VK size", f"{len(vk)} bytes")

    stellar = StellarCli()
    print_step(1, 1, "Deploying contract with VK initialization...")
    contract_id = stellar.deploy(artifacts.verifier_wasm, network, source, [("vk_bytes", vk.hex())])

    print_success(f"Contract deployed: {contract_id}")
    console.print("\n  To verify a proof:")
    console.print(
        f"    stellar-zk call --contract-id {contract_id} --proof proofs/proof.bin --source {source}\n"
    )
