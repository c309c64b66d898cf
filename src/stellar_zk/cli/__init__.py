"""stellar-zk CLI - ZK DevKit for Stellar/Soroban.

Commands:
    build     - Compile the circuit/program and the verifier contract
    prove     - Generate a proof from an input file
    estimate  - Predict on-chain CPU, size and fee
    deploy    - Deploy the verifier with its verification key
    call      - Submit a proof to a deployed verifier
"""
from __future__ import annotations

import logging

import click

from .. import __version__
from .build_cmd import build_command
from .call_cmd import call_command
from .deploy_cmd import deploy_command
from .estimate_cmd import estimate_command
from .prove_cmd import prove_command

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _log_level(verbose: int) -> int:
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


@click.group()
@click.version_option(version=__version__, prog_name="stellar-zk")
@click.option("--config", "config_path", default="stellar-zk.config.json", show_default=True,
              type=click.Path(dir_okay=False), help="Path to stellar-zk.config.json")
@click.option("-v", "--verbose", count=True, help="Verbosity (-v info, -vv debug)")
@click.pass_context
def cli(ctx: click.Context, config_path: str, verbose: int) -> None:
    """stellar-zk - Groth16, UltraHonk and RISC Zero verifiers on Soroban

    \b
    Quick start:
      stellar-zk build --profile testnet
      stellar-zk prove --input inputs/input.json
      stellar-zk estimate --public-inputs 2
      stellar-zk deploy --source alice
      stellar-zk call --contract-id C... --proof proofs/proof.bin --source alice
    """
    logging.basicConfig(level=_log_level(verbose), format=LOG_FORMAT)
    logging.getLogger("stellar_zk").setLevel(_log_level(verbose))
    ctx.ensure_object(dict)
    ctx.obj["config"] = config_path
    ctx.obj["verbose"] = verbose


cli.add_command(build_command, name="build")
cli.add_command(prove_command, name="prove")
cli.add_command(estimate_command, name="estimate")
cli.add_command(deploy_command, name="deploy")
cli.add_command(call_command, name="call")


def main() -> None:
    """Console-script entry point."""
    cli(prog_name="stellar-zk")


__all__ = ["cli", "main"]
