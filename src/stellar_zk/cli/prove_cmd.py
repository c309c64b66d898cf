"""stellar-zk prove - generate a proof from an input file."""
from __future__ import annotations

import shutil
from pathlib import Path

import click

from ..artifacts import load_build_artifacts
from ..backends import create_backend
from ..config import load_project
from ..locking import project_lock
from .common import project_dir, reports_errors
from .output import print_header, print_key_value, print_step, print_success


@click.command("prove")
@click.option("--input", "-i", "input_path", type=click.Path(path_type=Path), required=True,
              help="Path to the input file")
@click.option("--output", "-o", "output_path", type=click.Path(path_type=Path), default=None,
              help="Also copy the proof to this path")
@click.pass_context
@reports_errors
def prove_command(ctx: click.Context, input_path: Path, output_path: Path | None) -> None:
    """Generate a ZK proof."""
    print_header("stellar-zk prove")
    root = project_dir(ctx)
    project, _ = load_project(root)

    backend = create_backend(project.backend)
    print_key_value("Backend", backend.display_name)
    print_key_value("Input", input_path)

    with project_lock(root):
        print_step(1, 2, "Loading build artifacts...")
        build_artifacts = load_build_artifacts(root)
        print_step(2, 2, "Generating proof...")
        proof = backend.prove(root, build_artifacts, input_path.resolve())

    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(proof.proof_path, output_path)

    print_success("Proof generated")
    print_key_value("Proof file", output_path or proof.proof_path)
    print_key_value("Proof size", f"{len(proof.proof)} bytes")
    print_key_value("Public inputs", len(proof.public_inputs))
