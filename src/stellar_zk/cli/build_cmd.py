"""stellar-zk build - compile the circuit and the verifier contract."""
from __future__ import annotations

import click

from ..artifacts import save_build_artifacts
from ..backends import create_backend
from ..config import load_project
from ..locking import project_lock
from ..profile import PROFILE_NAMES, OptimizationProfile
from .common import project_dir, reports_errors
from .output import print_error, print_header, print_key_value, print_step, print_success, print_warning


@click.command("build")
@click.option("--profile", "profile_name", type=click.Choice(PROFILE_NAMES), default=None,
              help="Override the project's optimization profile")
@click.pass_context
@reports_errors
def build_command(ctx: click.Context, profile_name: str | None) -> None:
    """Build the circuit/program and the Soroban verifier contract."""
    print_header("stellar-zk build")
    root = project_dir(ctx)
    project, backend_config = load_project(root)
    profile = OptimizationProfile.from_name(profile_name or project.profile)

    backend = create_backend(project.backend)
    print_key_value("Backend", backend.display_name)
    print_key_value("Profile", profile.name)

    missing = backend.check_prerequisites()
    if missing:
        for item in missing:
            print_error(f"Missing tool: {item.tool_name} - {item.install_instructions}")
        raise SystemExit(1)
    for warning in backend.check_versions():
        print_warning(
            f"{warning.tool_name}: found v{warning.found_version}, "
            f"minimum v{warning.minimum_version} recommended"
        )

    with project_lock(root):
        print_step(1, 2, "Building circuit and contract...")
        artifacts = backend.build(root, backend_config, profile)
        print_step(2, 2, "Saving build artifacts...")
        save_build_artifacts(artifacts, root)

    print_success("Build complete")
    print_key_value("Circuit", artifacts.circuit_artifact)
    print_key_value("WASM", artifacts.verifier_wasm)
    print_key_value("VK", artifacts.verification_key)
    if artifacts.proving_key is not None:
        print_key_value("PK", artifacts.proving_key)
