"""stellar-zk - ZK proof tooling for Stellar/Soroban.

Submodules:
    codec      - BN254 field/point/proof/VK/seal wire formats
    pipeline   - cargo -> wasm-opt -> wasm-strip -> size check
    estimator  - tiered CPU/memory/size/fee estimates
    backends   - groth16, ultrahonk, risc0 lifecycles
    cli        - stellar-zk command line

Public API:
    from stellar_zk import create_backend, OptimizationProfile, static_estimate
"""
from __future__ import annotations

__version__ = "0.1.0"

from stellar_zk.artifacts import BuildArtifacts, ProofArtifacts, load_build_artifacts, save_build_artifacts
from stellar_zk.backends import ZkBackend, create_backend
from stellar_zk.config import BackendConfig, ProjectConfig, load_project
from stellar_zk.errors import StellarZkError
from stellar_zk.estimator import CostEstimate, apply_artifact_size, apply_simulation, static_estimate
from stellar_zk.pipeline import WasmOutput, build_and_optimize
from stellar_zk.profile import MAX_CPU_INSTRUCTIONS, MAX_WASM_SIZE, OptimizationProfile

__all__ = [
    "__version__",
    "BackendConfig",
    "BuildArtifacts",
    "CostEstimate",
    "MAX_CPU_INSTRUCTIONS",
    "MAX_WASM_SIZE",
    "OptimizationProfile",
    "ProjectConfig",
    "ProofArtifacts",
    "StellarZkError",
    "WasmOutput",
    "ZkBackend",
    "apply_artifact_size",
    "apply_simulation",
    "build_and_optimize",
    "create_backend",
    "load_build_artifacts",
    "load_project",
    "save_build_artifacts",
    "static_estimate",
]
