"""Noir circuits proved with Barretenberg's UltraHonk.

Universal setup, so there is no proving key: ``bb write_vk`` exports the
verification key straight from the compiled ACIR. Every proof is verified
off-chain with ``bb verify_ultra_honk`` before it is written to ``proofs/``.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

from ..artifacts import BuildArtifacts, ProofArtifacts, finish_proof
from ..codec import extract_public_inputs
from ..codec.ultrahonk import COUNT_HEADER_SIZE
from ..config import BackendConfig
from ..errors import CircuitCompilationError, ProofGenerationError
from ..profile import OptimizationProfile
from ..toolchain import Version
from .base import ZkBackend

LOGGER = logging.getLogger(__name__)

CACHED_SETTINGS = "ultrahonk_config.json"
DEFAULT_ORACLE_HASH = "keccak"


def load_oracle_hash(target: Path) -> str:
    """Oracle hash used at build time, or keccak if the cache is absent or unreadable."""
    try:
        data = json.loads((target / CACHED_SETTINGS).read_text())
    except (OSError, json.JSONDecodeError):
        return DEFAULT_ORACLE_HASH
    value = data.get("oracle_hash") if isinstance(data, dict) else None
    return value if isinstance(value, str) and value else DEFAULT_ORACLE_HASH


class UltraHonkBackend(ZkBackend):
    name = "ultrahonk"
    display_name = "Noir + UltraHonk (Barretenberg)"
    REQUIRED_TOOLS = ("nargo", "bb")
    MIN_VERSIONS = {
        "nargo": Version(0, 36, 0),
        "bb": Version(0, 56, 0),
    }

    def build(
        self,
        project_dir: Path,
        backend_config: BackendConfig,
        profile: OptimizationProfile,
    ) -> BuildArtifacts:
        settings = backend_config.section(self.name)
        self.preflight()
        project_dir = Path(project_dir).resolve()
        target = self.target_dir(project_dir)

        acir = target / "circuits.json"
        LOGGER.info("compiling Noir circuit with nargo")
        self.run("nargo", ["compile"], CircuitCompilationError, cwd=project_dir / "circuits", outputs=[acir])

        vk = target / "vk"
        LOGGER.info("generating verification key with bb (oracle hash %s)", settings.oracle_hash)
        self.run(
            "bb",
            ["write_vk", "--oracle_hash", settings.oracle_hash, "-b", acir, "-o", vk],
            CircuitCompilationError,
            outputs=[vk],
        )
        self.write_cached_settings(target, CACHED_SETTINGS, {"oracle_hash": settings.oracle_hash})

        wasm = self.build_verifier(project_dir, profile)
        return BuildArtifacts(circuit_artifact=acir, verifier_wasm=wasm.path, verification_key=vk)

    def prove(
        self,
        project_dir: Path,
        build_artifacts: BuildArtifacts,
        input_path: Path,
    ) -> ProofArtifacts:
        self.preflight()
        # nargo reads Prover.toml itself; the input only has to exist
        self.require_input(input_path)
        project_dir = Path(project_dir).resolve()
        target = self.target_dir(project_dir)
        oracle_hash = load_oracle_hash(target)

        witness = target / "witness"
        LOGGER.info("executing Noir circuit to generate witness")
        self.run("nargo", ["execute"], ProofGenerationError, cwd=project_dir / "circuits")

        # proved into target/ first so an unverified proof never lands in proofs/
        raw_proof = target / "proof.ultrahonk"
        LOGGER.info("generating UltraHonk proof with bb")
        self.run(
            "bb",
            [
                "prove_ultra_honk",
                "--oracle_hash", oracle_hash,
                "-b", build_artifacts.circuit_artifact,
                "-w", witness,
                "-o", raw_proof,
            ],
            ProofGenerationError,
            outputs=[raw_proof],
        )

        LOGGER.info("verifying UltraHonk proof off-chain")
        self.run(
            "bb",
            ["verify_ultra_honk", "--oracle_hash", oracle_hash, "-p", raw_proof, "-k", build_artifacts.verification_key],
            ProofGenerationError,
            prefix="proof verification failed: ",
        )

        proof = raw_proof.read_bytes()
        if len(proof) < COUNT_HEADER_SIZE:
            raise ProofGenerationError(f"malformed UltraHonk proof: {len(proof)} bytes")
        return finish_proof(project_dir, proof, extract_public_inputs(proof), "proof.bin")


__all__ = ["UltraHonkBackend", "load_oracle_hash"]
