"""Groth16 over BN254: Circom circuits, snarkjs setup and proving.

Produces 256-byte proofs (A|B|C) checked on Soroban with a 4-pairing
verification. Needs a per-circuit trusted setup; without a configured
Powers of Tau file a small development ceremony (2^12 constraints) is run.
"""
from __future__ import annotations

import logging
from pathlib import Path

from ..artifacts import BuildArtifacts, ProofArtifacts, finish_proof
from ..codec import proof_from_snarkjs, public_inputs_from_snarkjs, verification_key_from_snarkjs
from ..config import BackendConfig
from ..errors import CircuitCompilationError, CodecError, ProofGenerationError
from ..profile import OptimizationProfile
from .base import ZkBackend

LOGGER = logging.getLogger(__name__)

DEV_PTAU_POWER = 12
DEV_PTAU_ENTROPY = "stellar-zk-dev-entropy"


def witness_wasm_path(target: Path, circuit_name: str) -> Path:
    """circom writes the witness generator to ``<out>/<name>_js/<name>.wasm``."""
    return target / f"{circuit_name}_js" / f"{circuit_name}.wasm"


class Groth16Backend(ZkBackend):
    name = "groth16"
    display_name = "Groth16 (Circom + snarkjs)"
    REQUIRED_TOOLS = ("circom", "snarkjs", "node")

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

        circuit = project_dir / settings.circuit
        if not circuit.is_file():
            raise CircuitCompilationError(f"circuit not found: {circuit}")
        r1cs = target / f"{circuit.stem}.r1cs"

        LOGGER.info("compiling circuit %s", circuit)
        self.run(
            "circom",
            [circuit, "--r1cs", "--wasm", "--sym", "-o", target],
            CircuitCompilationError,
            cwd=project_dir,
            outputs=[r1cs],
        )

        if settings.ptau:
            ptau = project_dir / settings.ptau
            if not ptau.is_file():
                raise CircuitCompilationError(f"Powers of Tau file not found: {ptau}")
        else:
            ptau = target / f"pot{DEV_PTAU_POWER}_final.ptau"
            if not ptau.exists():
                self.dev_powers_of_tau(ptau)

        zkey = target / "circuit.zkey"
        vk_json = target / "verification_key.json"
        LOGGER.info("running trusted setup (snarkjs groth16 setup)")
        self.run("snarkjs", ["groth16", "setup", r1cs, ptau, zkey], CircuitCompilationError, outputs=[zkey])
        self.run(
            "snarkjs",
            ["zkey", "export", "verificationkey", zkey, vk_json],
            CircuitCompilationError,
            outputs=[vk_json],
        )

        vk_bin = target / "verification.key"
        vk_bin.write_bytes(verification_key_from_snarkjs(self.read_json(vk_json, CircuitCompilationError)))
        LOGGER.info("keys generated: zkey=%s vk=%s", zkey, vk_bin)

        wasm = self.build_verifier(project_dir, profile)
        return BuildArtifacts(
            circuit_artifact=r1cs,
            verifier_wasm=wasm.path,
            verification_key=vk_bin,
            proving_key=zkey,
        )

    def dev_powers_of_tau(self, output: Path) -> None:
        """new, contribute, prepare phase2. Not for production use."""
        LOGGER.info("generating development Powers of Tau ceremony (2^%d)", DEV_PTAU_POWER)
        fresh = output.with_name(output.name + ".tmp")
        contributed = output.with_name(output.name + ".contributed")
        try:
            self.run(
                "snarkjs",
                ["powersoftau", "new", "bn128", str(DEV_PTAU_POWER), fresh],
                CircuitCompilationError,
                outputs=[fresh],
            )
            self.run(
                "snarkjs",
                ["powersoftau", "contribute", fresh, contributed, "--name=dev", f"-e={DEV_PTAU_ENTROPY}"],
                CircuitCompilationError,
                outputs=[contributed],
            )
            self.run(
                "snarkjs",
                ["powersoftau", "prepare", "phase2", contributed, output],
                CircuitCompilationError,
                outputs=[output],
            )
        finally:
            fresh.unlink(missing_ok=True)
            contributed.unlink(missing_ok=True)

    def prove(
        self,
        project_dir: Path,
        build_artifacts: BuildArtifacts,
        input_path: Path,
    ) -> ProofArtifacts:
        self.preflight()
        input_path = self.require_input(input_path)
        project_dir = Path(project_dir).resolve()
        target = self.target_dir(project_dir)

        witness_wasm = witness_wasm_path(target, build_artifacts.circuit_artifact.stem)
        if not witness_wasm.exists():
            raise ProofGenerationError(
                f"witness generator WASM not found: {witness_wasm}. Run 'stellar-zk build' first."
            )
        if build_artifacts.proving_key is None:
            raise ProofGenerationError("zkey path not set, run 'stellar-zk build' first")

        witness = target / "witness.wtns"
        LOGGER.info("computing witness")
        self.run(
            "snarkjs",
            ["wtns", "calculate", witness_wasm, input_path, witness],
            ProofGenerationError,
            outputs=[witness],
            prefix="snarkjs wtns failed: ",
        )

        # snarkjs JSON stays in target/; only the encoded proof reaches proofs/
        proof_json = target / "proof.json"
        public_json = target / "public.json"
        LOGGER.info("generating Groth16 proof")
        self.run(
            "snarkjs",
            ["groth16", "prove", build_artifacts.proving_key, witness, proof_json, public_json],
            ProofGenerationError,
            outputs=[proof_json, public_json],
            prefix="snarkjs groth16 failed: ",
        )

        try:
            proof = proof_from_snarkjs(self.read_json(proof_json, ProofGenerationError))
            public_inputs = public_inputs_from_snarkjs(self.read_json(public_json, ProofGenerationError))
        except CodecError as exc:
            raise ProofGenerationError(f"proof serialization: {exc}") from exc

        return finish_proof(project_dir, proof, public_inputs, "proof.bin")


__all__ = ["Groth16Backend", "witness_wasm_path"]
