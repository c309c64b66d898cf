"""RISC Zero zkVM with a Groth16-wrapped receipt.

The guest program is compiled for the zkVM and a host binary drives proving.
The host writes ``proofs/seal.bin``, ``proofs/journal.bin`` and
``proofs/image_id.hex``; the on-chain public inputs are the image id and the
SHA-256 of the journal. The verification key is universal, so ``build`` only
leaves a placeholder for it.
"""
from __future__ import annotations

import hashlib
import logging
import shutil
from pathlib import Path

from ..artifacts import BuildArtifacts, ProofArtifacts, finish_proof
from ..codec import SEAL_SIZE, validate_seal
from ..config import BackendConfig
from ..errors import CircuitCompilationError, ProofGenerationError
from ..profile import OptimizationProfile
from .base import ZkBackend

LOGGER = logging.getLogger(__name__)

CACHED_SETTINGS = "risc0_config.json"
ELF_PLACEHOLDER = b"[elf placeholder]"
VK_PLACEHOLDER = b"[risc0 universal vk]"


class Risc0Backend(ZkBackend):
    name = "risc0"
    display_name = "RISC Zero (zkVM)"
    REQUIRED_TOOLS = ("cargo-risczero", "docker")

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

        guest_dir = project_dir / "programs" / "guest"
        LOGGER.info("building RISC Zero guest program (%s)", settings.guest_target)
        self.run(
            "cargo",
            ["build", "--release", "--target", settings.guest_target],
            CircuitCompilationError,
            cwd=guest_dir,
            prefix="RISC Zero guest build failed: ",
        )

        elf_src = guest_dir / "target" / settings.guest_target / "release" / "guest"
        elf = target / "guest.elf"
        if elf_src.exists():
            shutil.copyfile(elf_src, elf)
            LOGGER.info("copied guest ELF to %s", elf)
        else:
            LOGGER.warning("guest ELF not found at %s; writing placeholder", elf_src)
            elf.write_bytes(ELF_PLACEHOLDER)

        LOGGER.info("building RISC Zero host binary")
        self.run(
            "cargo",
            ["build", "--release"],
            CircuitCompilationError,
            cwd=project_dir / "programs" / "host",
            prefix="RISC Zero host build failed: ",
        )

        self.write_cached_settings(target, CACHED_SETTINGS, settings.model_dump())

        wasm = self.build_verifier(project_dir, profile)

        vk = target / "risc0.vk"
        if not vk.exists():
            vk.write_bytes(VK_PLACEHOLDER)

        return BuildArtifacts(circuit_artifact=elf, verifier_wasm=wasm.path, verification_key=vk)

    def prove(
        self,
        project_dir: Path,
        build_artifacts: BuildArtifacts,
        input_path: Path,
    ) -> ProofArtifacts:
        self.preflight()
        input_path = self.require_input(input_path)
        project_dir = Path(project_dir).resolve()

        host = project_dir / "programs" / "host" / "target" / "release" / "host"
        if not host.exists():
            raise ProofGenerationError("host binary not found, run `stellar-zk build` first")

        proof_dir = project_dir / "proofs"
        proof_dir.mkdir(parents=True, exist_ok=True)
        seal_path = proof_dir / "seal.bin"
        journal_path = proof_dir / "journal.bin"
        image_id_path = proof_dir / "image_id.hex"

        LOGGER.info("generating RISC Zero proof via host binary")
        self.run(
            str(host),
            [],
            ProofGenerationError,
            cwd=project_dir,
            env={"RISC0_INPUT": str(input_path.resolve())},
            outputs=[seal_path, journal_path, image_id_path],
            prefix="host binary failed: ",
        )

        seal = _read_output(seal_path).read_bytes()
        journal = _read_output(journal_path).read_bytes()
        image_id = _parse_image_id(_read_output(image_id_path).read_text())

        if not validate_seal(seal):
            raise ProofGenerationError(
                f"invalid seal: expected {SEAL_SIZE} bytes with correct selector, got {len(seal)} bytes"
            )

        journal_digest = hashlib.sha256(journal).digest()
        return finish_proof(project_dir, seal, [image_id, journal_digest], "receipt.bin")


def _read_output(path: Path) -> Path:
    if not path.is_file():
        raise ProofGenerationError(f"host binary did not write {path.name}")
    return path


def _parse_image_id(text: str) -> bytes:
    try:
        image_id = bytes.fromhex(text.strip())
    except ValueError as exc:
        raise ProofGenerationError(f"invalid image_id hex: {exc}") from exc
    if len(image_id) != 32:
        raise ProofGenerationError(f"image_id must be 32 bytes, got {len(image_id)}")
    return image_id


__all__ = ["Risc0Backend"]
