"""Build and proof artifacts, and the files that carry them between commands.

``build`` writes ``target/build_artifacts.json``; ``prove``, ``deploy``,
``call`` and ``estimate`` read it back. Paths are stored relative to the
project directory so a project can be moved or checked out elsewhere.

Every successful prove also writes ``proofs/public_inputs.json``::

    {"public_inputs_hex": ["00..01", ...], "count": 1, "total_proof_size": 256}
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from pydantic import BaseModel, ValidationError

from .errors import ArtifactsNotFoundError, ConfigError, ProofGenerationError

LOGGER = logging.getLogger(__name__)

ARTIFACTS_FILE = "build_artifacts.json"
PUBLIC_INPUTS_FILE = "public_inputs.json"


@dataclass(frozen=True)
class BuildArtifacts:
    """Outputs of ``build``. ``proving_key`` is only set for Groth16."""
    circuit_artifact: Path
    verifier_wasm: Path
    verification_key: Path
    proving_key: Optional[Path] = None


@dataclass(frozen=True)
class ProofArtifacts:
    proof: bytes
    public_inputs: tuple[bytes, ...]
    proof_path: Path

    @property
    def public_inputs_hex(self) -> list[str]:
        return [pi.hex() for pi in self.public_inputs]


class _ArtifactsFile(BaseModel):
    circuit_artifact: str
    verifier_wasm: str
    proving_key: Optional[str] = None
    verification_key: str


class _PublicInputsFile(BaseModel):
    public_inputs_hex: list[str]
    count: int
    total_proof_size: int


def _relative(path: Path, root: Path) -> str:
    path = Path(path)
    if not path.is_absolute():
        return path.as_posix()
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return Path(os.path.relpath(path, root)).as_posix()


def save_build_artifacts(artifacts: BuildArtifacts, project_dir: Path) -> Path:
    project_dir = Path(project_dir).resolve()
    path = project_dir / "target" / ARTIFACTS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)

    record = _ArtifactsFile(
        circuit_artifact=_relative(artifacts.circuit_artifact, project_dir),
        verifier_wasm=_relative(artifacts.verifier_wasm, project_dir),
        proving_key=_relative(artifacts.proving_key, project_dir) if artifacts.proving_key else None,
        verification_key=_relative(artifacts.verification_key, project_dir),
    )
    path.write_text(json.dumps(record.model_dump(), indent=2) + "\n")
    LOGGER.info("saved build artifacts to %s", path)
    return path


def load_build_artifacts(project_dir: Path) -> BuildArtifacts:
    """Read ``target/build_artifacts.json``; returned paths are absolute."""
    project_dir = Path(project_dir).resolve()
    path = project_dir / "target" / ARTIFACTS_FILE
    try:
        raw = json.loads(path.read_text())
    except FileNotFoundError:
        raise ArtifactsNotFoundError(path) from None
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON: {exc.msg}", path) from exc

    try:
        record = _ArtifactsFile.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid build artifacts: {exc.error_count()} problem(s)", path) from exc

    return BuildArtifacts(
        circuit_artifact=project_dir / record.circuit_artifact,
        verifier_wasm=project_dir / record.verifier_wasm,
        proving_key=project_dir / record.proving_key if record.proving_key else None,
        verification_key=project_dir / record.verification_key,
    )


def write_public_inputs_file(
    proof_dir: Path,
    public_inputs: Sequence[bytes],
    total_proof_size: int,
) -> Path:
    path = Path(proof_dir) / PUBLIC_INPUTS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    record = _PublicInputsFile(
        public_inputs_hex=[pi.hex() for pi in public_inputs],
        count=len(public_inputs),
        total_proof_size=total_proof_size,
    )
    path.write_text(json.dumps(record.model_dump(), indent=2) + "\n")
    return path


def load_public_inputs(path: Path) -> list[bytes]:
    """Read a public-inputs file back into 32-byte field elements."""
    path = Path(path)
    try:
        record = _PublicInputsFile.model_validate_json(path.read_text())
    except FileNotFoundError:
        raise ArtifactsNotFoundError(path) from None
    except ValidationError as exc:
        raise ConfigError(f"invalid public inputs file: {exc.error_count()} problem(s)", path) from exc

    inputs = []
    for i, value in enumerate(record.public_inputs_hex):
        try:
            raw = bytes.fromhex(value)
        except ValueError:
            raise ConfigError(f"public_inputs_hex[{i}] is not hex", path) from None
        if len(raw) != 32:
            raise ConfigError(f"public_inputs_hex[{i}] must be 32 bytes, got {len(raw)}", path)
        inputs.append(raw)
    return inputs


def finish_proof(
    project_dir: Path,
    proof: bytes,
    public_inputs: Sequence[bytes],
    proof_name: str,
) -> ProofArtifacts:
    """Write the proof and its public-inputs side file; shared tail of every ``prove``."""
    for i, pi in enumerate(public_inputs):
        if len(pi) != 32:
            raise ProofGenerationError(f"public input {i} is {len(pi)} bytes, expected 32")

    proof_dir = Path(project_dir) / "proofs"
    proof_dir.mkdir(parents=True, exist_ok=True)
    proof_path = proof_dir / proof_name
    proof_path.write_bytes(proof)
    write_public_inputs_file(proof_dir, public_inputs, len(proof))
    LOGGER.info("wrote %s (%d bytes, %d public inputs)", proof_path, len(proof), len(public_inputs))
    return ProofArtifacts(proof=bytes(proof), public_inputs=tuple(public_inputs), proof_path=proof_path)


__all__ = [
    "ARTIFACTS_FILE",
    "PUBLIC_INPUTS_FILE",
    "BuildArtifacts",
    "ProofArtifacts",
    "finish_proof",
    "load_build_artifacts",
    "load_public_inputs",
    "save_build_artifacts",
    "write_public_inputs_file",
]
