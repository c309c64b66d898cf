from __future__ import annotations

import hashlib
import json
import struct
from pathlib import Path

import pytest

from stellar_zk.artifacts import BuildArtifacts
from stellar_zk.backends import (
    Groth16Backend,
    Risc0Backend,
    UltraHonkBackend,
    create_backend,
)
from stellar_zk.codec import RISC0_SELECTOR
from stellar_zk.config import BackendConfig, Risc0Settings, UltraHonkSettings, load_project
from stellar_zk.errors import (
    CircuitCompilationError,
    ConfigError,
    InputNotFoundError,
    MissingToolError,
    ProofGenerationError,
    UnknownBackendError,
)
from stellar_zk.profile import OptimizationProfile
from stellar_zk.toolchain import Version

from conftest import cargo_wasm_handler

DEV = OptimizationProfile.development()

VK_JSON = {
    "vk_alpha_1": ["1", "2", "1"],
    "vk_beta_2": [["3", "4"], ["5", "6"], ["1", "0"]],
    "vk_gamma_2": [["7", "8"], ["9", "10"], ["1", "0"]],
    "vk_delta_2": [["11", "12"], ["13", "14"], ["1", "0"]],
    "IC": [["15", "16", "1"], ["17", "18", "1"]],
}
PROOF_JSON = {
    "pi_a": ["1", "2", "1"],
    "pi_b": [["5", "6"], ["7", "8"], ["1", "0"]],
    "pi_c": ["3", "4", "1"],
    "protocol": "groth16",
}


def _touch(path: Path, data: bytes = b"x") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def _snarkjs(public: tuple = ("33",)):
    def handler(args, cwd, env):
        cmd = tuple(args[:2])
        if cmd == ("powersoftau", "contribute"):
            _touch(Path(args[3]))
        elif cmd in {("powersoftau", "new"), ("powersoftau", "prepare"), ("groth16", "setup"), ("wtns", "calculate")}:
            _touch(Path(args[-1]))
        elif cmd == ("zkey", "export"):
            _touch(Path(args[-1]), json.dumps(VK_JSON).encode())
        elif cmd == ("groth16", "prove"):
            _touch(Path(args[-2]), json.dumps(PROOF_JSON).encode())
            _touch(Path(args[-1]), json.dumps(list(public)).encode())

    return handler


def _circom(args, cwd, env):
    out = Path(args[args.index("-o") + 1])
    _touch(out / "main.r1cs")
    _touch(out / "main_js" / "main.wasm")


@pytest.fixture
def groth16_tools(fake_tools):
    fake_tools.on("circom", _circom)
    fake_tools.on("snarkjs", _snarkjs())
    return fake_tools


# --- factory and checks ----------------------------------------------------

@pytest.mark.parametrize(
    "name,cls",
    [("groth16", Groth16Backend), ("ultrahonk", UltraHonkBackend), ("risc0", Risc0Backend)],
)
def test_create_backend(name: str, cls) -> None:
    backend = create_backend(name, timeout=30.0)
    assert isinstance(backend, cls)
    assert backend.name == name
    assert backend.timeout == 30.0


def test_create_unknown_backend() -> None:
    with pytest.raises(UnknownBackendError):
        create_backend("plonk")


def test_check_prerequisites_lists_every_missing_tool(fake_tools) -> None:
    fake_tools.missing.update({"circom", "node"})
    missing = Groth16Backend().check_prerequisites()
    assert [m.tool_name for m in missing] == ["circom", "node"]
    assert all(m.install_instructions for m in missing)


def test_preflight_fails_before_any_tool_runs(fake_tools, tmp_project: Path) -> None:
    fake_tools.missing.add("snarkjs")
    _, config = load_project(tmp_project)
    with pytest.raises(MissingToolError, match="snarkjs"):
        Groth16Backend().build(tmp_project, config, DEV)
    assert fake_tools.calls == []


def test_check_versions(monkeypatch) -> None:
    found = {"nargo": Version(0, 30, 2), "bb": None}
    monkeypatch.setattr("stellar_zk.backends.base.detect_version", lambda tool: found[tool])
    warnings = UltraHonkBackend().check_versions()
    assert len(warnings) == 1
    assert warnings[0].tool_name == "nargo"
    assert warnings[0].found_version == "0.30.2"
    assert warnings[0].minimum_version == "0.36.0"


def test_versions_at_minimum_are_fine(monkeypatch) -> None:
    minimum = UltraHonkBackend.MIN_VERSIONS
    monkeypatch.setattr("stellar_zk.backends.base.detect_version", lambda tool: minimum[tool])
    assert UltraHonkBackend().check_versions() == []


def test_missing_section_is_config_error(fake_tools, tmp_project: Path) -> None:
    with pytest.raises(ConfigError, match="missing groth16 section"):
        Groth16Backend().build(tmp_project, BackendConfig(risc0=Risc0Settings()), DEV)


def test_estimate_cost_uses_public_input_count() -> None:
    from stellar_zk.artifacts import ProofArtifacts
    from stellar_zk.estimator import static_estimate

    proof = ProofArtifacts(b"", (bytes(32),) * 3, Path("p"))
    est = Groth16Backend().estimate_cost(Path("."), proof, None)
    assert est == static_estimate("groth16", 3)


# --- groth16 ---------------------------------------------------------------

def test_groth16_build(groth16_tools, tmp_project: Path) -> None:
    _, config = load_project(tmp_project)
    artifacts = Groth16Backend().build(tmp_project, config, DEV)
    target = tmp_project / "target"

    assert artifacts.circuit_artifact == target / "main.r1cs"
    assert artifacts.proving_key == target / "circuit.zkey"
    assert artifacts.verifier_wasm.name == "verifier.wasm"
    vk = artifacts.verification_key.read_bytes()
    assert len(vk) == 448 + 4 + 2 * 64
    # beta.x is stored c1 first
    assert vk[64:96] == (4).to_bytes(32, "big")
    assert vk[448:452] == struct.pack(">I", 2)

    assert (target / "pot12_final.ptau").exists()
    assert not (target / "pot12_final.ptau.tmp").exists()
    assert not (target / "pot12_final.ptau.contributed").exists()


def test_groth16_ceremony_runs_once(groth16_tools, tmp_project: Path) -> None:
    _, config = load_project(tmp_project)
    Groth16Backend().build(tmp_project, config, DEV)
    groth16_tools.calls.clear()
    Groth16Backend().build(tmp_project, config, DEV)
    assert not any(args[0] == "powersoftau" for name, args in groth16_tools.calls if name == "snarkjs")


def test_groth16_configured_ptau(groth16_tools, tmp_project: Path) -> None:
    _touch(tmp_project / "ptau" / "hermez.ptau")
    config = BackendConfig.model_validate({"groth16": {"ptau": "ptau/hermez.ptau"}})
    Groth16Backend().build(tmp_project, config, DEV)
    setup = next(args for name, args in groth16_tools.calls if args[:2] == ["groth16", "setup"])
    assert setup[3] == str(tmp_project / "ptau" / "hermez.ptau")


def test_groth16_missing_circuit(groth16_tools, tmp_project: Path) -> None:
    (tmp_project / "circuits" / "main.circom").unlink()
    _, config = load_project(tmp_project)
    with pytest.raises(CircuitCompilationError, match="circuit not found"):
        Groth16Backend().build(tmp_project, config, DEV)


def test_groth16_compile_error_carries_diagnostic(groth16_tools, tmp_project: Path) -> None:
    groth16_tools.on("circom", lambda args, cwd, env: (1, "", "error[T2021]: undeclared symbol"))
    _, config = load_project(tmp_project)
    with pytest.raises(CircuitCompilationError, match="T2021"):
        Groth16Backend().build(tmp_project, config, DEV)


def test_groth16_prove(groth16_tools, tmp_project: Path) -> None:
    _, config = load_project(tmp_project)
    backend = Groth16Backend()
    artifacts = backend.build(tmp_project, config, DEV)
    result = backend.prove(tmp_project, artifacts, tmp_project / "inputs" / "input.json")

    assert result.proof_path == tmp_project / "proofs" / "proof.bin"
    assert len(result.proof) == 256
    assert result.proof[:32] == (1).to_bytes(32, "big")
    assert result.proof[64:96] == (6).to_bytes(32, "big")
    assert result.proof[96:128] == (5).to_bytes(32, "big")
    assert result.public_inputs == ((33).to_bytes(32, "big"),)
    saved = json.loads((tmp_project / "proofs" / "public_inputs.json").read_text())
    assert saved["count"] == 1


def test_groth16_prove_rejects_oversized_public_input(groth16_tools, tmp_project: Path) -> None:
    _, config = load_project(tmp_project)
    backend = Groth16Backend()
    artifacts = backend.build(tmp_project, config, DEV)
    groth16_tools.on("snarkjs", _snarkjs(public=(str(2**256),)))
    with pytest.raises(ProofGenerationError, match="proof serialization"):
        backend.prove(tmp_project, artifacts, tmp_project / "inputs" / "input.json")
    assert not (tmp_project / "proofs" / "proof.bin").exists()
    assert not (tmp_project / "proofs" / "proof.json").exists()
    assert not (tmp_project / "proofs" / "public.json").exists()


def test_groth16_relative_project_dir(groth16_tools, tmp_project: Path, monkeypatch) -> None:
    seen = []

    def circom(args, cwd, env):
        seen.append(Path(cwd) / args[0])
        _circom(args, cwd, env)

    groth16_tools.on("circom", circom)
    monkeypatch.chdir(tmp_project.parent)
    relative = Path(tmp_project.name)
    _, config = load_project(relative)
    backend = Groth16Backend()
    artifacts = backend.build(relative, config, DEV)

    assert seen == [tmp_project / "circuits" / "main.circom"]
    assert seen[0].is_file()
    assert artifacts.circuit_artifact == tmp_project / "target" / "main.r1cs"

    result = backend.prove(relative, artifacts, relative / "inputs" / "input.json")
    assert result.proof_path == tmp_project / "proofs" / "proof.bin"
    assert result.proof_path.is_file()


def test_groth16_prove_missing_input(groth16_tools, tmp_project: Path) -> None:
    _, config = load_project(tmp_project)
    backend = Groth16Backend()
    artifacts = backend.build(tmp_project, config, DEV)
    with pytest.raises(InputNotFoundError):
        backend.prove(tmp_project, artifacts, tmp_project / "inputs" / "nope.json")


def test_groth16_prove_before_build(groth16_tools, tmp_project: Path) -> None:
    target = tmp_project / "target"
    artifacts = BuildArtifacts(target / "main.r1cs", Path("v.wasm"), target / "verification.key", target / "circuit.zkey")
    with pytest.raises(ProofGenerationError, match="stellar-zk build"):
        Groth16Backend().prove(tmp_project, artifacts, tmp_project / "inputs" / "input.json")


# --- ultrahonk -------------------------------------------------------------

def _ultrahonk_proof(values: list[int]) -> bytes:
    return struct.pack(">I", len(values)) + b"".join(v.to_bytes(32, "big") for v in values) + b"\xee" * 128


@pytest.fixture
def honk_tools(fake_tools):
    def nargo(args, cwd, env):
        if args[0] == "compile":
            _touch(Path(cwd).parent / "target" / "circuits.json", b"{}")
        elif args[0] == "execute":
            _touch(Path(cwd).parent / "target" / "witness")

    def bb(args, cwd, env):
        if args[0] == "write_vk":
            _touch(Path(args[-1]), b"vk")
        elif args[0] == "prove_ultra_honk":
            _touch(Path(args[-1]), _ultrahonk_proof([9, 10]))

    fake_tools.on("nargo", nargo)
    fake_tools.on("bb", bb)
    return fake_tools


def test_ultrahonk_build_and_prove(honk_tools, make_project) -> None:
    root = make_project("ultrahonk")
    config = BackendConfig(ultrahonk=UltraHonkSettings(oracle_hash="poseidon2"))
    backend = UltraHonkBackend()
    artifacts = backend.build(root, config, DEV)
    assert artifacts.proving_key is None
    assert artifacts.verification_key == root / "target" / "vk"

    result = backend.prove(root, artifacts, root / "inputs" / "input.json")
    assert result.public_inputs == ((9).to_bytes(32, "big"), (10).to_bytes(32, "big"))
    assert (root / "proofs" / "proof.bin").read_bytes() == _ultrahonk_proof([9, 10])

    bb_calls = [args for name, args in honk_tools.calls if name == "bb"]
    assert [c[0] for c in bb_calls] == ["write_vk", "prove_ultra_honk", "verify_ultra_honk"]
    assert all(c[c.index("--oracle_hash") + 1] == "poseidon2" for c in bb_calls)


def test_ultrahonk_verification_failure(honk_tools, make_project) -> None:
    root = make_project("ultrahonk")
    backend = UltraHonkBackend()
    artifacts = backend.build(root, load_project(root)[1], DEV)
    honk_tools.on(
        "bb",
        lambda args, cwd, env: (1, "", "sumcheck failed")
        if args[0] == "verify_ultra_honk"
        else _touch(Path(args[-1]), _ultrahonk_proof([1])),
    )
    with pytest.raises(ProofGenerationError, match="proof verification failed: sumcheck failed"):
        backend.prove(root, artifacts, root / "inputs" / "input.json")
    assert not (root / "proofs" / "proof.bin").exists()


def test_ultrahonk_default_oracle_hash(honk_tools, make_project) -> None:
    root = make_project("ultrahonk")
    target = root / "target"
    artifacts = BuildArtifacts(target / "circuits.json", Path("v.wasm"), target / "vk")
    UltraHonkBackend().prove(root, artifacts, root / "inputs" / "input.json")
    prove = next(args for name, args in honk_tools.calls if name == "bb")
    assert prove[prove.index("--oracle_hash") + 1] == "keccak"


# --- risc0 -----------------------------------------------------------------

def _host_binary(root: Path) -> Path:
    host = root / "programs" / "host" / "target" / "release" / "host"
    _touch(host, b"#!/bin/sh\n")
    return host


def _host_handler(seal: bytes, image_id: str = "ab" * 32):
    def handler(args, cwd, env):
        proofs = Path(cwd) / "proofs"
        _touch(proofs / "seal.bin", seal)
        _touch(proofs / "journal.bin", b"journal")
        _touch(proofs / "image_id.hex", image_id.encode() + b"\n")

    return handler


def test_risc0_build(fake_tools, make_project) -> None:
    root = make_project("risc0")
    wasm = cargo_wasm_handler(30_000)

    def cargo(args, cwd, env):
        if Path(cwd).name == "guest":
            _touch(Path(cwd) / "target" / args[-1] / "release" / "guest", b"\x7fELF")
        elif Path(cwd).name == "verifier":
            wasm(args, cwd, env)

    fake_tools.on("cargo", cargo)
    artifacts = Risc0Backend().build(root, load_project(root)[1], DEV)
    assert artifacts.circuit_artifact.read_bytes() == b"\x7fELF"
    assert artifacts.verification_key.exists()
    cached = json.loads((root / "target" / "risc0_config.json").read_text())
    assert cached["segment_limit_po2"] == 20


def test_risc0_prove(fake_tools, make_project) -> None:
    root = make_project("risc0")
    host = _host_binary(root)
    fake_tools.on("host", _host_handler(RISC0_SELECTOR + bytes(256)))
    artifacts = BuildArtifacts(root / "target" / "guest.elf", Path("v.wasm"), root / "target" / "risc0.vk")

    result = Risc0Backend().prove(root, artifacts, root / "inputs" / "input.json")
    assert result.proof_path == root / "proofs" / "receipt.bin"
    assert len(result.proof) == 260
    assert result.public_inputs == (bytes.fromhex("ab" * 32), hashlib.sha256(b"journal").digest())
    assert fake_tools.envs[str(host)]["RISC0_INPUT"] == str((root / "inputs" / "input.json").resolve())


def test_risc0_bad_seal(fake_tools, make_project) -> None:
    root = make_project("risc0")
    _host_binary(root)
    fake_tools.on("host", _host_handler(b"\x00\x00\x00\x00" + bytes(256)))
    artifacts = BuildArtifacts(root / "target" / "guest.elf", Path("v.wasm"), root / "target" / "risc0.vk")
    with pytest.raises(ProofGenerationError, match="invalid seal"):
        Risc0Backend().prove(root, artifacts, root / "inputs" / "input.json")
    assert not (root / "proofs" / "receipt.bin").exists()


def test_risc0_bad_image_id(fake_tools, make_project) -> None:
    root = make_project("risc0")
    _host_binary(root)
    fake_tools.on("host", _host_handler(RISC0_SELECTOR + bytes(256), image_id="abcd"))
    artifacts = BuildArtifacts(root / "target" / "guest.elf", Path("v.wasm"), root / "target" / "risc0.vk")
    with pytest.raises(ProofGenerationError, match="32 bytes"):
        Risc0Backend().prove(root, artifacts, root / "inputs" / "input.json")


def test_risc0_requires_host_binary(fake_tools, make_project) -> None:
    root = make_project("risc0")
    artifacts = BuildArtifacts(root / "target" / "guest.elf", Path("v.wasm"), root / "target" / "risc0.vk")
    with pytest.raises(ProofGenerationError, match="host binary not found"):
        Risc0Backend().prove(root, artifacts, root / "inputs" / "input.json")
