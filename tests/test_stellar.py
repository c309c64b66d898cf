from __future__ import annotations

import json
from pathlib import Path

import pytest

from stellar_zk.errors import DeployError, MissingToolError, StellarCliError
from stellar_zk.stellar import SimulationResult, StellarCli

CONTRACT_ID = "C" + "A" * 55


def test_deploy_passes_constructor_args(fake_tools) -> None:
    fake_tools.on("stellar", lambda args, cwd, env: (0, CONTRACT_ID + "\n", ""))
    cid = StellarCli().deploy(Path("v.wasm"), "testnet", "alice", [("vk_bytes", "abcd")])
    assert cid == CONTRACT_ID
    assert fake_tools.calls[-1][1] == [
        "contract", "deploy",
        "--wasm", "v.wasm",
        "--network", "testnet",
        "--source", "alice",
        "--", "--vk_bytes", "abcd",
    ]


def test_deploy_failure(fake_tools) -> None:
    fake_tools.on("stellar", lambda args, cwd, env: (1, "", "error: account not found"))
    with pytest.raises(DeployError, match="account not found"):
        StellarCli().deploy(Path("v.wasm"), "testnet", "alice")


def test_invoke_argv(fake_tools) -> None:
    fake_tools.on("stellar", lambda args, cwd, env: (0, "true\n", ""))
    out = StellarCli().invoke(CONTRACT_ID, "verify", [("proof", "00"), ("nullifier", "11")], "local", "bob")
    assert out == "true"
    args = fake_tools.calls[-1][1]
    assert args[args.index("--") + 1:] == ["verify", "--proof", "00", "--nullifier", "11"]
    assert "--sim-only" not in args


def test_invoke_failure_is_stellar_error(fake_tools) -> None:
    fake_tools.on("stellar", lambda args, cwd, env: (1, "", "HostError: Error(Contract, #3)"))
    with pytest.raises(StellarCliError, match="#3"):
        StellarCli().invoke(CONTRACT_ID, "verify", [], "testnet", "bob")


def test_simulate_parses_resources(fake_tools) -> None:
    report = {"cpu_insns": 12_000_000, "mem_bytes": 800_000, "resource_fee": 2_500, "read_bytes": 3, "write_bytes": 1}
    fake_tools.on("stellar", lambda args, cwd, env: (0, json.dumps(report), ""))
    sim = StellarCli().simulate(CONTRACT_ID, "verify", [("proof", "00")], "testnet")
    assert sim == SimulationResult(12_000_000, 800_000, 2_500, 3, 1)
    args = fake_tools.calls[-1][1]
    assert "--sim-only" in args
    assert "--source" not in args


@pytest.mark.parametrize(
    "text",
    ["", "not json", "[1, 2]", "AAAAAgAAAAB...", json.dumps({"mem_bytes": 900_000})],
)
def test_unreadable_simulation_output_raises(text: str) -> None:
    with pytest.raises(StellarCliError):
        SimulationResult.from_json(text)


def test_simulation_result_tolerates_bad_fields() -> None:
    text = json.dumps({"cpu_insns": 10, "mem_bytes": -5, "resource_fee": True, "read_bytes": "lots"})
    assert SimulationResult.from_json(text) == SimulationResult(10, 0, 0, 0, 0)


def test_numeric_strings_are_accepted() -> None:
    assert SimulationResult.from_json('{"cpu_insns": "1234"}').cpu_instructions == 1234


def test_missing_cli(monkeypatch) -> None:
    monkeypatch.setattr("stellar_zk.stellar.shutil.which", lambda tool: None)
    with pytest.raises(MissingToolError, match="stellar"):
        StellarCli()
