"""Project and backend configuration files.

A stellar-zk project directory holds two JSON files:

    stellar-zk.config.json   ProjectConfig  (name, backend, profile, contract)
    backend.config.json      BackendConfig  (per-backend settings)

Both are validated with pydantic; any read or schema failure is reported as a
``ConfigError`` naming the offending file.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError, ConfigNotFoundError, NotAProjectError, UnknownBackendError
from .profile import PROFILE_NAMES

LOGGER = logging.getLogger(__name__)

PROJECT_CONFIG_FILE = "stellar-zk.config.json"
BACKEND_CONFIG_FILE = "backend.config.json"

BACKEND_NAMES = ("groth16", "ultrahonk", "risc0")

ModelT = TypeVar("ModelT", bound=BaseModel)


class ContractConfig(BaseModel):
    name: str = "verifier"


class ProjectConfig(BaseModel):
    """Top-level project settings from stellar-zk.config.json."""

    name: str
    backend: str = Field(pattern="^(groth16|ultrahonk|risc0)$")
    profile: str = "development"
    contract: ContractConfig = Field(default_factory=ContractConfig)

    @field_validator("profile")
    @classmethod
    def _known_profile(cls, value: str) -> str:
        if value not in PROFILE_NAMES:
            raise ValueError(f"unknown profile {value!r}, expected one of {', '.join(PROFILE_NAMES)}")
        return value

    @classmethod
    def default_for_backend(cls, name: str, backend: str) -> "ProjectConfig":
        if backend not in BACKEND_NAMES:
            raise UnknownBackendError(backend)
        return cls(name=name, backend=backend)


class Groth16Settings(BaseModel):
    circuit: str = "circuits/main.circom"
    ptau: Optional[str] = Field(default=None, description="Existing Powers of Tau file; a dev ceremony is run when unset")


class UltraHonkSettings(BaseModel):
    oracle_hash: str = Field(default="keccak", pattern="^(keccak|poseidon2|starknet)$")


class Risc0Settings(BaseModel):
    guest_target: str = "riscv32im-risc0-zkvm-elf"
    segment_limit_po2: int = Field(default=20, ge=13, le=24)
    groth16_wrap: bool = True


class BackendConfig(BaseModel):
    """Per-backend settings from backend.config.json; only the active one is required."""

    groth16: Optional[Groth16Settings] = None
    ultrahonk: Optional[UltraHonkSettings] = None
    risc0: Optional[Risc0Settings] = None

    @classmethod
    def default_for_backend(cls, backend: str) -> "BackendConfig":
        if backend == "groth16":
            return cls(groth16=Groth16Settings())
        elif backend == "ultrahonk":
            return cls(ultrahonk=UltraHonkSettings())
        elif backend == "risc0":
            return cls(risc0=Risc0Settings())
        raise UnknownBackendError(backend)

    def section(self, backend: str) -> BaseModel:
        """Settings for ``backend``; ConfigError if the section is absent."""
        if backend not in BACKEND_NAMES:
            raise UnknownBackendError(backend)
        settings = getattr(self, backend)
        if settings is None:
            raise ConfigError(f"missing {backend} section in {BACKEND_CONFIG_FILE}")
        return settings


def read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text())
    except FileNotFoundError:
        raise ConfigNotFoundError(path) from None
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"cannot read config: {exc}", path) from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON at line {exc.lineno}: {exc.msg}", path) from exc


def load_model(path: Path, model: Type[ModelT]) -> ModelT:
    data = read_json(path)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"invalid config: {problems}", path) from exc


def save_model(path: Path, model: BaseModel) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(model.model_dump(exclude_none=True), indent=2) + "\n")


def load_project(project_dir: Path) -> Tuple[ProjectConfig, BackendConfig]:
    """Load both config files from ``project_dir``."""
    project_dir = Path(project_dir)
    project_path = project_dir / PROJECT_CONFIG_FILE
    if not project_path.is_file():
        raise NotAProjectError(project_dir)

    project = load_model(project_path, ProjectConfig)
    backend = load_model(project_dir / BACKEND_CONFIG_FILE, BackendConfig)
    LOGGER.debug("loaded project %s (backend=%s, profile=%s)", project.name, project.backend, project.profile)
    return project, backend


def write_project(project_dir: Path, project: ProjectConfig, backend: BackendConfig) -> None:
    save_model(Path(project_dir) / PROJECT_CONFIG_FILE, project)
    save_model(Path(project_dir) / BACKEND_CONFIG_FILE, backend)


__all__ = [
    "BACKEND_CONFIG_FILE",
    "BACKEND_NAMES",
    "PROJECT_CONFIG_FILE",
    "BackendConfig",
    "ContractConfig",
    "Groth16Settings",
    "ProjectConfig",
    "Risc0Settings",
    "UltraHonkSettings",
    "load_model",
    "load_project",
    "read_json",
    "save_model",
    "write_project",
]
