"""Proving backends. The set is closed: groth16, ultrahonk, risc0."""
from __future__ import annotations

import threading

from ..errors import UnknownBackendError
from .base import MissingPrerequisite, VersionWarning, ZkBackend
from .groth16 import Groth16Backend
from .risc0 import Risc0Backend
from .ultrahonk import UltraHonkBackend

BACKEND_NAMES = ("groth16", "ultrahonk", "risc0")


def create_backend(
    name: str,
    *,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
) -> ZkBackend:
    if name == "groth16":
        return Groth16Backend(timeout=timeout, cancel=cancel)
    elif name == "ultrahonk":
        return UltraHonkBackend(timeout=timeout, cancel=cancel)
    elif name == "risc0":
        return Risc0Backend(timeout=timeout, cancel=cancel)
    raise UnknownBackendError(name)


__all__ = [
    "BACKEND_NAMES",
    "Groth16Backend",
    "MissingPrerequisite",
    "Risc0Backend",
    "UltraHonkBackend",
    "VersionWarning",
    "ZkBackend",
    "create_backend",
]
