"""Optimization profiles for the verifier contract build.

Three canonical profiles, each strictly tighter than the last:

    development          dev build, no wasm-opt, no limits
    testnet              release, wasm-opt -Os, size limit enforced
    stellar-production   release, wasm-opt -Oz + strip, size and CPU limits enforced
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import UnknownProfileError

# Soroban protocol ceilings
MAX_WASM_SIZE = 65_536
MAX_CPU_INSTRUCTIONS = 100_000_000


class CompileMode(str, Enum):
    DEV = "dev"
    RELEASE = "release"

    @property
    def output_dir(self) -> str:
        """Directory name cargo uses under ``target/<triple>/``."""
        return "debug" if self is CompileMode.DEV else "release"


class WasmOptLevel(Enum):
    NONE = None
    OS = "-Os"
    OZ = "-Oz"

    @property
    def flag(self) -> str | None:
        return self.value


@dataclass(frozen=True)
class OptimizationProfile:
    name: str
    compile_mode: CompileMode
    opt_level: str
    lto: bool
    strip_symbols: bool
    codegen_units: int
    wasm_opt: WasmOptLevel
    overflow_checks: bool = True
    enforce_size_limit: bool = False
    enforce_cpu_limit: bool = False

    def __post_init__(self) -> None:
        if not self.overflow_checks:
            raise ValueError(f"profile {self.name}: overflow checks cannot be disabled")
        if self.strip_symbols and self.wasm_opt is WasmOptLevel.NONE:
            raise ValueError(f"profile {self.name}: strip requires a wasm-opt level")
        if self.enforce_cpu_limit and not self.enforce_size_limit:
            raise ValueError(f"profile {self.name}: CPU limit requires the size limit")
        if self.codegen_units < 1:
            raise ValueError(f"profile {self.name}: codegen_units must be >= 1")

    @property
    def is_release(self) -> bool:
        return self.compile_mode is CompileMode.RELEASE

    @classmethod
    def development(cls) -> "OptimizationProfile":
        return cls(
            name="development",
            compile_mode=CompileMode.DEV,
            opt_level="0",
            lto=False,
            strip_symbols=False,
            codegen_units=256,
            wasm_opt=WasmOptLevel.NONE,
        )

    @classmethod
    def testnet(cls) -> "OptimizationProfile":
        return cls(
            name="testnet",
            compile_mode=CompileMode.RELEASE,
            opt_level="s",
            lto=True,
            strip_symbols=False,
            codegen_units=1,
            wasm_opt=WasmOptLevel.OS,
            enforce_size_limit=True,
        )

    @classmethod
    def stellar_production(cls) -> "OptimizationProfile":
        return cls(
            name="stellar-production",
            compile_mode=CompileMode.RELEASE,
            opt_level="z",
            lto=True,
            strip_symbols=True,
            codegen_units=1,
            wasm_opt=WasmOptLevel.OZ,
            enforce_size_limit=True,
            enforce_cpu_limit=True,
        )

    @classmethod
    def from_name(cls, name: str) -> "OptimizationProfile":
        if name == "development":
            return cls.development()
        elif name == "testnet":
            return cls.testnet()
        elif name == "stellar-production":
            return cls.stellar_production()
        raise UnknownProfileError(name)


PROFILE_NAMES = ("development", "testnet", "stellar-production")


__all__ = [
    "MAX_WASM_SIZE",
    "MAX_CPU_INSTRUCTIONS",
    "PROFILE_NAMES",
    "CompileMode",
    "WasmOptLevel",
    "OptimizationProfile",
]
