"""Helpers shared by the stellar-zk commands."""
from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Any, Callable, TypeVar

import click

from ..errors import StellarZkError
from .output import print_error

LOGGER = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def reports_errors(fn: F) -> F:
    """Turn a StellarZkError into a one-line message and exit status 1."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except StellarZkError as exc:
            LOGGER.debug("command failed", exc_info=True)
            print_error(str(exc))
            raise SystemExit(1)

    return wrapper  # type: ignore[return-value]


def project_dir(ctx: click.Context) -> Path:
    """Directory holding the --config file (default: ./stellar-zk.config.json)."""
    config_path = Path(ctx.obj["config"])
    return config_path.parent.resolve()


def config_exists(ctx: click.Context) -> bool:
    return Path(ctx.obj["config"]).is_file()
